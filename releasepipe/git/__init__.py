"""Git operations and clients.

queries holds read-only inspection functions, operations the mutating
commands (always run through the run's Shell). Git and GitDist are the
collaborators the pipeline talks to.
"""

from releasepipe.git.client import Git
from releasepipe.git.dist import GitDist, split_repo

__all__ = ["Git", "GitDist", "split_repo"]
