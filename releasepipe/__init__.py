"""Release pipeline: version, changelog, commit, tag, push, release, publish."""

__version__ = "0.1.0"

from releasepipe.exceptions import (
    ConfigurationError,
    EcosystemError,
    GitError,
    PublishError,
    ReleaseError,
    ReleaseTimeoutError,
    ValidationError,
)

__all__ = [
    "__version__",
    "ReleaseError",
    "ConfigurationError",
    "ValidationError",
    "GitError",
    "PublishError",
    "EcosystemError",
    "ReleaseTimeoutError",
]
