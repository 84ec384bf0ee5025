"""Remote release and publish clients."""

from releasepipe.publishers.base import PublishStatus, RepoInfo, parse_repo
from releasepipe.publishers.github import GitHub
from releasepipe.publishers.gitlab import GitLab
from releasepipe.publishers.npm import NpmClient

__all__ = [
    "GitHub",
    "GitLab",
    "NpmClient",
    "PublishStatus",
    "RepoInfo",
    "parse_repo",
]
