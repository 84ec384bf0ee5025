"""Configuration management for releasepipe."""

from releasepipe.config.loader import load_config
from releasepipe.config.models import (
    DistOptions,
    GitHubOptions,
    GitLabOptions,
    GitOptions,
    NpmOptions,
    ReleaseOptions,
    ScriptsOptions,
)
from releasepipe.config.runtime import Config

__all__ = [
    "Config",
    "DistOptions",
    "GitHubOptions",
    "GitLabOptions",
    "GitOptions",
    "NpmOptions",
    "ReleaseOptions",
    "ScriptsOptions",
    "load_config",
]
