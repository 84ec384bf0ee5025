"""Utility modules for releasepipe."""

from releasepipe.utils.shell import Shell, ShellError, format_template, run, strip_ansi
from releasepipe.utils.version import (
    SEMVER_PATTERN,
    VersionInfo,
    clean_version,
    coerce_version,
    compare_versions,
    increment_version,
    is_valid_version,
    parse_version,
)

__all__ = [
    # Shell utilities
    "run",
    "strip_ansi",
    "format_template",
    "Shell",
    "ShellError",
    # Version utilities
    "parse_version",
    "is_valid_version",
    "clean_version",
    "coerce_version",
    "compare_versions",
    "increment_version",
    "VersionInfo",
    "SEMVER_PATTERN",
]
