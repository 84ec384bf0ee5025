"""Version parsing, validation, and manipulation utilities.

This module provides semantic versioning support (SemVer 2.0.0): parsing,
validation, precedence comparison, and node-semver compatible increments.

Version strings follow MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD].
Git tags may carry a prefix (e.g. 'v1.2.3', 'release-1.2.3').
"""

import re
from dataclasses import dataclass, field
from typing import Literal

from releasepipe.exceptions import ValidationError

ReleaseType = Literal[
    "major", "minor", "patch", "premajor", "preminor", "prepatch", "prerelease"
]
RELEASE_TYPES: tuple[str, ...] = ("major", "minor", "patch")
PRE_RELEASE_TYPES: tuple[str, ...] = ("premajor", "preminor", "prepatch")
ALL_RELEASE_TYPES: tuple[str, ...] = (*RELEASE_TYPES, *PRE_RELEASE_TYPES, "prerelease")

_IDENTIFIER = r"(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"

# Full semantic version, no prefix
SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    rf"(?:-({_IDENTIFIER}(?:\.{_IDENTIFIER})*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

# Loose match used to pull a version out of tag names
COERCE_PATTERN = re.compile(
    r"(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?(?:\+([0-9A-Za-z-.]+))?"
)

PreReleaseId = str | int


@dataclass(frozen=True)
class VersionInfo:
    """Parsed semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[PreReleaseId, ...] = field(default_factory=tuple)
    build: tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(str(part) for part in self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text


def _split_prerelease(text: str | None) -> tuple[PreReleaseId, ...]:
    if not text:
        return ()
    return tuple(int(part) if part.isdigit() else part for part in text.split("."))


def parse_version(version_str: str) -> VersionInfo:
    """Parse a semantic version string.

    Args:
        version_str: Version string (e.g., '1.2.3', 'v1.2.3-alpha.1+build.5')

    Returns:
        VersionInfo with numeric and pre-release components

    Raises:
        ValidationError: If version string is empty or not valid semver

    Examples:
        >>> parse_version('1.2.3').patch
        3
        >>> parse_version('v1.1.0-alpha.0').prerelease
        ('alpha', 0)
    """
    if not version_str or not version_str.strip():
        raise ValidationError(
            "Empty version string",
            details="Version string cannot be empty or whitespace",
            fix_hint="Provide a valid semantic version (e.g., '1.2.3')",
        )

    match = SEMVER_PATTERN.match(clean_version(version_str))
    if not match:
        raise ValidationError(
            f"Invalid version format: '{version_str}'",
            details="Version must follow semantic versioning: MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]",
            fix_hint="Use format like '1.2.3', 'v1.2.3' or '1.2.3-beta.0'",
        )

    return VersionInfo(
        major=int(match.group(1)),
        minor=int(match.group(2)),
        patch=int(match.group(3)),
        prerelease=_split_prerelease(match.group(4)),
        build=tuple(match.group(5).split(".")) if match.group(5) else (),
    )


def clean_version(version_str: str) -> str:
    """Strip whitespace and a leading 'v' or '=' from a version string.

    Examples:
        >>> clean_version(' v1.2.3 ')
        '1.2.3'
    """
    return version_str.strip().lstrip("=v").strip()


def is_valid_version(version_str: str | None) -> bool:
    """Check if a string is a valid semantic version (prefix 'v' allowed).

    Examples:
        >>> is_valid_version('1.2.3')
        True
        >>> is_valid_version('1.2')
        False
        >>> is_valid_version('mini')
        False
    """
    if not version_str or not version_str.strip():
        return False
    return SEMVER_PATTERN.match(clean_version(version_str)) is not None


def coerce_version(text: str | None) -> str | None:
    """Extract the first semantic version embedded in text (e.g. a tag name).

    Examples:
        >>> coerce_version('release-1.2.3')
        '1.2.3'
        >>> coerce_version('v2.0.0-rc.1')
        '2.0.0-rc.1'
        >>> coerce_version('latest') is None
        True
    """
    if not text:
        return None
    match = COERCE_PATTERN.search(text)
    if not match:
        return None
    candidate = match.group(0)
    return str(parse_version(candidate)) if is_valid_version(candidate) else None


def _compare_identifiers(a: PreReleaseId, b: PreReleaseId) -> int:
    if isinstance(a, int) and isinstance(b, int):
        return (a > b) - (a < b)
    # Numeric identifiers always have lower precedence than alphanumeric ones
    if isinstance(a, int):
        return -1
    if isinstance(b, int):
        return 1
    return (a > b) - (a < b)


def compare_versions(v1: str, v2: str) -> int:
    """Compare two semantic versions by precedence.

    Build metadata is ignored; a pre-release sorts before its release.

    Returns:
        -1 if v1 < v2, 0 if equal, 1 if v1 > v2

    Raises:
        ValidationError: If either version string is invalid

    Examples:
        >>> compare_versions('1.2.3', '1.2.4')
        -1
        >>> compare_versions('1.0.0', '1.0.0-rc.1')
        1
        >>> compare_versions('1.0.0-alpha.1', '1.0.0-alpha.beta')
        -1
    """
    a = parse_version(v1)
    b = parse_version(v2)

    core_a = (a.major, a.minor, a.patch)
    core_b = (b.major, b.minor, b.patch)
    if core_a != core_b:
        return -1 if core_a < core_b else 1

    if not a.prerelease and not b.prerelease:
        return 0
    if not a.prerelease:
        return 1
    if not b.prerelease:
        return -1

    for left, right in zip(a.prerelease, b.prerelease):
        result = _compare_identifiers(left, right)
        if result:
            return result
    return (len(a.prerelease) > len(b.prerelease)) - (len(a.prerelease) < len(b.prerelease))


def get_prerelease(version_str: str) -> tuple[PreReleaseId, ...]:
    """Return the pre-release identifiers of a version ('1.0.0-beta.2' -> ('beta', 2))."""
    return parse_version(version_str).prerelease


def _start_prerelease(identifier: str | None) -> tuple[PreReleaseId, ...]:
    return (identifier, 0) if identifier else (0,)


def increment_version(
    current: str,
    release_type: ReleaseType | str,
    identifier: str | None = None,
) -> str:
    """Increment a version following node-semver's inc() rules.

    Args:
        current: Current version string
        release_type: One of major, minor, patch, premajor, preminor,
            prepatch, prerelease
        identifier: Pre-release identifier (e.g. 'alpha', 'rc')

    Returns:
        The incremented version without prefix

    Raises:
        ValidationError: If the version or release type is invalid

    Examples:
        >>> increment_version('1.2.3', 'patch')
        '1.2.4'
        >>> increment_version('1.0.0', 'preminor', 'alpha')
        '1.1.0-alpha.0'
        >>> increment_version('1.1.0-alpha.0', 'prerelease', 'alpha')
        '1.1.0-alpha.1'
        >>> increment_version('1.1.0-alpha.3', 'minor')
        '1.1.0'
    """
    if release_type not in ALL_RELEASE_TYPES:
        raise ValidationError(
            f"Invalid release type: '{release_type}'",
            details=f"Release type must be one of: {', '.join(ALL_RELEASE_TYPES)}",
        )

    v = parse_version(current)
    major, minor, patch, pre = v.major, v.minor, v.patch, v.prerelease

    if release_type == "premajor":
        return str(VersionInfo(major + 1, 0, 0, _start_prerelease(identifier)))
    if release_type == "preminor":
        return str(VersionInfo(major, minor + 1, 0, _start_prerelease(identifier)))
    if release_type == "prepatch":
        return str(VersionInfo(major, minor, patch + 1, _start_prerelease(identifier)))

    if release_type == "major":
        if minor != 0 or patch != 0 or not pre:
            major += 1
        return str(VersionInfo(major, 0, 0))
    if release_type == "minor":
        if patch != 0 or not pre:
            minor += 1
        return str(VersionInfo(major, minor, 0))
    if release_type == "patch":
        if not pre:
            patch += 1
        return str(VersionInfo(major, minor, patch))

    # prerelease
    if not pre:
        return str(VersionInfo(major, minor, patch + 1, _start_prerelease(identifier)))
    if identifier and pre[0] != identifier:
        return str(VersionInfo(major, minor, patch, (identifier, 0)))
    parts = list(pre)
    for index in range(len(parts) - 1, -1, -1):
        if isinstance(parts[index], int):
            parts[index] += 1
            break
    else:
        parts.append(0)
    return str(VersionInfo(major, minor, patch, tuple(parts)))


__all__ = [
    "ALL_RELEASE_TYPES",
    "PRE_RELEASE_TYPES",
    "RELEASE_TYPES",
    "ReleaseType",
    "SEMVER_PATTERN",
    "VersionInfo",
    "clean_version",
    "coerce_version",
    "compare_versions",
    "get_prerelease",
    "increment_version",
    "is_valid_version",
    "parse_version",
]
