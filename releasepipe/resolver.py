"""Version resolution: latest version, next version, validation.

An increment is one of three tagged values:
- FixedIncrement: a bump kind (patch, minor, major, pre*, prerelease)
- ExplicitVersion: a literal version to release
- Recommendation: ask the commit analyzer which kind to bump

Only a Recommendation makes the orchestrator defer changelog generation
until after the bump.
"""

import logging
from dataclasses import dataclass
from typing import Any

from releasepipe.exceptions import InvalidVersionError
from releasepipe.recommend import ConventionalAnalyzer
from releasepipe.utils.version import (
    ALL_RELEASE_TYPES,
    RELEASE_TYPES,
    clean_version,
    coerce_version,
    compare_versions,
    get_prerelease,
    increment_version,
    is_valid_version,
)

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "0.0.0"


@dataclass(frozen=True)
class FixedIncrement:
    kind: str


@dataclass(frozen=True)
class ExplicitVersion:
    version: str


@dataclass(frozen=True)
class Recommendation:
    preset: str = "angular"


Increment = FixedIncrement | ExplicitVersion | Recommendation


def parse_increment(value: "str | Increment | None") -> Increment | None:
    """Map user input to an Increment.

    Returns None for empty or unrecognised input, which leaves the next
    version unresolved.

    Examples:
        >>> parse_increment("minor")
        FixedIncrement(kind='minor')
        >>> parse_increment("v2.0.0")
        ExplicitVersion(version='2.0.0')
        >>> parse_increment("conventional:angular")
        Recommendation(preset='angular')
        >>> parse_increment("mini") is None
        True
    """
    if value is None or isinstance(value, FixedIncrement | ExplicitVersion | Recommendation):
        return value
    value = value.strip()
    if value in ALL_RELEASE_TYPES:
        return FixedIncrement(value)
    if is_valid_version(value):
        return ExplicitVersion(clean_version(value))
    strategy, _, preset = value.partition(":")
    if strategy == "conventional":
        return Recommendation(preset or "angular")
    return None


def _first_identifier(version: str) -> str | None:
    prerelease = get_prerelease(version)
    if prerelease and isinstance(prerelease[0], str):
        return prerelease[0]
    return None


class VersionResolver:
    """Owns the latest and next version of a run."""

    def __init__(
        self,
        pre_release_id: str | None = None,
        analyzer: ConventionalAnalyzer | None = None,
    ) -> None:
        self.pre_release_id = pre_release_id
        self.analyzer = analyzer
        self.latest_version: str | None = None
        self.latest_tag: str | None = None
        self.version: str | None = None
        self.is_pre_release = False

    def set_latest_version(
        self,
        use: str | None = None,
        git_tag: str | None = None,
        pkg_version: str | None = None,
        is_root_dir: bool = True,
    ) -> str:
        """Pick the latest released version.

        Priority: a literal version in `use`; the manifest version when
        `use` is "pkg.version"; otherwise the tag (at the repository root),
        the manifest version, the tag anywhere, and finally 0.0.0.

        Raises:
            InvalidVersionError: If the chosen value holds no semantic version
        """
        self.latest_tag = git_tag
        if use and is_valid_version(use):
            candidate: str | None = use
        elif use == "pkg.version":
            candidate = pkg_version
        else:
            candidate = (
                (git_tag if is_root_dir else None) or pkg_version or git_tag or DEFAULT_VERSION
            )

        latest = coerce_version(candidate)
        if latest is None:
            raise InvalidVersionError(
                details=f"Could not determine the latest version from {candidate!r}"
            )
        self.latest_version = latest
        logger.debug("Latest version %s (from %r)", latest, candidate)
        return latest

    def is_recommendation(self, increment: "str | Increment | None") -> bool:
        match parse_increment(increment):
            case Recommendation():
                return True
            case _:
                return False

    def bump(
        self,
        increment: "str | Increment | None",
        pre_release: bool | str = False,
    ) -> str | None:
        """Compute the next version from an increment.

        Unknown increments leave the version unset; validate() or an
        interactive prompt deals with that.
        """
        if self.latest_version is None:
            raise InvalidVersionError(details="The latest version is not known yet")
        if isinstance(pre_release, str):
            self.pre_release_id = pre_release

        match parse_increment(increment):
            case ExplicitVersion(version=version):
                self.set_version(version)
            case Recommendation(preset=preset):
                analyzer = self.analyzer or ConventionalAnalyzer(preset)
                self._bump_kind(analyzer.recommend(self.latest_tag), bool(pre_release))
            case FixedIncrement(kind=kind):
                self._bump_kind(kind, bool(pre_release))
            case None:
                logger.debug("No usable increment: %r", increment)
        return self.version

    def _bump_kind(self, kind: str, pre_release: bool) -> None:
        latest = self.latest_version or DEFAULT_VERSION
        identifier = self.pre_release_id
        if pre_release and kind in RELEASE_TYPES:
            current = _first_identifier(latest)
            if get_prerelease(latest) and identifier in (None, current):
                # Continue the running pre-release
                kind = "prerelease"
                identifier = identifier or current
            else:
                kind = f"pre{kind}"
        self.set_version(increment_version(latest, kind, identifier))

    def set_version(self, version: str) -> None:
        """Use a literal version (e.g. typed at the interactive prompt)."""
        self.version = clean_version(version) if version else None
        self.is_pre_release = bool(
            self.version and is_valid_version(self.version) and get_prerelease(self.version)
        )
        if self.is_pre_release and self.version:
            self.pre_release_id = _first_identifier(self.version) or self.pre_release_id

    def validate(self) -> None:
        """Raises InvalidVersionError unless version is valid and above latest."""
        if not self.version or not is_valid_version(self.version):
            raise InvalidVersionError(
                details=f"Could not resolve a valid next version (got {self.version!r})"
            )
        if self.latest_version and compare_versions(self.version, self.latest_version) <= 0:
            raise InvalidVersionError(
                details=f"{self.version} is not greater than {self.latest_version}"
            )

    @property
    def details(self) -> dict[str, Any]:
        return {
            "latest_version": self.latest_version,
            "version": self.version,
            "is_pre_release": self.is_pre_release,
            "pre_release_id": self.pre_release_id,
        }
