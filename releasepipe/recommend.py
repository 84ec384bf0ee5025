"""Recommended bump from commit history (Conventional Commits)."""

import logging
import re

from releasepipe.git import queries

logger = logging.getLogger(__name__)

# type(scope)!: subject
HEADER_PATTERN = re.compile(r"^(?P<type>\w+)(?:\([^)]*\))?(?P<breaking>!)?:\s")
BREAKING_PATTERN = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)


class ConventionalAnalyzer:
    """Scan commits since the latest tag and recommend major, minor or patch.

    A breaking change (`!:` or a BREAKING CHANGE footer) recommends major,
    any `feat` commit minor, anything else patch.
    """

    def __init__(self, preset: str = "angular") -> None:
        self.preset = preset

    def classify(self, subject: str, body: str = "") -> str:
        match = HEADER_PATTERN.match(subject)
        if (match and match.group("breaking")) or BREAKING_PATTERN.search(body):
            return "major"
        if match and match.group("type") == "feat":
            return "minor"
        return "patch"

    def recommend(self, latest_tag: str | None) -> str:
        """Recommended release type for the commits after latest_tag."""
        levels = {"patch": 0, "minor": 1, "major": 2}
        result = "patch"
        for commit in queries.get_commits_since(latest_tag):
            kind = self.classify(commit["subject"], commit["body"])
            if levels[kind] > levels[result]:
                result = kind
        logger.info("Recommended bump (%s preset): %s", self.preset, result)
        return result
