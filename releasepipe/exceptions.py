"""Custom exception hierarchy for releasepipe.

Every error a user can act on derives from ReleaseError. The pipeline logs
these as a single message; anything else is treated as a raw diagnostic.

Exit codes follow Unix conventions:
- 1: General error
- 2: Configuration error
- 3: Validation error
- 4: Git error
- 5: Publish error
- 9: Ecosystem (manifest) error
- 10: Timeout
"""


class ReleaseError(Exception):
    """Base exception for all known release errors.

    Each subclass defines an exit_code for CLI error reporting.
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Brief error message
            details: Detailed explanation of what went wrong
            fix_hint: Suggested command or action to fix the issue
        """
        super().__init__(message)
        self.message = message
        self.details = details
        self.fix_hint = fix_hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"\nDetails: {self.details}")
        if self.fix_hint:
            parts.append(f"\nFix: {self.fix_hint}")
        return "".join(parts)


class ConfigurationError(ReleaseError):
    """Configuration file errors and unusable option values."""

    exit_code = 2


class ValidationError(ReleaseError):
    """Pre-release validation failures (dirty tree, bad version, ...)."""

    exit_code = 3


class GitError(ReleaseError):
    """Git operation failures."""

    exit_code = 4


class PublishError(ReleaseError):
    """Remote release and registry publishing failures."""

    exit_code = 5


class EcosystemError(ReleaseError):
    """Package manifest read/write failures."""

    exit_code = 9


class ReleaseTimeoutError(ReleaseError):
    """Operation timeout errors.

    Named ReleaseTimeoutError to avoid shadowing Python's built-in TimeoutError.
    """

    exit_code = 10


class GitRepoError(GitError):
    """The working directory is not inside a git repository."""

    def __init__(self) -> None:
        super().__init__(
            "The current directory is not (inside) a Git repository.",
            fix_hint="Run from within a Git repository, or `git init` one first",
        )


class GitRemoteUrlError(GitError):
    """No remote url could be found for the configured push repository."""

    def __init__(self) -> None:
        super().__init__(
            "Could not get remote Git url.",
            fix_hint="Please add a remote repository (git remote add origin <url>)",
        )


class GitCommitError(GitError):
    """The release commit could not be created."""


class GitCleanWorkingDirError(ValidationError):
    """Uncommitted changes are present while a clean tree is required."""

    def __init__(self) -> None:
        super().__init__(
            "Working dir must be clean.",
            details="Please stage and commit your changes.",
            fix_hint=(
                "Alternatively, use --no-require-clean (or set "
                "git.require_clean_working_dir: false) to include the changes "
                "in the release commit"
            ),
        )


class GitUpstreamError(ValidationError):
    """The current branch has no upstream while one is required."""

    def __init__(self) -> None:
        super().__init__(
            "No upstream configured for current branch.",
            details="Please set an upstream branch.",
            fix_hint=(
                "Alternatively, set git.require_upstream: false to have the "
                "upstream set during push"
            ),
        )


class TokenError(ConfigurationError):
    """A remote release provider is enabled but its token is absent."""

    def __init__(self, provider: str, token_ref: str) -> None:
        super().__init__(
            f'Environment variable "{token_ref}" is required for {provider} releases.',
            fix_hint=f"export {token_ref}=<token>",
        )
        self.provider = provider
        self.token_ref = token_ref


class InvalidVersionError(ValidationError):
    """The resolved version is missing, malformed or not an increase."""

    def __init__(self, details: str | None = None) -> None:
        super().__init__(
            "An invalid version was provided.",
            details=details,
            fix_hint="Use an increment (major, minor, patch, ...) or a valid semantic version",
        )


class DistRepoStageDirError(ConfigurationError):
    """The distribution stage directory escapes the working directory."""

    def __init__(self, stage_dir: str) -> None:
        super().__init__(
            f'The `dist.stage_dir` ("{stage_dir}") must resolve to a sub directory '
            "of the current working directory.",
            fix_hint="Use a relative path such as .stage",
        )
        self.stage_dir = stage_dir


class RegistryTimeoutError(ReleaseTimeoutError):
    """The package registry did not answer `npm ping` in time."""

    def __init__(self, timeout: float) -> None:
        super().__init__(
            f"Unable to reach npm registry (timed out after {timeout:g}s).",
            fix_hint="Check network connectivity or the configured registry",
        )
        self.timeout = timeout


class RegistryAuthError(PublishError):
    """Not authenticated with the package registry."""

    def __init__(self) -> None:
        super().__init__(
            "Not authenticated with npm.",
            fix_hint="Please `npm login` and try again.",
        )


class RemoteReleaseError(PublishError):
    """A GitHub or GitLab API call failed."""


class ManifestError(EcosystemError):
    """A manifest file is missing, unreadable or has no version field."""
