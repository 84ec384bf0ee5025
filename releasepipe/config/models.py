"""Pydantic v2 option models for a release run.

These models provide:
- Type-safe option loading from .release.yml / .release.toml
- Automatic validation
- Default values
- Environment variable override support (RELEASEPIPE_ prefix)

All models are frozen: once options are resolved for a run they never
change. Values computed while the pipeline runs (version, changelog) live
in Config's runtime options instead.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHANGELOG_COMMAND = 'git log --pretty=format:"* %s (%h)" [REV_RANGE]'


class _Options(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class GitOptions(_Options):
    """Git validation, commit, tag and push settings."""

    require_clean_working_dir: bool = Field(
        default=True,
        description="Refuse to release with uncommitted changes",
    )
    require_upstream: bool = Field(
        default=True,
        description="Refuse to release a branch without upstream",
    )
    add_untracked_files: bool = Field(
        default=False,
        description="Stage untracked files along with the release commit",
    )
    commit: bool = Field(default=True, description="Create the release commit")
    commit_message: str = Field(default="Release ${version}")
    commit_args: str = Field(default="", description="Extra `git commit` arguments")
    tag: bool = Field(default=True, description="Tag the release commit")
    tag_name: str = Field(default="${version}", description="Tag name template")
    tag_annotation: str = Field(default="Release ${version}")
    tag_args: str = Field(default="", description="Extra `git tag` arguments")
    push: bool = Field(default=True, description="Push commit and tags")
    push_args: str = Field(default="--follow-tags")
    push_repo: str = Field(
        default="origin",
        description="Remote name or url to push to",
    )


class GitHubOptions(_Options):
    """GitHub release settings."""

    release: bool = Field(default=False, description="Create a GitHub release")
    release_name: str = Field(default="Release ${version}")
    release_notes: str | None = Field(
        default=None,
        description="Command whose output replaces the changelog as release body",
    )
    draft: bool = Field(default=False)
    token_ref: str = Field(
        default="GITHUB_TOKEN",
        description="Environment variable holding the API token",
    )
    assets: list[str] = Field(
        default_factory=list,
        description="Glob patterns of files uploaded to the release",
    )
    host: str = Field(default="github.com")
    timeout: float = Field(default=30, gt=0, description="API timeout in seconds")


class GitLabOptions(_Options):
    """GitLab release settings."""

    release: bool = Field(default=False, description="Create a GitLab release")
    release_name: str = Field(default="Release ${version}")
    release_notes: str | None = Field(default=None)
    token_ref: str = Field(default="GITLAB_TOKEN")
    origin: str | None = Field(
        default=None,
        description="GitLab base url (defaults to https://<remote host>)",
    )
    timeout: float = Field(default=30, gt=0)


class NpmOptions(_Options):
    """npm publish settings. name/version/private default to package.json."""

    publish: bool = Field(default=True, description="Publish to the npm registry")
    publish_path: str = Field(default=".")
    tag: str = Field(default="latest", description="Default dist-tag")
    access: str | None = Field(
        default=None,
        description="Access level for scoped packages (public, restricted)",
    )
    otp: str | None = Field(default=None, description="One-time password")
    name: str | None = Field(default=None)
    version: str | None = Field(default=None)
    private: bool = Field(default=False)

    @field_validator("access")
    @classmethod
    def validate_access(cls, v: str | None) -> str | None:
        if v is not None and v not in ("public", "restricted"):
            raise ValueError("access must be 'public' or 'restricted'")
        return v


class ScriptsOptions(_Options):
    """Lifecycle hook commands. ${placeholders} are formatted before running."""

    before_start: str | None = None
    before_bump: str | None = None
    after_bump: str | None = None
    before_stage: str | None = None
    after_release: str | None = None
    changelog: str = Field(
        default=DEFAULT_CHANGELOG_COMMAND,
        description="Changelog command; [REV_RANGE] expands to <latest tag>...HEAD",
    )


class DistOptions(_Options):
    """Distribution repository settings.

    The git/github/gitlab/npm maps are partial overrides applied on top of
    the primary options when the distribution repository is released.
    """

    repo: str | None = Field(
        default=None,
        description="Distribution repository url, optionally suffixed with #branch",
    )
    stage_dir: str = Field(default=".stage")
    base_dir: str = Field(default="dist", description="Directory copied into the stage dir")
    files: list[str] = Field(default_factory=lambda: ["**/*"])
    pkg_files: list[str] | None = Field(default=None)
    scripts: ScriptsOptions = Field(default_factory=ScriptsOptions)
    git: dict[str, Any] = Field(default_factory=dict)
    github: dict[str, Any] = Field(default_factory=dict)
    gitlab: dict[str, Any] = Field(default_factory=dict)
    npm: dict[str, Any] = Field(default_factory=dict)


class ReleaseOptions(BaseSettings):
    """Root options model.

    Supports environment variable overrides with RELEASEPIPE_ prefix.
    Example: RELEASEPIPE_GIT__PUSH_REPO=upstream
    """

    name: str | None = Field(default=None, description="Project name")
    increment: str | None = Field(
        default=None,
        description="major, minor, patch, pre*, a version, or conventional[:preset]",
    )
    pre_release: bool | str = Field(
        default=False,
        description="Release a pre-release; a string sets the identifier",
    )
    use: str = Field(
        default="git.tag",
        description="Latest version source: git.tag, pkg.version or a literal version",
    )
    pkg_files: list[str] | None = Field(default_factory=lambda: ["package.json"])
    git: GitOptions = Field(default_factory=GitOptions)
    github: GitHubOptions = Field(default_factory=GitHubOptions)
    gitlab: GitLabOptions = Field(default_factory=GitLabOptions)
    npm: NpmOptions = Field(default_factory=NpmOptions)
    scripts: ScriptsOptions = Field(default_factory=ScriptsOptions)
    dist: DistOptions = Field(default_factory=DistOptions)
    ci: bool = Field(default=False, description="Never prompt")
    dry_run: bool = Field(default=False)
    verbose: bool = Field(default=False)
    debug: bool = Field(default=False)
    disable_metrics: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="RELEASEPIPE_",
        env_nested_delimiter="__",
        frozen=True,
        extra="forbid",
    )

    @property
    def pre_release_id(self) -> str | None:
        return self.pre_release if isinstance(self.pre_release, str) else None
