"""Distribution repository sub-release.

A distribution repository (a build output mirror, a gh-pages branch, ...)
is cloned into a stage directory, receives the built files, and is then
released with the same sequence as the primary repository using its own
set of clients.
"""

import logging
from typing import TYPE_CHECKING, Any

from releasepipe.config.models import GitHubOptions, GitLabOptions, NpmOptions, ReleaseOptions
from releasepipe.manifest import bump_files
from releasepipe.publishers.github import GitHub
from releasepipe.publishers.gitlab import GitLab
from releasepipe.publishers.npm import NpmClient
from releasepipe.sequence import ClientSet, release_sequence
from releasepipe.steps import Step, hook_step

if TYPE_CHECKING:
    from releasepipe.changelog import Changelog
    from releasepipe.git.client import Git
    from releasepipe.git.dist import GitDist
    from releasepipe.log import Logger
    from releasepipe.steps import Executor
    from releasepipe.ui.spinner import Spinner
    from releasepipe.utils.shell import Shell

logger = logging.getLogger(__name__)


def get_dist_repo_clients(
    options: ReleaseOptions,
    git: "GitDist",
    *,
    shell: "Shell",
    log: "Logger",
    changelog: "Changelog",
) -> ClientSet:
    """Clients for the distribution repository.

    Each starts from the primary options with its enable flag turned off;
    the dist.github / dist.gitlab / dist.npm maps switch them back on.
    """
    dist = options.dist
    github = GitHubOptions.model_validate(
        {**options.github.model_dump(), "release": False, **dist.github}
    )
    gitlab = GitLabOptions.model_validate(
        {**options.gitlab.model_dump(), "release": False, **dist.gitlab}
    )
    npm = NpmOptions.model_validate({**options.npm.model_dump(), "publish": False, **dist.npm})

    clients = ClientSet(
        git=git,
        github=GitHub(github, git.options, shell, log, changelog),
        gitlab=GitLab(gitlab, git.options, shell, log, changelog),
        npm=NpmClient(npm, shell, log, is_dry_run=shell.config.is_dry_run),
    )
    clients.github.remote_url = git.remote_url
    clients.gitlab.remote_url = git.remote_url
    return clients


class DistRelease:
    """Stages and releases the distribution repository.

    cleanup() removes the stage directory and must run on every exit path.
    """

    def __init__(
        self,
        options: ReleaseOptions,
        git: "GitDist",
        *,
        shell: "Shell",
        log: "Logger",
        spinner: "Spinner",
        changelog: "Changelog",
    ) -> None:
        self.options = options
        self.dist = options.dist
        self.git = git
        self.shell = shell
        self.log = log
        self.spinner = spinner
        self.changelog = changelog
        self.clients: ClientSet | None = None

    @property
    def runtime(self) -> dict[str, Any]:
        return self.shell.config.runtime_options

    def prepare(self) -> None:
        """Clone, copy the build output, run beforeStage, bump and stage."""
        dist = self.dist
        self.spinner.show(Step(self.git.clone, f"Clone {dist.repo}"))
        self.shell.copy(dist.files, dist.stage_dir, cwd=dist.base_dir)

        with self.shell.pushd(dist.stage_dir):
            self.spinner.show(hook_step(dist.scripts.before_stage, self.shell))
            bump_files(
                dist.pkg_files,
                self.runtime["version"],
                self.log,
                is_dry_run=self.shell.config.is_dry_run,
            )
            self.git.stage_dir()

    def release(self, primary_git: "Git", step: "Executor") -> ClientSet:
        """Run the release sequence inside the stage directory."""
        runtime = self.runtime
        self.log.log(f"🚀 Let's release the distribution repo for {runtime.get('name')}")

        with self.shell.pushd(self.dist.stage_dir):
            self.git.init()
            self.git.handle_tag_options(primary_git)
            self.clients = get_dist_repo_clients(
                self.options,
                self.git,
                shell=self.shell,
                log=self.log,
                changelog=self.changelog,
            )
            release_sequence(
                self.clients,
                scripts=self.dist.scripts,
                step=step,
                spinner=self.spinner,
                shell=self.shell,
                log=self.log,
                version=runtime["version"],
                is_pre_release=runtime.get("is_pre_release", False),
                changelog=runtime.get("changelog"),
            )
        return self.clients

    def cleanup(self) -> None:
        logger.debug("Removing stage dir %s", self.dist.stage_dir)
        self.shell.remove(self.dist.stage_dir, scratch=True)
