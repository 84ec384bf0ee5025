"""The ordered release steps shared by the primary and distribution releases.

release_sequence only touches the clients handed to it, so the same
procedure runs against the primary repository and, with a second client
set, against the distribution repository.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from releasepipe.steps import Step, hook_step

if TYPE_CHECKING:
    from releasepipe.config.models import ScriptsOptions
    from releasepipe.git.client import Git
    from releasepipe.log import Logger
    from releasepipe.publishers.github import GitHub
    from releasepipe.publishers.gitlab import GitLab
    from releasepipe.publishers.npm import NpmClient
    from releasepipe.steps import Executor
    from releasepipe.ui.spinner import Spinner
    from releasepipe.utils.shell import Shell


@dataclass
class ClientSet:
    """Collaborators bound to one target repository."""

    git: "Git"
    github: "GitHub"
    gitlab: "GitLab"
    npm: "NpmClient"


def release_sequence(
    clients: ClientSet,
    *,
    scripts: "ScriptsOptions",
    step: "Executor",
    spinner: "Spinner",
    shell: "Shell",
    log: "Logger",
    version: str,
    is_pre_release: bool = False,
    changelog: str | None = None,
) -> None:
    """Commit, tag, push, create remote releases, publish, run afterRelease.

    Any failure propagates and stops the remaining steps.
    """
    git = clients.git.options
    github = clients.github.options
    gitlab = clients.gitlab.options
    npm = clients.npm.options

    if git.commit:
        log.preview("changeset", clients.git.status())
    step(Step(clients.git.commit, "Git commit", git.commit, "commit"))
    step(Step(clients.git.tag, "Git tag", git.tag, "tag"))
    step(Step(clients.git.push, "Git push", git.push, "push"))

    if github.release and github.release_notes:
        log.preview("release notes", clients.github.get_notes())
    step.group(
        [
            Step(
                lambda: clients.github.release(version, is_pre_release, changelog),
                "GitHub release",
                github.release,
            ),
            Step(
                clients.github.upload_assets,
                "GitHub upload assets",
                github.release and bool(github.assets),
            ),
        ],
        label="GitHub release",
        prompt="ghRelease",
    )

    if gitlab.release and gitlab.release_notes:
        log.preview("release notes", clients.gitlab.get_notes())
    step(
        Step(
            lambda: clients.gitlab.release(version, changelog),
            "GitLab release",
            gitlab.release,
            "glRelease",
        )
    )

    step(
        Step(
            lambda: clients.npm.publish(
                version=version,
                is_pre_release=is_pre_release,
                otp_callback=step.otp_callback,
            ),
            "npm publish",
            npm.publish,
            "publish",
        )
    )

    spinner.show(hook_step(scripts.after_release, shell))

    if clients.github.is_released:
        log.log(f"🔗 {clients.github.get_release_url()}")
    if clients.gitlab.is_released:
        log.log(f"🔗 {clients.gitlab.get_release_url()}")
    if clients.npm.is_published:
        log.log(f"🔗 {clients.npm.get_package_url()}")
