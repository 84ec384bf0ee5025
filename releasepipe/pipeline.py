"""Release pipeline orchestration.

Drives a complete release run:
1. Validate every collaborator (git, dist stage dir, tokens, registry)
2. Resolve the latest and next version
3. Run the bump hooks, bump manifests, generate the changelog
4. Stage changes (and the distribution repository, when configured)
5. Release the primary repository
6. Release the distribution repository
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from releasepipe.changelog import Changelog
from releasepipe.cleanup import RevertGuard
from releasepipe.config.models import ReleaseOptions
from releasepipe.config.runtime import Config
from releasepipe.dist import DistRelease
from releasepipe.exceptions import ReleaseError
from releasepipe.git.client import Git
from releasepipe.git.dist import GitDist
from releasepipe.log import Logger
from releasepipe.manifest import bump_files
from releasepipe.metrics import Metrics
from releasepipe.publishers.base import parse_repo
from releasepipe.publishers.github import GitHub
from releasepipe.publishers.gitlab import GitLab
from releasepipe.publishers.npm import NpmClient
from releasepipe.resolver import VersionResolver
from releasepipe.sequence import ClientSet, release_sequence
from releasepipe.steps import Step, hook_step, select_executor
from releasepipe.ui.prompt import Prompt
from releasepipe.ui.spinner import Spinner
from releasepipe.utils.shell import Shell

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a successful release."""

    name: str | None
    changelog: str | None
    latest_version: str | None
    version: str | None


def run_tasks(
    options: ReleaseOptions | Config,
    *,
    log: Logger | None = None,
    spinner: Spinner | None = None,
    prompt: Prompt | None = None,
    shell_class: type[Shell] = Shell,
    metrics: Metrics | None = None,
) -> PipelineResult:
    """Run a release.

    Args:
        options: Resolved options, or a Config already built from them
        log: User-facing logger (built from the run flags when omitted)
        spinner: Spinner UI (built from the run flags when omitted)
        prompt: Prompt UI, only used by interactive runs
        shell_class: Shell implementation running commands
        metrics: Usage reporter

    Returns:
        PipelineResult of the release

    Raises:
        ReleaseError: For every known failure, after logging its message
        Exception: Anything unexpected, after logging a diagnostic
    """
    config = options if isinstance(options, Config) else Config(options)
    options = config.options
    is_interactive = config.is_interactive

    log = log or Logger(
        is_interactive=is_interactive,
        is_verbose=config.is_verbose,
        is_dry_run=config.is_dry_run,
    )
    spinner = spinner or Spinner(
        is_ci=config.is_ci,
        is_interactive=is_interactive,
        is_verbose=config.is_verbose,
        is_dry_run=config.is_dry_run,
        is_debug=config.is_debug,
    )
    if is_interactive and prompt is None:
        prompt = Prompt(config)
    metrics = metrics or Metrics(is_enabled=config.is_collect_metrics)

    started = time.monotonic()
    dist_release: DistRelease | None = None
    guard: RevertGuard | None = None

    try:
        metrics.track_event("start", {"increment": options.increment, "ci": config.is_ci})

        shell = shell_class(config, log)
        git = Git(options.git, shell, log)
        git_dist = GitDist(options.git, options.dist, shell, log)
        changelogs = Changelog(shell)
        github = GitHub(options.github, options.git, shell, log, changelogs)
        gitlab = GitLab(options.gitlab, options.git, shell, log, changelogs)
        npm = NpmClient(options.npm, shell, log, is_dry_run=config.is_dry_run)
        resolver = VersionResolver(pre_release_id=options.pre_release_id)

        git.validate()
        git_dist.validate()
        github.validate()
        gitlab.validate()
        npm.validate()

        github.remote_url = git.remote_url
        gitlab.remote_url = git.remote_url

        repo = parse_repo(git.remote_url)
        name = options.name or (repo.project if repo else None) or Path.cwd().name
        config.set_runtime_options(name=name, repo=repo.as_dict() if repo else {})

        scripts = options.scripts
        spinner.show(hook_step(scripts.before_start, shell))

        resolver.set_latest_version(
            use=options.use,
            git_tag=git.latest_tag,
            pkg_version=options.npm.version,
            is_root_dir=git.is_root_dir,
        )
        resolver.bump(options.increment, options.pre_release)
        config.set_runtime_options(**resolver.details)
        latest_version = resolver.latest_version

        if resolver.version:
            suffix = f"{latest_version}...{resolver.version}"
        else:
            suffix = f"currently at {latest_version}"
        log.log(f"\n🚀 Let's release {name} ({suffix})")

        def generate_changelog() -> str:
            text = changelogs.generate(scripts.changelog, git.latest_tag)
            log.preview("changelog", text)
            config.set_runtime_options(changelog=text)
            return text

        # a recommended increment needs the bump before the changelog
        is_deferred_changelog = resolver.is_recommendation(options.increment)
        changelog = None if is_deferred_changelog else generate_changelog()

        if is_interactive and not resolver.version and prompt is not None:
            ask = prompt

            def choose_increment(increment: str | None) -> None:
                if increment:
                    resolver.bump(increment)
                else:
                    ask.show(Step(resolver.set_version, prompt="version"))

            prompt.show(Step(choose_increment, prompt="incrementList"))

        resolver.validate()
        config.set_runtime_options(**resolver.details)
        version = resolver.version or ""
        is_pre_release = resolver.is_pre_release

        guard = RevertGuard(git, options.pkg_files, log)
        if is_interactive and options.pkg_files and options.git.require_clean_working_dir:
            guard.arm()

        spinner.show(hook_step(scripts.before_bump, shell))
        spinner.show(
            Step(
                lambda: bump_files(
                    options.pkg_files, version, log, is_dry_run=config.is_dry_run
                ),
                "Bump version",
            )
        )
        spinner.show(hook_step(scripts.after_bump, shell))

        if is_deferred_changelog:
            changelog = generate_changelog()

        spinner.show(hook_step(scripts.before_stage, shell))
        git.stage(options.pkg_files)
        git.stage_dir()

        if options.dist.repo:
            dist_release = DistRelease(
                options,
                git_dist,
                shell=shell,
                log=log,
                spinner=spinner,
                changelog=changelogs,
            )
            dist_release.prepare()

        step = select_executor(is_interactive, spinner, prompt)
        release_sequence(
            ClientSet(git=git, github=github, gitlab=gitlab, npm=npm),
            scripts=scripts,
            step=step,
            spinner=spinner,
            shell=shell,
            log=log,
            version=version,
            is_pre_release=is_pre_release,
            changelog=changelog,
        )
        guard.disarm()

        if dist_release is not None:
            dist_release.release(git, step)

        metrics.track_event("end")
        log.log(f"🏁 Done (in {int(time.monotonic() - started)}s.)")

        return PipelineResult(
            name=name,
            changelog=changelog,
            latest_version=latest_version,
            version=version,
        )
    except Exception as err:
        metrics.track_exception(err)
        if isinstance(err, ReleaseError):
            log.error(str(err))
            logger.debug("Release failed", exc_info=err)
        else:
            log.diagnostic(err)
        raise
    finally:
        if guard is not None:
            # a failed run still reverts at exit, but Ctrl-C is the caller's again
            guard.restore_interrupt_handler()
        if dist_release is not None:
            dist_release.cleanup()
