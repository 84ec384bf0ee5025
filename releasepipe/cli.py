"""Command-line interface for releasepipe.

Provides commands for:
- release: Run the release pipeline
- init-config: Generate a configuration file
"""

import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from releasepipe import __version__
from releasepipe.config.defaults import write_default_config
from releasepipe.config.loader import load_config
from releasepipe.exceptions import ReleaseError
from releasepipe.pipeline import run_tasks

# Create Typer app
app = typer.Typer(
    name="releasepipe",
    help="Release pipeline: version, changelog, commit, tag, push, release, publish",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Route internal diagnostics through rich."""
    level = logging.WARNING
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"releasepipe version {__version__}")
        raise typer.Exit()


def build_overrides(
    *,
    increment: str | None = None,
    pre_release: bool = False,
    pre_release_id: str | None = None,
    dry_run: bool = False,
    ci: bool = False,
    verbose: bool = False,
    debug: bool = False,
    no_commit: bool = False,
    no_tag: bool = False,
    no_push: bool = False,
    github_release: bool = False,
    gitlab_release: bool = False,
    no_npm_publish: bool = False,
    otp: str | None = None,
    disable_metrics: bool = False,
    no_require_clean: bool = False,
) -> dict[str, Any]:
    """Translate command-line flags into option overrides.

    Only flags given on the command line appear in the result, so options
    from the config file keep their values otherwise.

    Examples:
        >>> build_overrides(increment="minor", no_push=True)
        {'increment': 'minor', 'git': {'push': False}}
    """
    overrides: dict[str, Any] = {}
    git: dict[str, Any] = {}
    npm: dict[str, Any] = {}

    if increment:
        overrides["increment"] = increment
    if pre_release_id:
        overrides["pre_release"] = pre_release_id
    elif pre_release:
        overrides["pre_release"] = True
    for flag, key in ((dry_run, "dry_run"), (ci, "ci"), (verbose, "verbose"), (debug, "debug")):
        if flag:
            overrides[key] = True
    if disable_metrics:
        overrides["disable_metrics"] = True

    if no_commit:
        git["commit"] = False
    if no_tag:
        git["tag"] = False
    if no_push:
        git["push"] = False
    if no_require_clean:
        git["require_clean_working_dir"] = False
    if git:
        overrides["git"] = git

    if github_release:
        overrides["github"] = {"release": True}
    if gitlab_release:
        overrides["gitlab"] = {"release": True}

    if no_npm_publish:
        npm["publish"] = False
    if otp:
        npm["otp"] = otp
    if npm:
        overrides["npm"] = npm

    return overrides


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: B008
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Release pipeline: version, changelog, commit, tag, push, release, publish.

    Resolves the next version, bumps manifests, then commits, tags, pushes,
    creates GitHub/GitLab releases and publishes to npm.
    """
    pass


@app.command()
def release(
    increment: str | None = typer.Argument(  # noqa: B008
        None,
        help="major, minor, patch, pre*, an explicit version, or conventional[:preset]",
    ),
    pre_release: bool = typer.Option(  # noqa: B008
        False,
        "--pre-release",
        help="Release a pre-release",
    ),
    pre_release_id: str | None = typer.Option(  # noqa: B008
        None,
        "--preid",
        help="Pre-release identifier (alpha, beta, ...); implies --pre-release",
    ),
    dry_run: bool = typer.Option(  # noqa: B008
        False,
        "--dry-run",
        "-d",
        help="Show what would be done without making changes",
    ),
    ci: bool = typer.Option(  # noqa: B008
        False,
        "--ci",
        help="Never prompt (implied by the CI environment variable)",
    ),
    verbose: bool = typer.Option(  # noqa: B008
        False,
        "--verbose",
        "-v",
        help="Print executed commands",
    ),
    debug: bool = typer.Option(  # noqa: B008
        False,
        "--debug",
        help="Print debug diagnostics",
    ),
    config: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to configuration file (default: .release.yml in the project root)",
    ),
    no_config: bool = typer.Option(  # noqa: B008
        False,
        "--no-config",
        help="Ignore configuration files",
    ),
    no_commit: bool = typer.Option(  # noqa: B008
        False,
        "--no-commit",
        help="Don't create the release commit",
    ),
    no_tag: bool = typer.Option(  # noqa: B008
        False,
        "--no-tag",
        help="Don't tag the release",
    ),
    no_push: bool = typer.Option(  # noqa: B008
        False,
        "--no-push",
        help="Don't push commit and tag",
    ),
    github_release: bool = typer.Option(  # noqa: B008
        False,
        "--github-release",
        help="Create a GitHub release",
    ),
    gitlab_release: bool = typer.Option(  # noqa: B008
        False,
        "--gitlab-release",
        help="Create a GitLab release",
    ),
    no_npm_publish: bool = typer.Option(  # noqa: B008
        False,
        "--no-npm-publish",
        help="Don't publish to npm",
    ),
    otp: str | None = typer.Option(  # noqa: B008
        None,
        "--otp",
        help="One-time password for npm publish",
    ),
    disable_metrics: bool = typer.Option(  # noqa: B008
        False,
        "--disable-metrics",
        help="Don't send usage metrics",
    ),
    no_require_clean: bool = typer.Option(  # noqa: B008
        False,
        "--no-require-clean",
        help="Allow releasing with uncommitted changes",
    ),
) -> None:
    """Release the project in the current directory.

    Examples:
        releasepipe release patch             # 1.0.0 -> 1.0.1
        releasepipe release minor --ci        # never prompt
        releasepipe release 2.0.0             # explicit version
        releasepipe release minor --preid=beta
        releasepipe release patch --dry-run   # preview without changes
    """
    setup_logging(verbose=verbose, debug=debug)

    overrides = build_overrides(
        increment=increment,
        pre_release=pre_release,
        pre_release_id=pre_release_id,
        dry_run=dry_run,
        ci=ci,
        verbose=verbose,
        debug=debug,
        no_commit=no_commit,
        no_tag=no_tag,
        no_push=no_push,
        github_release=github_release,
        gitlab_release=gitlab_release,
        no_npm_publish=no_npm_publish,
        otp=otp,
        disable_metrics=disable_metrics,
        no_require_clean=no_require_clean,
    )

    try:
        options = load_config(False if no_config else config, overrides=overrides)
    except ReleaseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None

    # run_tasks has already reported the error
    try:
        run_tasks(options)
    except ReleaseError as e:
        raise typer.Exit(code=e.exit_code) from None
    except Exception:
        raise typer.Exit(code=1) from None


@app.command(name="init-config")
def init_config(
    output: Path = typer.Option(  # noqa: B008
        Path(".release.yml"),
        "--output",
        "-o",
        help="Output path for configuration file",
    ),
    force: bool = typer.Option(  # noqa: B008
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Generate a release configuration file.

    Defaults are taken from package.json or pyproject.toml when present.

    Examples:
        releasepipe init-config
        releasepipe init-config -o config/release.yml
    """
    if output.exists() and not force:
        console.print(f"[red]Configuration already exists:[/red] {output}")
        console.print("Use --force to overwrite")
        raise typer.Exit(code=1)

    try:
        write_default_config(output)
        console.print(f"[green]Configuration written to:[/green] {output}")

    except ReleaseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None


if __name__ == "__main__":
    app()
