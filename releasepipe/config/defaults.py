"""Default configuration generation (`releasepipe init-config`)."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from releasepipe.config.loader import manifest_defaults
from releasepipe.config.models import ReleaseOptions
from releasepipe.exceptions import ConfigurationError

# Run flags belong on the command line, not in a committed file
RUN_FLAGS = {"ci", "dry_run", "verbose", "debug"}

SECTIONS = [
    (None, "General"),
    ("git", "Git commit, tag and push"),
    ("github", "GitHub release"),
    ("gitlab", "GitLab release"),
    ("npm", "npm publish"),
    ("scripts", "Lifecycle hooks"),
    ("dist", "Distribution repository"),
]


def generate_default_config(project_root: Path) -> dict[str, Any]:
    """Default options for the project, as plain data ready to dump."""
    data = ReleaseOptions(**manifest_defaults(project_root)).model_dump(exclude=RUN_FLAGS)
    # Manifest-derived values are re-read on every run
    data.pop("name", None)
    for key in ("name", "version", "private", "otp"):
        data["npm"].pop(key, None)
    return data


def generate_config_header() -> str:
    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    return f"""# ============================================================================
# Release Configuration - .release.yml
# ============================================================================
# Generated on {now}
#
# Templates accept ${{name}}, ${{version}}, ${{latestVersion}}, ${{changelog}},
# ${{repo.owner}}, ${{repo.project}} and friends.
# ============================================================================

"""


def write_default_config(
    output_path: Path,
    project_root: Path | None = None,
) -> None:
    """Generate and write a default configuration file.

    Raises:
        ConfigurationError: If file cannot be written
    """
    if project_root is None:
        project_root = Path.cwd()

    config = generate_default_config(project_root)
    general = {k: v for k, v in config.items() if k not in dict(SECTIONS)}

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(generate_config_header())
            for section_key, section_title in SECTIONS:
                section_data = general if section_key is None else {section_key: config[section_key]}
                f.write(f"# {'-' * 76}\n")
                f.write(f"# {section_title}\n")
                f.write(f"# {'-' * 76}\n")
                f.write(
                    yaml.safe_dump(
                        section_data,
                        default_flow_style=False,
                        sort_keys=False,
                        allow_unicode=True,
                    )
                )
                f.write("\n")

    except PermissionError:
        raise ConfigurationError(
            f"Permission denied writing config to {output_path}",
            fix_hint="Check file permissions or use a different location",
        ) from None
    except OSError as e:
        raise ConfigurationError(
            f"Failed to write config to {output_path}",
            details=str(e),
            fix_hint="Check disk space and path validity",
        ) from e
