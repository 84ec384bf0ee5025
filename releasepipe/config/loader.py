"""Configuration file loading utilities.

Options are layered, later layers winning:
1. Defaults derived from the project manifest (package.json or pyproject.toml)
2. The configuration file (.release.yml, .release.yaml or .release.toml)
3. Explicit overrides (command-line flags, test fixtures)
"""

import json
import tomllib
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import ValidationError as PydanticValidationError

from releasepipe.config.models import ReleaseOptions
from releasepipe.exceptions import ConfigurationError

SEARCH_PATHS = (".release.yml", ".release.yaml", ".release.toml")


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML configuration file.

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if data else {}
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Create the file or use 'releasepipe init-config' to generate one",
        ) from None
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in {path}",
            details=str(e),
            fix_hint="Check YAML syntax at the indicated line",
        ) from e


def load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML configuration file.

    Raises:
        ConfigurationError: If file cannot be read or parsed
    """
    try:
        with open(path, "rb") as f:
            data: dict[str, Any] = tomllib.load(f)
            return data
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            fix_hint="Create the file or use 'releasepipe init-config' to generate one",
        ) from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Invalid TOML in {path}",
            details=str(e),
            fix_hint="Check TOML syntax at the indicated line",
        ) from e


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base.

    Examples:
        >>> deep_merge({"git": {"tag": True, "push": True}}, {"git": {"push": False}})
        {'git': {'tag': True, 'push': False}}
    """
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def manifest_defaults(project_root: Path) -> dict[str, Any]:
    """Derive option defaults from the project manifest.

    package.json supplies the name, version and private flag of the npm
    package. Without a package.json nothing is published to npm; a PEP 621
    pyproject.toml then supplies name and version.
    """
    package_json = project_root / "package.json"
    if package_json.exists():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in {package_json}",
                details=str(e),
            ) from e
        npm: dict[str, Any] = {"private": bool(data.get("private", False))}
        if data.get("name"):
            npm["name"] = data["name"]
        if data.get("version"):
            npm["version"] = data["version"]
        defaults: dict[str, Any] = {"npm": npm}
        if data.get("name"):
            defaults["name"] = data["name"]
        return defaults

    defaults = {"npm": {"publish": False}}
    pyproject = project_root / "pyproject.toml"
    if pyproject.exists():
        project = load_toml(pyproject).get("project", {})
        if project.get("name"):
            defaults["name"] = project["name"]
        if isinstance(project.get("version"), str):
            defaults["npm"]["version"] = project["version"]
            defaults["pkg_files"] = ["pyproject.toml"]
    return defaults


def find_config_file(project_root: Path) -> Path | None:
    for search_path in SEARCH_PATHS:
        candidate = project_root / search_path
        if candidate.exists():
            return candidate
    return None


def read_config_file(config_path: Path) -> dict[str, Any]:
    if config_path.suffix in (".yml", ".yaml"):
        return load_yaml(config_path)
    if config_path.suffix == ".toml":
        return load_toml(config_path)
    raise ConfigurationError(
        f"Unsupported config format: {config_path.suffix}",
        fix_hint="Use .yml, .yaml, or .toml extension",
    )


def load_config(
    path: Path | str | Literal[False] | None = None,
    project_root: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ReleaseOptions:
    """Load release options.

    Args:
        path: Explicit config file, None to search the project root,
            or False to skip configuration files entirely
        project_root: Project root directory (defaults to cwd)
        overrides: Values taking precedence over the file

    Returns:
        Validated ReleaseOptions instance

    Raises:
        ConfigurationError: If the config file is unreadable or invalid
    """
    if project_root is None:
        project_root = Path.cwd()

    config_path: Path | None = None
    if path:
        config_path = Path(path)
        if not config_path.is_absolute():
            config_path = project_root / config_path
    elif path is None:
        config_path = find_config_file(project_root)

    data = manifest_defaults(project_root)
    if config_path is not None:
        data = deep_merge(data, read_config_file(config_path))
    if overrides:
        data = deep_merge(data, overrides)

    source = str(config_path) if config_path else "options"
    try:
        return ReleaseOptions(**data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {source}",
            details=str(e),
            fix_hint="Check the configuration values match expected types",
        ) from e
