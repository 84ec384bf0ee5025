"""Reading and rewriting the version field of package manifests.

Supported manifests:
- JSON manifests such as package.json (top-level "version")
- pyproject.toml ([project].version or [tool.poetry].version)
- Cargo.toml ([package].version)

Writes preserve formatting: JSON is re-dumped with 2-space indentation,
TOML files are edited by regex so comments and layout survive.
"""

import json
import re
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

from releasepipe.exceptions import ManifestError

if TYPE_CHECKING:
    from releasepipe.log import Logger

# TOML tables holding the version, per manifest file name
TOML_SECTIONS: dict[str, tuple[tuple[str, ...], ...]] = {
    "pyproject.toml": (("project",), ("tool", "poetry")),
    "Cargo.toml": (("package",),),
}


def _kind(path: Path) -> str:
    if path.suffix == ".json":
        return "json"
    if path.name in TOML_SECTIONS:
        return "toml"
    raise ManifestError(
        f"Unsupported manifest: {path.name}",
        fix_hint="Use package.json, pyproject.toml or Cargo.toml",
    )


def read_manifest(path: str | Path) -> dict[str, Any]:
    """Parse a manifest file.

    Raises:
        ManifestError: If the file is missing, unsupported or malformed
    """
    path = Path(path)
    kind = _kind(path)
    if not path.exists():
        raise ManifestError(f"{path.name} not found", details=f"Expected at: {path}")
    try:
        if kind == "json":
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        else:
            with open(path, "rb") as f:
                data = tomllib.load(f)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
        raise ManifestError(f"Invalid {path.name}", details=str(e)) from e
    except OSError as e:
        raise ManifestError(f"Failed to read {path.name}", details=str(e)) from e
    if not isinstance(data, dict):
        raise ManifestError(f"Invalid {path.name}", details="Top-level value is not an object")
    return data


def _toml_table(data: dict[str, Any], section: tuple[str, ...]) -> dict[str, Any] | None:
    table: Any = data
    for key in section:
        if not isinstance(table, dict):
            return None
        table = table.get(key)
    return table if isinstance(table, dict) else None


def read_version(path: str | Path) -> str:
    """Return the version declared in a manifest.

    Raises:
        ManifestError: If no version field is present
    """
    path = Path(path)
    data = read_manifest(path)
    if _kind(path) == "json":
        version = data.get("version")
    else:
        version = None
        for section in TOML_SECTIONS[path.name]:
            table = _toml_table(data, section)
            if table and isinstance(table.get("version"), str):
                version = table["version"]
                break
    if not isinstance(version, str) or not version:
        raise ManifestError(f"No version field in {path.name}")
    return version


def set_version(path: str | Path, version: str) -> None:
    """Rewrite the version field of a manifest in place.

    Raises:
        ManifestError: If the manifest cannot be updated
    """
    path = Path(path)
    data = read_manifest(path)

    try:
        if _kind(path) == "json":
            data["version"] = version
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
            return

        content = path.read_text(encoding="utf-8")
        for section in TOML_SECTIONS[path.name]:
            table = _toml_table(data, section)
            if not table or "version" not in table:
                continue
            header = re.escape("[" + ".".join(section) + "]")
            # Match: version = "x.y.z" or version = 'x.y.z' inside the table
            pattern = rf'({header}[^\[]*?\bversion\s*=\s*)["\']([^"\']*)["\']'
            content, count = re.subn(pattern, rf'\g<1>"{version}"', content, count=1, flags=re.DOTALL)
            if count:
                path.write_text(content, encoding="utf-8")
                return
    except OSError as e:
        raise ManifestError(
            f"Failed to update {path.name} version to {version}", details=str(e)
        ) from e

    raise ManifestError(
        "Could not find version field to update",
        details=f"No version field found in {path.name}",
    )


def bump_files(
    files: list[str] | None,
    version: str,
    log: "Logger",
    is_dry_run: bool = False,
) -> list[str]:
    """Write version into every manifest, warning about the ones that fail.

    Returns the files that were (or in dry-run, would have been) bumped.
    """
    bumped: list[str] = []
    for file in files or []:
        try:
            if is_dry_run:
                read_version(file)
                log.exec(f"bump {file} to {version}", executed=False)
            else:
                set_version(file, version)
                log.verbose(f"Bumped {file} to {version}")
        except ManifestError:
            log.warn(f"Could not bump {file}")
            continue
        bumped.append(file)
    return bumped
