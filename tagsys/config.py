"""
Configuration for the tag tools.

Settings are resolved once per invocation and passed explicitly to the
components that need them:

1. Defaults (taxonomy in the home directory, per-uid xattr namespace)
2. Optional TOML settings file (~/.tagsys6.toml or TAGSYS_SETTINGS)
3. Environment variables (TAGSYS_TAXONOMY, TAGSYS_NAMESPACE, TAGSYS_OPS_LOG)
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import tomli_w


TAXONOMY_FILENAME = ".tagsys6.json"
SETTINGS_FILENAME = ".tagsys6.toml"
XATTR_ROOT_NAMESPACE = "user.tagsys6."
SETTINGS_TABLE = "tagsys"


def default_namespace() -> str:
    """The per-user xattr namespace: user.tagsys6.<uid>."""
    return f"{XATTR_ROOT_NAMESPACE}{os.getuid()}."


def default_taxonomy_path() -> Path:
    return Path.home() / TAXONOMY_FILENAME


def default_settings_path() -> Path:
    override = os.environ.get("TAGSYS_SETTINGS")
    if override:
        return Path(override).expanduser()
    return Path.home() / SETTINGS_FILENAME


def normalize_namespace(namespace: str) -> str:
    """
    Validate an xattr namespace prefix and make it end with '.'.

    Only the 'user.' attribute class is writable by unprivileged
    processes, so anything else is rejected.
    """
    namespace = namespace.strip()
    if not namespace.startswith("user.") or namespace == "user.":
        raise ValueError(f"xattr namespace must be below 'user.' (got {namespace!r})")
    if not namespace.endswith("."):
        namespace += "."
    return namespace


@dataclass
class TagConfig:
    """Resolved settings for one tool invocation."""
    taxonomy_path: Path
    namespace: str
    ops_log: Optional[Path] = None


def _read_settings(path: Path) -> dict:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid settings file {path}: {e}") from e
    section = data.get(SETTINGS_TABLE, {})
    if not isinstance(section, dict):
        raise ValueError(f"Invalid settings file {path}: [{SETTINGS_TABLE}] must be a table")
    for key in ("taxonomy", "namespace", "ops_log"):
        if key in section and not isinstance(section[key], str):
            raise ValueError(f"Invalid settings file {path}: '{key}' must be a string")
    return section


def load_config(settings_path: Optional[Path] = None) -> TagConfig:
    """
    Resolve the configuration.

    Args:
        settings_path: TOML settings file; defaults to default_settings_path().
            A missing file is not an error.

    Raises:
        ValueError: If the settings file or a namespace is invalid
    """
    path = settings_path if settings_path is not None else default_settings_path()
    section = _read_settings(path) if path.exists() else {}

    taxonomy = os.environ.get("TAGSYS_TAXONOMY") or section.get("taxonomy")
    namespace = os.environ.get("TAGSYS_NAMESPACE") or section.get("namespace")
    ops_log = os.environ.get("TAGSYS_OPS_LOG") or section.get("ops_log")

    return TagConfig(
        taxonomy_path=Path(taxonomy).expanduser() if taxonomy else default_taxonomy_path(),
        namespace=normalize_namespace(namespace) if namespace else default_namespace(),
        ops_log=Path(ops_log).expanduser() if ops_log else None,
    )


def save_config(config: TagConfig, settings_path: Optional[Path] = None) -> Path:
    """
    Write the settings that differ from the defaults to the TOML file.

    Returns:
        Path of the settings file written
    """
    path = settings_path if settings_path is not None else default_settings_path()
    section: dict[str, str] = {}
    if config.taxonomy_path != default_taxonomy_path():
        section["taxonomy"] = str(config.taxonomy_path)
    if config.namespace != default_namespace():
        section["namespace"] = config.namespace
    if config.ops_log is not None:
        section["ops_log"] = str(config.ops_log)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        tomli_w.dump({SETTINGS_TABLE: section}, f)
    return path
