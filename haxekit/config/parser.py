"""Configuration for haxekit.

Settings are merged from, lowest to highest precedence:

1. built-in defaults
2. ``haxekit.yaml`` in the project root (or the file given with --config)
3. runner inputs in the environment (``INPUT_HAXE-VERSION``,
   ``INPUT_CACHE-DEPENDENCY-PATH``)
4. command-line flags

Example haxekit.yaml::

    haxe-version: 4.3.4
    cache-dependency-path: |
      haxelib.json
      **/*.hxml
    tool-cache: /opt/hostedtoolcache
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from haxekit.core.exceptions import ConfigError, InvalidVersionError

CONFIG_FILE_NAME = "haxekit.yaml"

NIGHTLY_PATTERN = re.compile(r"^(?:\d{4}-\d{2}-\d{2}_[\w.-]+_\w+|latest)$")

# MAJOR.MINOR.PATCH[-prerelease][+build], as accepted by semver
SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

# YAML / input name -> HaxekitConfig field
KNOWN_KEYS = {
    "haxe-version": "haxe_version",
    "cache-dependency-path": "cache_dependency_path",
    "tool-cache": "tool_cache_dir",
    "archive-cache": "archive_cache_dir",
    "work-dir": "work_dir",
    "state-file": "state_file",
}

PATH_FIELDS = {"tool_cache_dir", "archive_cache_dir", "work_dir", "state_file"}

# Runner inputs read from the environment
INPUT_KEYS = ("haxe-version", "cache-dependency-path")


@dataclass
class HaxekitConfig:
    """Resolved haxekit settings."""

    haxe_version: str = ""
    cache_dependency_path: str = ""
    tool_cache_dir: Optional[Path] = None
    archive_cache_dir: Optional[Path] = None
    work_dir: Optional[Path] = None
    state_file: Optional[Path] = None
    workspace: Optional[Path] = None


def clean_version(raw: str) -> str:
    """
    Normalize a version string the way ``semver.clean`` does.

    Example:
        >>> clean_version("  v4.0.5 ")
        '4.0.5'
    """
    return raw.strip().lstrip("=v").strip()


def parse_haxe_version(raw: str) -> Tuple[str, bool]:
    """
    Classify and normalize the haxe-version input.

    Returns:
        (version, nightly) where nightly is True for build tokens such as
        ``2019-12-17_development_67feace`` or ``latest``

    Raises:
        InvalidVersionError: If the input is neither a semantic version nor a
            nightly token
    """
    value = raw.strip()
    if NIGHTLY_PATTERN.match(value):
        return value, True

    cleaned = clean_version(value)
    if not SEMVER_PATTERN.match(cleaned):
        raise InvalidVersionError(raw)

    return cleaned, False


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and validate a haxekit YAML file.

    Args:
        config_file: Path to the YAML file
        required: If True, a missing file is an error

    Returns:
        Mapping of HaxekitConfig field names to values (empty if the file is
        missing and not required)

    Raises:
        ConfigError: Missing required file, invalid YAML or unknown keys
    """
    if not config_file.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {config_file}")
        return {}

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    unknown = sorted(set(data) - set(KNOWN_KEYS))
    if unknown:
        raise ConfigError(
            f"Unknown configuration key(s) in {config_file}: {', '.join(unknown)}"
        )

    values = {}
    for key, value in data.items():
        if value is None:
            continue
        if key == "haxe-version" and not isinstance(value, str):
            raise ConfigError(
                f"haxe-version in {config_file} must be quoted, "
                f"YAML read it as {value!r}"
            )
        values[KNOWN_KEYS[key]] = str(value)
    return values


def read_inputs(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Read runner inputs passed as ``INPUT_<NAME>`` environment variables.

    Empty inputs are treated as unset.
    """
    environ = os.environ if environ is None else environ
    values = {}
    for key in INPUT_KEYS:
        value = environ.get(f"INPUT_{key.upper()}", "").strip()
        if value:
            values[KNOWN_KEYS[key]] = value
    return values


def load_config(
    project_root: Optional[Path] = None,
    config_file: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> HaxekitConfig:
    """
    Resolve the effective configuration.

    Args:
        project_root: Project root (default: current directory)
        config_file: Explicit YAML file; it must exist when given
        overrides: Field values from the command line; None values are ignored
        environ: Environment to read runner inputs from (default: os.environ)

    Returns:
        HaxekitConfig with relative paths resolved against project_root
    """
    project_root = Path(project_root) if project_root else Path.cwd()

    if config_file is not None:
        values = load_yaml_config(Path(config_file), required=True)
    else:
        values = load_yaml_config(project_root / CONFIG_FILE_NAME)

    values.update(read_inputs(environ))
    values.update({k: v for k, v in (overrides or {}).items() if v is not None})

    for name in PATH_FIELDS & set(values):
        path = Path(values[name]).expanduser()
        values[name] = path if path.is_absolute() else project_root / path

    return HaxekitConfig(workspace=project_root, **values)


__all__ = [
    "CONFIG_FILE_NAME",
    "HaxekitConfig",
    "clean_version",
    "parse_haxe_version",
    "load_yaml_config",
    "read_inputs",
    "load_config",
]
