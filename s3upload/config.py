"""Layered settings for the s3upload CLI.

A setting is resolved with the following precedence (highest to lowest):
1. CLI argument
2. Environment variable (S3UPLOAD_<KEY>)
3. Project config file (.s3upload/config.yaml under the base directory)
4. Built-in default (None)

Usage:
    from s3upload.config import get_setting, set_setting

    bucket = get_setting("bucket", cli_value=cli_bucket, base_path=Path.cwd())
    set_setting(Path.cwd(), "region", "eu-west-1")
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from s3upload.errors import ConfigParseError

# Known settings for documentation/validation (but unknown keys are still allowed)
KNOWN_SETTINGS: frozenset[str] = frozenset({"bucket", "credential", "prefix", "region", "threads"})

CONFIG_DIRNAME = ".s3upload"
CONFIG_FILENAME = "config.yaml"


def get_config_path(base_path: Path) -> Path:
    """Return the path to .s3upload/config.yaml under base_path."""
    return base_path / CONFIG_DIRNAME / CONFIG_FILENAME


def load_config(base_path: Path) -> dict[str, Any]:
    """Load configuration from .s3upload/config.yaml.

    Args:
        base_path: Directory holding the .s3upload directory.

    Returns:
        Config dictionary. Returns empty dict if the file doesn't exist.

    Raises:
        ConfigParseError: If the file is not valid YAML or not a mapping.
    """
    config_file = get_config_path(base_path)

    if not config_file.exists():
        return {}

    content = config_file.read_text()
    if not content.strip():
        return {}

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigParseError(str(config_file), str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(str(config_file), "top level must be a mapping")
    return data


def save_config(base_path: Path, config: dict[str, Any]) -> None:
    """Write configuration to .s3upload/config.yaml, creating the directory."""
    config_dir = base_path / CONFIG_DIRNAME
    config_dir.mkdir(parents=True, exist_ok=True)

    content = yaml.safe_dump(config, default_flow_style=False, sort_keys=False)
    (config_dir / CONFIG_FILENAME).write_text(content)


def _get_env_var_name(key: str) -> str:
    """Convert a setting key to its environment variable (prefix -> S3UPLOAD_PREFIX)."""
    return f"S3UPLOAD_{key.upper()}"


def get_setting(
    key: str,
    cli_value: Any | None = None,
    base_path: Path | None = None,
) -> Any | None:
    """Resolve a setting with full precedence.

    Args:
        key: Setting key (e.g., "bucket", "region")
        cli_value: Value passed via CLI argument (highest precedence)
        base_path: Directory holding .s3upload/config.yaml

    Returns:
        Resolved value, or None if not found at any level.
    """
    if cli_value is not None:
        return cli_value

    env_value = os.environ.get(_get_env_var_name(key))
    if env_value is not None:
        return env_value

    if base_path is None:
        return None

    return load_config(base_path).get(key)


def set_setting(base_path: Path, key: str, value: Any) -> None:
    """Set a value in the config file, creating it if needed."""
    config = load_config(base_path)
    config[key] = value
    save_config(base_path, config)


def unset_setting(base_path: Path, key: str) -> bool:
    """Remove a value from the config file.

    Returns:
        True if the key existed and was removed, False otherwise.
    """
    config = load_config(base_path)
    if key not in config:
        return False
    del config[key]
    save_config(base_path, config)
    return True


def get_setting_source(key: str, base_path: Path | None) -> str:
    """Return where a setting's value comes from: "env", "file" or "default"."""
    if _get_env_var_name(key) in os.environ:
        return "env"
    if base_path is not None and key in load_config(base_path):
        return "file"
    return "default"


def list_settings(base_path: Path | None = None) -> dict[str, dict[str, Any]]:
    """List known and configured settings with their values and sources.

    Returns:
        Dict mapping setting keys to {"value": ..., "source": ...}
    """
    config = load_config(base_path) if base_path else {}
    all_keys = set(config) | KNOWN_SETTINGS

    result: dict[str, dict[str, Any]] = {}
    for key in sorted(all_keys):
        value = get_setting(key, base_path=base_path)
        source = get_setting_source(key, base_path)
        if value is not None or source != "default":
            result[key] = {"value": value, "source": source}
    return result
