"""
Configuration for gitportfolio.

Configuration is a plain nested dict: defaults from get_default_config(),
overlaid with the user's config file (JSON, TOML or YAML) and then with
GITPORTFOLIO_* environment variables.
"""

import os
import json
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional

import logging
import sys

import yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "GITPORTFOLIO_"
CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_dir() -> Path:
    """Directory holding the config file and the default report cache."""
    return Path.home() / '.gitportfolio'


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Checks in order:
    1. GITPORTFOLIO_CONFIG environment variable
    2. ~/.gitportfolio/config.{json,toml,yaml,yml}

    If no file exists, returns the default JSON path for saving.
    """
    if 'GITPORTFOLIO_CONFIG' in os.environ:
        path = Path(os.environ['GITPORTFOLIO_CONFIG']).expanduser()
        if path.exists():
            return path

    config_dir = get_config_dir()
    for filename in CONFIG_FILENAMES:
        path = config_dir / filename
        if path.exists() and path.stat().st_size > 0:
            return path

    return config_dir / 'config.json'


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "general": {
            "scan_directories": ["."],
            "max_concurrent_scans": 5,
        },
        "discovery": {
            "max_depth": 3,
            "exclude_dirs": [
                "node_modules", ".git", "dist", "build", "coverage", ".next", ".nuxt",
                "temp", "tmp", "backup", "archive", ".vscode", ".idea",
                "__pycache__", ".pytest_cache", "venv", "env",
            ],
            "skip_hidden": True,
        },
        "git": {
            "timeout_seconds": 30,
            "default_branch": "main",
            "remote": "origin",
        },
        "history": {
            "max_commits": 100,
            "max_branches": 20,
            "top_contributors": 10,
            "loc_file_limit": 100,
            "loc_sample_commits": 5,
            "most_changed_files": 20,
            "active_branch_days": 30,
        },
        "cache": {
            "enabled": True,
            "directory": str(get_config_dir() / 'reports'),
            "ttl_hours": 24,
        },
        "logging": {
            "level": "WARNING",
            "format": "%(levelname)s: %(message)s",
        },
    }


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    suffix = config_path.suffix.lower()
    if suffix == '.toml':
        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
    elif suffix in ('.yaml', '.yml'):
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    else:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"top level of {config_path} must be a mapping")
    return data


def load_config(path: Optional[Path] = None, strict: bool = False) -> Dict[str, Any]:
    """
    Load configuration.

    Args:
        path: Explicit config file (discovered via get_config_path if None)
        strict: Raise instead of logging when the file cannot be parsed

    Returns:
        Merged configuration dict

    Raises:
        ValueError, OSError: If strict and the file is unreadable or invalid
    """
    config_path = Path(path).expanduser() if path else get_config_path()
    config = get_default_config()

    if config_path.exists():
        try:
            config = merge_configs(config, _read_config_file(config_path))
        except (OSError, ValueError, yaml.YAMLError) as e:
            # tomllib.TOMLDecodeError and json.JSONDecodeError are ValueErrors
            if strict:
                raise ValueError(f"Error loading config from {config_path}: {e}") from e
            logger.error(f"Error loading config from {config_path}: {e}")

    return apply_env_overrides(config)


def save_config(config: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """
    Save configuration to file.

    TOML cannot be written with the standard library, so a .toml target is
    saved as JSON next to it.

    Returns:
        Path the configuration was written to
    """
    config_path = Path(path).expanduser() if path else get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() == '.toml':
        logger.warning("Writing TOML is not supported. Saving as JSON instead.")
        config_path = config_path.with_suffix('.json')

    if config_path.suffix.lower() in ('.yaml', '.yml'):
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def merge_configs(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config: Base configuration
        override_config: Configuration to merge/override with

    Returns:
        Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def _coerce(value: str, current: Any) -> Any:
    """Convert an environment string to the type of the value it replaces."""
    lowered = value.lower()
    if isinstance(current, bool):
        if lowered in ('true', '1', 'yes', 'on'):
            return True
        if lowered in ('false', '0', 'no', 'off'):
            return False
        return value
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            return value
    if isinstance(current, list):
        return [item.strip() for item in value.split(',') if item.strip()]
    return value


def apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern GITPORTFOLIO_SECTION_KEY, for
    example GITPORTFOLIO_HISTORY_MAX_COMMITS=50. Keys containing
    underscores are matched greedily (longest matching key wins). Values
    are converted to the type of the default they replace; lists are
    comma-separated.
    """
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX) or env_key == 'GITPORTFOLIO_CONFIG':
            continue

        key_parts = env_key[len(ENV_PREFIX):].lower().split('_')

        current_level = config
        i = 0
        while i < len(key_parts):
            # Longest key in current_level that prefixes the remaining parts
            best_match_len = 0
            matched_key = None

            for config_key in current_level.keys():
                config_key_parts = config_key.split('_')
                if key_parts[i:i + len(config_key_parts)] == config_key_parts:
                    if len(config_key_parts) > best_match_len:
                        best_match_len = len(config_key_parts)
                        matched_key = config_key

            if matched_key is None:
                break

            if i + best_match_len == len(key_parts):
                current_level[matched_key] = _coerce(value, current_level[matched_key])
                break

            if isinstance(current_level[matched_key], dict):
                current_level = current_level[matched_key]
                i += best_match_len
            else:
                # env var is longer than the config path
                break

    return config


def configure_logging(config: Optional[Dict[str, Any]] = None, level: Optional[str] = None) -> None:
    """
    Send log records to stderr with the configured level and format.

    Args:
        config: Configuration dict (its `logging` section is used)
        level: Overrides the configured level, e.g. "DEBUG"
    """
    settings = (config or {}).get('logging', {}) or {}
    level_name = (level or settings.get('level') or 'WARNING').upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format=settings.get('format', '%(levelname)s: %(message)s'),
        handlers=[logging.StreamHandler(sys.stderr)],
    )
