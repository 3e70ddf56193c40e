"""Configuration loading utilities."""

import json
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from .main_config import Config

logger = logging.getLogger(__name__)

CONFIG_FILE_STEM = "chatstore"


def strip_jsonc_comments(content: str) -> str:
    """
    Strip comments from JSONC content to convert to valid JSON.

    Handles:
    - Single-line comments: // comment
    - Multi-line comments: /* comment */

    Args:
        content: JSONC content string

    Returns:
        JSON string with comments removed
    """
    content = re.sub(r"(?<![:\"])//.*?$", "", content, flags=re.MULTILINE)
    content = re.sub(r"/\*.*?\*/", "", content, flags=re.DOTALL)
    return content


def load_config_file(path: Path) -> dict[str, Any] | None:
    """
    Load a config file from the given path.

    Args:
        path: Path to a .json or .jsonc file

    Returns:
        Parsed config dictionary or None if the file is missing or invalid
    """
    if not path.exists():
        return None

    try:
        content = path.read_text()
        if path.suffix == ".jsonc":
            content = strip_jsonc_comments(content)
        return json.loads(content)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to load config from %s: %s", path, e)
        return None


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two configuration dictionaries; override wins."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def load_config(project_root: Path | None = None) -> Config:
    """
    Load configuration from multiple sources with precedence.

    Looks for config files in the following order:
    1. Global: ~/.chatstore/chatstore.jsonc
    2. Project-level: chatstore.jsonc, then chatstore.json

    The first project-level file found is merged over the global config.

    Args:
        project_root: Project root directory (defaults to current working directory)

    Returns:
        Loaded and merged Config model
    """
    if project_root is None:
        project_root = Path.cwd()

    global_config_path = Path.home() / ".chatstore" / f"{CONFIG_FILE_STEM}.jsonc"
    config_data = load_config_file(global_config_path) or {}

    project_config_paths = [
        project_root / f"{CONFIG_FILE_STEM}.jsonc",
        project_root / f"{CONFIG_FILE_STEM}.json",
    ]

    for path in project_config_paths:
        project_config = load_config_file(path)
        if project_config:
            logger.debug("Using project config %s", path)
            config_data = merge_configs(config_data, project_config)
            break

    return Config(**config_data)


def get_working_directory() -> str:
    """Get the working directory from environment or default to cwd."""
    return os.environ.get("WORKING_DIR", os.getcwd())


@lru_cache(maxsize=1)
def get_config(project_root: Path | None = None) -> Config:
    """
    Get cached configuration.

    To reload the config, clear the cache with get_config.cache_clear().
    """
    root = project_root or Path(get_working_directory())
    return load_config(root)
