"""Configuration file loading utilities — JSONC parsing, env substitution, deep merge."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Dict

import commentjson

from ..util.log import Log

log = Log.create({"service": "config.loader"})

# list-valued keys that accumulate across config layers instead of replacing
MERGED_LISTS = {"customScanPaths", "skillRepositories"}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if (
            key in MERGED_LISTS
            and isinstance(result.get(key), list)
            and isinstance(value, list)
        ):
            merged = []
            for item in [*result[key], *value]:
                if item not in merged:
                    merged.append(item)
            result[key] = merged
        elif key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def substitute_env_vars(text: str) -> str:
    """Replace ``{env:VAR}`` patterns with environment variable values."""
    def replacer(match: re.Match[str]) -> str:
        return os.environ.get(match.group(1), "")

    return re.sub(r'\{env:([^}]+)\}', replacer, text)


def read_json_file(filepath: str, *, substitute_env: bool = True) -> Dict[str, Any]:
    """Parse a JSON or JSONC file holding an object.

    Raises:
        OSError: The file cannot be read
        ValueError: The content is not a JSON object
    """
    text = Path(filepath).read_text(encoding="utf-8")
    if substitute_env:
        text = substitute_env_vars(text)

    try:
        data = commentjson.loads(text)
    except Exception as e:
        # commentjson surfaces syntax errors as lark exceptions
        raise ValueError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("config file is not an object")
    return data


def load_json_file(filepath: str) -> Dict[str, Any]:
    """Load a JSON or JSONC file, returning ``{}`` on any I/O or parse error."""
    if not Path(filepath).exists():
        return {}

    try:
        return read_json_file(filepath)
    except (OSError, ValueError) as e:
        log.error("failed to load config file", {"path": filepath, "error": str(e)})
        return {}
