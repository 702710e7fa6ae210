"""Configuration management.

Loads and merges configuration from multiple sources with proper precedence.
"""

import json
import os
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config_loader import deep_merge, load_json_file, read_json_file
from .config_schema import Config, LoggingConfig, SkillRepository
from .global_paths import GlobalPath
from ..util.log import Log

log = Log.create({"service": "config"})

__all__ = [
    "Config",
    "ConfigError",
    "ConfigManager",
    "LoggingConfig",
    "SkillRepository",
]

CONFIG_FILENAMES = ["open-skills.json", "open-skills.jsonc"]
TOKEN_ENV_VARS = ["GITHUB_TOKEN", "GH_TOKEN"]


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Config error in {path}: {message}")


_config_var: ContextVar['ConfigManager'] = ContextVar('_config_var')


class ConfigManager:
    """Configuration management.

    Instance-based with ContextVar for scoping. Class methods delegate
    to the current instance.

    Loads configuration from multiple sources with proper precedence:
    1. Global config (``<config dir>/open-skills.json``)
    2. Project config (``open-skills.json`` from the filesystem root down to
       the workspace, nearer files winning)
    3. ``OPEN_SKILLS_CONFIG_CONTENT`` environment variable (JSON)
    4. ``GITHUB_TOKEN`` / ``GH_TOKEN`` when no token is configured
    """

    def __init__(self) -> None:
        self._cache: Optional[Config] = None
        self._sources: List[str] = []
        self._directory = "."

    # -- ContextVar plumbing --

    @classmethod
    def current(cls) -> 'ConfigManager':
        try:
            return _config_var.get()
        except LookupError:
            instance = cls()
            _config_var.set(instance)
            return instance

    @classmethod
    def provide(cls, instance: 'ConfigManager') -> Token['ConfigManager']:
        return _config_var.set(instance)

    @classmethod
    def restore(cls, token: Token['ConfigManager']) -> None:
        _config_var.reset(token)

    # -- Public API (class methods delegate to current instance) --

    @classmethod
    def reset(cls) -> None:
        """Reset cached configuration."""
        inst = cls.current()
        inst._cache = None
        inst._sources = []

    @classmethod
    async def load(cls, directory: str = ".") -> Config:
        return await cls.current()._load(directory)

    @classmethod
    async def get(cls) -> Config:
        inst = cls.current()
        if inst._cache is None:
            return await inst._load()
        return inst._cache

    @classmethod
    def sources(cls) -> List[str]:
        """Config files that contributed to the current configuration."""
        return cls.current()._sources.copy()

    @classmethod
    async def update_global(cls, updates: Dict[str, Any]) -> Config:
        return await cls.current()._update_global(updates)

    # -- Instance methods --

    async def _load(self, directory: str = ".") -> Config:
        if self._cache is not None:
            return self._cache

        self._directory = directory
        result: Dict[str, Any] = {}
        sources: List[str] = []

        def apply(filepath: str, label: str) -> None:
            nonlocal result
            data = load_json_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(filepath)
                log.info(f"loaded {label} config", {"path": filepath})

        # 1. Global config
        for filename in CONFIG_FILENAMES:
            apply(os.path.join(GlobalPath.config(), filename), "global")

        # 2. Project config (root first, then more specific)
        current = Path(directory).resolve()
        project_configs: List[str] = []
        while True:
            for filename in CONFIG_FILENAMES:
                filepath = current / filename
                if filepath.is_file():
                    project_configs.append(str(filepath))
            if current == current.parent:
                break
            current = current.parent

        for filepath in reversed(project_configs):
            apply(filepath, "project")

        # 3. Environment variable config
        env_config = os.environ.get("OPEN_SKILLS_CONFIG_CONTENT")
        if env_config:
            try:
                data = json.loads(env_config)
            except json.JSONDecodeError:
                log.error("failed to parse OPEN_SKILLS_CONFIG_CONTENT")
            else:
                if isinstance(data, dict):
                    result = deep_merge(result, data)
                    log.info("loaded config from OPEN_SKILLS_CONFIG_CONTENT")

        # 4. Token fallback
        if not result.get("githubToken"):
            for name in TOKEN_ENV_VARS:
                token = os.environ.get(name, "").strip()
                if token:
                    result["githubToken"] = token
                    break

        try:
            config = Config.model_validate(result)
        except ValidationError as e:
            origin = sources[-1] if sources else "<defaults>"
            raise ConfigError(origin, str(e)) from e

        self._sources = sources
        self._cache = config
        return config

    async def _update_global(self, updates: Dict[str, Any]) -> Config:
        filepath = os.path.join(GlobalPath.config(), "open-skills.json")

        # placeholders such as {env:VAR} are kept as written
        existing: Dict[str, Any] = {}
        if os.path.exists(filepath):
            try:
                existing = read_json_file(filepath, substitute_env=False)
            except (OSError, ValueError) as e:
                raise ConfigError(filepath, str(e)) from e

        merged = deep_merge(existing, updates)

        try:
            Config.model_validate(merged)
        except ValidationError as e:
            raise ConfigError(filepath, str(e)) from e

        Path(filepath).parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(merged, f, indent=2)

        log.info("updated global config", {"path": filepath})

        self._cache = None
        self._sources = []

        return await self._load(self._directory)
