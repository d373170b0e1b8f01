"""Unified configuration management for the application."""
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

import yaml
from pydantic import ValidationError as PydanticValidationError

from topoplan.config.schemas import (
    AppConfig,
    ExecutorConfig,
    LoggingConfig,
    ProviderConfig,
    StateConfig,
)
from topoplan.config.utils.env_expansion import expand_env_vars
from topoplan.domain.base.exceptions import ConfigurationError

T = TypeVar("T")
logger = logging.getLogger(__name__)

ENV_PREFIX = "TOPOPLAN_"
CONFIG_ENV_VAR = "TOPOPLAN_CONFIG"
DEFAULT_CONFIG_LOCATIONS: List[str] = [
    "topoplan.yaml",
    "topoplan.yml",
    "topoplan.json",
    ".topoplan/config.yaml",
    ".topoplan/config.json",
]


class ConfigurationManager:
    """
    Configuration manager that serves as the single source of truth.

    Sources, lowest precedence first:
    - built-in defaults of ``AppConfig``
    - a JSON or YAML file (explicit path, ``$TOPOPLAN_CONFIG`` or a default location)
    - ``TOPOPLAN_<SECTION>__<KEY>`` environment variables

    ``$VAR`` / ``${VAR}`` / ``${VAR:default}`` references inside file values are expanded.
    """

    def __init__(self, config_file: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        """Initialize configuration manager with lazy loading."""
        self._config_file = config_file
        self._environ = os.environ if environ is None else environ
        self._lock = threading.RLock()
        self._app_config: Optional[AppConfig] = None
        self._config_cache: Dict[Type, Any] = {}

    @property
    def app_config(self) -> AppConfig:
        """Lazy load application configuration."""
        if self._app_config is None:
            with self._lock:
                if self._app_config is None:
                    self._app_config = self._load_app_config()
        return self._app_config

    @property
    def config_path(self) -> Optional[Path]:
        return self._resolve_config_path()

    def _resolve_config_path(self) -> Optional[Path]:
        if self._config_file:
            path = Path(self._config_file)
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {path}")
            return path
        from_env = self._environ.get(CONFIG_ENV_VAR)
        if from_env:
            return Path(from_env)
        for candidate in DEFAULT_CONFIG_LOCATIONS:
            path = Path(candidate)
            if path.exists():
                return path
        return None

    def _load_app_config(self) -> AppConfig:
        """Load application configuration from sources."""
        path = self._resolve_config_path()
        data = load_config_file(path) if path else {}
        data = expand_env_vars(data, environ=self._environ)
        data = self._apply_environment_overrides(data)

        try:
            config = AppConfig.from_dict(data)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        logger.debug(f"Configuration loaded from {path or 'defaults'}")
        return config

    def _apply_environment_overrides(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply ``TOPOPLAN_SECTION__KEY=value`` overrides; values are parsed as YAML scalars."""
        result = json.loads(json.dumps(data))
        for name, raw_value in sorted(self._environ.items()):
            if not name.startswith(ENV_PREFIX) or "__" not in name:
                continue
            path = [part.lower() for part in name[len(ENV_PREFIX):].split("__") if part]
            if len(path) < 2:
                continue
            target = result
            for part in path[:-1]:
                target = target.setdefault(part, {})
                if not isinstance(target, dict):
                    raise ConfigurationError(f"Cannot override non-section value with {name}")
            target[path[-1]] = yaml.safe_load(raw_value) if raw_value != "" else ""
            logger.debug(f"Applied environment override {name}")
        return result

    def get_typed(self, config_type: Type[T]) -> T:
        """Get typed configuration section with caching."""
        if config_type not in self._config_cache:
            with self._lock:
                if config_type not in self._config_cache:
                    self._config_cache[config_type] = self._create_typed_config(config_type)
        return self._config_cache[config_type]

    def _create_typed_config(self, config_type: Type[T]) -> T:
        type_mapping = {
            AppConfig: None,
            LoggingConfig: "logging",
            StateConfig: "state",
            ExecutorConfig: "executor",
            ProviderConfig: "provider",
        }
        if config_type not in type_mapping:
            raise ValueError(f"Unknown configuration type: {config_type.__name__}")
        attr_name = type_mapping[config_type]
        return self.app_config if attr_name is None else getattr(self.app_config, attr_name)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Args:
            key: Configuration key (dot notation for nested keys)
            default: Default value if key not found
        """
        value: Any = self.app_config.model_dump()
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def reload(self) -> None:
        """Reload configuration from sources."""
        with self._lock:
            self._app_config = None
            self._config_cache.clear()


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read a JSON or YAML configuration file into a dict."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e

    try:
        if Path(path).suffix.lower() == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            data = yaml.safe_load(content) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot parse configuration file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return data
