"""
mcpbridge Configuration - Configuration loading and validation.

This module provides the Config class for managing mcpbridge configuration
from global (~/.mcpbridge/config.yaml) and local (.mcpbridge/config.yaml)
sources, with environment variables taking precedence over both.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError


class ConfigError(Exception):
    """Raised when there's a configuration error."""

    pass


class ModelSettings(BaseModel):
    """Settings for the chat-completion API."""

    provider: str = "openai"
    name: str = "gpt-4o-mini"
    api_key: Optional[str] = None
    base_url: str = "https://api.openai.com/v1"
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout: int = 120


class SessionSettings(BaseModel):
    """Settings for a conversation session."""

    max_tool_rounds: int = Field(default=1, ge=1)
    trace_dir: Optional[str] = None
    servers_file: Optional[str] = None


class ClientSettings(BaseModel):
    """Identity sent to the tool server during the handshake."""

    name: str = "mcpbridge"
    version: str = "0.1.0"


class BridgeConfig(BaseModel):
    """Complete mcpbridge configuration schema."""

    model: ModelSettings = Field(default_factory=ModelSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)


# (section, key) -> environment variables, first set one wins
ENV_OVERRIDES: Dict[Tuple[str, str], Tuple[str, ...]] = {
    ("model", "api_key"): ("OPENAI_API_KEY", "LLM_API_KEY"),
    ("model", "name"): ("OPENAI_MODEL", "LLM_MODEL"),
    ("model", "base_url"): ("OPENAI_BASE_URL", "LLM_BASE_URL"),
    ("model", "provider"): ("MCPBRIDGE_PROVIDER",),
    ("session", "trace_dir"): ("MCPBRIDGE_TRACE_DIR",),
    ("session", "servers_file"): ("MCPBRIDGE_SERVERS_FILE",),
}


class Config:
    """
    mcpbridge configuration manager.

    Handles loading, merging, and validating configuration from:
    - Global: ~/.mcpbridge/config.yaml
    - Local: .mcpbridge/config.yaml (nearest one above the working directory)
    - Environment: see ``ENV_OVERRIDES``

    Local configuration overrides global configuration; the environment
    overrides both.

    Example:
        >>> config = Config.load()
        >>> config.merged.model.name
        'gpt-4o-mini'
    """

    GLOBAL_CONFIG_DIR = Path.home() / ".mcpbridge"
    LOCAL_CONFIG_DIR = Path(".mcpbridge")

    def __init__(
        self,
        global_config: Optional[Dict[str, Any]] = None,
        local_config: Optional[Dict[str, Any]] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self._global_config = global_config or {}
        self._local_config = local_config or {}
        self._env = dict(env) if env is not None else {}
        self._merged: Optional[BridgeConfig] = None

    @classmethod
    def load(cls, env: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Load configuration from default locations.

        Args:
            env: Environment mapping to read overrides from (defaults to os.environ).
        """
        global_config = cls._load_yaml(cls.GLOBAL_CONFIG_DIR / "config.yaml")
        local_config = cls._load_yaml(cls._find_local_config())

        return cls(
            global_config=global_config,
            local_config=local_config,
            env=os.environ if env is None else env,
        )

    @classmethod
    def _load_yaml(cls, path: Optional[Path]) -> Dict[str, Any]:
        """Load YAML file if it exists."""
        if path is None or not path.exists():
            return {}

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {path}: {e}")
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    @classmethod
    def _find_local_config(cls) -> Optional[Path]:
        """Find the local config file by walking up the directory tree."""
        current = Path.cwd()
        while current != current.parent:
            config_path = current / cls.LOCAL_CONFIG_DIR / "config.yaml"
            if config_path.exists():
                return config_path
            current = current.parent
        return None

    def get_merged_config(self) -> Dict[str, Any]:
        """Get the merged file configuration with environment overrides applied."""
        merged = self._deep_merge(self._global_config.copy(), self._local_config)
        return self._deep_merge(merged, self._env_overrides())

    def _env_overrides(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        for (section, key), names in ENV_OVERRIDES.items():
            for name in names:
                value = self._env.get(name)
                if value:
                    overrides.setdefault(section, {})[key] = value
                    break
        return overrides

    @property
    def merged(self) -> BridgeConfig:
        """Get the validated merged configuration."""
        if self._merged is None:
            try:
                self._merged = BridgeConfig(**self.get_merged_config())
            except ValidationError as e:
                raise ConfigError(f"Invalid configuration: {e}")
        return self._merged

    def require_api_key(self) -> str:
        """Return the API key or fail with a message naming the variables to set."""
        api_key = self.merged.model.api_key
        if not api_key:
            names = " or ".join(ENV_OVERRIDES[("model", "api_key")])
            raise ConfigError(f"API key not configured. Set {names}, or model.api_key in config.yaml")
        return api_key

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
