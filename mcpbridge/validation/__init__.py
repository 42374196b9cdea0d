"""
mcpbridge validation module.

This module provides configuration loading and schema enforcement.
"""

from mcpbridge.validation.config import BridgeConfig, Config, ConfigError

__all__ = ["BridgeConfig", "Config", "ConfigError"]
