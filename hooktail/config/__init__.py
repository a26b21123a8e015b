"""
Config Module - Black Box Interface

Purpose: Load hook definitions and shipping parameters
Interface: YamlConfigProvider.get_config(), parse_config()
Hidden: YAML parsing, defaults, validation

Can be replaced with any provider returning an AppConfig.
"""

from .provider import (
    AppConfig,
    ConfigError,
    ConfigProvider,
    HookDefinition,
    LokiConfig,
    ServerConfig,
    YamlConfigProvider,
    parse_config,
)

__all__ = [
    "AppConfig",
    "ConfigError",
    "ConfigProvider",
    "HookDefinition",
    "LokiConfig",
    "ServerConfig",
    "YamlConfigProvider",
    "parse_config",
]
