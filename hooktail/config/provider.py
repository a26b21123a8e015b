"""YAML configuration for hook definitions, the tail buffer and Loki shipping."""
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import httpx
import yaml

DEFAULT_CONFIG_PATH = "config.yaml"


class ConfigError(ValueError):
    """Raised when the configuration file is missing, unreadable or invalid."""


@dataclass(frozen=True)
class HookDefinition:
    """A named command that can be triggered over HTTP."""
    id: str
    execute_command: str
    command_working_directory: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the same keys as the YAML file."""
        return {
            "id": self.id,
            "execute-command": self.execute_command,
            "command-working-directory": self.command_working_directory,
        }


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    tail_lines: int = 100


@dataclass
class LokiConfig:
    """Loki shipping configuration."""
    enabled: bool = False
    url: str = ""
    batch_wait_seconds: float = 5
    batch_size: int = 100
    timeout_seconds: float = 10
    queue_size: int = 10000
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def push_url(self) -> str:
        """Full URL of the Loki push endpoint."""
        return self.url.rstrip("/") + "/loki/api/v1/push"


@dataclass
class AppConfig:
    """Complete application configuration."""
    server: ServerConfig
    loki: LokiConfig
    hooks: List[HookDefinition]


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_config(self) -> AppConfig:
        """Get the application configuration."""
        ...


def _positive(value: Any, name: str, cast=int):
    try:
        number = cast(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {value!r}")
    if number <= 0:
        raise ConfigError(f"{name} must be greater than zero, got {value!r}")
    return number


def _section(data: Dict[str, Any], key: str, name: str) -> Dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a mapping, got {value!r}")
    return value


def _flag(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be true or false, got {value!r}")
    return value


def _check_loki_url(url: str) -> None:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ConfigError(f"loki.url is not a valid URL: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigError(f"loki.url must be an http(s) URL with a host, got {url!r}")


def parse_config(data: Optional[Dict[str, Any]]) -> AppConfig:
    """
    Build an AppConfig from a parsed YAML document.

    Args:
        data: Mapping produced by yaml.safe_load (None for an empty file)

    Returns:
        Validated AppConfig

    Raises:
        ConfigError: If a section has the wrong shape or a value is invalid
    """
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    server_data = _section(data, "server", "server")
    tail_data = _section(server_data, "tail", "server.tail")
    server = ServerConfig(
        host=str(server_data.get("host", "0.0.0.0")),
        port=_positive(server_data.get("port", 8080), "server.port"),
        tail_lines=_positive(tail_data.get("lines", 100), "server.tail.lines"),
    )

    loki_data = _section(data, "loki", "loki")
    labels = _section(loki_data, "labels", "loki.labels")
    loki = LokiConfig(
        enabled=_flag(loki_data.get("enabled", False), "loki.enabled"),
        url=str(loki_data.get("url", "")),
        batch_wait_seconds=_positive(
            loki_data.get("batch_wait_seconds", 5), "loki.batch_wait_seconds", float
        ),
        batch_size=_positive(loki_data.get("batch_size", 100), "loki.batch_size"),
        timeout_seconds=_positive(
            loki_data.get("timeout_seconds", 10), "loki.timeout_seconds", float
        ),
        queue_size=_positive(loki_data.get("queue_size", 10000), "loki.queue_size"),
        labels={str(k): str(v) for k, v in labels.items()},
    )
    if loki.enabled and not loki.url:
        raise ConfigError("loki.url is required when loki.enabled is true")
    if loki.url:
        _check_loki_url(loki.url)

    hooks_data = data.get("hooks") or []
    if not isinstance(hooks_data, list):
        raise ConfigError("hooks must be a list")
    hooks: List[HookDefinition] = []
    seen = set()
    for index, hook_data in enumerate(hooks_data):
        if not isinstance(hook_data, dict):
            raise ConfigError(f"hooks[{index}] must be a mapping")
        hook_id = hook_data.get("id")
        command = hook_data.get("execute-command")
        if not hook_id or not command:
            raise ConfigError(f"hooks[{index}] requires 'id' and 'execute-command'")
        if hook_id in seen:
            raise ConfigError(f"Duplicate hook id: {hook_id}")
        seen.add(hook_id)
        hooks.append(
            HookDefinition(
                id=str(hook_id),
                execute_command=str(command),
                command_working_directory=hook_data.get("command-working-directory"),
            )
        )

    return AppConfig(server=server, loki=loki, hooks=hooks)


class YamlConfigProvider:
    """YAML file based configuration provider."""

    def __init__(self, path: Optional[str] = None):
        self.path = path or os.getenv("HOOKTAIL_CONFIG", DEFAULT_CONFIG_PATH)

    def get_config(self) -> AppConfig:
        """Read and validate the configuration file."""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"Failed to read config file {self.path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse config file {self.path}: {e}") from e

        return parse_config(data)
