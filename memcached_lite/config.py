#!/usr/bin/env python3
"""
Plugin configuration

Settings come from, in order of precedence: command line flags, an optional
YAML configuration file, and the built-in defaults below.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError
from .exposition import FORMAT_MACKEREL, FORMATS

DEFAULT_HOST = 'localhost'
DEFAULT_PORT = 11211
DEFAULT_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = 'WARNING'
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')

CONFIG_KEYS = ('host', 'port', 'timeout', 'tempfile', 'format', 'log_level')


@dataclass(frozen=True)
class ConnectionConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class PluginConfig:
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    tempfile: Optional[str] = None
    output_format: str = FORMAT_MACKEREL
    log_level: str = DEFAULT_LOG_LEVEL


def load_config_file(config_file: str) -> Dict[str, Any]:
    """
    Read settings from a YAML configuration file.

    Args:
        config_file: Path to the YAML file

    Returns:
        dict: Settings found in the file, keyed by CONFIG_KEYS

    Raises:
        ConfigError: file missing, not valid YAML, or with unknown keys
    """
    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {config_file}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {config_file}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML configuration: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {config_file}")

    unknown = sorted(set(config) - set(CONFIG_KEYS))
    if unknown:
        raise ConfigError(f"Unknown configuration keys in {config_file}: {', '.join(map(str, unknown))}")
    return config


def build_config(overrides: Dict[str, Any], file_settings: Optional[Dict[str, Any]] = None) -> PluginConfig:
    """
    Merge command line overrides over file settings and defaults.

    ``None`` values in ``overrides`` mean "not given on the command line".

    Raises:
        ConfigError: a value has the wrong type or is out of range
    """
    settings = dict(file_settings or {})
    settings.update({key: value for key, value in overrides.items() if value is not None})

    try:
        host = str(settings.get('host', DEFAULT_HOST))
        port = int(settings.get('port', DEFAULT_PORT))
        timeout = float(settings.get('timeout', DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid connection setting: {e}") from e

    if not host:
        raise ConfigError("host must not be empty")
    if not 0 < port < 65536:
        raise ConfigError(f"port out of range: {port}")

    output_format = settings.get('format', FORMAT_MACKEREL)
    if output_format not in FORMATS:
        raise ConfigError(f"format must be one of {', '.join(FORMATS)}, got {output_format!r}")

    log_level = str(settings.get('log_level', DEFAULT_LOG_LEVEL)).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")

    tempfile = settings.get('tempfile')
    return PluginConfig(
        connection=ConnectionConfig(host=host, port=port, timeout=timeout),
        tempfile=str(tempfile) if tempfile else None,
        output_format=output_format,
        log_level=log_level
    )
