"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, MonitoredArea) are defined in trem_monitor/core/config.py
to avoid information leakage between layers.
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from trem_monitor.core.area import MonitoredArea
from trem_monitor.core.config import Config, ServerPools, TimeoutConfig
from trem_monitor.core.errors import ConfigError


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"


def _resolve_value(value: Any) -> Any:
    """Resolve a ``${VAR}`` placeholder from the environment.

    Non-string values and plain strings are returned unchanged. An
    unset variable leaves the placeholder in place.
    """
    if not isinstance(value, str):
        return value

    if value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        env_value = os.environ.get(var_name)
        if env_value:
            return env_value
        logger.warning("Environment variable %s not set", var_name)

    return value


def _parse_area(data: dict[str, Any]) -> MonitoredArea:
    """Parse a monitored area from config data."""
    return MonitoredArea(
        code=int(_resolve_value(data["code"])),
        name=str(_resolve_value(data.get("name", ""))),
    )


def _parse_areas_env(value: str) -> list[MonitoredArea]:
    """Parse ``code:name,code:name`` into monitored areas."""
    areas = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        code, _, name = item.partition(":")
        areas.append(MonitoredArea(code=int(code.strip()), name=name.strip()))
    return areas


def _parse_timeouts(data: dict[str, Any]) -> TimeoutConfig:
    """Parse request timeouts from config data."""
    defaults = TimeoutConfig()
    return TimeoutConfig(
        realtime=float(_resolve_value(data.get("realtime", defaults.realtime))),
        station=float(_resolve_value(data.get("station", defaults.station))),
    )


def _parse_servers(data: dict[str, Any]) -> ServerPools:
    """Parse upstream server pools from config data."""
    defaults = ServerPools()
    return ServerPools(
        api=[_resolve_value(s) for s in data.get("api", defaults.api)],
        lb=[_resolve_value(s) for s in data.get("lb", defaults.lb)],
        scheme=_resolve_value(data.get("scheme", defaults.scheme)),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    Missing keys fall back to the defaults in Config.

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object

    Raises:
        ConfigError: If a value has the wrong type
    """
    defaults = Config()

    try:
        areas = defaults.monitored_areas
        if "monitored_areas" in data:
            areas = [_parse_area(a) for a in data["monitored_areas"] or []]

        return Config(
            poll_interval_seconds=float(_resolve_value(
                data.get("poll_interval_seconds", defaults.poll_interval_seconds)
            )),
            station_cache_ttl_seconds=float(_resolve_value(
                data.get("station_cache_ttl_seconds", defaults.station_cache_ttl_seconds)
            )),
            heartbeat_every=int(_resolve_value(
                data.get("heartbeat_every", defaults.heartbeat_every)
            )),
            display_threshold=int(_resolve_value(
                data.get("display_threshold", defaults.display_threshold)
            )),
            timeouts=_parse_timeouts(data.get("timeouts") or {}),
            servers=_parse_servers(data.get("servers") or {}),
            monitored_areas=areas,
            host=str(_resolve_value(data.get("host", defaults.host))),
            ws_port=int(_resolve_value(data.get("ws_port", defaults.ws_port))),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to a loaded config.

    Environment variables:
        WS_PORT: Subscriber server port
        POLL_INTERVAL_SECONDS: Poll interval
        MONITORED_AREAS: Comma-separated ``code:name`` pairs

    Returns:
        The same Config object, updated in place

    Raises:
        ConfigError: If an override cannot be parsed
    """
    try:
        if os.environ.get("WS_PORT"):
            config.ws_port = int(os.environ["WS_PORT"])
        if os.environ.get("POLL_INTERVAL_SECONDS"):
            config.poll_interval_seconds = float(os.environ["POLL_INTERVAL_SECONDS"])
        if os.environ.get("MONITORED_AREAS"):
            config.monitored_areas = _parse_areas_env(os.environ["MONITORED_AREAS"])
    except ValueError as e:
        raise ConfigError(f"Invalid environment override: {e}") from e

    return config


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object with environment overrides applied

    Raises:
        ConfigError: If the file is not valid YAML or has invalid values
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return apply_env_overrides(Config())

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return apply_env_overrides(Config())

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    config = apply_env_overrides(load_config_from_dict(data))

    logger.info(
        "Loaded config: %d areas, poll every %.1fs, port %d",
        len(config.monitored_areas),
        config.poll_interval_seconds,
        config.ws_port,
    )

    return config
