"""Process Entry Point.

Loads and validates configuration, then serves the subscriber app with
uvicorn. It's a thin wrapper; the work happens in the poll loop.
"""

import argparse
import importlib.util
import logging
import os
import sys

import uvicorn

from trem_monitor.app import create_app
from trem_monitor.core.config import validate_config
from trem_monitor.core.errors import ConfigError
from trem_monitor.shell.config_loader import load_config


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# uvicorn needs one of these to speak WebSocket
WEBSOCKET_BACKENDS = ("websockets", "wsproto")


def has_websocket_support() -> bool:
    """Check that a WebSocket protocol implementation is installed."""
    return any(importlib.util.find_spec(name) is not None for name in WEBSOCKET_BACKENDS)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Monitor realtime seismic intensity for selected areas",
    )
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--host", help="Interface to bind the subscriber server to")
    parser.add_argument("--port", type=int, help="Subscriber server port")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the monitor until interrupted.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Process exit code
    """
    args = _parse_args(argv)

    if not has_websocket_support():
        logger.error(
            "No WebSocket support available; install one of: %s",
            ", ".join(WEBSOCKET_BACKENDS),
        )
        return 1

    try:
        config = load_config(args.config)
        if args.host:
            config.host = args.host
        if args.port:
            config.ws_port = args.port

        validation = validate_config(config)
        for warning in validation.warnings:
            logger.warning("Config %s: %s", warning.field, warning.message)
        if not validation.valid:
            for error in validation.critical_errors:
                logger.error("Config %s: %s", error.field, error.message)
            return 1

        logger.info(
            "Monitoring %s",
            ", ".join(f"{a.name} ({a.code})" for a in config.monitored_areas),
        )
        logger.info("WebSocket server on ws://%s:%d", config.host, config.ws_port)

        app = create_app(config)
        uvicorn.run(app, host=config.host, port=config.ws_port, log_level=log_level.lower())

    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    except Exception:
        logger.exception("Startup failed")
        return 1

    return 0


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


# For local runs
if __name__ == "__main__":
    cli()
