# Main Entry Point - API Server
#
# python -m strongbox [--host HOST] [--port PORT] [--config FILE]
#
# Loads configuration (env, .env, optional JSON file), sets up audit
# logging, and serves the REST API with uvicorn.

import argparse
import logging
import sys

from . import __version__
from .config import load_config
from .core import EventSeverity, EventType, configure_audit_logger
from .errors import ConfigError


def main(argv=None):
    """Main entry point for the Strongbox server."""
    parser = argparse.ArgumentParser(
        description="Strongbox - password manager backend (REST API server)",
    )

    parser.add_argument(
        "--host",
        default=None,
        help="Bind address (overrides SERVER_HOST, default: localhost)"
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Bind port (overrides SERVER_PORT, default: 8080)"
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to a JSON config file (default: $STRONGBOX_CONFIG or ./config.json)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Strongbox v{__version__}"
    )

    args = parser.parse_args(argv)

    try:
        config = load_config(config_path=args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    audit = configure_audit_logger(log_dir=config.log_dir, level=config.log_level)
    audit.log_event(
        event_type=EventType.SYSTEM_START,
        severity=EventSeverity.INFO,
        message="Strongbox starting",
        details={
            "version": __version__,
            "storage": config.storage_backend,
            "address": f"{config.host}:{config.port}",
        }
    )

    from .api.main import start_api_server

    try:
        start_api_server(config, audit_logger=audit)
    except KeyboardInterrupt:
        audit.log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.INFO,
            message="Strongbox stopped (user interrupt)"
        )
    except Exception as e:
        audit.log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.CRITICAL,
            message=f"Strongbox crashed: {str(e)}"
        )
        raise
    else:
        audit.log_event(
            event_type=EventType.SYSTEM_STOP,
            severity=EventSeverity.INFO,
            message="Strongbox stopped"
        )


if __name__ == "__main__":
    main()
