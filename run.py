#!/usr/bin/env python3
"""
reasonable-excuse Entry Point

Starts the server with uvicorn, listening on the address from the config file.

Usage:
    python run.py

Or with a specific config file:
    python run.py --config /app/config.kdl
"""

import os
import sys
import argparse
import logging
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from config import Config
from reasonable_excuse.services import ConfigError, load_settings

# Configure basic logging before importing app
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=Config.log_handlers()
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """
    Parse command line arguments.

    Returns:
        Namespace with parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="reasonable-excuse server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--config",
        type=str,
        default=Config.CONFIG_FILE,
        help="Path to the KDL config file"
    )

    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development"
    )

    parser.add_argument(
        "--log-level",
        type=str.lower,
        default=Config.LOG_LEVEL.lower(),
        choices=["debug", "info", "warning", "error", "critical"],
        help="Logging level"
    )

    return parser.parse_args(argv)


def main(argv=None):
    """
    Main entry point for the application.
    """
    args = parse_args(argv)

    try:
        Config.validate()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    # The app factory reads the config path from Config; keep the env in sync for --reload workers
    Config.CONFIG_FILE = args.config
    os.environ["CONFIG_FILE"] = args.config

    Config.LOG_LEVEL = args.log_level.upper()
    os.environ["LOG_LEVEL"] = Config.LOG_LEVEL
    logging.getLogger().setLevel(Config.LOG_LEVEL)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"listening on {settings.address}")

    try:
        import uvicorn

        # uvicorn.run rather than Server.run: only it supervises --reload
        uvicorn.run(
            "reasonable_excuse.main:create_app",
            factory=True,
            host=settings.host,
            port=settings.port,
            reload=args.reload,
            log_level=args.log_level,
            access_log=True
        )

    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
