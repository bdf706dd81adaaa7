"""
Configuration Module

Loads environment variables and provides process-level settings for the
reasonable-excuse server. Route configuration lives in the KDL config file;
this module only controls where that file is and how the process behaves.

Uses python-dotenv to load variables from a .env file for local development.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file (if it exists)
env_path = Path('.') / '.env'
load_dotenv(dotenv_path=env_path)

logger = logging.getLogger(__name__)


class Config:
    """
    Process configuration for the reasonable-excuse server.

    All settings can be overridden via environment variables.
    """

    # ==========================================
    # Config File
    # ==========================================

    # Path to the KDL route configuration. The container mounts it at /app/config.kdl
    CONFIG_FILE = os.getenv('CONFIG_FILE', 'config.kdl')

    # ==========================================
    # Upstream HTTP
    # ==========================================

    # Timeout (seconds) for requests to Firefly and calendar upstreams
    HTTP_TIMEOUT = float(os.getenv('HTTP_TIMEOUT', '30'))

    # ==========================================
    # Uploads
    # ==========================================

    # Buffer size used when copying an uploaded file to disk
    UPLOAD_CHUNK_SIZE = int(os.getenv('UPLOAD_CHUNK_SIZE', str(1024 * 1024)))

    # ==========================================
    # Logging Configuration
    # ==========================================

    # Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Optional server log file; empty means log to stderr only
    SERVER_LOG_FILE = os.getenv('SERVER_LOG_FILE', '')

    # ==========================================
    # Validation
    # ==========================================

    @classmethod
    def validate(cls):
        """
        Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid
        """
        errors = []

        if not cls.CONFIG_FILE:
            errors.append("CONFIG_FILE must not be empty")

        if cls.HTTP_TIMEOUT <= 0:
            errors.append(f"HTTP_TIMEOUT must be positive, got {cls.HTTP_TIMEOUT}")

        if cls.UPLOAD_CHUNK_SIZE <= 0:
            errors.append(f"UPLOAD_CHUNK_SIZE must be positive, got {cls.UPLOAD_CHUNK_SIZE}")

        valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if cls.LOG_LEVEL.upper() not in valid_log_levels:
            errors.append(
                f"LOG_LEVEL must be one of {valid_log_levels}, got {cls.LOG_LEVEL}"
            )

        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )

    @classmethod
    def log_handlers(cls):
        """Build the logging handlers for the configured destinations."""
        handlers = [logging.StreamHandler()]
        if cls.SERVER_LOG_FILE:
            handlers.append(logging.FileHandler(cls.SERVER_LOG_FILE))
        return handlers

    @classmethod
    def display(cls):
        """Log the current process configuration."""
        logger.info("=" * 60)
        logger.info("reasonable-excuse configuration")
        logger.info("=" * 60)
        logger.info(f"Config File: {cls.CONFIG_FILE}")
        logger.info(f"HTTP Timeout: {cls.HTTP_TIMEOUT}s")
        logger.info(f"Upload Chunk Size: {cls.UPLOAD_CHUNK_SIZE} bytes")
        logger.info(f"Log Level: {cls.LOG_LEVEL}")
        logger.info(f"Server Log File: {cls.SERVER_LOG_FILE or 'NOT SET'}")
        logger.info("=" * 60)


# Validate configuration on import
try:
    Config.validate()
except ValueError as e:
    # Report but don't crash on import; run.py refuses to start on invalid config
    print(f"\nConfiguration Error:\n{e}\n")
