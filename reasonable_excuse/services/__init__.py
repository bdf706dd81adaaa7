"""
Service Layer

Contains the route groups' logic, separated from the HTTP handlers.
"""

from .config_loader import ConfigError, load_settings, parse_settings
from .upload_service import UploadService, UploadError
from .firefly_client import FireflyClient, FireflyError
from .shortcut_service import ShortcutService, ShortcutError
from .calendar_service import CalendarService, CalendarError

__all__ = [
    'ConfigError', 'load_settings', 'parse_settings',
    'UploadService', 'UploadError',
    'FireflyClient', 'FireflyError',
    'ShortcutService', 'ShortcutError',
    'CalendarService', 'CalendarError',
]
