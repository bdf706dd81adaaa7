"""
Data models and schemas for the reasonable-excuse server.
"""

from .schemas import AddTransactionRequest, HealthResponse
from .settings import (
    CalendarSettings,
    FireflySettings,
    ServerSettings,
    Shortcut,
    UploadSettings,
)

__all__ = [
    'AddTransactionRequest', 'HealthResponse',
    'CalendarSettings', 'FireflySettings', 'ServerSettings', 'Shortcut', 'UploadSettings',
]
