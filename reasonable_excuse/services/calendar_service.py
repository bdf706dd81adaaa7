"""
Calendar Proxy Service

Fetches an upstream iCal feed and strips every match of the configured
filter regex from it. The filtering is purely textual; the feed is not
parsed.
"""

import logging
import re
from urllib.parse import urlencode, urlsplit, urlunsplit

import requests

from config import Config
from reasonable_excuse import USER_AGENT
from reasonable_excuse.models.settings import CalendarSettings
from reasonable_excuse.services.config_loader import ConfigError
from reasonable_excuse.utils.performance import timer

logger = logging.getLogger(__name__)


class CalendarError(RuntimeError):
    """Raised when the upstream calendar cannot be fetched."""


class CalendarService:
    """
    Filtering proxy for one upstream calendar.

    Args:
        settings: Calendar route settings
        timeout_seconds: Timeout for upstream requests

    Raises:
        ConfigError: If the filter is not a valid regular expression
    """

    def __init__(self, settings: CalendarSettings, timeout_seconds: float = None):
        self.settings = settings
        self.timeout = timeout_seconds or Config.HTTP_TIMEOUT

        try:
            self.filter = re.compile(settings.filter)
        except re.error as e:
            raise ConfigError(f"Failed to create filter regex: {e}") from e

        logger.info(f"Calendar proxy for {settings.base_url} (param {settings.pass_param})")

    @property
    def pass_param(self) -> str:
        return self.settings.pass_param

    def build_url(self, value: str) -> str:
        """Upstream URL with ``pass_param=value`` appended to the existing query."""
        parts = urlsplit(self.settings.base_url)
        # existing query text is kept exactly as configured
        extra = urlencode([(self.pass_param, value)])
        query = f"{parts.query}&{extra}" if parts.query else extra
        return urlunsplit(parts._replace(query=query))

    def apply_filter(self, text: str) -> str:
        return self.filter.sub("", text)

    @timer("Calendar: fetch upstream", log_level="INFO")
    def fetch(self, value: str) -> str:
        """
        Fetch the upstream calendar for ``value`` and filter it.

        Raises:
            CalendarError: On transport failure or error status
        """
        url = self.build_url(value)

        try:
            resp = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise CalendarError(f"Failed to get base calendar: {e}") from e

        if resp.status_code >= 400:
            raise CalendarError(f"Failed to get base calendar: HTTP {resp.status_code}")

        # requests falls back to ISO-8859-1 for text/* without a charset
        if "charset" not in resp.headers.get("Content-Type", "").lower():
            resp.encoding = "utf-8"

        text = resp.text
        filtered = self.apply_filter(text)
        logger.debug(f"Filtered calendar from {len(text)} to {len(filtered)} chars")
        return filtered
