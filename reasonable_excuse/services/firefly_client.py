"""
Firefly III API Client

A small wrapper around the parts of the Firefly III REST API the shortcut
routes need: listing budgets and storing transactions.

Requests authenticate with a personal access token (PAT) read from a file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests
from pydantic import ValidationError

from config import Config
from reasonable_excuse import USER_AGENT
from reasonable_excuse.models.schemas import (
    FireflyBudget,
    FireflyBudgetList,
    StoreTransactionRequest,
)
from reasonable_excuse.models.settings import FireflySettings
from reasonable_excuse.services.config_loader import ConfigError
from reasonable_excuse.utils.performance import timer

logger = logging.getLogger(__name__)


class FireflyError(RuntimeError):
    """Raised when a Firefly API call fails."""


def read_pat(path) -> str:
    """
    Read a personal access token, dropping trailing whitespace.

    Raises:
        ConfigError: If the file cannot be read
    """
    try:
        return Path(path).read_text(encoding="utf-8").rstrip()
    except OSError as e:
        raise ConfigError(f"read firefly PAT from file: {path}: {e}") from e


class FireflyClient:
    """
    Firefly III client.

    Args:
        base_url: Firefly base URL, ending in '/'
        pat: Personal access token
        timeout_seconds: Timeout for each request
    """

    def __init__(self, base_url: str, pat: str, timeout_seconds: float = None):
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._pat = pat
        self.timeout = timeout_seconds or Config.HTTP_TIMEOUT

    @classmethod
    def from_settings(cls, settings: FireflySettings) -> "FireflyClient":
        """Build a client for the configured instance, reading the PAT file."""
        pat = read_pat(settings.pat_file)
        logger.info(f"Initialized Firefly client for {settings.firefly_url}")
        return cls(base_url=settings.firefly_url, pat=pat)

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}api{endpoint}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._pat}",
            "Accept": "application/vnd.api+json",
            "User-Agent": USER_AGENT,
        }

    def _request(self, method: str, endpoint: str, json: Optional[Dict[str, Any]] = None) -> requests.Response:
        try:
            return requests.request(
                method,
                self._url(endpoint),
                headers=self._headers(),
                json=json,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise FireflyError(f"Failed to send {method} {endpoint}: {e}") from e

    @timer("Firefly: list budgets")
    def list_budgets(self) -> List[FireflyBudget]:
        """
        Fetch the budgets visible to the PAT.

        Raises:
            FireflyError: On transport failure, error status or unexpected payload
        """
        resp = self._request("GET", "/v1/budgets")
        if resp.status_code >= 400:
            raise FireflyError(f"fetching budgets: HTTP {resp.status_code}: {resp.text}")

        try:
            return FireflyBudgetList.model_validate(resp.json()).data
        except (ValueError, ValidationError) as e:
            raise FireflyError(f"parsing budgets: {e}") from e

    def resolve_budget(self, budget_name: Optional[str]) -> Optional[str]:
        """
        Map a budget name to its Firefly ID.

        Returns:
            The budget ID, or None when ``budget_name`` is None

        Raises:
            FireflyError: If the budgets cannot be fetched or none has that name
        """
        if budget_name is None:
            return None

        for budget in self.list_budgets():
            if budget.attributes.name == budget_name:
                logger.debug(f"Resolved budget {budget_name} to {budget.id}")
                return budget.id

        raise FireflyError(f"Could not find budget with name {budget_name}")

    @timer("Firefly: store transaction", log_level="INFO")
    def store_transaction(self, request: StoreTransactionRequest) -> Tuple[str, str]:
        """
        Submit a transaction.

        Returns:
            Firefly's response body and its content type

        Raises:
            FireflyError: On transport failure or error status
        """
        resp = self._request(
            "POST",
            "/v1/transactions",
            json=request.model_dump(by_alias=True),
        )
        if resp.status_code >= 400:
            raise FireflyError(f"Got API error: HTTP {resp.status_code}, response: {resp.text}")

        content_type = resp.headers.get("Content-Type", "application/json")
        return resp.text, content_type
