"""
Shortcut Service

Turns configured shortcuts into Firefly withdrawals.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from reasonable_excuse.models.schemas import StoreTransactionRequest, StoreTransactionSplit
from reasonable_excuse.models.settings import FireflySettings, Shortcut
from reasonable_excuse.services.firefly_client import FireflyClient

logger = logging.getLogger(__name__)


class ShortcutError(ValueError):
    """Raised when a transaction request cannot be built from a shortcut."""


def format_amount(amount: float) -> str:
    """Decimal string for an amount; whole numbers have no fractional part."""
    amount = float(amount)
    if amount.is_integer():
        return str(int(amount))
    return format(Decimal(repr(amount)), "f")


def format_date(now: Optional[datetime] = None) -> str:
    """Local time as ``2018-09-17T12:46:47+01:00``; aware datetimes keep their offset."""
    if now is None:
        now = datetime.now()
    if now.tzinfo is None:
        now = now.astimezone()
    return now.isoformat(timespec="seconds")


def build_store_transaction_request(
    shortcut: Shortcut,
    amount_override: Optional[float] = None,
    budget_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> StoreTransactionRequest:
    """
    Build a withdrawal from a shortcut.

    Raises:
        ShortcutError: If neither the shortcut nor the request has an amount
    """
    amount = amount_override if amount_override is not None else shortcut.amount
    if amount is None:
        raise ShortcutError("Must have at least one of shortcut.amount or amount_override")

    split = StoreTransactionSplit(
        transaction_type="withdrawal",
        date=format_date(now),
        amount=format_amount(amount),
        description=shortcut.name,
        budget_id=budget_id,
        category_name=shortcut.category,
        source_name=shortcut.source,
        destination_name=shortcut.destination,
    )
    return StoreTransactionRequest(transactions=[split])


class ShortcutService:
    """
    Service exposing the configured shortcuts.

    Args:
        settings: Firefly route settings
        client: Client for the configured Firefly instance
    """

    def __init__(self, settings: FireflySettings, client: FireflyClient):
        self.settings = settings
        self.client = client
        logger.info(f"Shortcut service ready with {len(settings.shortcuts)} shortcuts")

    @property
    def shortcuts(self) -> List[Shortcut]:
        return self.settings.shortcuts

    def shortcuts_json(self) -> str:
        """All shortcuts as pretty-printed JSON."""
        return json.dumps(
            [shortcut.model_dump() for shortcut in self.shortcuts],
            indent=2,
            ensure_ascii=False,
        )

    def get_shortcut(self, shortcut_id: int) -> Shortcut:
        """
        Look up a shortcut by ID.

        Raises:
            ShortcutError: If no shortcut has that ID
        """
        for shortcut in self.shortcuts:
            if shortcut.shortcut_id == shortcut_id:
                return shortcut
        raise ShortcutError(f"Invalid shortcut ID {shortcut_id}")

    def add_transaction(
        self,
        shortcut_id: int,
        amount_override: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[str, str]:
        """
        Submit the shortcut's transaction to Firefly.

        Process:
        1. Find the shortcut
        2. Resolve its budget name to a budget ID, if it has one
        3. Build the store-transaction request
        4. Send it

        Returns:
            Firefly's response body and content type

        Raises:
            ShortcutError: Unknown shortcut or no amount available
            FireflyError: If Firefly could not be reached or rejected the request
        """
        shortcut = self.get_shortcut(shortcut_id)
        logger.info(f"Adding transaction for shortcut {shortcut.shortcut_name!r}")

        budget_id = self.client.resolve_budget(shortcut.budget)
        request = build_store_transaction_request(shortcut, amount_override, budget_id, now)
        return self.client.store_transaction(request)
