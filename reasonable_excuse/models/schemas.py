"""
Pydantic Models and Schemas

Defines the data models used for API requests and responses, and the
subset of the Firefly III API this service talks to.
"""

from typing import Optional, Dict, List
from pydantic import BaseModel, ConfigDict, Field


class AddTransactionRequest(BaseModel):
    """
    Schema for submitting a shortcut as a transaction.

    Attributes:
        shortcut_id: ID of the shortcut, as listed by the shortcuts endpoint
        amount_override: Amount to use instead of the shortcut's own amount
    """
    shortcut_id: int = Field(..., ge=0, description="Shortcut to submit")
    amount_override: Optional[float] = Field(None, description="Replaces the shortcut amount")


class HealthResponse(BaseModel):
    """
    Schema for health check endpoint response.

    Attributes:
        status: Overall system status
        version: Application version
        routes: Which route groups are mounted
    """
    status: str = Field(..., description="Overall system status")
    version: str = Field(..., description="Application version")
    routes: Dict[str, bool] = Field(default_factory=dict, description="Mounted route groups")


# ===== Firefly III API =====

class FireflyBudgetAttributes(BaseModel):
    name: str


class FireflyBudget(BaseModel):
    id: str
    attributes: FireflyBudgetAttributes


class FireflyBudgetList(BaseModel):
    """Response of ``GET /api/v1/budgets``."""
    data: List[FireflyBudget] = Field(default_factory=list)


class StoreTransactionSplit(BaseModel):
    """One split of a Firefly store-transaction request."""

    model_config = ConfigDict(populate_by_name=True)

    transaction_type: str = Field("withdrawal", alias="type")
    date: str
    amount: str
    description: str
    budget_id: Optional[str] = None
    category_name: Optional[str] = None
    source_name: str
    destination_name: str


class StoreTransactionRequest(BaseModel):
    """Body of ``POST /api/v1/transactions``."""
    error_if_duplicate_hash: bool = True
    apply_rules: bool = True
    fire_webhooks: bool = True
    transactions: List[StoreTransactionSplit]
