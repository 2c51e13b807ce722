"""
Structured records exposed in the analytics result bundle.

Pydantic models keep the outward-facing shapes explicit so that the
dashboard (or anything else consuming the bundle) can rely on them.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .constants import ReturnPolicy

InsightKind = Literal["info", "warning", "success"]
ReturnStatus = Literal["urgent", "limited", "anytime", "expired"]


class SpendingSummary(BaseModel):
    """Headline totals for the whole dataset."""

    total_spent: float = Field(description="Net of all line totals (returns subtract)")
    total_purchase_amount: float = Field(description="Sum of purchase line totals")
    total_return_amount: float = Field(description="Refunded amount as a positive number")
    total_trips: int = Field(description="Receipts with at least one purchase line")
    total_items_purchased: float
    total_items_returned: float
    total_savings: float = Field(description="Savings counted once per receipt")
    avg_per_trip: float


class Insight(BaseModel):
    """A single advisory notice."""

    kind: InsightKind
    title: str
    text: str


class ReturnEligibilityEntry(BaseModel):
    """An unreturned item in a returnable department."""

    sku: str
    name: str
    department: str = Field(description="Department label from the policy table")
    department_id: str
    quantity: float = Field(description="Purchased minus returned quantity")
    unit_price: float = Field(description="Unit price on the most recent purchase")
    refund_estimate: float
    purchase_date: datetime | None = Field(description="Most recent purchase date")
    days_since_purchase: int | None
    policy: ReturnPolicy
    policy_label: str
    days_remaining: int | None = Field(
        default=None, description="Days left in the window; None when unlimited"
    )
    status: ReturnStatus
