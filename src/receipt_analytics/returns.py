"""
Return-eligibility forecasting.

For every item still held (purchased minus returned > 0) in a returnable
department, works out whether it can still be returned as of a given
instant and what the refund would roughly be.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

import pandas as pd

from .config import AnalyticsConfig
from .constants import POLICY_LABELS, RETURN_POLICIES, DepartmentPolicy
from .models import ReturnEligibilityEntry, ReturnStatus
from .receipts import item_key, split_purchases_returns

logger = logging.getLogger(__name__)

STATUS_ORDER: Mapping[str, int] = {"urgent": 0, "limited": 1, "anytime": 2, "expired": 3}


@dataclass
class DepartmentReturns:
    """Eligible items grouped under one department label."""

    items: list[ReturnEligibilityEntry] = field(default_factory=list)
    total_refund: float = 0.0


@dataclass
class ReturnEligibilityReport:
    """All unreturned items in returnable departments, highest priority first."""

    entries: list[ReturnEligibilityEntry] = field(default_factory=list)
    as_of: datetime | None = None

    @property
    def returnable(self) -> list[ReturnEligibilityEntry]:
        return [e for e in self.entries if e.status != "expired"]

    @property
    def urgent(self) -> list[ReturnEligibilityEntry]:
        return [e for e in self.entries if e.status == "urgent"]

    @property
    def expired(self) -> list[ReturnEligibilityEntry]:
        return [e for e in self.entries if e.status == "expired"]

    @property
    def departments(self) -> dict[str, DepartmentReturns]:
        groups: dict[str, DepartmentReturns] = {}
        for entry in self.entries:
            group = groups.setdefault(entry.department, DepartmentReturns())
            group.items.append(entry)
            group.total_refund = round(group.total_refund + entry.refund_estimate, 2)
        return groups

    @property
    def total_potential_refund(self) -> float:
        return round(sum(e.refund_estimate for e in self.returnable), 2)

    @property
    def total_returnable_items(self) -> float:
        return sum(e.quantity for e in self.returnable)

    def summary(self) -> dict:
        """Return a summary dict for display."""
        return {
            "eligible_items": len(self.entries),
            "returnable": len(self.returnable),
            "urgent": len(self.urgent),
            "expired": len(self.expired),
            "total_potential_refund": self.total_potential_refund,
            "total_returnable_items": self.total_returnable_items,
        }


def classify_window(
    policy: str,
    days_since_purchase: int | None,
    window_days: int = 90,
    urgent_days: int = 14,
) -> tuple[ReturnStatus, int | None]:
    """
    Status and days remaining for one item.

    Standard-policy items never expire. Windowed items with an unknown
    purchase date are treated as expired, since the window can't be shown
    to still be open.
    """
    if policy != "90-day":
        return "anytime", None

    if days_since_purchase is None:
        return "expired", None

    days_remaining = window_days - days_since_purchase
    if days_remaining <= 0:
        return "expired", days_remaining
    if days_remaining <= urgent_days:
        return "urgent", days_remaining
    return "limited", days_remaining


def evaluate_return_eligibility(
    df: pd.DataFrame,
    as_of: datetime | None = None,
    config: AnalyticsConfig | None = None,
    policies: Mapping[str, DepartmentPolicy] = RETURN_POLICIES,
    dept_col: str = "department_id",
    sku_col: str = "item_sku",
    name_col: str = "item_actual_name",
    qty_col: str = "quantity",
    price_col: str = "unit_price",
    date_col: str = "transaction_date",
) -> ReturnEligibilityReport:
    """
    Build the return-eligibility report.

    Args:
        as_of: Instant to measure windows against. Defaults to now.
        policies: Department code -> policy. Departments not listed are
                  never returnable.

    Entries are sorted by status (urgent, limited, anytime, expired),
    then by refund estimate, largest first.
    """
    config = config or AnalyticsConfig()
    if as_of is None:
        as_of = datetime.now()
    reference = pd.Timestamp(as_of)
    if reference.tzinfo is not None:
        reference = reference.tz_convert(None)

    purchases, returns = split_purchases_returns(df, qty_col=qty_col)
    returned = returns[qty_col].abs().groupby(item_key(returns)).sum()

    work = purchases.assign(item_key=item_key(purchases), units=purchases[qty_col].abs())

    entries = []
    for key, group in work.groupby("item_key", sort=False):
        first = group.iloc[0]
        net_qty = float(group["units"].sum()) - float(returned.get(key, 0.0))
        if net_qty <= 0:
            continue

        dept_id = first[dept_col]
        dept = policies.get(dept_id)
        if dept is None:
            continue

        dated = group[group[date_col].notna()]
        if len(dated) > 0:
            latest = dated.iloc[dated[date_col].argmax()]
            purchased_at = pd.Timestamp(latest[date_col])
            if purchased_at.tzinfo is not None:
                purchased_at = purchased_at.tz_convert(None)
            purchase_date = purchased_at.to_pydatetime()
            days_since = (reference - purchased_at).days
        else:
            latest = first
            purchase_date = None
            days_since = None

        status, days_remaining = classify_window(
            dept.policy,
            days_since,
            window_days=config.return_window_days,
            urgent_days=config.urgent_window_days,
        )
        unit_price = float(latest[price_col])

        entries.append(
            ReturnEligibilityEntry(
                sku=first[sku_col],
                name=first[name_col],
                department=dept.label,
                department_id=dept_id,
                quantity=net_qty,
                unit_price=unit_price,
                refund_estimate=round(net_qty * unit_price, 2),
                purchase_date=purchase_date,
                days_since_purchase=days_since,
                policy=dept.policy,
                policy_label=POLICY_LABELS[dept.policy],
                days_remaining=days_remaining,
                status=status,
            )
        )

    entries.sort(key=lambda e: (STATUS_ORDER[e.status], -e.refund_estimate))
    report = ReturnEligibilityReport(entries=entries, as_of=as_of)
    logger.debug("Return eligibility as of %s: %s", as_of, report.summary())
    return report
