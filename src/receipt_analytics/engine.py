"""
One-call entry point that turns receipt line items into the full result bundle.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

import pandas as pd

from .analysis import (
    build_returns_table,
    compute_basket_size,
    compute_department_spending,
    compute_frequency_table,
    compute_monthly_savings,
    compute_monthly_spending,
    compute_savings_breakdown,
    compute_summary,
    compute_top_items,
    detect_price_changes,
    find_top_discounts,
)
from .config import AnalyticsConfig
from .insights import InsightGenerator
from .models import Insight, SpendingSummary
from .receipts import prepare_records, split_purchases_returns
from .returns import ReturnEligibilityReport, evaluate_return_eligibility

logger = logging.getLogger(__name__)


@dataclass
class AnalyticsResult:
    """Everything the dashboard needs, computed from one dataset."""

    summary: SpendingSummary
    monthly: pd.DataFrame
    departments: pd.DataFrame
    basket_size: pd.DataFrame
    top_frequency: pd.DataFrame
    top_spend: pd.DataFrame
    frequency_table: pd.DataFrame
    price_changes: pd.DataFrame
    returns_table: pd.DataFrame
    savings_breakdown: pd.DataFrame
    monthly_savings: pd.DataFrame
    top_discounts: pd.DataFrame
    return_eligibility: ReturnEligibilityReport
    insights: list[Insight] = field(default_factory=list)


def compute_all(
    records: pd.DataFrame | Iterable[Mapping],
    as_of: datetime | None = None,
    config: AnalyticsConfig | None = None,
) -> AnalyticsResult:
    """
    Compute every metric for a set of normalized line items.

    Args:
        records: Normalized line items (DataFrame or iterable of dicts).
        as_of: Instant used for return windows. Defaults to now; nothing
               else in the bundle depends on the clock.
        config: Thresholds. Defaults to AnalyticsConfig().
    """
    config = config or AnalyticsConfig()
    df = prepare_records(records)
    purchases, returns = split_purchases_returns(df)

    summary = compute_summary(df, purchases, returns)
    monthly = compute_monthly_spending(df)
    frequency_table = compute_frequency_table(purchases)
    price_changes = detect_price_changes(purchases)

    result = AnalyticsResult(
        summary=summary,
        monthly=monthly,
        departments=compute_department_spending(purchases),
        basket_size=compute_basket_size(purchases),
        top_frequency=compute_top_items(
            purchases, by="count", limit=config.top_n, label_length=config.label_length
        ),
        top_spend=compute_top_items(
            purchases, by="total_spent", limit=config.top_n, label_length=config.label_length
        ),
        frequency_table=frequency_table,
        price_changes=price_changes,
        returns_table=build_returns_table(returns),
        savings_breakdown=compute_savings_breakdown(df),
        monthly_savings=compute_monthly_savings(df),
        top_discounts=find_top_discounts(df),
        return_eligibility=evaluate_return_eligibility(df, as_of=as_of, config=config),
    )

    # Insights read the aggregates above, so they run last
    result.insights = InsightGenerator(config).generate(
        summary=summary,
        monthly=monthly,
        frequency_table=frequency_table,
        price_changes=price_changes,
    )

    logger.info(
        "Computed analytics for %d records (%d trips, %d items, %d insights)",
        len(df),
        summary.total_trips,
        len(frequency_table),
        len(result.insights),
    )
    return result
