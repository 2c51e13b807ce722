# Core analytics engine for warehouse receipt exports
# Pure transforms over normalized line items; no I/O

from .config import AnalyticsConfig
from .constants import DEPARTMENT_LABELS, RETURN_POLICIES, department_label
from .receipts import (
    prepare_records,
    split_purchases_returns,
    receipt_key,
    item_key,
    month_key,
    deduplicate_receipt_fields,
    normalize_code,
)
from .analysis import (
    compute_summary,
    compute_monthly_spending,
    compute_department_spending,
    compute_basket_size,
    aggregate_items,
    compute_top_items,
    compute_frequency_table,
    detect_price_changes,
    build_returns_table,
    compute_savings_breakdown,
    compute_monthly_savings,
    find_top_discounts,
)
from .returns import ReturnEligibilityReport, evaluate_return_eligibility
from .models import Insight, ReturnEligibilityEntry, SpendingSummary
from .insights import InsightGenerator
from .engine import AnalyticsResult, compute_all

__all__ = [
    "AnalyticsConfig",
    "DEPARTMENT_LABELS",
    "RETURN_POLICIES",
    "department_label",
    "prepare_records",
    "split_purchases_returns",
    "receipt_key",
    "item_key",
    "month_key",
    "deduplicate_receipt_fields",
    "normalize_code",
    "compute_summary",
    "compute_monthly_spending",
    "compute_department_spending",
    "compute_basket_size",
    "aggregate_items",
    "compute_top_items",
    "compute_frequency_table",
    "detect_price_changes",
    "build_returns_table",
    "compute_savings_breakdown",
    "compute_monthly_savings",
    "find_top_discounts",
    "ReturnEligibilityReport",
    "evaluate_return_eligibility",
    "Insight",
    "ReturnEligibilityEntry",
    "SpendingSummary",
    "InsightGenerator",
    "AnalyticsResult",
    "compute_all",
]
