"""
Spending analysis functions.

Computes metrics for:
- Summary totals
- Monthly spending, department breakdown, basket size
- Item frequency and spend rankings
- Price changes
- Returns
- Savings and discounts

Every function expects records already passed through prepare_records().
None of them modify their input.
"""

import logging

import numpy as np
import pandas as pd

from .constants import SAVINGS_FIELDS, SAVINGS_LABELS, department_label
from .models import SpendingSummary
from .receipts import (
    deduplicate_receipt_fields,
    first_record_per_receipt,
    item_key,
    month_key,
    receipt_key,
)

logger = logging.getLogger(__name__)


def truncate(text: str | None, length: int = 35) -> str:
    """Shorten a label for chart axes."""
    if not text:
        return ""
    return text[:length] + "..." if len(text) > length else text


def compute_summary(
    df: pd.DataFrame,
    purchases: pd.DataFrame,
    returns: pd.DataFrame,
    qty_col: str = "quantity",
    total_col: str = "line_total",
) -> SpendingSummary:
    """Compute headline totals."""
    total_spent = float(df[total_col].sum())
    total_purchase_amount = float(purchases[total_col].sum())
    total_return_amount = abs(float(returns[total_col].sum()))

    keys = receipt_key(df)
    purchase_trips = keys[df[qty_col] > 0].nunique()
    total_trips = int(purchase_trips or keys.nunique())

    savings = deduplicate_receipt_fields(df, SAVINGS_FIELDS)
    total_savings = sum(abs(v) for v in savings.values())

    return SpendingSummary(
        total_spent=total_spent,
        total_purchase_amount=total_purchase_amount,
        total_return_amount=total_return_amount,
        total_trips=total_trips,
        total_items_purchased=float(purchases[qty_col].abs().sum()),
        total_items_returned=float(returns[qty_col].abs().sum()),
        total_savings=total_savings,
        avg_per_trip=total_spent / total_trips if total_trips > 0 else 0.0,
    )


def compute_monthly_spending(
    df: pd.DataFrame,
    date_col: str = "transaction_date",
    qty_col: str = "quantity",
    total_col: str = "line_total",
) -> pd.DataFrame:
    """
    Purchases and returns per calendar month.

    Returns DataFrame with:
    - month (YYYY-MM, ascending)
    - purchases
    - returns (positive amounts)
    """
    months = month_key(df[date_col])
    dated = df.assign(month=months)[months.notna() & (df[qty_col] != 0)]

    if len(dated) == 0:
        return pd.DataFrame(columns=["month", "purchases", "returns"])

    is_purchase = dated[qty_col] > 0
    purchases = dated.loc[is_purchase, total_col].groupby(dated.loc[is_purchase, "month"]).sum()
    returns = (
        dated.loc[~is_purchase, total_col].abs().groupby(dated.loc[~is_purchase, "month"]).sum()
    )

    monthly = (
        pd.DataFrame({"purchases": purchases, "returns": returns})
        .fillna(0.0)
        .sort_index()
        .round(2)
    )
    return monthly.rename_axis("month").reset_index()


def compute_department_spending(
    purchases: pd.DataFrame,
    dept_col: str = "department_id",
    total_col: str = "line_total",
) -> pd.DataFrame:
    """Purchase totals per department label, largest first."""
    if len(purchases) == 0:
        return pd.DataFrame(columns=["department", "total"])

    labels = purchases[dept_col].map(department_label).rename("department")
    totals = purchases[total_col].groupby(labels, sort=False).sum()
    totals = totals.sort_values(ascending=False, kind="stable").round(2)
    return totals.reset_index(name="total")


def compute_basket_size(
    purchases: pd.DataFrame,
    date_col: str = "transaction_date",
    qty_col: str = "quantity",
) -> pd.DataFrame:
    """
    Average items per trip, by month.

    Each receipt is assigned to the month of its first dated purchase line.
    """
    months = month_key(purchases[date_col])
    dated = purchases.assign(
        month=months,
        receipt=receipt_key(purchases),
        items=purchases[qty_col].abs(),
    )[months.notna()]

    if len(dated) == 0:
        return pd.DataFrame(columns=["month", "avg_items"])

    trips = dated.groupby("receipt", sort=False).agg(
        month=("month", "first"),
        items=("items", "sum"),
    )
    basket = trips.groupby("month")["items"].mean().round(2)
    return basket.rename("avg_items").reset_index()


def aggregate_items(
    purchases: pd.DataFrame,
    sku_col: str = "item_sku",
    name_col: str = "item_actual_name",
    qty_col: str = "quantity",
    total_col: str = "line_total",
    date_col: str = "transaction_date",
) -> pd.DataFrame:
    """
    Aggregate purchase lines to one row per item, in first-seen order.

    Returns DataFrame with:
    - item_key, sku, name
    - count (units purchased)
    - total_spent
    - first_date / last_date
    """
    columns = ["item_key", "sku", "name", "count", "total_spent", "first_date", "last_date"]
    if len(purchases) == 0:
        return pd.DataFrame(columns=columns)

    work = purchases.assign(
        item_key=item_key(purchases, sku_col=sku_col),
        units=purchases[qty_col].abs(),
    )
    items = (
        work.groupby("item_key", sort=False)
        .agg(
            sku=(sku_col, "first"),
            name=(name_col, "first"),
            count=("units", "sum"),
            total_spent=(total_col, "sum"),
            first_date=(date_col, "min"),
            last_date=(date_col, "max"),
        )
        .reset_index()
    )
    return items[columns]


def compute_top_items(
    purchases: pd.DataFrame,
    by: str = "count",
    limit: int = 20,
    label_length: int = 35,
) -> pd.DataFrame:
    """
    Top items by units purchased (by="count") or by spend (by="total_spent").

    Ties keep first-seen order. `label` is truncated for display, `name`
    is the full product name.
    """
    if by not in ("count", "total_spent"):
        raise ValueError(f"Unknown ranking column: {by}")

    items = aggregate_items(purchases)
    if len(items) == 0:
        return pd.DataFrame(columns=["item_key", "label", "name", by])

    ranked = items.sort_values(by, ascending=False, kind="stable").head(limit).copy()
    ranked["label"] = ranked["name"].map(lambda n: truncate(n, label_length))
    if by == "total_spent":
        ranked[by] = ranked[by].round(2)
    return ranked[["item_key", "label", "name", by]].reset_index(drop=True)


def compute_frequency_table(purchases: pd.DataFrame) -> pd.DataFrame:
    """Every purchased item, most frequently bought first."""
    items = aggregate_items(purchases)
    return items.sort_values("count", ascending=False, kind="stable").reset_index(drop=True)


def detect_price_changes(
    purchases: pd.DataFrame,
    name_col: str = "item_actual_name",
    price_col: str = "unit_price",
    date_col: str = "transaction_date",
) -> pd.DataFrame:
    """
    Find items whose unit price moved between their first and last purchase.

    Observations are ordered by date (undated ones first, input order on
    ties). Items with a single observation or a single distinct price are
    skipped. A zero starting price yields a 0% change.

    Returns DataFrame sorted by absolute percent change.
    """
    columns = [
        "item_key", "name", "old_price", "new_price",
        "change", "change_percent", "first_date", "last_date",
    ]
    work = purchases.assign(item_key=item_key(purchases))

    changes = []
    for key, group in work.groupby("item_key", sort=False):
        if len(group) < 2 or group[price_col].nunique() < 2:
            continue

        history = group.sort_values(date_col, kind="stable", na_position="first")
        first = history.iloc[0]
        last = history.iloc[-1]
        old_price = float(first[price_col])
        new_price = float(last[price_col])
        delta = new_price - old_price

        changes.append(
            {
                "item_key": key,
                "name": group[name_col].iloc[0],
                "old_price": old_price,
                "new_price": new_price,
                "change": round(delta, 2),
                "change_percent": round(delta / old_price * 100, 2) if old_price != 0 else 0.0,
                "first_date": first[date_col],
                "last_date": last[date_col],
            }
        )

    if not changes:
        return pd.DataFrame(columns=columns)

    result = pd.DataFrame(changes, columns=columns)
    return result.sort_values(
        "change_percent", key=lambda s: s.abs(), ascending=False, kind="stable"
    ).reset_index(drop=True)


def build_returns_table(
    returns: pd.DataFrame,
    date_col: str = "transaction_date",
    name_col: str = "item_actual_name",
    qty_col: str = "quantity",
    total_col: str = "line_total",
) -> pd.DataFrame:
    """Returned lines, newest first. Undated returns are treated as oldest."""
    table = pd.DataFrame(
        {
            "date": returns[date_col],
            "name": returns[name_col],
            "quantity": returns[qty_col].abs(),
            "refund": returns[total_col].abs(),
        }
    )
    return table.sort_values(
        "date", ascending=False, kind="stable", na_position="last"
    ).reset_index(drop=True)


def compute_savings_breakdown(df: pd.DataFrame) -> pd.DataFrame:
    """Savings per category, counted once per receipt. Zero categories omitted."""
    totals = deduplicate_receipt_fields(df, SAVINGS_FIELDS)
    rows = [
        {"category": SAVINGS_LABELS[field], "amount": round(abs(totals[field]), 2)}
        for field in SAVINGS_FIELDS
        if abs(totals[field]) > 0
    ]
    return pd.DataFrame(rows, columns=["category", "amount"])


def compute_monthly_savings(
    df: pd.DataFrame,
    date_col: str = "transaction_date",
) -> pd.DataFrame:
    """
    Total savings per month, all categories combined.

    The first dated record of each receipt carries that receipt's savings.
    """
    months = month_key(df[date_col])
    dated = df.assign(month=months)[months.notna()]
    receipts = first_record_per_receipt(dated)

    if len(receipts) == 0:
        return pd.DataFrame(columns=["month", "savings"])

    per_receipt = receipts[list(SAVINGS_FIELDS)].abs().sum(axis=1)
    savings = per_receipt.groupby(receipts["month"]).sum().round(2)
    return savings.rename("savings").rename_axis("month").reset_index()


def find_top_discounts(
    df: pd.DataFrame,
    name_col: str = "item_actual_name",
    qty_col: str = "quantity",
    price_col: str = "unit_price",
    savings_col: str = "instant_savings",
) -> pd.DataFrame:
    """
    Discounted purchases ranked by discount relative to unit price.

    Only the first discounted purchase of each item is kept, even if a
    later one had a deeper discount.
    """
    columns = ["item_key", "name", "unit_price", "savings", "discount_percent"]
    discounted = df[(df[qty_col] > 0) & (df[savings_col] > 0)]
    first_seen = discounted[~item_key(discounted).duplicated(keep="first")]

    if len(first_seen) == 0:
        return pd.DataFrame(columns=columns)

    prices = first_seen[price_col]
    percent = np.where(
        prices > 0,
        (first_seen[savings_col] / prices.where(prices > 0, 1.0) * 100).round(2),
        0.0,
    )
    table = pd.DataFrame(
        {
            "item_key": item_key(first_seen),
            "name": first_seen[name_col],
            "unit_price": prices,
            "savings": first_seen[savings_col],
            "discount_percent": percent,
        }
    )
    return table.sort_values(
        "discount_percent", ascending=False, kind="stable"
    ).reset_index(drop=True)
