"""
Record-level helpers shared by every aggregator.

Handles the two things every metric depends on:
- Which records are purchases and which are returns (quantity sign)
- Which records belong to the same receipt, so that per-receipt fields
  (savings) repeated on every line are only counted once
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

import pandas as pd

from .constants import CODE_FIELDS, DATE_FIELD, NUMERIC_FIELDS, TEXT_FIELDS

logger = logging.getLogger(__name__)


def normalize_code(value) -> str:
    """
    Normalize an identifier to a trimmed string.

    Spreadsheets hand back numeric codes as floats (31.0); those are
    rendered without the trailing .0.
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def prepare_records(
    records: pd.DataFrame | Iterable[Mapping],
) -> pd.DataFrame:
    """
    Return a copy of the records with every expected column present.

    Missing numeric columns become 0, missing text columns become "",
    a missing date column becomes NaT. The caller's frame is not modified.
    """
    if isinstance(records, pd.DataFrame):
        df = records.copy()
    else:
        df = pd.DataFrame(list(records))

    for col in NUMERIC_FIELDS:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).astype(float)
        else:
            df[col] = 0.0

    for col in TEXT_FIELDS:
        if col not in df.columns:
            df[col] = ""
        elif col in CODE_FIELDS:
            df[col] = df[col].map(normalize_code)
        else:
            df[col] = df[col].fillna("").astype(str).str.strip()

    if DATE_FIELD in df.columns:
        # Aware timestamps are compared as naive UTC
        dates = pd.to_datetime(df[DATE_FIELD], errors="coerce", utc=True)
        df[DATE_FIELD] = dates.dt.tz_convert(None)
    else:
        df[DATE_FIELD] = pd.Series(pd.NaT, index=df.index, dtype="datetime64[ns]")

    return df.reset_index(drop=True)


def split_purchases_returns(
    df: pd.DataFrame, qty_col: str = "quantity"
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Partition records by quantity sign. Zero-quantity records are in neither."""
    purchases = df[df[qty_col] > 0]
    returns = df[df[qty_col] < 0]
    logger.debug(
        "Classified %d records: %d purchases, %d returns, %d ignored",
        len(df),
        len(purchases),
        len(returns),
        len(df) - len(purchases) - len(returns),
    )
    return purchases, returns


def _first_non_empty(df: pd.DataFrame, primary: str, fallback: str) -> pd.Series:
    primary_vals = df[primary].fillna("").astype(str)
    fallback_vals = df[fallback].fillna("").astype(str)
    return primary_vals.where(primary_vals != "", fallback_vals)


def receipt_key(
    df: pd.DataFrame,
    receipt_col: str = "receipt_id",
    order_col: str = "order_number",
) -> pd.Series:
    """Receipt identifier, falling back to the order number."""
    return _first_non_empty(df, receipt_col, order_col)


def item_key(
    df: pd.DataFrame,
    sku_col: str = "item_sku",
    name_col: str = "item_name",
) -> pd.Series:
    """Item grouping key: SKU, falling back to the item name."""
    return _first_non_empty(df, sku_col, name_col)


def month_key(dates: pd.Series) -> pd.Series:
    """YYYY-MM for each date; NaN where the date is missing."""
    return pd.to_datetime(dates, errors="coerce").dt.strftime("%Y-%m")


def first_record_per_receipt(df: pd.DataFrame) -> pd.DataFrame:
    """The first record (in input order) of every receipt."""
    return df[~receipt_key(df).duplicated(keep="first")]


def deduplicate_receipt_fields(
    df: pd.DataFrame, fields: Sequence[str]
) -> dict[str, float]:
    """
    Total per-receipt fields, counting each receipt exactly once.

    Savings columns are copied onto every line of a receipt, so summing
    them per line overcounts by the receipt's line count. Only the first
    record seen for each receipt key contributes.
    """
    first_rows = first_record_per_receipt(df)
    totals = {}
    for field in fields:
        if field in first_rows.columns:
            values = pd.to_numeric(first_rows[field], errors="coerce").fillna(0.0)
            totals[field] = float(values.sum())
        else:
            totals[field] = 0.0
    return totals
