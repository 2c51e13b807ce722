"""
Loader for warehouse-club receipt exports (CSV, XLSX or XLS).

THIS FILE CONTAINS EXPORT-SPECIFIC LOGIC:
- Column names as they appear in the receipt export
- Which columns are numeric and default to 0
- Display name and identifier fallbacks

To adapt for a different retailer's export:
1. Copy this file as a template
2. Update NUMERIC_COLUMNS / REQUIRED_COLUMNS for their layout
3. Map their column names onto the engine's record columns
4. The parsers and quality checker can be reused as-is
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO

import pandas as pd

from receipt_analytics.constants import DATE_FIELD

from .errors import EmptyReceiptFileError, MissingColumnsError, UnsupportedFileTypeError
from .parsers import DateParser, normalize_code, normalize_column_name
from .quality import DataQualityChecker, DataQualityReport

logger = logging.getLogger(__name__)


@dataclass
class LoadedReceipts:
    """Normalized line items plus the quality report for the export."""

    records: pd.DataFrame
    quality_report: DataQualityReport


class CostcoReceiptLoader:
    """
    Loads and normalizes a receipt export.

    Export quirks handled:
    - Header case and spacing vary ("Transaction Date" vs "transaction_date")
    - Numeric cells may be blank or text; they become 0
    - Dates come as spreadsheet dates, ISO strings or MM/DD/YYYY strings
    - Spreadsheet codes come back as floats (31.0)
    - Savings columns are repeated on every line of a receipt (left as-is;
      the engine counts them once per receipt)
    """

    NUMERIC_COLUMNS = [
        "quantity", "unit_price", "line_total", "subtotal",
        "instant_savings", "discount_amount", "shop_card_applied",
        "coupon_applied", "tax_total", "shipping_handling",
        "delivery_fees", "surcharges", "final_total",
    ]

    CODE_COLUMNS = ["item_sku", "receipt_id", "order_number", "department_id"]

    REQUIRED_COLUMNS = ["transaction_date", "item_name", "quantity", "line_total"]

    SUPPORTED_SUFFIXES = {".csv", ".xlsx", ".xls"}

    def __init__(self, source: Path | str | None = None):
        self.source = Path(source) if source is not None else None
        self.date_parser = DateParser()

    def load(self) -> LoadedReceipts:
        """Read the export from disk and normalize it."""
        if self.source is None:
            raise ValueError("No source file given")
        raw = self.read(self.source)
        return self.load_frame(raw, source_name=self.source.name)

    def read(self, source: Path | str | IO, filename: str | None = None) -> pd.DataFrame:
        """Read a CSV or Excel export into a raw DataFrame (first sheet for Excel)."""
        name = filename or str(getattr(source, "name", source))
        suffix = Path(name).suffix.lower()
        if suffix not in self.SUPPORTED_SUFFIXES:
            raise UnsupportedFileTypeError(
                f"Unsupported file type '{suffix or name}'. Upload a .csv, .xlsx or .xls file."
            )

        logger.info("Reading receipt export %s", name)
        if suffix == ".csv":
            # Codes stay as text so leading zeros survive
            return pd.read_csv(source, dtype=str, keep_default_na=False)
        return pd.read_excel(source, sheet_name=0)

    def load_frame(self, raw: pd.DataFrame, source_name: str = "Receipt export") -> LoadedReceipts:
        """Validate and normalize an already-read export, then run quality checks."""
        headed = self.normalize_headers(raw)
        self.validate(headed)
        records = self.normalize(headed)

        checker = DataQualityChecker(source_name, raw_dates=headed[DATE_FIELD])
        report = checker.run(records)
        logger.info(
            "Loaded %d line items from %s (%s)", len(records), source_name, report.summary()
        )
        return LoadedReceipts(records=records, quality_report=report)

    def normalize_headers(self, raw: pd.DataFrame) -> pd.DataFrame:
        """'Transaction Date ' -> 'transaction_date' for every column."""
        df = raw.copy()
        df.columns = [normalize_column_name(c) for c in df.columns]
        return df

    def normalize(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Normalize values of a frame whose headers are already normalized.

        - Numeric columns: coerced, unparseable/missing -> 0
        - transaction_date: parsed to datetime64, NaT if unparseable
        - Codes: trimmed strings
        - item_actual_name: falls back to item_name, then "Unknown"
        """
        df = df.copy()

        for col in self.NUMERIC_COLUMNS:
            if col in df.columns:
                df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)
            else:
                df[col] = 0.0

        if DATE_FIELD in df.columns:
            df[DATE_FIELD] = self.date_parser.parse_series(df[DATE_FIELD])
        else:
            df[DATE_FIELD] = pd.Series(pd.NaT, index=df.index, dtype="datetime64[ns]")

        for col in self.CODE_COLUMNS + ["item_name", "item_actual_name"]:
            if col in df.columns:
                df[col] = df[col].map(normalize_code)
            else:
                df[col] = ""

        display = df["item_actual_name"].where(df["item_actual_name"] != "", df["item_name"])
        df["item_actual_name"] = display.where(display != "", "Unknown")

        return df

    def validate(self, df: pd.DataFrame) -> None:
        """Raise if the export is empty or lacks the columns every metric needs."""
        if len(df) == 0:
            raise EmptyReceiptFileError("The file appears to be empty.")

        missing = [c for c in self.REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise MissingColumnsError(missing)
