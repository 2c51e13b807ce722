"""
Parsers for the messy values found in receipt exports.

- Dates arrive as spreadsheet datetimes, ISO strings or US-style strings
- Codes (SKU, department, receipt) can arrive as floats from spreadsheets
- Column headers vary in case and spacing
"""

import re
from datetime import date, datetime

import pandas as pd

from receipt_analytics.receipts import normalize_code  # re-exported for loaders


class DateParser:
    """
    Date parser for receipt exports.

    Tries, in order: native datetimes, ISO (2024-07-25, with or without a
    time part), US (7/25/2024), then a lenient fallback. Anything else
    parses to None.
    """

    ISO_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
    US_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")

    def __init__(self):
        self._cache: dict[str, datetime | None] = {}

    def parse(self, value) -> datetime | None:
        """Parse one value to a datetime (midnight, local) or None."""
        if value is None or value is pd.NaT:
            return None
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, float) and pd.isna(value):
            return None

        text = str(value).strip()
        if not text:
            return None
        if text in self._cache:
            return self._cache[text]

        result = self._parse_text(text)
        self._cache[text] = result
        return result

    def _parse_text(self, text: str) -> datetime | None:
        for pattern, order in ((self.ISO_PATTERN, (0, 1, 2)), (self.US_PATTERN, (2, 0, 1))):
            match = pattern.match(text)
            if match:
                parts = [int(g) for g in match.groups()]
                year, month, day = (parts[i] for i in order)
                try:
                    return datetime(year, month, day)
                except ValueError:
                    return None

        fallback = pd.to_datetime(text, errors="coerce")
        if pd.isna(fallback):
            return None
        return fallback.to_pydatetime()

    def parse_series(self, series: pd.Series) -> pd.Series:
        """Parse an entire pandas Series of dates to datetime64 (NaT if unparseable)."""
        parsed = pd.to_datetime(series.map(self.parse), errors="coerce", utc=True)
        return parsed.dt.tz_convert(None)


def normalize_column_name(name) -> str:
    """'Transaction Date ' -> 'transaction_date'"""
    return re.sub(r"\s+", "_", str(name).strip().lower())
