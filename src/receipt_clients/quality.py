"""
Data quality checks for receipt exports.

Problems found here don't stop the analysis (the engine copes with all of
them) but they change what the numbers mean, so they are reported
alongside the dashboard.
"""

from dataclasses import dataclass, field
from typing import Callable, Any
import pandas as pd

from receipt_analytics.constants import DEPARTMENT_LABELS


@dataclass
class DataQualityIssue:
    """A single data quality issue found in the data."""

    column: str
    issue_type: str  # e.g., "missing", "unparsed_date", "unknown_code"
    severity: str  # "critical", "warning", "info"
    count: int
    percentage: float
    sample_values: list[Any] = field(default_factory=list)
    description: str = ""


@dataclass
class DataQualityReport:
    """Summary report of data quality for a single export."""

    source_name: str
    total_rows: int
    issues: list[DataQualityIssue] = field(default_factory=list)

    @property
    def critical_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "critical"]

    @property
    def warning_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def has_critical_issues(self) -> bool:
        return len(self.critical_issues) > 0

    def summary(self) -> dict:
        """Return a summary dict for display."""
        return {
            "source": self.source_name,
            "total_rows": self.total_rows,
            "critical": len(self.critical_issues),
            "warnings": len(self.warning_issues),
            "info": len([i for i in self.issues if i.severity == "info"]),
        }


class DataQualityChecker:
    """
    Runs a list of checks over a normalized receipt frame.

    Default checks:
    - Dates present in the file that couldn't be parsed
    - Lines with neither a receipt id nor an order number
    - Department codes without a known label
    - Zero-quantity lines (ignored by every metric)

    Extend by adding custom checks via add_check().
    """

    def __init__(self, source_name: str, raw_dates: pd.Series | None = None):
        self.source_name = source_name
        self.raw_dates = raw_dates
        self._checks: list[Callable[[pd.DataFrame], list[DataQualityIssue]]] = []
        self._add_default_checks()

    def _add_default_checks(self):
        """Add default quality checks."""
        self.add_check(self._check_unparsed_dates)
        self.add_check(self._check_missing_receipt_keys)
        self.add_check(self._check_unknown_departments)
        self.add_check(self._check_zero_quantities)

    def add_check(
        self, check_fn: Callable[[pd.DataFrame], list[DataQualityIssue]]
    ) -> "DataQualityChecker":
        """Add a custom check function. Returns self for chaining."""
        self._checks.append(check_fn)
        return self

    def _check_unparsed_dates(self, df: pd.DataFrame) -> list[DataQualityIssue]:
        """Dates that were present in the file but couldn't be parsed."""
        if self.raw_dates is None or "transaction_date" not in df.columns:
            return []

        raw = self.raw_dates.reindex(df.index)
        present = raw.notna() & (raw.astype(str).str.strip() != "")
        unparsed = present & df["transaction_date"].isna()
        count = int(unparsed.sum())
        if count == 0:
            return []

        # No usable date at all: every monthly view and return window is blank
        if df["transaction_date"].isna().all():
            severity = "critical"
            description = (
                "No transaction date could be parsed; "
                "monthly charts and return windows are empty"
            )
        else:
            severity = "warning"
            description = f"{count:,} dates couldn't be parsed; excluded from monthly charts"
        return [
            DataQualityIssue(
                column="transaction_date",
                issue_type="unparsed_date",
                severity=severity,
                count=count,
                percentage=(count / len(df)) * 100,
                sample_values=raw[unparsed].head(5).tolist(),
                description=description,
            )
        ]

    def _check_missing_receipt_keys(self, df: pd.DataFrame) -> list[DataQualityIssue]:
        """Lines that can't be attributed to a receipt."""
        missing = (df["receipt_id"] == "") & (df["order_number"] == "")
        count = int(missing.sum())
        if count == 0:
            return []
        return [
            DataQualityIssue(
                column="receipt_id",
                issue_type="missing",
                severity="warning",
                count=count,
                percentage=(count / len(df)) * 100,
                description=f"{count:,} lines have no receipt id or order number",
            )
        ]

    def _check_unknown_departments(self, df: pd.DataFrame) -> list[DataQualityIssue]:
        """Department codes that will show up as 'Dept <code>'."""
        codes = df["department_id"]
        unknown = ~codes.isin(list(DEPARTMENT_LABELS))
        count = int(unknown.sum())
        if count == 0:
            return []
        return [
            DataQualityIssue(
                column="department_id",
                issue_type="unknown_code",
                severity="info",
                count=count,
                percentage=(count / len(df)) * 100,
                sample_values=codes[unknown].drop_duplicates().head(5).tolist(),
                description=f"{count:,} lines use department codes without a label",
            )
        ]

    def _check_zero_quantities(self, df: pd.DataFrame) -> list[DataQualityIssue]:
        """Lines that are neither purchases nor returns."""
        zero = df["quantity"] == 0
        count = int(zero.sum())
        if count == 0:
            return []
        return [
            DataQualityIssue(
                column="quantity",
                issue_type="zero_quantity",
                severity="info",
                count=count,
                percentage=(count / len(df)) * 100,
                sample_values=df.loc[zero, "item_actual_name"].head(5).tolist(),
                description=f"{count:,} lines have zero quantity and are ignored",
            )
        ]

    def run(self, df: pd.DataFrame) -> DataQualityReport:
        """Run all checks and return a quality report."""
        all_issues = []
        if len(df) > 0:
            for check_fn in self._checks:
                all_issues.extend(check_fn(df))

        return DataQualityReport(
            source_name=self.source_name, total_rows=len(df), issues=all_issues
        )
