"""
Rule-based insight generation.

Each rule reads pre-computed aggregates and emits at most one Insight.
Rules always run in the same order and their output is never re-sorted,
so the same dataset always yields the same sequence of insights.
"""

import logging

import pandas as pd

from .config import AnalyticsConfig
from .models import Insight, SpendingSummary

logger = logging.getLogger(__name__)


def _fmt_number(value: float) -> str:
    """Up to 2 decimals, without trailing zeros (20.0 -> "20", 12.5 -> "12.5")."""
    return f"{value:.2f}".rstrip("0").rstrip(".")


class InsightGenerator:
    """
    Generates advisory notices from the analysis outputs.

    Rules, in order:
    1. Rising prices
    2. Biggest repeat expenses
    3. Purchase patterns (always fires)
    4. Return rate
    5. Spending trend over the last few months
    6. Savings rate

    All numbers are computed upstream; the rules only select and phrase.
    """

    def __init__(self, config: AnalyticsConfig | None = None):
        self.config = config or AnalyticsConfig()

    def generate(
        self,
        summary: SpendingSummary,
        monthly: pd.DataFrame,
        frequency_table: pd.DataFrame,
        price_changes: pd.DataFrame,
    ) -> list[Insight]:
        """Run every rule and collect the insights they produce."""
        candidates = [
            self._rising_prices(price_changes),
            self._repeat_expenses(frequency_table),
            self._purchase_patterns(frequency_table),
            self._return_rate(summary),
            self._spending_trend(monthly),
            self._savings_rate(summary),
        ]
        insights = [i for i in candidates if i is not None]
        logger.debug("Generated %d insights: %s", len(insights), [i.title for i in insights])
        return insights

    def _rising_prices(self, price_changes: pd.DataFrame) -> Insight | None:
        if len(price_changes) == 0:
            return None
        increases = price_changes[price_changes["change"] > 0]
        if len(increases) == 0:
            return None

        top = increases.head(3)
        details = "; ".join(
            f"{row['name']} (+${row['change']:.2f}, +{_fmt_number(row['change_percent'])}%)"
            for row in top.to_dict("records")
        )
        return Insight(
            kind="warning",
            title="Rising Prices Detected",
            text=f"{len(increases)} item(s) have increased in price. Top: {details}.",
        )

    def _repeat_expenses(self, frequency_table: pd.DataFrame) -> Insight | None:
        if len(frequency_table) == 0:
            return None
        repeats = frequency_table[frequency_table["count"] >= self.config.repeat_min_count]
        if len(repeats) == 0:
            return None

        top = repeats.sort_values("total_spent", ascending=False, kind="stable").head(3)
        details = "; ".join(
            f"{row['name']} ({_fmt_number(row['count'])}x, ${row['total_spent']:.2f} total)"
            for row in top.to_dict("records")
        )
        return Insight(
            kind="info",
            title="Biggest Repeat Expenses",
            text=(
                f"Your most costly repeat purchases: {details}. "
                "Consider bulk alternatives or sales timing."
            ),
        )

    def _purchase_patterns(self, frequency_table: pd.DataFrame) -> Insight:
        if len(frequency_table) == 0:
            staples, one_timers = [], 0
        else:
            counts = frequency_table["count"]
            staples = frequency_table.loc[counts >= self.config.staple_min_count, "name"].tolist()
            one_timers = int((counts == 1).sum())

        text = (
            f"You have {len(staples)} staple item(s) purchased "
            f"{self.config.staple_min_count}+ times and {one_timers} one-time purchase(s). "
        )
        if staples:
            text += f"Your top staples: {', '.join(staples[:5])}."
        return Insight(kind="info", title="Purchase Patterns", text=text)

    def _return_rate(self, summary: SpendingSummary) -> Insight:
        purchased = summary.total_items_purchased
        rate = summary.total_items_returned / purchased * 100 if purchased > 0 else 0.0

        if rate > self.config.high_return_rate_pct:
            return Insight(
                kind="warning",
                title="High Return Rate",
                text=(
                    f"Your return rate is {rate:.1f}%. Review returned items to identify "
                    "patterns and reduce unnecessary purchases."
                ),
            )
        return Insight(
            kind="success",
            title="Low Return Rate",
            text=f"Your return rate is only {rate:.1f}%, which suggests good purchasing decisions.",
        )

    def _spending_trend(self, monthly: pd.DataFrame) -> Insight | None:
        window = self.config.trend_months
        if len(monthly) == 0:
            return None
        purchase_months = monthly[monthly["purchases"] > 0]
        if len(purchase_months) < window:
            return None

        recent = purchase_months.sort_values("month")["purchases"].tail(window).tolist()
        steps = list(zip(recent, recent[1:]))
        path = " -> $".join(f"{v:.0f}" for v in recent)

        if all(b > a for a, b in steps):
            return Insight(
                kind="warning",
                title="Spending Is Trending Up",
                text=(
                    f"Your spending has been increasing over the last {window} months "
                    f"(${path}). Review recent purchases for discretionary items."
                ),
            )
        if all(b < a for a, b in steps):
            return Insight(
                kind="success",
                title="Spending Is Trending Down",
                text=(
                    f"Great news! Your spending has decreased over the last {window} months "
                    f"(${path})."
                ),
            )
        return None

    def _savings_rate(self, summary: SpendingSummary) -> Insight | None:
        if summary.total_purchase_amount <= 0:
            return None

        rate = summary.total_savings / summary.total_purchase_amount * 100
        healthy = rate > self.config.healthy_savings_rate_pct
        advice = (
            "You're doing well at capturing available discounts!"
            if healthy
            else "Check the monthly coupon book and member app for more savings opportunities."
        )
        return Insight(
            kind="success" if healthy else "info",
            title="Savings Rate",
            text=(
                f"You saved {rate:.1f}% on your total purchases through discounts "
                f"and coupons. {advice}"
            ),
        )
