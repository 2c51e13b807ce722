"""Tests for the spending aggregators."""

import pandas as pd
import pytest

from receipt_analytics import (
    aggregate_items,
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
    split_purchases_returns,
)
from receipt_analytics.analysis import truncate


def _summary(df):
    purchases, returns = split_purchases_returns(df)
    return compute_summary(df, purchases, returns)


class TestSummary:
    def test_totals_and_sign_convention(self, frame, line):
        df = frame(
            line(receipt="R1", sku="1", qty=2, price=10),
            line(receipt="R1", sku="2", qty=1, price=5),
            line(receipt="R2", sku="1", qty=-1, price=5),
            line(receipt="R3", sku="3", qty=0, total=0),
        )

        summary = _summary(df)

        assert summary.total_spent == pytest.approx(20.0)
        assert summary.total_purchase_amount == pytest.approx(25.0)
        assert summary.total_return_amount == pytest.approx(5.0)
        assert summary.total_trips == 1
        assert summary.total_items_purchased == 3
        assert summary.total_items_returned == 1
        assert summary.avg_per_trip == pytest.approx(20.0)

    def test_trips_fall_back_to_all_receipts(self, frame, line):
        df = frame(
            line(receipt="R1", qty=-1, price=4),
            line(receipt="R2", qty=-1, price=6),
        )

        summary = _summary(df)

        assert summary.total_trips == 2
        assert summary.avg_per_trip == pytest.approx(-5.0)

    def test_no_trips_means_zero_average(self, frame):
        summary = _summary(frame())

        assert summary.total_trips == 0
        assert summary.avg_per_trip == 0

    def test_savings_deduplicated_per_receipt(self, frame, line):
        df = frame(
            line(receipt="R1", sku="1", instant_savings=2),
            line(receipt="R1", sku="2", instant_savings=2),
            line(receipt="R1", sku="3", instant_savings=2),
            line(receipt="R2", sku="4", coupon_applied=-3),
        )

        assert _summary(df).total_savings == pytest.approx(5.0)

    def test_item_counts_cover_every_nonzero_line(self, frame, line):
        df = frame(
            line(sku="1", qty=2.5),
            line(sku="2", qty=-1),
            line(sku="3", qty=0),
            line(sku="4", qty=4),
        )

        summary = _summary(df)
        expected = df.loc[df["quantity"] != 0, "quantity"].abs().sum()

        assert summary.total_items_purchased + summary.total_items_returned == expected

    def test_undated_lines_still_counted(self, frame, line):
        df = frame(line(date=None, qty=1, price=40))

        assert _summary(df).total_spent == 40


class TestMonthlySpending:
    def test_buckets_purchases_and_returns(self, frame, line):
        df = frame(
            line(receipt="R1", date="2024-01-05", qty=1, price=100),
            line(receipt="R2", date="2024-02-10", qty=2, price=25),
            line(receipt="R3", date="2024-02-11", qty=-1, price=20),
            line(receipt="R4", date=None, qty=1, price=999),
        )

        monthly = compute_monthly_spending(df)

        assert monthly["month"].tolist() == ["2024-01", "2024-02"]
        assert monthly["purchases"].tolist() == [100.0, 50.0]
        assert monthly["returns"].tolist() == [0.0, 20.0]

    def test_months_sorted_ascending(self, frame, line):
        df = frame(
            line(date="2024-05-01"),
            line(date="2023-12-31"),
            line(date="2024-01-20"),
        )

        assert compute_monthly_spending(df)["month"].tolist() == [
            "2023-12", "2024-01", "2024-05",
        ]

    def test_no_dated_lines(self, frame, line):
        monthly = compute_monthly_spending(frame(line(date=None)))

        assert len(monthly) == 0
        assert list(monthly.columns) == ["month", "purchases", "returns"]


class TestDepartmentSpending:
    def test_labels_and_order(self, frame, line):
        df = frame(
            line(sku="1", dept="13", qty=1, price=30),
            line(sku="2", dept="31", qty=1, price=50),
            line(sku="3", dept="99", qty=1, price=10),
            line(sku="4", dept="13", qty=-1, price=30),
        )
        purchases, _ = split_purchases_returns(df)

        departments = compute_department_spending(purchases)

        assert departments["department"].tolist() == [
            "Apparel & Shoes",
            "Dry Grocery & Pantry",
            "Dept 99",
        ]
        assert departments["total"].tolist() == [50.0, 30.0, 10.0]


class TestBasketSize:
    def test_average_items_per_receipt(self, frame, line):
        df = frame(
            line(receipt="R1", date="2024-01-03", sku="1", qty=2),
            line(receipt="R1", date="2024-01-03", sku="2", qty=1),
            line(receipt="R2", date="2024-01-20", sku="1", qty=1),
            line(receipt="R3", date="2024-02-02", sku="3", qty=5),
            line(receipt="R3", date="2024-02-02", sku="4", qty=-2),
        )
        purchases, _ = split_purchases_returns(df)

        basket = compute_basket_size(purchases)

        assert basket["month"].tolist() == ["2024-01", "2024-02"]
        assert basket["avg_items"].tolist() == [2.0, 5.0]

    def test_undated_lines_excluded(self, frame, line):
        df = frame(line(receipt="R1", date=None, qty=3))
        purchases, _ = split_purchases_returns(df)

        assert len(compute_basket_size(purchases)) == 0


class TestItemRankings:
    def test_truncate(self):
        assert truncate("x" * 40) == "x" * 35 + "..."
        assert truncate("short") == "short"
        assert truncate(None) == ""

    def test_top_by_frequency(self, frame, line):
        long_name = "Kirkland Signature Organic Extra Virgin Olive Oil"
        df = frame(
            line(sku="1", name="Bananas", qty=1),
            line(sku="2", name=long_name, qty=3),
            line(sku="1", name="Bananas", qty=1),
        )
        purchases, _ = split_purchases_returns(df)

        top = compute_top_items(purchases, by="count")

        assert top["name"].tolist() == [long_name, "Bananas"]
        assert top["count"].tolist() == [3, 2]
        assert top["label"].iloc[0] == long_name[:35] + "..."

    def test_top_by_spend(self, frame, line):
        df = frame(
            line(sku="1", name="Bananas", qty=10, price=1.5),
            line(sku="2", name="TV", qty=1, price=499.99),
        )
        purchases, _ = split_purchases_returns(df)

        top = compute_top_items(purchases, by="total_spent")

        assert top["name"].tolist() == ["TV", "Bananas"]
        assert top["total_spent"].tolist() == [499.99, 15.0]

    def test_ties_keep_first_seen_order(self, frame, line):
        df = frame(
            line(sku="9", name="Zucchini"),
            line(sku="1", name="Apples"),
            line(sku="5", name="Milk"),
        )
        purchases, _ = split_purchases_returns(df)

        top = compute_top_items(purchases, by="count")

        assert top["name"].tolist() == ["Zucchini", "Apples", "Milk"]

    def test_limit(self, frame, line):
        df = frame(*[line(sku=str(i), name=f"Item {i}") for i in range(30)])
        purchases, _ = split_purchases_returns(df)

        assert len(compute_top_items(purchases, limit=20)) == 20
        assert len(compute_frequency_table(purchases)) == 30

    def test_unknown_ranking(self, frame, line):
        with pytest.raises(ValueError):
            compute_top_items(frame(line()), by="price")


class TestFrequencyTable:
    def test_counts_spend_and_dates(self, frame, line):
        df = frame(
            line(sku="1", name="Eggs", date="2024-03-01", qty=1, price=6),
            line(sku="1", name="Eggs", date="2024-01-10", qty=2, price=6),
            line(sku="1", name="Eggs", date=None, qty=1, price=6),
            line(sku="2", name="Salmon", date="2024-02-14", qty=1, price=20),
        )
        purchases, _ = split_purchases_returns(df)

        table = compute_frequency_table(purchases)
        eggs = table.iloc[0]

        assert eggs["name"] == "Eggs"
        assert eggs["count"] == 4
        assert eggs["total_spent"] == 24
        assert eggs["first_date"] == pd.Timestamp("2024-01-10")
        assert eggs["last_date"] == pd.Timestamp("2024-03-01")

    def test_name_key_fallback(self, frame, line):
        df = frame(
            line(sku="", name="Rotisserie Chicken", qty=1),
            line(sku="", name="Rotisserie Chicken", qty=1),
        )
        purchases, _ = split_purchases_returns(df)

        items = aggregate_items(purchases)

        assert items["item_key"].tolist() == ["Rotisserie Chicken"]
        assert items["count"].tolist() == [2]


class TestPriceChanges:
    def test_increase(self, frame, line):
        df = frame(
            line(receipt="R1", sku="1", name="Milk", date="2024-01-05", price=5.00),
            line(receipt="R2", sku="1", name="Milk", date="2024-02-05", price=6.00),
        )

        changes = detect_price_changes(df)
        change = changes.iloc[0]

        assert len(changes) == 1
        assert change["old_price"] == 5
        assert change["new_price"] == 6
        assert change["change"] == 1.00
        assert change["change_percent"] == 20.00
        assert change["first_date"] == pd.Timestamp("2024-01-05")
        assert change["last_date"] == pd.Timestamp("2024-02-05")

    def test_ordered_chronologically_not_by_input(self, frame, line):
        df = frame(
            line(receipt="R2", sku="1", name="Milk", date="2024-02-05", price=6.00),
            line(receipt="R1", sku="1", name="Milk", date="2024-01-05", price=5.00),
        )

        change = detect_price_changes(df).iloc[0]

        assert change["old_price"] == 5
        assert change["new_price"] == 6

    def test_skips_single_and_unchanged(self, frame, line):
        df = frame(
            line(sku="1", date="2024-01-01", price=3),
            line(sku="2", date="2024-01-01", price=4),
            line(sku="2", date="2024-02-01", price=4),
        )

        assert len(detect_price_changes(df)) == 0

    def test_zero_baseline_price(self, frame, line):
        df = frame(
            line(sku="1", date="2024-01-01", price=0.0),
            line(sku="1", date="2024-02-01", price=3.0),
        )

        change = detect_price_changes(df).iloc[0]

        assert change["change"] == 3.0
        assert change["change_percent"] == 0.0

    def test_sorted_by_absolute_percent(self, frame, line):
        df = frame(
            line(sku="1", name="Butter", date="2024-01-01", price=5.0),
            line(sku="1", name="Butter", date="2024-02-01", price=6.0),
            line(sku="2", name="Coffee", date="2024-01-01", price=10.0),
            line(sku="2", name="Coffee", date="2024-02-01", price=5.0),
        )

        changes = detect_price_changes(df)

        assert changes["name"].tolist() == ["Coffee", "Butter"]
        assert changes["change_percent"].tolist() == [-50.0, 20.0]


class TestReturnsTable:
    def test_newest_first_undated_last(self, frame, line):
        df = frame(
            line(sku="1", name="Jacket", date="2024-01-10", qty=-1, price=80),
            line(sku="2", name="Lamp", date=None, qty=-2, price=15),
            line(sku="3", name="Shoes", date="2024-03-02", qty=-1, price=60),
        )
        _, returns = split_purchases_returns(df)

        table = build_returns_table(returns)

        assert table["name"].tolist() == ["Shoes", "Jacket", "Lamp"]
        assert table["quantity"].tolist() == [1, 1, 2]
        assert table["refund"].tolist() == [60, 80, 30]


class TestSavings:
    def test_breakdown_omits_zero_categories(self, frame, line):
        df = frame(
            line(receipt="R1", sku="1", instant_savings=2, coupon_applied=3),
            line(receipt="R1", sku="2", instant_savings=2, coupon_applied=3),
            line(receipt="R2", sku="3", instant_savings=1, discount_amount=-4),
        )

        breakdown = compute_savings_breakdown(df)

        assert breakdown["category"].tolist() == ["Instant Savings", "Discounts", "Coupons"]
        assert breakdown["amount"].tolist() == [3.0, 4.0, 3.0]

    def test_breakdown_empty(self, frame, line):
        breakdown = compute_savings_breakdown(frame(line()))

        assert len(breakdown) == 0

    def test_monthly_savings(self, frame, line):
        df = frame(
            line(receipt="R1", date="2024-01-02", sku="1", instant_savings=2, coupon_applied=-3),
            line(receipt="R1", date="2024-01-02", sku="2", instant_savings=2, coupon_applied=-3),
            line(receipt="R2", date="2024-02-08", sku="3", instant_savings=1),
            line(receipt="R3", date="2024-02-20", sku="4"),
        )

        monthly = compute_monthly_savings(df)

        assert monthly["month"].tolist() == ["2024-01", "2024-02"]
        assert monthly["savings"].tolist() == [5.0, 1.0]

    def test_monthly_savings_uses_first_dated_line(self, frame, line):
        df = frame(
            line(receipt="R1", date=None, sku="1", instant_savings=4),
            line(receipt="R1", date="2024-03-03", sku="2", instant_savings=4),
        )

        monthly = compute_monthly_savings(df)

        assert monthly["month"].tolist() == ["2024-03"]
        assert monthly["savings"].tolist() == [4.0]


class TestTopDiscounts:
    def test_ranked_by_percent(self, frame, line):
        df = frame(
            line(sku="1", name="Paper Towels", price=10, instant_savings=1),
            line(sku="2", name="Free Sample", price=0, instant_savings=2),
            line(sku="3", name="Coffee", price=12, instant_savings=3),
        )

        discounts = find_top_discounts(df)

        assert discounts["name"].tolist() == ["Coffee", "Paper Towels", "Free Sample"]
        assert discounts["discount_percent"].tolist() == [25.0, 10.0, 0.0]

    def test_first_seen_record_wins(self, frame, line):
        df = frame(
            line(receipt="R1", sku="1", name="Paper Towels", price=10, instant_savings=1),
            line(receipt="R2", sku="1", name="Paper Towels", price=10, instant_savings=5),
        )

        discounts = find_top_discounts(df)

        assert len(discounts) == 1
        assert discounts["savings"].iloc[0] == 1
        assert discounts["discount_percent"].iloc[0] == 10.0

    def test_returns_and_undiscounted_lines_ignored(self, frame, line):
        df = frame(
            line(sku="1", qty=-1, price=10, instant_savings=3),
            line(sku="2", qty=1, price=10, instant_savings=0),
        )

        assert len(find_top_discounts(df)) == 0
