"""Shared fixtures for building receipt line items."""

from datetime import datetime, timedelta

import pytest

from receipt_analytics import prepare_records

AS_OF = datetime(2024, 6, 1, 12, 0)


def _line(
    receipt="R1",
    date="2024-01-15",
    sku="100",
    name="Item",
    qty=1,
    price=10.0,
    total=None,
    dept="13",
    **extra,
):
    record = {
        "receipt_id": receipt,
        "order_number": "",
        "transaction_date": date,
        "item_sku": sku,
        "item_name": name,
        "item_actual_name": name,
        "department_id": dept,
        "quantity": qty,
        "unit_price": price,
        "line_total": qty * price if total is None else total,
    }
    record.update(extra)
    return record


@pytest.fixture
def line():
    """Factory for a single line-item dict."""
    return _line


@pytest.fixture
def frame():
    """Factory turning line-item dicts into a prepared DataFrame."""

    def build(*lines):
        return prepare_records(list(lines))

    return build


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def days_ago():
    """Date string for N whole days before AS_OF."""

    def build(days: int) -> str:
        return (AS_OF - timedelta(days=days)).strftime("%Y-%m-%d")

    return build
