"""
Static lookup tables for warehouse receipt exports.

Department codes are the numeric department identifiers printed on
receipt line items. Both tables are read-only mappings so that no call
can leak state into another.
"""

from types import MappingProxyType
from typing import Literal, NamedTuple

ReturnPolicy = Literal["standard", "90-day"]


class DepartmentPolicy(NamedTuple):
    """Return policy for a department."""

    label: str
    policy: ReturnPolicy


DEPARTMENT_LABELS = MappingProxyType(
    {
        "12": "Snacks & Candy",
        "13": "Dry Grocery & Pantry",
        "14": "Household & Cleaning",
        "17": "Dairy & Refrigerated",
        "18": "Frozen Foods",
        "19": "Prepared & Deli",
        "20": "Health & Baby Care",
        "22": "Tires & Auto",
        "23": "Electronics & Batteries",
        "24": "Computers & Tech",
        "25": "Home Fragrance",
        "26": "Luggage & Travel",
        "28": "Toys & Seasonal",
        "31": "Apparel & Shoes",
        "32": "Home & Kitchen",
        "33": "Small Appliances",
        "38": "Furniture & Lighting",
        "39": "Baby Apparel",
        "48": "Tire Services",
        "62": "Bakery",
        "65": "Fresh Produce",
        "87": "Tire Center Services",
        "93": "Pharmacy & OTC",
    }
)

# Non-consumable departments. Anything not listed here is never returnable.
RETURN_POLICIES = MappingProxyType(
    {
        "22": DepartmentPolicy("Tires & Auto", "standard"),
        "23": DepartmentPolicy("Electronics & Batteries", "90-day"),
        "24": DepartmentPolicy("Computers & Tech", "90-day"),
        "26": DepartmentPolicy("Luggage & Travel", "standard"),
        "28": DepartmentPolicy("Toys & Seasonal", "standard"),
        "31": DepartmentPolicy("Apparel & Shoes", "standard"),
        "32": DepartmentPolicy("Home & Kitchen", "standard"),
        "33": DepartmentPolicy("Small Appliances", "standard"),
        "38": DepartmentPolicy("Furniture & Lighting", "standard"),
        "39": DepartmentPolicy("Baby Apparel", "standard"),
    }
)

POLICY_LABELS = MappingProxyType(
    {
        "standard": "Anytime Return",
        "90-day": "90-Day Return",
    }
)

# Per-receipt fields, repeated on every line of the receipt
SAVINGS_FIELDS = (
    "instant_savings",
    "discount_amount",
    "coupon_applied",
    "shop_card_applied",
)

SAVINGS_LABELS = MappingProxyType(
    {
        "instant_savings": "Instant Savings",
        "discount_amount": "Discounts",
        "coupon_applied": "Coupons",
        "shop_card_applied": "Shop Card",
    }
)

NUMERIC_FIELDS = (
    "quantity",
    "unit_price",
    "line_total",
) + SAVINGS_FIELDS

CODE_FIELDS = (
    "order_number",
    "receipt_id",
    "department_id",
    "item_sku",
)

TEXT_FIELDS = CODE_FIELDS + (
    "item_name",
    "item_actual_name",
)

DATE_FIELD = "transaction_date"


def department_label(code) -> str:
    """Human label for a department code, or a synthetic one if unknown."""
    return DEPARTMENT_LABELS.get(str(code), f"Dept {code}")
