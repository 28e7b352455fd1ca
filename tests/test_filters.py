from datetime import datetime
from decimal import Decimal

import pytest

from honesty_store.stock.accounting import engine, filters
from honesty_store.stock.accounting.schemas import HistoryRecord


@pytest.fixture
def rows():
    products = [
        {"id": 1, "name": "Chips", "category": "Snacks", "unit_price": 10, "opening_stock": 50},
        {"id": 2, "name": "Cookies", "category": "Snacks", "unit_price": 15, "opening_stock": 20},
        {"id": 3, "name": "Cola", "category": "Drinks", "unit_price": 25, "opening_stock": 30},
        {"id": 4, "name": "Juice", "category": "Drinks", "unit_price": 30, "opening_stock": 12},
        {"id": 5, "name": "Gum", "category": None, "unit_price": 5, "opening_stock": 8},
    ]
    saved = {
        1: {"id": 10, "product_id": 1, "actual_closing_stock": 40},
        2: {"id": 11, "product_id": 2, "actual_closing_stock": 5},
        3: {"id": 12, "product_id": 3, "actual_closing_stock": 6},
        4: {"id": 13, "product_id": 4, "actual_closing_stock": 2},
    }
    return engine.build_rows(products, saved)


def test_all_category_is_identity(rows):
    assert filters.filter_by_category(rows, "all") == rows
    assert filters.filter_by_category(rows, "all") is not rows


def test_filter_by_category(rows):
    assert [r.product for r in filters.filter_by_category(rows, "Snacks")] == ["Chips", "Cookies"]
    assert [r.product for r in filters.filter_by_category(rows, "Uncategorized")] == ["Gum"]
    assert filters.filter_by_category(rows, "Frozen") == []


def test_filter_low_stock_is_inclusive(rows):
    low = filters.filter_low_stock(rows, 5)
    # Gum has no closing count yet, which reads as 0
    assert [r.product for r in low] == ["Cookies", "Juice", "Gum"]


def test_filter_low_stock_default_threshold(rows):
    assert filters.filter_low_stock(rows) == filters.filter_low_stock(rows, 5)


@pytest.mark.parametrize("category", ["all", "Snacks", "Drinks", "Uncategorized", "Frozen"])
@pytest.mark.parametrize("threshold", [0, 5, 6, 100])
def test_filters_commute(rows, category, threshold):
    left = filters.filter_low_stock(filters.filter_by_category(rows, category), threshold)
    right = filters.filter_by_category(filters.filter_low_stock(rows, threshold), category)
    assert left == right


def test_filters_do_not_mutate(rows):
    before = list(rows)
    filters.filter_low_stock(filters.filter_by_category(rows, "Drinks"), 5)
    assert rows == before


def test_list_categories(rows):
    assert filters.list_categories(rows) == ["Drinks", "Snacks", "Uncategorized"]


def test_count_low_stock(rows):
    assert filters.count_low_stock(rows, 5) == 3
    assert filters.count_low_stock(rows, 6) == 4


def test_filter_by_product(rows):
    assert [r.product_id for r in filters.filter_by_product(rows, "Cola")] == [3]
    assert filters.filter_by_product(rows, "all") == rows


def _record(record_id, product_id, sales, wastage, stolen):
    return HistoryRecord(
        id=record_id,
        product_id=product_id,
        product=f"Product {product_id}",
        category="Snacks",
        opening_stock=10,
        additional_stock=0,
        order_count=1,
        actual_closing_stock=5,
        wastage_stock=wastage,
        estimated_closing_stock=9,
        stolen_stock=stolen,
        sales=Decimal(sales),
        variance=4,
        created_at=datetime(2024, 5, 1),
    )


def test_summarize_history():
    summary = filters.summarize(
        [
            _record(1, 1, "10.00", 1, 3),
            _record(2, 1, "20.50", 0, 0),
            _record(3, 2, "5.25", 2, 1),
        ]
    )

    assert summary.total_products == 2
    assert summary.total_sales_value == Decimal("35.75")
    assert summary.total_wastage_units == 3
    assert summary.total_stolen_units == 4


def test_summarize_empty():
    summary = filters.summarize([])
    assert summary.total_products == 0
    assert summary.total_sales_value == 0
