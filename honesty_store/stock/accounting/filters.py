from decimal import Decimal
from typing import Iterable, List

from honesty_store.stock.accounting.schemas import SummaryStats

ALL = "all"
DEFAULT_LOW_STOCK_THRESHOLD = 5


def filter_by_category(rows: Iterable, category: str = ALL) -> List:
    if not category or category == ALL:
        return list(rows)
    return [row for row in rows if row.category == category]


def filter_low_stock(rows: Iterable, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> List:
    return [row for row in rows if row.actual_closing_stock <= threshold]


def filter_by_product(rows: Iterable, product: str = ALL) -> List:
    if not product or product == ALL:
        return list(rows)
    return [row for row in rows if row.product == product]


def count_low_stock(rows: Iterable, threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> int:
    return len(filter_low_stock(rows, threshold))


def list_categories(rows: Iterable) -> List[str]:
    return sorted({row.category for row in rows if row.category})


def summarize(records: Iterable) -> SummaryStats:
    """Totals over saved history records (sales, wastage, theft)."""
    records = list(records)
    return SummaryStats(
        total_products=len({r.product_id for r in records}),
        total_sales_value=sum((Decimal(r.sales) for r in records), Decimal("0")),
        total_wastage_units=sum(r.wastage_stock for r in records),
        total_stolen_units=sum(r.stolen_stock for r in records),
    )
