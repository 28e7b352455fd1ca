"""
Reconciliation engine: merges product master data with a day's saved
movements into ``StockRow``s, applies single-field edits, and flattens rows
into the persistence payload.

Everything here is pure: no database access, no logging, and inputs are never
mutated. Rows are frozen models, so an edit produces a new row object while
every untouched row is returned as the very same object.
"""
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, get_args

from honesty_store.stock.accounting.rows import UNCATEGORIZED, StockRow
from honesty_store.stock.accounting.schemas import EditableField, SavedMovement, SaveRecord
from honesty_store.stock.products.schemas import ProductAccountingRead

EDITABLE_FIELDS = get_args(EditableField)

MATCH_KEYS = ("id", "product_id")


class StockAccountingError(Exception):
    pass


class InvalidStockInput(StockAccountingError):
    def __init__(self, field, row_key, value, reason):
        self.field = field
        self.row_key = row_key
        self.value = value
        self.reason = reason
        super().__init__(f"Row {row_key}: {field} {reason} (got {value!r})")


class StockRowNotFound(StockAccountingError):
    def __init__(self, row_key):
        self.row_key = row_key
        super().__init__(f"No stock row matches {row_key!r}")


def validate_quantity(field: str, value, row_key=None) -> int:
    # bool is an int subclass; True is not a stock count
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidStockInput(field, row_key, value, "must be a whole number")
    if value < 0:
        raise InvalidStockInput(field, row_key, value, "cannot be negative")
    return value


def build_rows(
    products: Iterable,
    saved_movements: Mapping[int, object],
    order_counts: Optional[Mapping[int, int]] = None,
    freeze_opening_stock: bool = False,
) -> List[StockRow]:
    """
    One row per product, in product order.

    ``saved_movements`` maps product id to that product's saved record for
    the date; its four quantities and id override the zero defaults.
    ``order_counts`` (when order counts come from recorded orders) replaces the
    saved/entered order count, defaulting to 0 for products with no orders.
    Opening stock and unit price always come from the product, unless
    ``freeze_opening_stock`` is set and the saved record kept its own opening
    stock.
    """
    rows = []

    for raw_product in products:
        product = ProductAccountingRead.model_validate(raw_product)

        raw_saved = saved_movements.get(product.id)
        saved = SavedMovement.model_validate(raw_saved) if raw_saved is not None else None

        opening_stock = product.opening_stock
        if freeze_opening_stock and saved is not None and saved.opening_stock is not None:
            opening_stock = saved.opening_stock

        order_count = saved.order_count if saved else 0
        if order_counts is not None:
            order_count = order_counts.get(product.id, 0)

        rows.append(
            StockRow(
                id=saved.id if saved else None,
                product_id=product.id,
                product=product.name,
                category=product.category or UNCATEGORIZED,
                opening_stock=opening_stock,
                additional_stock=saved.additional_stock if saved else 0,
                order_count=order_count,
                actual_closing_stock=saved.actual_closing_stock if saved else 0,
                wasted_stock=saved.wastage_stock if saved else 0,
                unit_price=product.unit_price,
            )
        )

    return rows


def _matches(row: StockRow, target_id, key: str) -> bool:
    if key == "id":
        return row.id is not None and row.id == target_id
    return row.product_id == target_id


def find_row_index(rows: List[StockRow], target_id, key: Optional[str] = None) -> int:
    """
    Position of the row addressed by ``target_id``.

    With no explicit ``key`` the saved row id is tried first and the product
    id second, since callers address rows by either.
    """
    if key is not None and key not in MATCH_KEYS:
        raise ValueError(f"key must be one of {MATCH_KEYS}")

    for candidate_key in ([key] if key else MATCH_KEYS):
        for index, row in enumerate(rows):
            if _matches(row, target_id, candidate_key):
                return index

    raise StockRowNotFound(target_id)


def apply_edit(
    rows: List[StockRow],
    target_id,
    field: str,
    new_value,
    key: Optional[str] = None,
) -> List[StockRow]:
    if field not in EDITABLE_FIELDS:
        raise InvalidStockInput(field, target_id, new_value, "is not an editable field")

    value = validate_quantity(field, new_value, target_id)
    index = find_row_index(rows, target_id, key)

    updated = list(rows)
    updated[index] = rows[index].model_copy(update={field: value})
    return updated


def to_persistence_payload(rows: Iterable[StockRow], day: date) -> List[SaveRecord]:
    return [
        SaveRecord(
            id=row.id,
            product_id=row.product_id,
            opening_stock=row.opening_stock,
            additional_stock=row.additional_stock,
            actual_closing_stock=row.actual_closing_stock,
            wastage_stock=row.wasted_stock,
            order_count=row.order_count,
            estimated_closing_stock=row.estimated_closing_stock,
            stolen_stock=row.stolen_stock,
            sales=row.sales,
            date=day,
        )
        for row in rows
    ]


def index_by_product(saved_movements: Iterable) -> Dict[int, object]:
    """Key saved records by product id; the last record for a product wins."""
    return {
        (m["product_id"] if isinstance(m, Mapping) else m.product_id): m
        for m in saved_movements
    }
