"""
Daily stock reconciliation row and its derivation formulas.

One ``StockRow`` exists per product per accounting date. Four quantities are
entered by the operator (additional stock, order count, actual closing count,
wastage); the rest are derived:

    estimated closing = opening + additional - order count
    stolen            = max(0, estimated closing - actual closing - wasted)
    sales             = order count x unit price

The derived values are computed properties, so a row can never carry a stale
figure after one of its inputs changes.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Annotated, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

UNCATEGORIZED = "Uncategorized"

# Whole, non-negative units. Strict so "5" or 5.5 never sneak through as 5.
Quantity = Annotated[int, Field(ge=0, strict=True)]


def compute_estimated_closing(opening_stock: int, additional_stock: int, order_count: int) -> int:
    # Not clamped: a negative estimate means more was sold than was on hand.
    return opening_stock + additional_stock - order_count


def compute_stolen_stock(estimated_closing_stock: int, actual_closing_stock: int, wasted_stock: int) -> int:
    return max(0, estimated_closing_stock - actual_closing_stock - wasted_stock)


def compute_sales(order_count: int, unit_price: Union[Decimal, int, float, str]) -> Decimal:
    """Exact sales value; rounding happens only in :func:`format_sales`."""
    if not isinstance(unit_price, Decimal):
        unit_price = Decimal(str(unit_price))
    return Decimal(order_count) * unit_price


def format_sales(amount: Decimal, currency_symbol: str = "₹") -> str:
    """Presentation form of a sales figure, e.g. ``₹1,234.50``."""
    rounded = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{currency_symbol}{rounded:,.2f}"


class StockRow(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    # saved daily_inventory id; None until the row is first saved for the date
    id: Optional[int] = None
    product_id: int
    product: str
    category: str = UNCATEGORIZED

    opening_stock: Quantity
    additional_stock: Quantity = 0
    order_count: Quantity = 0
    actual_closing_stock: Quantity = 0
    wasted_stock: Quantity = 0

    unit_price: Decimal = Field(ge=0)

    @computed_field
    @property
    def estimated_closing_stock(self) -> int:
        return compute_estimated_closing(
            self.opening_stock, self.additional_stock, self.order_count
        )

    @computed_field
    @property
    def stolen_stock(self) -> int:
        return compute_stolen_stock(
            self.estimated_closing_stock, self.actual_closing_stock, self.wasted_stock
        )

    @computed_field
    @property
    def sales(self) -> Decimal:
        return compute_sales(self.order_count, self.unit_price)
