from pydantic import BaseModel, ConfigDict, StrictInt, model_validator
from typing import List, Literal, Optional
from decimal import Decimal
import datetime as dt

from honesty_store.stock.accounting.rows import Quantity, StockRow

EditableField = Literal[
    "additional_stock",
    "order_count",
    "actual_closing_stock",
    "wasted_stock",
]


# -------------------------------
# Saved movement (read shape)
# -------------------------------
class SavedMovement(BaseModel):
    id: int
    product_id: int
    opening_stock: Optional[int] = None
    additional_stock: int = 0
    order_count: int = 0
    actual_closing_stock: int = 0
    wastage_stock: int = 0
    created_at: Optional[dt.datetime] = None

    model_config = ConfigDict(from_attributes=True)


# -------------------------------
# Persistence payload (write shape)
# -------------------------------
class SaveRecord(BaseModel):
    id: Optional[int] = None
    product_id: int
    opening_stock: int
    additional_stock: int
    actual_closing_stock: int
    wastage_stock: int
    order_count: int
    estimated_closing_stock: int
    stolen_stock: int
    sales: Decimal
    date: dt.date


# -------------------------------
# Load
# -------------------------------
class StockAccountingOut(BaseModel):
    date: dt.date
    rows: List[StockRow]
    categories: List[str]
    total_products: int
    low_stock_count: int
    low_stock_threshold: int
    total_sales: Decimal
    total_sales_display: str


# -------------------------------
# Edit (recalculate one row)
# -------------------------------
class StockEditRequest(BaseModel):
    rows: List[StockRow]
    field: EditableField
    value: StrictInt
    row_id: Optional[int] = None
    product_id: Optional[int] = None

    @model_validator(mode="after")
    def exactly_one_target(self):
        if (self.row_id is None) == (self.product_id is None):
            raise ValueError("Provide exactly one of row_id or product_id")
        return self


class StockEditOut(BaseModel):
    rows: List[StockRow]


# -------------------------------
# Save
# -------------------------------
class SaveRowIn(BaseModel):
    id: Optional[int] = None
    product_id: int
    opening_stock: Quantity
    additional_stock: Quantity = 0
    order_count: Quantity = 0
    actual_closing_stock: Quantity = 0
    wastage_stock: Quantity = 0


class SaveRequest(BaseModel):
    date: Optional[dt.date] = None
    rows: List[SaveRowIn]


class SaveResult(BaseModel):
    success: bool
    message: str
    date: dt.date
    saved: int
    created: int
    updated: int


# -------------------------------
# History
# -------------------------------
class HistoryRecord(BaseModel):
    id: int
    product_id: int
    product: str
    category: str
    opening_stock: int
    additional_stock: int
    order_count: int
    actual_closing_stock: int
    wastage_stock: int
    estimated_closing_stock: int
    stolen_stock: int
    sales: Decimal
    variance: int
    created_at: dt.datetime
    created_by: Optional[str] = None


class SummaryStats(BaseModel):
    total_products: int = 0
    total_sales_value: Decimal = Decimal("0")
    total_wastage_units: int = 0
    total_stolen_units: int = 0


class HistoryOut(BaseModel):
    start_date: dt.date
    end_date: dt.date
    large_range: bool
    records: List[HistoryRecord]
    summary: SummaryStats
