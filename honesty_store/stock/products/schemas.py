from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from decimal import Decimal
from datetime import datetime

# -------------------------------
# Base
# -------------------------------
class ProductBase(BaseModel):
    name: str
    category: Optional[str] = None
    unit_price: Decimal = Field(ge=0, decimal_places=2)
    opening_stock: int = Field(default=0, ge=0)


# -------------------------------
# Create
# -------------------------------
class ProductCreate(ProductBase):
    pass


# -------------------------------
# Update
# -------------------------------
class ProductUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    unit_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)


# -------------------------------
# Restock
# -------------------------------
class ProductRestock(BaseModel):
    quantity: int = Field(gt=0)


class ProductStatusUpdate(BaseModel):
    is_archived: bool


# -------------------------------
# Output
# -------------------------------
class ProductOut(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    unit_price: Decimal
    opening_stock: int
    is_archived: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------
# Read shape used by stock accounting
# ---------------------------------
class ProductAccountingRead(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    unit_price: Decimal
    opening_stock: int

    model_config = ConfigDict(from_attributes=True)
