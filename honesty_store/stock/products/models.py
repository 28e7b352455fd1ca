from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean
from datetime import datetime
from honesty_store.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)

    category = Column(String, nullable=True, index=True)

    unit_price = Column(Numeric(10, 2), nullable=False, default=0)

    # current authoritative stock level; the day's accounting baseline
    opening_stock = Column(Integer, nullable=False, default=0)

    is_archived = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
