from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, String, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from honesty_store.database import Base


class DailyInventory(Base):
    __tablename__ = "daily_inventory"

    id = Column(Integer, primary_key=True, index=True)

    product_id = Column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product = relationship("Product")

    opening_stock = Column(Integer, nullable=False, default=0)
    additional_stock = Column(Integer, nullable=False, default=0)
    order_count = Column(Integer, nullable=False, default=0)
    actual_closing_stock = Column(Integer, nullable=False, default=0)
    wastage_stock = Column(Integer, nullable=False, default=0)

    estimated_closing_stock = Column(Integer, nullable=False, default=0)
    stolen_stock = Column(Integer, nullable=False, default=0)
    sales = Column(Numeric(12, 2), nullable=False, default=0)

    # midnight of the accounting date
    created_at = Column(DateTime, nullable=False, index=True)
    created_by = Column(String, nullable=True)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint(
            "product_id",
            "created_at",
            name="uq_daily_inventory_product_date"
        ),
    )
