from datetime import date
from typing import Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from honesty_store.orders.models import OrderItem
from honesty_store.timeutils import utc_day_bounds


def order_counts_for_date(db: Session, day: date) -> Dict[int, int]:
    """Units ordered per product on ``day`` (a store-local calendar date)."""
    start, end = utc_day_bounds(day)

    rows = (
        db.query(
            OrderItem.product_id,
            func.coalesce(func.sum(OrderItem.quantity), 0).label("quantity"),
        )
        .filter(
            OrderItem.product_id.isnot(None),
            OrderItem.created_at >= start,
            OrderItem.created_at <= end,
        )
        .group_by(OrderItem.product_id)
        .all()
    )

    return {r.product_id: int(r.quantity) for r in rows}
