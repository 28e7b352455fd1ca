import io
import json
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

import pandas as pd
from fastapi import HTTPException
from loguru import logger
from sqlalchemy.orm import Session

from honesty_store.config import settings
from honesty_store.orders import service as order_service
from honesty_store.stock.accounting import engine, filters, schemas
from honesty_store.stock.accounting.models import DailyInventory
from honesty_store.stock.accounting.rows import UNCATEGORIZED, StockRow, format_sales
from honesty_store.stock.products import service as product_service
from honesty_store.stock.products.models import Product
from honesty_store.timeutils import day_bounds, store_today

EXPORT_HEADERS = [
    "Product",
    "Order Count",
    "Opening Stock",
    "Additional Stock",
    "Estimated Closing Stock",
    "Actual Closing Stock",
    "Wasted Stock",
    "Stolen Stock",
    "Sales",
]

# history ranges longer than this are allowed but flagged
LARGE_RANGE_DAYS = 365


def opening_stock_frozen() -> bool:
    # Once saves write the actual count back to the product, the product's
    # stock no longer describes the start of an already saved day.
    return settings.FREEZE_OPENING_STOCK or settings.SYNC_PRODUCT_STOCK


# --------------------------
# Read: saved movements for a date
# --------------------------
def get_saved_records(db: Session, day: date) -> List[DailyInventory]:
    start, end = day_bounds(day)
    return (
        db.query(DailyInventory)
        .filter(
            DailyInventory.created_at >= start,
            DailyInventory.created_at <= end,
        )
        .order_by(DailyInventory.id.asc())
        .all()
    )


def load_saved_movements(db: Session, day: date) -> Dict[int, schemas.SavedMovement]:
    return {
        product_id: schemas.SavedMovement.model_validate(record)
        for product_id, record in engine.index_by_product(get_saved_records(db, day)).items()
    }


# --------------------------
# Read: reconciliation rows for a date
# --------------------------
def load_rows(db: Session, day: Optional[date] = None) -> List[StockRow]:
    day = day or store_today()

    products = product_service.list_active_products(db)
    saved = load_saved_movements(db, day)

    order_counts = None
    if settings.ORDER_COUNT_SOURCE == "orders":
        order_counts = order_service.order_counts_for_date(db, day)

    rows = engine.build_rows(
        products,
        saved,
        order_counts=order_counts,
        freeze_opening_stock=opening_stock_frozen(),
    )

    logger.info(
        f"Loaded {len(rows)} stock accounting rows for {day} "
        f"({len(saved)} saved, order counts from {settings.ORDER_COUNT_SOURCE})"
    )
    return rows


def get_accounting_view(
    db: Session,
    day: Optional[date] = None,
    category: str = filters.ALL,
    low_stock: bool = False,
    threshold: Optional[int] = None,
) -> schemas.StockAccountingOut:
    day = day or store_today()
    threshold = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold

    rows = load_rows(db, day)

    visible = filters.filter_by_category(rows, category)
    if low_stock:
        visible = filters.filter_low_stock(visible, threshold)

    total_sales = sum((row.sales for row in visible), Decimal("0"))

    return schemas.StockAccountingOut(
        date=day,
        rows=visible,
        categories=filters.list_categories(rows),
        total_products=len(rows),
        low_stock_count=filters.count_low_stock(rows, threshold),
        low_stock_threshold=threshold,
        total_sales=total_sales,
        total_sales_display=format_sales(total_sales, settings.CURRENCY_SYMBOL),
    )


# --------------------------
# Write: save rows for a date
# --------------------------
def save_rows(
    db: Session,
    day: date,
    rows: List[schemas.SaveRowIn],
    operator_id: Optional[str] = None,
) -> schemas.SaveResult:
    product_ids = [r.product_id for r in rows]
    if len(product_ids) != len(set(product_ids)):
        raise HTTPException(
            status_code=400,
            detail="Each product may appear only once per save"
        )

    products = {
        p.id: p
        for p in db.query(Product).filter(Product.id.in_(product_ids)).all()
    }
    missing = [pid for pid in product_ids if pid not in products]
    if missing:
        raise HTTPException(
            status_code=404,
            detail=f"Products not found: {missing}"
        )

    # Derived fields are recomputed here from the inputs and the stored price.
    stock_rows = [
        StockRow(
            id=r.id,
            product_id=r.product_id,
            product=products[r.product_id].name,
            category=products[r.product_id].category or UNCATEGORIZED,
            opening_stock=r.opening_stock,
            additional_stock=r.additional_stock,
            order_count=r.order_count,
            actual_closing_stock=r.actual_closing_stock,
            wasted_stock=r.wastage_stock,
            unit_price=products[r.product_id].unit_price,
        )
        for r in rows
    ]
    payload = engine.to_persistence_payload(stock_rows, day)

    start, _ = day_bounds(day)
    existing = get_saved_records(db, day)
    by_id = {m.id: m for m in existing}
    by_product = engine.index_by_product(existing)

    created = 0
    updated = 0

    try:
        for record in payload:
            db_record = by_id.get(record.id) if record.id is not None else None

            if db_record is not None and db_record.product_id != record.product_id:
                raise HTTPException(
                    status_code=400,
                    detail=f"Row {record.id} belongs to another product"
                )

            if db_record is None:
                db_record = by_product.get(record.product_id)

            if db_record is None:
                db_record = DailyInventory(
                    product_id=record.product_id,
                    created_at=start,
                    created_by=operator_id,
                )
                db.add(db_record)
                created += 1
            else:
                updated += 1
                if operator_id:
                    db_record.created_by = operator_id

            db_record.opening_stock = record.opening_stock
            db_record.additional_stock = record.additional_stock
            db_record.order_count = record.order_count
            db_record.actual_closing_stock = record.actual_closing_stock
            db_record.wastage_stock = record.wastage_stock
            db_record.estimated_closing_stock = record.estimated_closing_stock
            db_record.stolen_stock = record.stolen_stock
            db_record.sales = record.sales

            if settings.SYNC_PRODUCT_STOCK:
                products[record.product_id].opening_stock = record.actual_closing_stock

        db.commit()

    except HTTPException:
        db.rollback()
        raise

    except Exception as e:
        db.rollback()
        logger.exception(f"Failed to save inventory data for {day}: {e}")
        raise HTTPException(
            status_code=500,
            detail="Failed to save inventory data"
        )

    logger.info(
        f"Saved stock accounting for {day}: {created} created, {updated} updated"
        f" by {operator_id or 'system'}"
    )

    return schemas.SaveResult(
        success=True,
        message="Inventory data saved successfully",
        date=day,
        saved=len(payload),
        created=created,
        updated=updated,
    )


# --------------------------
# Read: history across dates
# --------------------------
def list_history(
    db: Session,
    start_date: date,
    end_date: date,
    category: str = filters.ALL,
    product: str = filters.ALL,
) -> schemas.HistoryOut:
    if start_date > store_today():
        raise HTTPException(status_code=400, detail="Start date cannot be in the future")

    if end_date < start_date:
        raise HTTPException(status_code=400, detail="End date must be on or after start date")

    start, _ = day_bounds(start_date)
    _, end = day_bounds(end_date)

    results = (
        db.query(DailyInventory, Product.name, Product.category)
        .join(Product, Product.id == DailyInventory.product_id)
        .filter(
            DailyInventory.created_at >= start,
            DailyInventory.created_at <= end,
        )
        .order_by(DailyInventory.created_at.desc(), Product.name.asc())
        .all()
    )

    records = [
        schemas.HistoryRecord(
            id=record.id,
            product_id=record.product_id,
            product=product_name,
            category=product_category or UNCATEGORIZED,
            opening_stock=record.opening_stock,
            additional_stock=record.additional_stock,
            order_count=record.order_count,
            actual_closing_stock=record.actual_closing_stock,
            wastage_stock=record.wastage_stock,
            estimated_closing_stock=record.estimated_closing_stock,
            stolen_stock=record.stolen_stock,
            sales=record.sales,
            variance=record.estimated_closing_stock - record.actual_closing_stock,
            created_at=record.created_at,
            created_by=record.created_by,
        )
        for record, product_name, product_category in results
    ]

    records = filters.filter_by_category(records, category)
    records = filters.filter_by_product(records, product)

    return schemas.HistoryOut(
        start_date=start_date,
        end_date=end_date,
        large_range=(end_date - start_date).days > LARGE_RANGE_DAYS,
        records=records,
        summary=filters.summarize(records),
    )


# --------------------------
# Export: one date as CSV or JSON
# --------------------------
def export_day(db: Session, day: date, fmt: str = "csv"):
    start, end = day_bounds(day)

    results = (
        db.query(DailyInventory, Product.name)
        .outerjoin(Product, Product.id == DailyInventory.product_id)
        .filter(
            DailyInventory.created_at >= start,
            DailyInventory.created_at <= end,
        )
        .order_by(Product.name.asc())
        .all()
    )

    data = [
        [
            product_name or "Unknown",
            record.order_count,
            record.opening_stock,
            record.additional_stock,
            record.estimated_closing_stock,
            record.actual_closing_stock,
            record.wastage_stock,
            record.stolen_stock,
            float(Decimal(record.sales)),
        ]
        for record, product_name in results
    ]

    logger.info(f"Exporting {len(data)} stock accounting records for {day} as {fmt}")

    if fmt == "csv":
        df = pd.DataFrame(data, columns=EXPORT_HEADERS)
        buffer = io.StringIO()
        df.to_csv(buffer, index=False)
        return buffer.getvalue()

    if fmt == "json":
        return json.dumps({"headers": EXPORT_HEADERS, "data": data})

    raise HTTPException(status_code=400, detail=f"Unsupported export format: {fmt}")
