from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import Literal, Optional
from datetime import date
from loguru import logger

from honesty_store.database import get_db
from honesty_store.stock.accounting import engine, schemas, service
from honesty_store.timeutils import store_today
from honesty_store.users.permissions import admin_required
from honesty_store.users.schemas import UserDisplaySchema

router = APIRouter()


@router.get("/", response_model=schemas.StockAccountingOut)
def get_stock_accounting(
    date: Optional[date] = None,
    category: str = "all",
    low_stock: bool = False,
    threshold: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    """
    One reconciliation row per active product for the date (default today),
    merged with anything already saved for that date.
    """
    return service.get_accounting_view(
        db,
        day=date,
        category=category,
        low_stock=low_stock,
        threshold=threshold,
    )


@router.post("/edit", response_model=schemas.StockEditOut)
def edit_stock_row(
    payload: schemas.StockEditRequest,
    current_user: UserDisplaySchema = Depends(admin_required),
):
    """
    Apply one field edit to the posted rows and return them with the edited
    row's estimated closing, stolen stock and sales recalculated.
    """
    if payload.row_id is not None:
        target, key = payload.row_id, "id"
    else:
        target, key = payload.product_id, "product_id"

    try:
        rows = engine.apply_edit(payload.rows, target, payload.field, payload.value, key=key)
    except engine.StockRowNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except engine.InvalidStockInput as e:
        logger.warning(f"Rejected stock edit: {e}")
        raise HTTPException(
            status_code=422,
            detail={
                "message": str(e),
                "field": e.field,
                "row": e.row_key,
            },
        )

    return {"rows": rows}


@router.post("/save", response_model=schemas.SaveResult)
def save_stock_accounting(
    payload: schemas.SaveRequest,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    day = payload.date or store_today()
    return service.save_rows(db, day, payload.rows, operator_id=current_user.id)


@router.get("/history", response_model=schemas.HistoryOut)
def stock_accounting_history(
    start_date: date,
    end_date: date,
    category: str = "all",
    product: str = "all",
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    return service.list_history(
        db,
        start_date=start_date,
        end_date=end_date,
        category=category,
        product=product,
    )


@router.get("/export")
def export_stock_accounting(
    date: Optional[date] = None,
    format: Literal["csv", "json"] = "csv",
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    day = date or store_today()
    content = service.export_day(db, day, format)

    if format == "csv":
        return Response(
            content=content,
            media_type="text/csv",
            headers={
                "Content-Disposition": f'attachment; filename="daily-inventory-{day}.csv"'
            },
        )

    return Response(content=content, media_type="application/json")
