from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from honesty_store.database import get_db
from honesty_store.stock.products import schemas, service
from honesty_store.users.permissions import admin_required
from honesty_store.users.schemas import UserDisplaySchema


router = APIRouter()


@router.post(
    "/",
    response_model=schemas.ProductOut,
    status_code=status.HTTP_201_CREATED
)
def create_product(
    product: schemas.ProductCreate,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    return service.create_product(db, product)


@router.get("/", response_model=List[schemas.ProductOut])
def list_products(
    category: Optional[str] = None,
    name: Optional[str] = None,
    include_archived: bool = False,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    return service.get_products(
        db,
        category=category,
        name=name,
        include_archived=include_archived,
    )


@router.get("/categories", response_model=List[str])
def list_categories(
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    """
    Distinct product categories, for filter dropdowns
    """
    return service.list_categories(db)


@router.get("/{product_id}", response_model=schemas.ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    product = service.get_product_by_id(db, product_id)

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    return product


@router.put("/{product_id}", response_model=schemas.ProductOut)
def update_product(
    product_id: int,
    product: schemas.ProductUpdate,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    updated_product = service.update_product(db, product_id, product)

    if not updated_product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    return updated_product


@router.post("/{product_id}/restock", response_model=schemas.ProductOut)
def restock_product(
    product_id: int,
    payload: schemas.ProductRestock,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    product = service.restock_product(db, product_id, payload.quantity)

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    return product


@router.patch("/{product_id}/status", response_model=schemas.ProductOut)
def update_product_status(
    product_id: int,
    payload: schemas.ProductStatusUpdate,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required),
):
    product = service.update_product_status(db, product_id, payload.is_archived)

    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    return product
