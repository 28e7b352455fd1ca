from sqlalchemy.orm import Session
from sqlalchemy import func
from fastapi import HTTPException
from typing import List, Optional
from loguru import logger

from honesty_store.stock.products import models, schemas


def _normalize_category(category: Optional[str]) -> Optional[str]:
    if category is None:
        return None
    category = category.strip()
    return category or None


def create_product(db: Session, product: schemas.ProductCreate):
    name = product.name.strip()

    exists = (
        db.query(models.Product)
        .filter(func.lower(models.Product.name) == name.lower())
        .first()
    )
    if exists:
        raise HTTPException(
            status_code=400,
            detail=f"Product '{name}' already exists."
        )

    db_product = models.Product(
        name=name,
        category=_normalize_category(product.category),
        unit_price=product.unit_price,
        opening_stock=product.opening_stock,
    )

    db.add(db_product)
    db.commit()
    db.refresh(db_product)

    logger.info(f"Product created: {db_product.name} (id={db_product.id})")
    return db_product


def get_products(
    db: Session,
    category: Optional[str] = None,
    name: Optional[str] = None,
    include_archived: bool = False,
):
    query = db.query(models.Product)

    if not include_archived:
        query = query.filter(models.Product.is_archived.is_(False))

    if category:
        query = query.filter(
            func.lower(models.Product.category) == category.lower().strip()
        )

    if name:
        query = query.filter(
            func.lower(models.Product.name).contains(name.lower().strip())
        )

    return query.order_by(models.Product.name.asc()).all()


def list_active_products(db: Session) -> List[dict]:
    """
    Product master list for stock accounting: every non-archived product,
    ordered by name, in the accounting read shape.
    """
    products = get_products(db)
    return [
        schemas.ProductAccountingRead.model_validate(p).model_dump()
        for p in products
    ]


def list_categories(db: Session) -> List[str]:
    rows = (
        db.query(models.Product.category)
        .filter(models.Product.category.isnot(None))
        .distinct()
        .order_by(models.Product.category.asc())
        .all()
    )
    return [r.category for r in rows]


def get_product_by_id(db: Session, product_id: int):
    return (
        db.query(models.Product)
        .filter(models.Product.id == product_id)
        .first()
    )


def update_product(
    db: Session,
    product_id: int,
    product: schemas.ProductUpdate
):
    db_product = get_product_by_id(db, product_id)
    if not db_product:
        return None

    update_data = product.model_dump(exclude_unset=True)

    if "name" in update_data:
        new_name = update_data["name"].strip()
        duplicate = (
            db.query(models.Product)
            .filter(
                models.Product.id != product_id,
                func.lower(models.Product.name) == new_name.lower(),
            )
            .first()
        )
        if duplicate:
            raise HTTPException(
                status_code=400,
                detail="Another product with this name already exists."
            )
        update_data["name"] = new_name

    if "category" in update_data:
        update_data["category"] = _normalize_category(update_data["category"])

    for field, value in update_data.items():
        setattr(db_product, field, value)

    db.commit()
    db.refresh(db_product)
    return db_product


def restock_product(db: Session, product_id: int, quantity: int):
    product = get_product_by_id(db, product_id)
    if not product:
        return None

    if quantity <= 0:
        raise HTTPException(
            status_code=400,
            detail="Restock quantity must be greater than 0"
        )

    previous = product.opening_stock or 0
    product.opening_stock = previous + quantity

    db.commit()
    db.refresh(product)

    logger.info(
        f"Restocked {product.name}: {previous} + {quantity} = {product.opening_stock}"
    )
    return product


def update_product_status(db: Session, product_id: int, is_archived: bool):
    product = get_product_by_id(db, product_id)
    if not product:
        return None

    product.is_archived = is_archived
    db.commit()
    db.refresh(product)

    return product
