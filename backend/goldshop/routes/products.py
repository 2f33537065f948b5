from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from goldshop.core.deps import get_db
from goldshop.services import product_service


router = APIRouter()


class ProductCreate(BaseModel):
    # name/weight/carat are checked by the service so a missing field
    # reports all missing names in one message
    name: Optional[str] = None
    weight: Optional[Decimal] = None
    carat: Optional[str] = None
    making_charges: Optional[Decimal] = None
    profit_margin: Optional[Decimal] = None
    category: Optional[str] = None
    description: Optional[str] = None
    stock_quantity: Optional[int] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    weight: Optional[Decimal] = None
    carat: Optional[str] = None
    making_charges: Optional[Decimal] = None
    profit_margin: Optional[Decimal] = None
    category: Optional[str] = None
    description: Optional[str] = None
    stock_quantity: Optional[int] = None
    is_active: Optional[bool] = None


class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    weight: float
    carat: str
    making_charges: float
    profit_margin: float
    selling_price: float
    category: Optional[str] = None
    stock_quantity: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PriceHistoryOut(BaseModel):
    id: int
    product_id: int
    old_price: float
    new_price: float
    gold_price: float
    changed_at: datetime

    model_config = ConfigDict(from_attributes=True)


@router.get("", response_model=List[ProductOut])
def list_products(
    include_inactive: bool = Query(False, description="Also return deactivated products"),
    db: Session = Depends(get_db),
):
    return product_service.list_products(db, include_inactive=include_inactive)


@router.post("")
def create_product(data: ProductCreate, db: Session = Depends(get_db)):
    product = product_service.create_product(db, data.model_dump())
    return {
        "success": True,
        "id": product.id,
        "selling_price": float(product.selling_price),
        "message": "Product added successfully!",
    }


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return product_service.get_product(db, product_id)


@router.put("/{product_id}")
def update_product(product_id: int, data: ProductUpdate, db: Session = Depends(get_db)):
    # Only fields present in the request body are applied
    result = product_service.update_product(db, product_id, data.model_dump(exclude_unset=True))
    product = result["product"]
    return {
        "success": True,
        "id": product.id,
        "selling_price": float(product.selling_price),
        "price_changed": result["price_changed"],
        "message": "Product updated successfully!",
    }


@router.get("/{product_id}/price-history", response_model=List[PriceHistoryOut])
def get_price_history(product_id: int, db: Session = Depends(get_db)):
    return product_service.get_price_history(db, product_id)
