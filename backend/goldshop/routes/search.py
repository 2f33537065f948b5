import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from goldshop.core.deps import get_db
from goldshop.routes.products import ProductOut
from goldshop.services import product_service


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/search/products", response_model=List[ProductOut])
def search_products(
    q: Optional[str] = Query(None, description="Search by name or description"),
    category: Optional[str] = Query(None),
    carat: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    logger.info(
        "search_products q=%s category=%s carat=%s price=%s..%s", q, category, carat, min_price, max_price
    )
    return product_service.search_products(
        db,
        q=q,
        category=category,
        carat=carat,
        min_price=min_price,
        max_price=max_price,
    )


@router.get("/categories", response_model=List[str])
def list_categories(db: Session = Depends(get_db)):
    return product_service.list_categories(db)
