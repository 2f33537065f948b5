from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from goldshop.core.config import Settings
from goldshop.core.deps import get_app_settings, get_db
from goldshop.models.gold_price import GoldPrice
from goldshop.services.product_service import get_current_gold_price
from goldshop.services.recalculation import apply_new_gold_price

router = APIRouter()


class GoldPriceUpdate(BaseModel):
    price_per_gram: Decimal
    carat: Optional[str] = "24K"


class GoldPriceOut(BaseModel):
    id: int
    price_per_gram: float
    carat: str
    currency: str
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PriceChangeOut(BaseModel):
    product_id: int
    name: str
    old_price: float
    new_price: float
    percent_change: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class GoldPriceUpdateResponse(BaseModel):
    success: bool
    message: str
    updated_count: int
    gold_price: GoldPriceOut
    details: List[PriceChangeOut]


@router.get("")
def read_gold_price(db: Session = Depends(get_db)):
    """Latest gold price, or a zero price when none has been posted"""
    gold_price = get_current_gold_price(db)
    if gold_price is None:
        return {"price_per_gram": 0}
    return GoldPriceOut.model_validate(gold_price)


@router.get("/history", response_model=List[GoldPriceOut])
def read_gold_price_history(
    limit: int = Query(30, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return (
        db.query(GoldPrice)
        .order_by(GoldPrice.updated_at.desc(), GoldPrice.id.desc())
        .limit(limit)
        .all()
    )


@router.post("", response_model=GoldPriceUpdateResponse)
def update_gold_price(
    data: GoldPriceUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Post a new gold price and reprice every active product in one transaction"""
    result = apply_new_gold_price(db, data.price_per_gram, carat=data.carat, currency=settings.currency)
    price = result.gold_price
    return GoldPriceUpdateResponse(
        success=True,
        message=f"Gold price updated to {price.price_per_gram} {price.currency}",
        updated_count=result.updated_count,
        gold_price=GoldPriceOut.model_validate(price),
        details=[PriceChangeOut.model_validate(change) for change in result.details],
    )
