from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from goldshop.core.deps import get_db
from goldshop.routes.gold_price import PriceChangeOut
from goldshop.services.recalculation import repair_prices, verify_prices

router = APIRouter()


class PriceMismatchOut(BaseModel):
    product_id: int
    name: str
    stored_price: float
    expected_price: float
    gold_price: float

    model_config = ConfigDict(from_attributes=True)


class ConsistencyReport(BaseModel):
    consistent: bool
    mismatches: List[PriceMismatchOut]


class RepairResponse(BaseModel):
    success: bool
    updated_count: int
    gold_price: Optional[float] = None
    details: List[PriceChangeOut]


@router.get("/price-consistency", response_model=ConsistencyReport)
def check_price_consistency(db: Session = Depends(get_db)):
    """Compare stored selling prices with a fresh recomputation"""
    mismatches = verify_prices(db)
    return ConsistencyReport(
        consistent=not mismatches,
        mismatches=[PriceMismatchOut.model_validate(m) for m in mismatches],
    )


@router.post("/price-consistency/repair", response_model=RepairResponse)
def repair_price_consistency(db: Session = Depends(get_db)):
    """Reprice drifted products against the current gold price"""
    result = repair_prices(db)
    return RepairResponse(
        success=True,
        updated_count=result.updated_count,
        gold_price=float(result.gold_price.price_per_gram),
        details=[PriceChangeOut.model_validate(change) for change in result.details],
    )
