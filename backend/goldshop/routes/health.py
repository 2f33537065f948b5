from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from goldshop.core.database import Store
from goldshop.core.deps import get_db, get_store
from goldshop.models.gold_price import GoldPrice
from goldshop.models.price_history import PriceHistoryEntry
from goldshop.models.product import Product

router = APIRouter()


@router.get("/health")
def health():
    return {
        "status": "online",
        "service": "Gold E-Commerce API",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/api/db-status")
def db_status(store: Store = Depends(get_store), db: Session = Depends(get_db)):
    """Connectivity check plus row counts; 503 when the database is unreachable"""
    store.health_check()
    return {
        "connected": True,
        "gold_prices": db.query(func.count(GoldPrice.id)).scalar(),
        "products": db.query(func.count(Product.id)).scalar(),
        "price_history": db.query(func.count(PriceHistoryEntry.id)).scalar(),
    }
