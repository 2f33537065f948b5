from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Numeric, DateTime

from goldshop.models.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GoldPrice(Base):
    """One posted gold price. Rows are never updated; a new price is a new row."""

    __tablename__ = "gold_prices"

    id = Column(Integer, primary_key=True, index=True)

    # Price per gram of pure gold, in `currency`
    price_per_gram = Column(Numeric(12, 2), nullable=False)
    carat = Column(String(10), nullable=False, default="24K")
    currency = Column(String(3), nullable=False, default="EGP")

    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<GoldPrice {self.price_per_gram} {self.currency} @ {self.updated_at}>"
