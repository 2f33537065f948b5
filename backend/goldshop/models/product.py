from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, Text
from sqlalchemy.orm import relationship

from goldshop.models.base import Base
from goldshop.models.gold_price import utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Pricing inputs
    weight = Column(Numeric(10, 3), nullable=False)  # Weight in grams
    carat = Column(String(10), nullable=False, default="24K", index=True)
    making_charges = Column(Numeric(7, 2), nullable=False, default=5)  # % of gold value
    profit_margin = Column(Numeric(7, 2), nullable=False, default=10)  # % of gold value + making charges

    # Cached output of the pricing function at the last recalculation
    selling_price = Column(Numeric(12, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    price_history = relationship(
        "PriceHistoryEntry",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
