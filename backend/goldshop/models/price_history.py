from sqlalchemy import Column, Integer, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from goldshop.models.base import Base
from goldshop.models.gold_price import utcnow


class PriceHistoryEntry(Base):
    """Append-only record of one selling price change."""

    __tablename__ = "price_history"
    __table_args__ = (
        Index("ix_price_history_product_changed", "product_id", "changed_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)

    old_price = Column(Numeric(12, 2), nullable=False)
    new_price = Column(Numeric(12, 2), nullable=False)
    gold_price = Column(Numeric(12, 2), nullable=False)  # Gold price per gram used for new_price

    changed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    product = relationship("Product", back_populates="price_history")
