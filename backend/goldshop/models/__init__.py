from .base import Base
from .gold_price import GoldPrice
from .product import Product
from .price_history import PriceHistoryEntry

__all__ = ["Base", "GoldPrice", "Product", "PriceHistoryEntry"]
