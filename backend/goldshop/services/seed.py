import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from goldshop.core.config import Settings
from goldshop.models.gold_price import GoldPrice
from goldshop.models.product import Product
from goldshop.services.jewelry_seed import seed_jewelry_demo


logger = logging.getLogger(__name__)


def seed_defaults(db: Session, settings: Settings) -> None:
    """Insert the default gold price when none has ever been posted."""
    if db.query(GoldPrice).first():
        return
    db.add(
        GoldPrice(
            price_per_gram=Decimal(str(settings.default_gold_price)),
            carat="24K",
            currency=settings.currency,
        )
    )
    db.commit()
    logger.info("Added default gold price %s %s/g", settings.default_gold_price, settings.currency)


def seed_demo(db: Session, settings: Settings) -> None:
    seed_defaults(db, settings)
    if db.query(Product).first():
        return
    seed_jewelry_demo(db)
