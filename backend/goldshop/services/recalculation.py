"""
Gold price updates and the batch repricing they trigger.

A new gold price, the repriced products and their history rows are written
in one transaction: either every active product moves to the new price or
nothing changes.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from goldshop.core.errors import InvalidInput, RecalculationAborted
from goldshop.models.gold_price import GoldPrice, utcnow
from goldshop.models.price_history import PriceHistoryEntry
from goldshop.models.product import Product
from goldshop.services.pricing import (
    PURITY_FACTORS,
    compute_product_price,
    normalize_carat,
    validate_gold_price,
)
from goldshop.services.product_service import get_current_gold_price


logger = logging.getLogger(__name__)


@dataclass
class PriceChange:
    product_id: int
    name: str
    old_price: Decimal
    new_price: Decimal
    percent_change: Optional[Decimal]


@dataclass
class RecalculationResult:
    gold_price: GoldPrice
    details: List[PriceChange] = field(default_factory=list)

    @property
    def updated_count(self) -> int:
        return len(self.details)


@dataclass
class PriceMismatch:
    product_id: int
    name: str
    stored_price: Decimal
    expected_price: Decimal
    gold_price: Decimal


def percent_change(old_price: Decimal, new_price: Decimal) -> Optional[Decimal]:
    """Relative change in percent; None when the old price was zero."""
    old_price = Decimal(old_price)
    if old_price == 0:
        return None
    change = (Decimal(new_price) - old_price) / old_price * Decimal(100)
    return change.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def record_price_change(
    db: Session,
    product: Product,
    new_price: Decimal,
    gold_price: Decimal,
    changed_at: datetime,
) -> PriceChange:
    """Append a history row and store the new selling price. Does not commit."""
    old_price = Decimal(product.selling_price if product.selling_price is not None else 0)
    db.add(
        PriceHistoryEntry(
            product_id=product.id,
            old_price=old_price,
            new_price=new_price,
            gold_price=gold_price,
            changed_at=changed_at,
        )
    )
    product.selling_price = new_price
    product.updated_at = changed_at
    db.flush()
    return PriceChange(
        product_id=product.id,
        name=product.name,
        old_price=old_price,
        new_price=new_price,
        percent_change=percent_change(old_price, new_price),
    )


def _reprice(db: Session, products: List[Product], gold_price: GoldPrice, changed_at: datetime) -> RecalculationResult:
    result = RecalculationResult(gold_price=gold_price)
    price_per_gram = Decimal(gold_price.price_per_gram)
    for product in products:
        try:
            breakdown = compute_product_price(product, price_per_gram)
            change = record_price_change(db, product, breakdown.selling_price, price_per_gram, changed_at)
        except (SQLAlchemyError, InvalidInput) as e:
            db.rollback()
            logger.error(
                "Repricing rolled back at product %s (%s of %s done): %s",
                product.id, result.updated_count, len(products), e,
            )
            raise RecalculationAborted(result.updated_count, len(products), product.id, str(e)) from e
        result.details.append(change)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Repricing commit failed for %s products: %s", len(products), e)
        raise RecalculationAborted(result.updated_count, len(products), None, str(e)) from e
    return result


def _active_products_for_update(db: Session) -> List[Product]:
    # Row locks keep two concurrent batches from interleaving
    return (
        db.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.id)
        .with_for_update()
        .all()
    )


def apply_new_gold_price(
    db: Session,
    price_per_gram,
    carat: Optional[str] = "24K",
    currency: str = "EGP",
) -> RecalculationResult:
    """
    Record a new gold price and reprice every active product against it.

    Raises:
        InvalidInput: price is missing, non-numeric, non-finite or <= 0.
            Nothing is written in that case.
        RecalculationAborted: a product failed mid-batch; the whole batch,
            including the new gold price row, was rolled back.
    """
    price = validate_gold_price(price_per_gram)
    label = normalize_carat(carat) or "24K"
    if label not in PURITY_FACTORS:
        raise InvalidInput(f"Unknown carat '{carat}'. Expected one of: {', '.join(PURITY_FACTORS)}")

    now = utcnow()
    gold_price = GoldPrice(price_per_gram=price, carat=label, currency=currency, updated_at=now)
    try:
        db.add(gold_price)
        db.flush()
    except SQLAlchemyError:
        db.rollback()
        raise

    products = _active_products_for_update(db)
    result = _reprice(db, products, gold_price, now)
    logger.info("Gold price set to %s %s/g; repriced %s products", price, currency, result.updated_count)
    return result


def _gold_price_in_effect(db: Session, at: datetime) -> Optional[GoldPrice]:
    row = (
        db.query(GoldPrice)
        .filter(GoldPrice.updated_at <= at)
        .order_by(GoldPrice.updated_at.desc(), GoldPrice.id.desc())
        .first()
    )
    if row is None:
        row = db.query(GoldPrice).order_by(GoldPrice.updated_at.asc(), GoldPrice.id.asc()).first()
    return row


def verify_prices(db: Session, tolerance: Decimal = Decimal("0.01")) -> List[PriceMismatch]:
    """
    Recompute every active product against the gold price that was current
    when it was last written and report those whose stored price drifted.
    """
    mismatches: List[PriceMismatch] = []
    products = db.query(Product).filter(Product.is_active.is_(True)).order_by(Product.id).all()
    for product in products:
        gold_price = _gold_price_in_effect(db, product.updated_at)
        if gold_price is None:
            break
        expected = compute_product_price(product, gold_price.price_per_gram).selling_price
        stored = Decimal(product.selling_price)
        if abs(stored - expected) > tolerance:
            mismatches.append(
                PriceMismatch(
                    product_id=product.id,
                    name=product.name,
                    stored_price=stored,
                    expected_price=expected,
                    gold_price=Decimal(gold_price.price_per_gram),
                )
            )
    if mismatches:
        logger.warning("Found %s products with stale selling prices", len(mismatches))
    return mismatches


def repair_prices(db: Session) -> RecalculationResult:
    """Reprice the products reported by verify_prices against the current gold price."""
    current = get_current_gold_price(db)
    if current is None:
        raise InvalidInput("No gold price has been set yet")

    ids = [m.product_id for m in verify_prices(db)]
    if not ids:
        return RecalculationResult(gold_price=current)

    products = (
        db.query(Product)
        .filter(Product.id.in_(ids))
        .order_by(Product.id)
        .with_for_update()
        .all()
    )
    result = _reprice(db, products, current, utcnow())
    logger.info("Repaired selling price of %s products", result.updated_count)
    return result
