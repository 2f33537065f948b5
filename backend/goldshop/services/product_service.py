"""
Product catalogue operations: create, update, lookups and search.

Every price written here is computed against the gold price read from the
database at call time.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from goldshop.core.errors import InvalidInput, NotFound
from goldshop.models.gold_price import GoldPrice, utcnow
from goldshop.models.price_history import PriceHistoryEntry
from goldshop.models.product import Product
from goldshop.services.pricing import (
    MAX_MONEY,
    PURITY_FACTORS,
    clean_percent,
    clean_weight,
    compute_price,
    normalize_carat,
    to_decimal,
)


logger = logging.getLogger(__name__)

DEFAULT_MAKING_CHARGES = Decimal("5.00")
DEFAULT_PROFIT_MARGIN = Decimal("10.00")
PRICE_HISTORY_LIMIT = 50

# Fields that feed the pricing function
PRICING_FIELDS = ("weight", "carat", "making_charges", "profit_margin")
PLAIN_FIELDS = ("name", "description", "category", "stock_quantity", "is_active")


def get_current_gold_price(db: Session) -> Optional[GoldPrice]:
    return (
        db.query(GoldPrice)
        .order_by(GoldPrice.updated_at.desc(), GoldPrice.id.desc())
        .first()
    )


def _require_gold_price(db: Session) -> GoldPrice:
    gold_price = get_current_gold_price(db)
    if gold_price is None:
        raise InvalidInput("No gold price has been set yet")
    return gold_price


def _clean_carat(value: Any) -> str:
    label = normalize_carat(value)
    if label not in PURITY_FACTORS:
        raise InvalidInput(f"Unknown carat '{value}'. Expected one of: {', '.join(PURITY_FACTORS)}")
    return label


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _clean_stock(value: Any) -> int:
    if value is None:
        return 0
    try:
        stock = int(value)
    except (TypeError, ValueError):
        raise InvalidInput("stock_quantity must be an integer")
    if stock < 0:
        raise InvalidInput("stock_quantity must not be negative")
    return stock


def _price_within_limits(weight, carat, making_charges, profit_margin, price_per_gram):
    breakdown = compute_price(weight, carat, making_charges, profit_margin, price_per_gram)
    if breakdown.selling_price > MAX_MONEY:
        raise InvalidInput(f"selling price {breakdown.selling_price} exceeds {MAX_MONEY}")
    return breakdown


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def create_product(db: Session, data: Dict[str, Any]) -> Product:
    missing = [f for f in ("name", "weight", "carat") if data.get(f) in (None, "")]
    if missing:
        raise InvalidInput(f"Missing required fields: {', '.join(missing)}")

    name = _clean_text(data["name"])
    if not name:
        raise InvalidInput("name must not be blank")
    carat = _clean_carat(data["carat"])
    # Inputs are rounded to their column scale so the stored row reprices exactly
    weight = clean_weight(data["weight"])
    making_charges = data.get("making_charges")
    making_charges = DEFAULT_MAKING_CHARGES if making_charges is None else clean_percent(making_charges, "making_charges")
    profit_margin = data.get("profit_margin")
    profit_margin = DEFAULT_PROFIT_MARGIN if profit_margin is None else clean_percent(profit_margin, "profit_margin")
    stock = _clean_stock(data.get("stock_quantity"))

    gold_price = _require_gold_price(db)
    breakdown = _price_within_limits(weight, carat, making_charges, profit_margin, gold_price.price_per_gram)

    now = utcnow()
    product = Product(
        name=name,
        description=_clean_text(data.get("description")),
        category=_clean_text(data.get("category")),
        stock_quantity=stock,
        is_active=True,
        weight=weight,
        carat=carat,
        making_charges=making_charges,
        profit_margin=profit_margin,
        selling_price=breakdown.selling_price,
        created_at=now,
        updated_at=now,
    )
    db.add(product)
    _commit(db)
    db.refresh(product)
    logger.info("Created product %s '%s' at %s", product.id, product.name, breakdown.selling_price)
    return product


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFound(f"Product {product_id} not found")
    return product


def _pricing_changes(product: Product, changes: Dict[str, Any]) -> Dict[str, Any]:
    """Normalized pricing inputs from `changes` that differ from the stored ones."""
    cleaned: Dict[str, Any] = {}
    for name in PRICING_FIELDS:
        if name not in changes or changes[name] is None:
            continue
        if name == "carat":
            value = _clean_carat(changes[name])
            if value != product.carat:
                cleaned[name] = value
        else:
            if name == "weight":
                value = clean_weight(changes[name])
            else:
                value = clean_percent(changes[name], name)
            if Decimal(getattr(product, name)) != value:
                cleaned[name] = value
    return cleaned


def update_product(db: Session, product_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply a partial update.

    Returns ``{"product": Product, "price_changed": bool}``. The selling price
    is recomputed only when a pricing input actually changes, and then one
    history row is appended in the same commit.
    """
    product = get_product(db, product_id)
    pricing = _pricing_changes(product, changes)

    plain: Dict[str, Any] = {}
    for name in PLAIN_FIELDS:
        if name not in changes:
            continue
        value = changes[name]
        if name == "name":
            value = _clean_text(value)
            if not value:
                raise InvalidInput("name must not be blank")
        elif name in ("description", "category"):
            value = _clean_text(value)
        elif name == "stock_quantity":
            value = _clean_stock(value)
        elif name == "is_active":
            if value is None:
                continue
            value = bool(value)
        plain[name] = value

    price_changed = False
    now = utcnow()
    if pricing:
        merged = {f: pricing.get(f, getattr(product, f)) for f in PRICING_FIELDS}
        gold_price = _require_gold_price(db)
        breakdown = _price_within_limits(
            merged["weight"],
            merged["carat"],
            merged["making_charges"],
            merged["profit_margin"],
            gold_price.price_per_gram,
        )
        db.add(
            PriceHistoryEntry(
                product_id=product.id,
                old_price=product.selling_price,
                new_price=breakdown.selling_price,
                gold_price=gold_price.price_per_gram,
                changed_at=now,
            )
        )
        for name, value in pricing.items():
            setattr(product, name, value)
        product.selling_price = breakdown.selling_price
        # updated_at tracks the last price write
        product.updated_at = now
        price_changed = True

    for name, value in plain.items():
        setattr(product, name, value)

    _commit(db)
    db.refresh(product)
    logger.info(
        "Updated product %s fields=%s price_changed=%s",
        product.id, sorted(list(pricing) + list(plain)), price_changed,
    )
    return {"product": product, "price_changed": price_changed}


def list_products(db: Session, include_inactive: bool = False) -> List[Product]:
    query = db.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()


def get_price_history(db: Session, product_id: int, limit: int = PRICE_HISTORY_LIMIT) -> List[PriceHistoryEntry]:
    get_product(db, product_id)
    return (
        db.query(PriceHistoryEntry)
        .filter(PriceHistoryEntry.product_id == product_id)
        .order_by(PriceHistoryEntry.changed_at.desc(), PriceHistoryEntry.id.desc())
        .limit(limit)
        .all()
    )


def search_products(
    db: Session,
    q: Optional[str] = None,
    category: Optional[str] = None,
    carat: Optional[str] = None,
    min_price=None,
    max_price=None,
    include_inactive: bool = False,
) -> List[Product]:
    query = db.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    if q:
        qn = q.strip().lower()
        if qn:
            query = query.filter(
                or_(
                    func.lower(Product.name).like(f"%{qn}%"),
                    func.lower(Product.description).like(f"%{qn}%"),
                )
            )
    if category:
        query = query.filter(Product.category == category.strip())
    if carat:
        query = query.filter(Product.carat == normalize_carat(carat))
    if min_price is not None:
        query = query.filter(Product.selling_price >= to_decimal(min_price, "min_price"))
    if max_price is not None:
        query = query.filter(Product.selling_price <= to_decimal(max_price, "max_price"))
    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()


def list_categories(db: Session) -> List[str]:
    rows = (
        db.query(Product.category)
        .filter(Product.is_active.is_(True), Product.category.isnot(None))
        .distinct()
        .order_by(Product.category)
        .all()
    )
    return [row[0] for row in rows]
