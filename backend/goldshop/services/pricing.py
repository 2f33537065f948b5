"""
Gold jewelry selling price calculation.

    gold_value     = weight * price_per_gram * purity_factor
    making_charges = gold_value * making_charges% / 100
    base_cost      = gold_value + making_charges
    selling_price  = base_cost * (1 + profit_margin% / 100)

Each amount is rounded to 2 decimals (ROUND_HALF_UP) before it feeds the
next step, so stored prices can be reproduced exactly.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict

from goldshop.core.errors import InvalidInput


CENT = Decimal("0.01")
GRAM = Decimal("0.001")

# Largest values the database columns hold
MAX_MONEY = Decimal("9999999999.99")  # Numeric(12, 2)
MAX_WEIGHT = Decimal("9999999.999")  # Numeric(10, 3)
MAX_PERCENT = Decimal("99999.99")  # Numeric(7, 2)

# 22K uses 0.9167 (22/24 to four places)
PURITY_FACTORS: Dict[str, Decimal] = {
    "24K": Decimal("1.000"),
    "22K": Decimal("0.9167"),
    "21K": Decimal("0.875"),
    "18K": Decimal("0.750"),
    "14K": Decimal("0.585"),
    "10K": Decimal("0.417"),
}

DEFAULT_PURITY_FACTOR = Decimal("1")


@dataclass(frozen=True)
class PriceBreakdown:
    purity_factor: Decimal
    gold_value: Decimal
    making_charges: Decimal
    base_cost: Decimal
    selling_price: Decimal

    def as_dict(self) -> Dict[str, float]:
        return {
            "purity_factor": float(self.purity_factor),
            "gold_value": float(self.gold_value),
            "making_charges": float(self.making_charges),
            "base_cost": float(self.base_cost),
            "selling_price": float(self.selling_price),
        }


def normalize_carat(label: Any) -> str:
    return str(label or "").strip().upper()


def is_known_carat(label: Any) -> bool:
    return normalize_carat(label) in PURITY_FACTORS


def purity_factor(label: Any) -> Decimal:
    """Factor for a carat label; unknown labels count as pure gold."""
    return PURITY_FACTORS.get(normalize_carat(label), DEFAULT_PURITY_FACTOR)


def to_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise InvalidInput(f"{field} must be a number")
    try:
        # str() keeps floats like 10.5 from dragging binary noise along
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{field} must be a number")
    if not result.is_finite():
        raise InvalidInput(f"{field} must be a finite number")
    return result


def clean_amount(value: Any, field: str, step: Decimal, maximum: Decimal) -> Decimal:
    """Parse a number and round it to the scale of the column that stores it."""
    amount = to_decimal(value, field)
    if abs(amount) > maximum:
        raise InvalidInput(f"{field} must not exceed {maximum}")
    return amount.quantize(step, rounding=ROUND_HALF_UP)


def clean_weight(value: Any) -> Decimal:
    return clean_amount(value, "weight", GRAM, MAX_WEIGHT)


def clean_percent(value: Any, field: str) -> Decimal:
    return clean_amount(value, field, CENT, MAX_PERCENT)


def validate_gold_price(price_per_gram: Any) -> Decimal:
    price = clean_amount(price_per_gram, "price_per_gram", CENT, MAX_MONEY)
    if price <= 0:
        raise InvalidInput("price_per_gram must be greater than 0")
    return price


def compute_price(weight, carat, making_charges, profit_margin, price_per_gram) -> PriceBreakdown:
    """
    Price one piece of jewelry.

    Args:
        weight: Weight in grams, > 0
        carat: Purity label such as "18K"; unknown labels use factor 1.0
        making_charges: Making charges as a percent of gold value, >= 0
        profit_margin: Markup percent over gold value + making charges, >= 0
        price_per_gram: Current price of one gram of pure gold, > 0

    Raises:
        InvalidInput: for non-numeric, non-positive weight/price or
            negative percentages.
    """
    d_weight = to_decimal(weight, "weight")
    if d_weight <= 0:
        raise InvalidInput("weight must be greater than 0")
    d_making = to_decimal(making_charges, "making_charges")
    if d_making < 0:
        raise InvalidInput("making_charges must not be negative")
    d_profit = to_decimal(profit_margin, "profit_margin")
    if d_profit < 0:
        raise InvalidInput("profit_margin must not be negative")
    d_price = validate_gold_price(price_per_gram)

    factor = purity_factor(carat)
    gold_value = to_money(d_weight * d_price * factor)
    making_amount = to_money(gold_value * d_making / Decimal(100))
    base_cost = to_money(gold_value + making_amount)
    selling_price = to_money(base_cost * (Decimal(1) + d_profit / Decimal(100)))

    return PriceBreakdown(
        purity_factor=factor,
        gold_value=gold_value,
        making_charges=making_amount,
        base_cost=base_cost,
        selling_price=selling_price,
    )


def compute_product_price(product, price_per_gram) -> PriceBreakdown:
    return compute_price(
        product.weight,
        product.carat,
        product.making_charges,
        product.profit_margin,
        price_per_gram,
    )
