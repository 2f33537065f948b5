from decimal import Decimal

import pytest

from goldshop.core.errors import InvalidInput
from goldshop.services.pricing import PURITY_FACTORS, compute_price, purity_factor, validate_gold_price


def test_worked_example_24k():
    b = compute_price(Decimal("10.5"), "24K", Decimal("7.5"), Decimal("15"), Decimal("3000"))
    assert b.purity_factor == Decimal("1")
    assert b.gold_value == Decimal("31500.00")
    assert b.making_charges == Decimal("2362.50")
    assert b.base_cost == Decimal("33862.50")
    assert b.selling_price == Decimal("38941.88")


def test_accepts_plain_numbers_and_strings():
    b = compute_price(10.5, "24K", 7.5, 15, "3000")
    assert b.selling_price == Decimal("38941.88")


def test_unknown_carat_counts_as_pure_gold():
    b = compute_price(10, "99K", 5, 10, 3000)
    assert b.purity_factor == Decimal("1")
    assert b.gold_value == Decimal("30000.00")
    assert b.selling_price == Decimal("34650.00")


def test_carat_label_is_case_insensitive():
    assert purity_factor("18k") == PURITY_FACTORS["18K"]
    assert purity_factor(" 21K ") == Decimal("0.875")
    assert purity_factor(None) == Decimal("1")


def test_22k_factor():
    b = compute_price(10, "22K", 0, 0, 3000)
    assert b.gold_value == Decimal("27501.00")
    assert b.selling_price == Decimal("27501.00")


def test_half_cent_rounds_up():
    b = compute_price(1, "24K", 0, 0, "0.125")
    assert b.gold_value == Decimal("0.13")


def test_rounding_happens_at_every_step():
    # Rounded once at the end this would be 1.5075 -> 1.51
    b = compute_price("1.005", "24K", 50, 0, 1)
    assert b.gold_value == Decimal("1.01")
    assert b.making_charges == Decimal("0.51")
    assert b.base_cost == Decimal("1.52")
    assert b.selling_price == Decimal("1.52")


@pytest.mark.parametrize("carat", list(PURITY_FACTORS) + ["??"])
@pytest.mark.parametrize("weight,making,profit", [("0.5", 0, 0), ("3.2", 15, 20), ("18.75", 12, 15), ("100", 0, 40)])
def test_selling_price_covers_cost_and_gold(carat, weight, making, profit):
    b = compute_price(weight, carat, making, profit, "3150.40")
    assert b.selling_price >= b.base_cost >= b.gold_value >= 0


def test_higher_gold_price_means_higher_selling_price():
    prices = [compute_price("4.1", "14K", 9, 18, p).selling_price for p in (1000, 1500, 2999.99, 3000, 5000)]
    assert prices == sorted(prices)
    assert len(set(prices)) == len(prices)


@pytest.mark.parametrize(
    "args",
    [
        (0, "24K", 5, 10, 3000),
        (-1, "24K", 5, 10, 3000),
        (10, "24K", -5, 10, 3000),
        (10, "24K", 5, -0.01, 3000),
        (10, "24K", 5, 10, 0),
        (10, "24K", 5, 10, -5),
        (10, "24K", 5, 10, float("inf")),
        (10, "24K", 5, 10, "NaN"),
        (10, "24K", 5, 10, "abc"),
        (10, "24K", 5, 10, None),
        ("ten", "24K", 5, 10, 3000),
    ],
)
def test_invalid_input(args):
    with pytest.raises(InvalidInput):
        compute_price(*args)


def test_gold_price_is_rounded_to_cents():
    assert validate_gold_price("3000.555") == Decimal("3000.56")
    assert validate_gold_price(Decimal("3000.554")) == Decimal("3000.55")
    # The rounded price is the one the piece is priced with
    assert compute_price(1, "24K", 0, 0, "3000.555").selling_price == Decimal("3000.56")


@pytest.mark.parametrize("price", ["10000000000", "1e30", "0.004"])
def test_gold_price_outside_column_range(price):
    with pytest.raises(InvalidInput):
        validate_gold_price(price)
