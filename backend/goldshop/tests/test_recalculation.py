from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from goldshop.core.errors import InvalidInput, RecalculationAborted
from goldshop.models.gold_price import GoldPrice
from goldshop.models.price_history import PriceHistoryEntry
from goldshop.models.product import Product
from goldshop.services import recalculation
from goldshop.services.pricing import compute_product_price
from goldshop.services.product_service import get_current_gold_price, update_product
from goldshop.services.recalculation import (
    apply_new_gold_price,
    percent_change,
    repair_prices,
    verify_prices,
)


@pytest.fixture
def catalogue(make_product, db):
    """Four active products and one inactive one"""
    active = [
        make_product(name="Band", weight="6.5", carat="21K", making_charges=8, profit_margin=12),
        make_product(name="Chain", weight="12", carat="18K", making_charges=10, profit_margin=15),
        make_product(name="Bar", weight="10", carat="24K", making_charges=2, profit_margin=3),
        make_product(name="Hoops", weight="4.1", carat="14K", making_charges=9, profit_margin=18),
    ]
    inactive = make_product(name="Retired Pendant", weight="3.2", carat="18K")
    update_product(db, inactive.id, {"is_active": False})
    return [p.id for p in active], inactive.id


def _history_count(db, product_id=None):
    query = db.query(PriceHistoryEntry)
    if product_id is not None:
        query = query.filter(PriceHistoryEntry.product_id == product_id)
    return query.count()


def test_reprices_only_active_products(db, catalogue):
    active_ids, inactive_id = catalogue
    inactive_price = db.get(Product, inactive_id).selling_price

    result = apply_new_gold_price(db, Decimal("3100"))

    assert result.updated_count == 4
    assert sorted(d.product_id for d in result.details) == sorted(active_ids)
    assert db.get(Product, inactive_id).selling_price == inactive_price
    assert _history_count(db, inactive_id) == 0
    for product_id in active_ids:
        product = db.get(Product, product_id)
        assert product.selling_price == compute_product_price(product, Decimal("3100")).selling_price
        entries = db.query(PriceHistoryEntry).filter(PriceHistoryEntry.product_id == product_id).all()
        assert len(entries) == 1
        assert entries[0].gold_price == Decimal("3100")
        assert entries[0].new_price == product.selling_price


def test_new_gold_price_becomes_current(db, catalogue):
    apply_new_gold_price(db, "3250.50", carat="24k")
    current = get_current_gold_price(db)
    assert current.price_per_gram == Decimal("3250.50")
    assert current.carat == "24K"
    assert db.query(GoldPrice).count() == 2


def test_details_report_old_and_new_prices(db, catalogue):
    active_ids, _ = catalogue
    before = {pid: db.get(Product, pid).selling_price for pid in active_ids}

    result = apply_new_gold_price(db, 3300)

    for change in result.details:
        assert change.old_price == before[change.product_id]
        assert change.new_price > change.old_price
        assert change.percent_change == percent_change(change.old_price, change.new_price)


def test_same_price_twice_gives_same_prices(db, catalogue):
    active_ids, _ = catalogue
    apply_new_gold_price(db, 3200)
    first = {pid: db.get(Product, pid).selling_price for pid in active_ids}
    result = apply_new_gold_price(db, 3200)
    second = {pid: db.get(Product, pid).selling_price for pid in active_ids}

    assert first == second
    assert all(change.percent_change == Decimal("0.00") for change in result.details)
    for pid in active_ids:
        assert _history_count(db, pid) == 2


@pytest.mark.parametrize("bad_price", [-5, 0, "abc", None, float("inf"), Decimal("NaN")])
def test_invalid_price_writes_nothing(db, catalogue, bad_price):
    active_ids, _ = catalogue
    before = {pid: db.get(Product, pid).selling_price for pid in active_ids}

    with pytest.raises(InvalidInput):
        apply_new_gold_price(db, bad_price)

    db.expire_all()
    assert db.query(GoldPrice).count() == 1
    assert _history_count(db) == 0
    assert {pid: db.get(Product, pid).selling_price for pid in active_ids} == before


def test_unknown_gold_price_carat_rejected(db, catalogue):
    with pytest.raises(InvalidInput):
        apply_new_gold_price(db, 3100, carat="99K")
    assert db.query(GoldPrice).count() == 1


def test_failure_mid_batch_rolls_everything_back(db, catalogue, monkeypatch):
    active_ids, _ = catalogue
    before = {pid: db.get(Product, pid).selling_price for pid in active_ids}
    real = recalculation.record_price_change
    calls = []

    def flaky(db_, product, *args, **kwargs):
        calls.append(product.id)
        if len(calls) == 3:
            raise OperationalError("UPDATE products", {}, Exception("disk I/O error"))
        return real(db_, product, *args, **kwargs)

    monkeypatch.setattr(recalculation, "record_price_change", flaky)

    with pytest.raises(RecalculationAborted) as excinfo:
        apply_new_gold_price(db, 3500)

    err = excinfo.value
    assert err.processed == 2
    assert err.total == 4
    assert err.failed_product_id == sorted(active_ids)[2]
    assert err.payload()["updated_count"] == 0

    db.expire_all()
    assert get_current_gold_price(db).price_per_gram == Decimal("3000")
    assert db.query(GoldPrice).count() == 1
    assert _history_count(db) == 0
    assert {pid: db.get(Product, pid).selling_price for pid in active_ids} == before


def test_zero_old_price_has_no_percent_change(db, gold_price):
    db.add(Product(name="Legacy", weight=Decimal("1"), carat="24K", making_charges=0, profit_margin=0, selling_price=0))
    db.commit()

    result = apply_new_gold_price(db, 3000)

    assert result.details[0].old_price == Decimal("0")
    assert result.details[0].new_price == Decimal("3000.00")
    assert result.details[0].percent_change is None


def test_percent_change():
    assert percent_change(Decimal("100"), Decimal("110")) == Decimal("10.00")
    assert percent_change(Decimal("3"), Decimal("2")) == Decimal("-33.33")
    assert percent_change(Decimal("0"), Decimal("5")) is None


def test_stored_prices_match_recomputation(db, catalogue):
    apply_new_gold_price(db, 3120)
    assert verify_prices(db) == []


def test_verify_reports_drifted_price_and_repair_fixes_it(db, catalogue):
    active_ids, _ = catalogue
    product = db.get(Product, active_ids[0])
    expected = product.selling_price
    product.selling_price = Decimal("1.00")
    db.commit()

    mismatches = verify_prices(db)
    assert [m.product_id for m in mismatches] == [active_ids[0]]
    assert mismatches[0].stored_price == Decimal("1.00")
    assert mismatches[0].expected_price == expected
    assert mismatches[0].gold_price == Decimal("3000")

    result = repair_prices(db)
    assert result.updated_count == 1
    assert db.get(Product, active_ids[0]).selling_price == expected
    assert _history_count(db, active_ids[0]) == 1
    assert verify_prices(db) == []


def test_repair_with_nothing_to_fix(db, catalogue):
    result = repair_prices(db)
    assert result.updated_count == 0
    assert result.details == []


def test_fractional_gold_price_is_stored_as_priced(db, catalogue):
    active_ids, _ = catalogue

    result = apply_new_gold_price(db, Decimal("3000.555"))

    assert result.updated_count == len(active_ids)
    db.expire_all()
    assert get_current_gold_price(db).price_per_gram == Decimal("3000.56")
    for product_id in active_ids:
        product = db.get(Product, product_id)
        assert product.selling_price == compute_product_price(product, Decimal("3000.56")).selling_price
    assert verify_prices(db) == []
