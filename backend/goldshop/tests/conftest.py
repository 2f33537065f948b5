from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from goldshop.core.config import Settings
from goldshop.core.database import Store
from goldshop.main import create_app
from goldshop.models.gold_price import GoldPrice
from goldshop.services.product_service import create_product


@pytest.fixture
def settings():
    return Settings(env="test", database_url="sqlite://", backend_cors_origins="", log_level="WARNING")


@pytest.fixture
def store():
    store = Store(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ).open()
    store.create_all()
    yield store
    store.close()


@pytest.fixture
def db(store):
    session = store.session()
    yield session
    session.close()


@pytest.fixture
def gold_price(db):
    price = GoldPrice(price_per_gram=Decimal("3000"), carat="24K", currency="EGP")
    db.add(price)
    db.commit()
    return price


@pytest.fixture
def make_product(db, gold_price):
    def _make(**overrides):
        data = {
            "name": "Test Ring",
            "weight": 10,
            "carat": "24K",
            "making_charges": 5,
            "profit_margin": 10,
        }
        data.update(overrides)
        return create_product(db, data)

    return _make


@pytest.fixture
def client(settings, store):
    app = create_app(settings=settings, store=store)
    with TestClient(app) as c:
        yield c
