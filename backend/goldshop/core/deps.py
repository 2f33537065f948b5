from fastapi import Request
from sqlalchemy.orm import Session

from goldshop.core.config import Settings
from goldshop.core.database import Store
from goldshop.core.errors import StoreUnavailable


def get_store(request: Request) -> Store:
    store = getattr(request.app.state, "store", None)
    if store is None or not store.is_open:
        raise StoreUnavailable("Database store is not open")
    return store


def get_db(request: Request):
    db: Session = get_store(request).session()
    try:
        yield db
    finally:
        db.close()


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
