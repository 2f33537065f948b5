import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from goldshop.core.config import Settings, configure_logging, get_settings
from goldshop.core.database import Store, connect_with_retry, init_db
from goldshop.core.errors import register_exception_handlers
from goldshop.routes.admin import router as admin_router
from goldshop.routes.gold_price import router as gold_price_router
from goldshop.routes.health import router as health_router
from goldshop.routes.products import router as products_router
from goldshop.routes.search import router as search_router
from goldshop.services.seed import seed_defaults, seed_demo


logger = logging.getLogger(__name__)


def _prepare_store(store: Store, settings: Settings) -> None:
    init_db(store, settings)
    with store.session() as db:
        # Only seed demo products in development or when explicitly requested
        if settings.env == "dev" or os.getenv("FORCE_SEED") == "true":
            seed_demo(db, settings)
        else:
            seed_defaults(db, settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    opened_here = app.state.store is None
    if opened_here:
        app.state.store = connect_with_retry(
            lambda: Store.from_settings(settings).open(),
            settings.db_connect_max_attempts,
            settings.db_connect_base_delay,
        )
        _prepare_store(app.state.store, settings)
    try:
        yield
    finally:
        if opened_here:
            app.state.store.close()
            app.state.store = None


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Gold Store API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app, settings)

    app.include_router(health_router, tags=["health"])
    app.include_router(gold_price_router, prefix="/api/gold-price", tags=["gold-price"])
    app.include_router(products_router, prefix="/api/products", tags=["products"])
    app.include_router(search_router, prefix="/api", tags=["search"])
    app.include_router(admin_router, prefix="/api/admin", tags=["admin"])

    logger.info("Gold Store API configured (env=%s)", settings.env)
    return app


app = create_app()
