import logging
import time
from typing import Any, Callable, Dict, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from goldshop.core.config import Settings
from goldshop.core.errors import StoreUnavailable
from goldshop.models.base import Base


logger = logging.getLogger(__name__)


class Store:
    """Owns the engine and session factory for one database.

    Built explicitly and handed to the app, never imported as a global.
    """

    def __init__(self, database_url: str, **engine_options: Any):
        self.database_url = database_url
        self.engine_options = engine_options
        self.engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Store":
        options: Dict[str, Any] = {"pool_pre_ping": True}
        if not settings.database_url.startswith("sqlite"):
            options["pool_timeout"] = settings.pool_timeout
        return cls(settings.database_url, **options)

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def open(self) -> "Store":
        if self.engine is None:
            self.engine = create_engine(self.database_url, **self.engine_options)
            self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        return self

    def health_check(self) -> None:
        if self.engine is None:
            raise StoreUnavailable("Database store is not open")
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Database unavailable: {e.__class__.__name__}") from e

    def session(self) -> Session:
        if self._session_factory is None:
            raise StoreUnavailable("Database store is not open")
        return self._session_factory()

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self._session_factory = None


def connect_with_retry(
    connect: Callable[[], Store],
    max_attempts: int,
    base_delay: float,
    sleep: Callable[[float], None] = time.sleep,
) -> Store:
    """
    Open a store, retrying with exponential delay.

    ``connect`` builds and opens a store; it counts as connected once its
    health check passes. Waits ``base_delay * 2 ** (attempt - 1)`` seconds
    between attempts and raises ``StoreUnavailable`` after ``max_attempts``.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    if base_delay < 0:
        raise ValueError("base_delay must be >= 0")

    last_error: Optional[Exception] = None
    for attempt in range(1, max_attempts + 1):
        store: Optional[Store] = None
        try:
            store = connect()
            store.health_check()
            logger.info("Connected to database on attempt %s", attempt)
            return store
        except (StoreUnavailable, SQLAlchemyError) as e:
            last_error = e
            if store is not None:
                store.close()
            logger.warning("Database connection attempt %s/%s failed: %s", attempt, max_attempts, e)
            if attempt < max_attempts:
                sleep(base_delay * 2 ** (attempt - 1))

    raise StoreUnavailable(f"Could not connect to database after {max_attempts} attempts: {last_error}")


def init_db(store: Store, settings: Settings) -> None:
    # Create tables in dev/test without running Alembic
    if settings.env in {"dev", "test"}:
        store.create_all()
