from functools import lru_cache
from typing import List
import logging
import os

from pydantic_settings import BaseSettings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class Settings(BaseSettings):
    env: str = "dev"
    database_url: str = "postgresql+psycopg2://golduser:goldpass@db:5432/gold_db"
    backend_cors_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    # Pricing
    currency: str = "EGP"
    default_gold_price: float = 3000

    # Store bootstrap: bounded retries with exponential delay
    db_connect_max_attempts: int = 5
    db_connect_base_delay: float = 1.0
    pool_timeout: int = 10

    # Railway specific - use PORT env var if available
    port: int = int(os.getenv("PORT", "5000"))

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        origins = self.backend_cors_origins
        return [origin.strip() for origin in origins.split(",") if origin.strip()]

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
