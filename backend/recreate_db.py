"""
Script to recreate the database schema and seed demo data
"""
import logging

from goldshop.core.config import configure_logging, get_settings
from goldshop.core.database import Store
from goldshop.services.seed import seed_demo


logger = logging.getLogger("recreate_db")


def recreate_db():
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Recreating gold store database...")

    store = Store.from_settings(settings).open()
    try:
        store.health_check()
        logger.info("Dropping existing tables...")
        store.drop_all()
        logger.info("Creating tables...")
        store.create_all()

        logger.info("Seeding demo data...")
        with store.session() as db:
            seed_demo(db, settings)
    finally:
        store.close()

    logger.info("Database recreated successfully!")


if __name__ == "__main__":
    recreate_db()
