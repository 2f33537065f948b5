"""
Demo catalogue for a fresh development database
"""
import logging

from sqlalchemy.orm import Session

from goldshop.services.product_service import create_product


logger = logging.getLogger(__name__)

DEMO_PIECES = [
    # name, weight (g), carat, making %, profit %, category
    ("Classic Wedding Band", 6.5, "21K", 8, 12, "Rings"),
    ("Rope Chain 50cm", 12.0, "18K", 10, 15, "Necklaces"),
    ("Bridal Bangle", 18.75, "21K", 12, 15, "Bracelets"),
    ("Heart Pendant", 3.2, "18K", 15, 20, "Pendants"),
    ("Investment Bar 10g", 10.0, "24K", 2, 3, "Bullion"),
    ("Hoop Earrings", 4.1, "14K", 9, 18, "Earrings"),
]


def seed_jewelry_demo(db: Session):
    """Create the demo pieces, priced against the current gold price"""
    for name, weight, carat, making, profit, category in DEMO_PIECES:
        product = create_product(
            db,
            {
                "name": name,
                "weight": weight,
                "carat": carat,
                "making_charges": making,
                "profit_margin": profit,
                "category": category,
                "stock_quantity": 5,
            },
        )
        logger.info("  - %s (%s %sg): %s", product.name, carat, weight, product.selling_price)
    logger.info("Seeded %s demo products", len(DEMO_PIECES))
