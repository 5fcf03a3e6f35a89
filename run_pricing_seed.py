"""
Load the reference pricing catalogue into the configured database
Usage: python run_pricing_seed.py
"""
import sys
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from app import models  # noqa: F401
from app.database import Base, SessionLocal, engine
from app.domain.pricing.seed import seed_pricing_data

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)


def run_seed():
    Base.metadata.create_all(bind=engine, checkfirst=True)

    db = SessionLocal()
    try:
        seeded = seed_pricing_data(db)
    finally:
        db.close()

    if not seeded:
        logger.info("Nothing to do, pricing data already loaded")
    for entry in seeded:
        logger.info(f"   ✓ {entry}")
    logger.info("✅ Seed completed successfully!")


if __name__ == "__main__":
    try:
        run_seed()
    except Exception as e:
        logger.error(f"❌ Seed failed: {e}")
        sys.exit(1)
