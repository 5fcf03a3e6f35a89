# tests/conftest.py
import os

# In-memory database and no Redis; must be set before the app modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CACHE_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app import models  # noqa: E402
from app.database import Base, SessionLocal, engine, get_db  # noqa: E402
from app.domain.pricing.enums import PricingType  # noqa: E402
from app.main import app  # noqa: E402


def _add(db, row):
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def add_row(db):
    """Insert and return an ORM row"""
    return lambda row: _add(db, row)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def bedroom_service(db):
    """Periodical cleaning: 1BR 800, 2BR 1,200, 3BR 1,500 EGP"""
    service = _add(
        db,
        models.Service(
            name="التنظيف الدوري",
            name_en="Periodical Cleaning",
            pricing_type=PricingType.BEDROOM_BASED,
        ),
    )
    for bedrooms, price in ((1, 80000), (2, 120000), (3, 150000)):
        _add(db, models.PricingTier(service_id=service.id, bedrooms=bedrooms, price=price))
    return service


@pytest.fixture
def sqm_service(db):
    """Deep cleaning: 30 EGP/sqm, minimum 1,500 EGP"""
    service = _add(
        db,
        models.Service(
            name="التنظيف العميق",
            name_en="Deep Cleaning",
            pricing_type=PricingType.SQM_BASED,
        ),
    )
    _add(
        db,
        models.SqmPricing(
            service_id=service.id, variant="standard", price_per_sqm=3000, minimum_charge=150000
        ),
    )
    return service
