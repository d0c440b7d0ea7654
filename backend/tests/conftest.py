"""
Pytest Konfiguration und gemeinsame Fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import uuid
import pytest
from datetime import datetime
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from farmflow.main import app
from farmflow.database import Base, get_db
from farmflow.api.deps import get_current_user
from farmflow.models import Crop, Customer, Product, Location
from farmflow.models.enums import CropCategory


# Test-Datenbank (SQLite in-memory)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TENANT_ID = uuid.UUID("6f1c2f0e-8a4b-4c1d-9a57-3f7f1b2c9d01")
OTHER_TENANT_ID = uuid.UUID("0b7d5a3c-2e1f-4a6b-8c9d-7e5f4a3b2c10")
USER_ID = uuid.UUID("123e4567-e89b-12d3-a456-426614174000")


def override_get_db():
    """Test-DB Session"""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Dependency Override
app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def db():
    """Datenbankverbindung für Tests"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test Client mit frischer Datenbank"""
    async def override_auth():
        return {
            "id": USER_ID,
            "tenant_id": TENANT_ID,
            "roles": ["admin"],
        }

    app.dependency_overrides[get_current_user] = override_auth
    yield TestClient(app)
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def tenant_id():
    return TENANT_ID


@pytest.fixture
def other_tenant_id():
    return OTHER_TENANT_ID


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def now():
    """Fester Zeitpunkt für deterministische Nummernkreise"""
    return datetime(2024, 6, 1, 8, 0, 0)


@pytest.fixture
def crop_factory(db):
    """Legt Kulturen direkt in der DB an"""
    def _create(**overrides):
        values = {
            "tenant_id": TENANT_ID,
            "name": "Radieschen",
            "variety": "China Rose",
            "category": CropCategory.MICROGREENS,
            "growth_days": 10,
            "blackout_days": 4,
            "soak_hours": Decimal("8"),
            "soak_rate": Decimal("1.5"),
            "yield_per_unit": Decimal("8"),
            "unit": "oz",
        }
        values.update(overrides)
        crop = Crop(**values)
        db.add(crop)
        db.commit()
        db.refresh(crop)
        return crop
    return _create


@pytest.fixture
def microgreen_crop(crop_factory):
    """Microgreen: 10 Tage Wachstum inkl. 4 Tage Blackout, mit Einweichen"""
    return crop_factory()


@pytest.fixture
def mushroom_crop(crop_factory):
    """Austernpilz mit drei Flushes"""
    return crop_factory(
        name="Austernpilz",
        variety="Blue Oyster",
        category=CropCategory.MUSHROOMS,
        growth_days=21,
        blackout_days=0,
        soak_hours=Decimal("0"),
        soak_rate=None,
        yield_per_unit=Decimal("16"),
        unit="oz",
        flush_count=3,
        days_per_flush=7,
        fruiting_temp="15-18°C",
        humidity="85-90%",
    )


@pytest.fixture
def customer(db):
    customer = Customer(
        tenant_id=TENANT_ID,
        name="Restaurant Schumann",
        email="kueche@schumann.example",
        address="Maximilianstraße 36, 80539 München",
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def product(db, microgreen_crop):
    product = Product(
        tenant_id=TENANT_ID,
        name="Radieschen Microgreens 100g",
        sku="MG-RAD-100",
        crop_id=microgreen_crop.id,
        base_price=Decimal("4.00"),
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def location(db):
    location = Location(
        tenant_id=TENANT_ID,
        name="Regal A",
        code="R-A",
        capacity=100,
    )
    db.add(location)
    db.commit()
    db.refresh(location)
    return location
