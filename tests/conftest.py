from __future__ import annotations

import os

os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from wms.core.config import settings  # noqa: E402
from wms.db import session as session_module  # noqa: E402
from wms.db.base_class import Base  # noqa: E402
from wms.db.session import SessionLocal  # noqa: E402
from wms.models import inventory_models  # noqa: E402,F401 - registers tables
from wms.models import inventory_schemas as schemas  # noqa: E402
from wms.services.inventory import InventoryService  # noqa: E402
from wms.services.inventory.locks import WarehouseLocks  # noqa: E402

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")


test_engine = create_engine(
    TEST_DATABASE_URL,
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Ensure application code uses the test engine
settings.DATABASE_URL = TEST_DATABASE_URL  # type: ignore[attr-defined]
settings.ENV = "test"  # type: ignore[attr-defined]
session_module.engine = test_engine  # type: ignore[assignment]
SessionLocal.configure(bind=test_engine)


@pytest.fixture(autouse=True)
def _reset_database_state():
    """Ensure each test sees a fresh database schema."""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield


@pytest.fixture
def db_session():
    """Provide a database session for tests."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service(db_session) -> InventoryService:
    """InventoryService with its own lock registry so tests stay isolated."""
    return InventoryService(db_session, locks=WarehouseLocks())


# --- Catalog builders ---


@pytest.fixture
def make_category(service):
    counter = {"n": 0}

    def _make(name: str | None = None):
        counter["n"] += 1
        return service.create_category(schemas.CategoryCreate(name=name or f"Category {counter['n']}"))

    return _make


@pytest.fixture
def make_supplier(service):
    def _make(name: str = "Acme Supplies", **overrides):
        data = {
            "name": name,
            "contact_info": "+1 555 0100",
            "email": "orders@acme.test",
            "address": "1 Supply Road",
        }
        data.update(overrides)
        return service.create_supplier(schemas.SupplierCreate(**data))

    return _make


@pytest.fixture
def make_product(service, make_category, make_supplier):
    def _make(name: str = "Widget", price: str = "9.99", category=None, supplier=None, **overrides):
        category = category or make_category()
        supplier = supplier or make_supplier()
        data = {
            "name": name,
            "price": price,
            "category_id": category.id,
            "supplier_id": supplier.id,
        }
        data.update(overrides)
        return service.create_product(schemas.ProductCreate(**data))

    return _make


@pytest.fixture
def make_warehouse(service):
    def _make(name: str = "Main", capacity: int = 100, location: str = "Lagos"):
        return service.create_warehouse(
            schemas.WarehouseCreate(name=name, location=location, capacity=capacity)
        )

    return _make


# FastAPI TestClient fixture
from fastapi.testclient import TestClient  # noqa: E402
from wms.api.main import app  # noqa: E402


@pytest.fixture
def client():  # noqa: D401 - simple factory fixture
    """Provide a FastAPI TestClient bound to the application."""
    return TestClient(app)
