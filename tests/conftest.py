"""
Shared fixtures: in-memory SQLite database, a logged-in vendor and a
TestClient pinned to a fixed business date.
"""
import os

# Settings are read at import time, so the test database must be set first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OTP_PROVIDER"] = "console"
os.environ["JWT_SECRET"] = "tiffinos-test-secret-key-0123456789abcdef"

from datetime import date  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tiffinos.api.app import app  # noqa: E402
from tiffinos.api.dependencies import get_today  # noqa: E402
from tiffinos.lib.cache import reset_menu_cache  # noqa: E402
from tiffinos.lib.config_flags import reset_all_configs  # noqa: E402
from tiffinos.lib.db import SessionLocal, drop_db, init_db  # noqa: E402
from tiffinos.lib.jwt import create_access_token  # noqa: E402
from tiffinos.lib.metrics import reset_metrics  # noqa: E402
from tiffinos.models.customers import MealKind  # noqa: E402
from tiffinos.models.menu_items import MenuCategory, MenuItem  # noqa: E402
from tiffinos.models.subscriptions import MealFrequency  # noqa: E402
from tiffinos.models.vendors import Vendor  # noqa: E402
from tiffinos.services.customer_service import CustomerService  # noqa: E402


TODAY = date(2025, 3, 15)


@pytest.fixture(autouse=True)
def reset_globals():
    """Fresh config, cache and metrics for every test."""
    reset_all_configs()
    reset_menu_cache()
    reset_metrics()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    """Session on freshly created tables."""
    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_db()


@pytest.fixture
def client(db):
    app.dependency_overrides[get_today] = lambda: TODAY
    return TestClient(app)


@pytest.fixture
def vendor(db):
    vendor = Vendor(
        mobile_number="9876543210",
        whatsapp_number="9876543210",
        business_name="Annapurna Tiffins",
        owner_name="Sunita Patil",
        onboarding_completed=True,
    )
    db.add(vendor)
    db.commit()
    db.refresh(vendor)
    return vendor


@pytest.fixture
def auth_headers(vendor):
    token = create_access_token(str(vendor.id), vendor.mobile_number)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def menu(db, vendor):
    """The two default plates plus a snack."""
    items = {
        "chapati_bhaji": MenuItem(
            vendor_id=vendor.id,
            item_name="Chapati Bhaji",
            category=MenuCategory.MEAL,
            meal_kind=MealKind.CHAPATI_BHAJI,
            walk_in_price=60,
            monthly_price=50,
            is_default=True,
        ),
        "rice_plate": MenuItem(
            vendor_id=vendor.id,
            item_name="Rice Plate",
            category=MenuCategory.MEAL,
            meal_kind=MealKind.RICE_PLATE,
            walk_in_price=80,
            monthly_price=70,
            is_default=True,
        ),
        "lassi": MenuItem(
            vendor_id=vendor.id,
            item_name="Lassi",
            category=MenuCategory.BEVERAGE,
            walk_in_price=30,
            monthly_price=0,
        ),
    }
    db.add_all(items.values())
    db.commit()
    return items


@pytest.fixture
def make_customer(db, vendor):
    """Create a customer, by default on a March plan of 3000."""

    def _make(
        full_name: str = "Rahul Deshmukh",
        mobile_number: str = "9822012345",
        plan_amount: int = 3000,
        start_date: date = date(2025, 3, 1),
        end_date: date = date(2025, 3, 31),
        meal_frequency: MealFrequency = MealFrequency.ONE_TIME,
        with_subscription: bool = True,
        advance_amount: int = 0,
        **fields,
    ):
        subscription = None
        if with_subscription:
            subscription = {
                "start_date": start_date,
                "end_date": end_date,
                "plan_amount": plan_amount,
                "meal_frequency": meal_frequency,
            }
        return CustomerService(db).create(
            vendor.id,
            {"full_name": full_name, "mobile_number": mobile_number, **fields},
            subscription=subscription,
            advance_amount=advance_amount,
        )

    return _make
