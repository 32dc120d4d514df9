import os
import uuid
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

os.environ.setdefault("PYTEST_RUNNING", "1")

from fastapi.testclient import TestClient

import ordering.db.database as db_module
from ordering.api.main import app
from ordering.db import crud, models, schemas
from ordering.services import cart_service
from ordering.utils.feature_flags import refresh_feature_flag_cache

LOCAL_TZ = ZoneInfo("America/Guatemala")
# A Monday, ISO weekday 1
MONDAY_NOON = datetime(2026, 10, 19, 12, 0, tzinfo=LOCAL_TZ)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
ALL_DAY = {day: {"is_open": True, "open": "00:00", "close": "23:59"} for day in WEEKDAYS}

ADMIN_EMAIL = "admin@example.com"

_ENV_VARS = (
    "DEV_MODE",
    "ADMIN_EMAILS",
    "APP_TIMEZONE",
    "ORDER_NUMBER_PREFIX",
    "PROMOTIONS_ENABLED",
    "LOYALTY_POINTS_ENABLED",
    "FIREBASE_CREDENTIALS",
)


@pytest.fixture(autouse=True)
def _test_env(monkeypatch):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    # FCM tests opt back in explicitly
    monkeypatch.setenv("PUSH_NOTIFICATIONS_ENABLED", "false")
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


@pytest.fixture(scope="session")
def _schema():
    models.Base.metadata.create_all(bind=db_module.engine)
    yield
    models.Base.metadata.drop_all(bind=db_module.engine)


@pytest.fixture
def db_session(_schema):
    session = db_module.SessionLocal()
    try:
        yield session
    finally:
        session.close()
        with db_module.engine.begin() as conn:
            for table in reversed(models.Base.metadata.sorted_tables):
                conn.execute(table.delete())


@pytest.fixture
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[db_module.get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(db_module.get_db, None)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

def _prices(value):
    value = Decimal(str(value))
    return {
        "precio_pickup_capital": value,
        "precio_domicilio_capital": value + 5,
        "precio_pickup_interior": value + 3,
        "precio_domicilio_interior": value + 8,
    }


@pytest.fixture
def restaurant_factory(db_session):
    def _create(**overrides):
        data = {
            "name": f"Sucursal {uuid.uuid4().hex[:6]}",
            "price_location": "capital",
            "schedule": ALL_DAY,
            "minimum_order_amount": Decimal("0"),
            "estimated_pickup_time": 0,
            "estimated_delivery_time": 30,
        }
        data.update(overrides)
        restaurant = models.Restaurant(**data)
        db_session.add(restaurant)
        db_session.commit()
        db_session.refresh(restaurant)
        return restaurant

    return _create


@pytest.fixture
def category_factory(db_session):
    def _create(name="Subs", uses_variants=False, **overrides):
        category = models.Category(name=name, uses_variants=uses_variants, **overrides)
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _create


@pytest.fixture
def product_factory(db_session):
    """Product priced ``price`` for pickup in the capital; other zones derive from it."""

    def _create(category, price="35.00", name=None, **overrides):
        data = {"name": name or f"Producto {uuid.uuid4().hex[:6]}", "category_id": category.id}
        if price is not None:
            data.update(_prices(price))
        data.update(overrides)
        product = models.Product(**data)
        db_session.add(product)
        db_session.flush()
        if not category.uses_variants:
            db_session.add(models.CategoryProduct(category_id=category.id, product_id=product.id))
        db_session.commit()
        db_session.refresh(product)
        return product

    return _create


@pytest.fixture
def variant_factory(db_session):
    def _create(product, price="35.00", special=None, days=None, name="15 cm", **overrides):
        data = {
            "product_id": product.id,
            "sku": f"SKU-{uuid.uuid4().hex[:10]}",
            "name": name,
        }
        data.update(_prices(price))
        if special is not None:
            data.update({f"daily_special_{k}": v for k, v in _prices(special).items()})
            data["is_daily_special"] = True
            data["daily_special_days"] = list(days or range(1, 8))
        data.update(overrides)
        variant = models.ProductVariant(**data)
        db_session.add(variant)
        db_session.commit()
        db_session.refresh(variant)
        return variant

    return _create


@pytest.fixture
def section_factory(db_session):
    def _create(options, **overrides):
        section = models.Section(title=overrides.pop("title", "Extras"), **overrides)
        for position, (name, price, is_extra) in enumerate(options):
            section.options.append(models.SectionOption(
                name=name, price_modifier=Decimal(str(price)), is_extra=is_extra, sort_order=position,
            ))
        db_session.add(section)
        db_session.commit()
        db_session.refresh(section)
        return section

    return _create


@pytest.fixture
def promotion_factory(db_session):
    def _create(type_, items=(), name=None, **fields):
        promotion = models.Promotion(name=name or f"Promo {type_}", type=type_, **fields)
        for item in items:
            promotion.items.append(models.PromotionItem(**item))
        db_session.add(promotion)
        db_session.commit()
        db_session.refresh(promotion)
        return promotion

    return _create


@pytest.fixture
def customer_factory(db_session):
    def _create(email=None, **overrides):
        customer = models.Customer(
            first_name=overrides.pop("first_name", "Ana"),
            last_name=overrides.pop("last_name", "López"),
            email=email or f"cliente-{uuid.uuid4().hex[:8]}@example.com",
            **overrides,
        )
        db_session.add(customer)
        db_session.commit()
        db_session.refresh(customer)
        return customer

    return _create


@pytest.fixture
def customer_headers(db_session):
    def _headers(customer):
        _token, full = crud.create_customer_token(db_session, customer_id=customer.id)
        return {"Authorization": f"Bearer {full}"}

    return _headers


@pytest.fixture
def admin_headers(monkeypatch):
    monkeypatch.setenv("ADMIN_EMAILS", ADMIN_EMAIL)
    return {"X-Auth-Request-Email": ADMIN_EMAIL, "X-Auth-Request-User": "Admin"}


@pytest.fixture
def staff_headers():
    def _headers(email="staff@example.com"):
        return {"X-Auth-Request-Email": email, "X-Auth-Request-User": email.split("@")[0]}

    return _headers


@pytest.fixture
def cart_factory(db_session):
    """Active cart at ``restaurant`` holding ``lines`` of (product, variant, quantity)."""

    def _create(customer, restaurant, lines=()):
        cart = cart_service.get_or_create_cart(db_session, customer)
        cart_service.update_restaurant(db_session, cart, restaurant)
        for product, variant, quantity in lines:
            cart_service.add_item(db_session, cart, _item_payload(product, variant, quantity))
        db_session.refresh(cart)
        return cart

    return _create


def _item_payload(product, variant=None, quantity=1, options=()):
    return schemas.CartItemAdd(
        product_id=product.id,
        variant_id=variant.id if variant is not None else None,
        quantity=quantity,
        selected_options=[opt.id for opt in options],
    )


@pytest.fixture
def item_payload():
    return _item_payload
