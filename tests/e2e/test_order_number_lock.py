from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ordering.db import models
from ordering.services.order_number import next_order_number

pytestmark = pytest.mark.e2e

ROOT = Path(__file__).resolve().parents[2]
MOMENT = datetime(2026, 10, 19, 12, 0, tzinfo=ZoneInfo("America/Guatemala"))
WORKERS = 8


@pytest.fixture
def pg_session_factory(monkeypatch, postgres_url):
    monkeypatch.setenv("TEST_DATABASE_URL", postgres_url)
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", postgres_url)
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    command.upgrade(cfg, "head")

    engine = create_engine(postgres_url, pool_size=WORKERS, max_overflow=0)
    try:
        yield sessionmaker(bind=engine, autoflush=False)
    finally:
        engine.dispose()


def test_concurrent_checkouts_get_distinct_numbers(pg_session_factory):
    with pg_session_factory() as db:
        restaurant = models.Restaurant(name="Sucursal Centro", price_location="capital")
        db.add(restaurant)
        db.commit()
        restaurant_id = restaurant.id

    def take_number(_):
        with pg_session_factory() as db:
            number = next_order_number(db, db.get(models.Restaurant, restaurant_id), MOMENT)
            db.commit()
            return number

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        numbers = list(pool.map(take_number, range(WORKERS)))

    assert sorted(numbers) == [f"ORD-20261019-{n:04d}" for n in range(1, WORKERS + 1)]
