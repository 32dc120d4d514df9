from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

pytestmark = pytest.mark.e2e

ROOT = Path(__file__).resolve().parents[2]


def _alembic_config(database_url: str) -> Config:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    return cfg


def _tables(url: str) -> set:
    engine = create_engine(url)
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_upgrade_and_downgrade_cycle(monkeypatch, postgres_url):
    """Migrations go base -> head -> base -> head cleanly."""
    monkeypatch.setenv("TEST_DATABASE_URL", postgres_url)
    cfg = _alembic_config(postgres_url)

    command.upgrade(cfg, "head")
    assert {
        "orders", "order_items", "carts", "promotions", "order_number_sequences", "customer_favorites",
    } <= _tables(postgres_url)

    command.downgrade(cfg, "base")
    assert _tables(postgres_url) <= {"alembic_version"}

    command.upgrade(cfg, "head")
