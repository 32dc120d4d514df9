"""
Shared SQLAlchemy base and column helpers.
"""
import uuid
from datetime import datetime, UTC
from sqlalchemy import Boolean, Column, Integer, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base

# Registers the JSONB -> JSON compiler used when the test suite runs on SQLite
from .. import sqlite_compiler_shims  # noqa: F401


def now_utc():
    """Return an aware UTC datetime for default/updated timestamps."""
    return datetime.now(UTC)


def uuid_pk():
    return Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)


def money_column(nullable: bool = True, default=None):
    return Column(Numeric(10, 2), nullable=nullable, default=default)


Base = declarative_base()


class ZonePricedMixin:
    """Four zone/service prices shared by products, variants and combos."""

    precio_pickup_capital = money_column()
    precio_domicilio_capital = money_column()
    precio_pickup_interior = money_column()
    precio_domicilio_interior = money_column()

    def get_price(self, field: str):
        return getattr(self, field, None)


class RedeemableMixin:
    """Loyalty reward fields: redeemable items cost ``points_cost`` points."""

    points_cost = Column(Integer, nullable=True)
    is_redeemable = Column(Boolean, nullable=False, default=False)
