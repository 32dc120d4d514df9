"""Customers, their addresses, tax ids, devices, access tokens and loyalty ledger."""
import uuid
from sqlalchemy import Column, String, Text, DateTime, Date, Boolean, Integer, Numeric, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class CustomerType(Base):
    __tablename__ = 'customer_types'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    points_required = Column(Integer, nullable=False, default=0)
    multiplier = Column(Numeric(4, 2), nullable=False, default=1)
    color = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    @classmethod
    def for_points(cls, db, points: int):
        """Active type with the highest points_required not above ``points``."""
        return (
            db.query(cls)
            .filter(cls.is_active.is_(True), cls.points_required <= points)
            .order_by(cls.points_required.desc())
            .first()
        )


class Customer(Base):
    __tablename__ = 'customers'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(320), nullable=False, unique=True)
    password_hash = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    birth_date = Column(Date, nullable=True)
    customer_type_id = Column(UUID(as_uuid=True), ForeignKey('customer_types.id', ondelete='SET NULL'), nullable=True)
    points = Column(Integer, nullable=False, default=0)
    points_updated_at = Column(DateTime(timezone=True), nullable=True)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    last_activity_at = Column(DateTime(timezone=True), nullable=True)
    last_purchase_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    customer_type = relationship("CustomerType")
    addresses = relationship("CustomerAddress", back_populates="customer", cascade="all, delete-orphan")
    devices = relationship("CustomerDevice", back_populates="customer", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_customers_customer_type_id', 'customer_type_id'),
        Index('idx_customers_last_purchase_at', 'last_purchase_at'),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class CustomerAddress(Base):
    __tablename__ = 'customer_addresses'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    label = Column(String(100), nullable=False)
    address_line = Column(Text, nullable=False)
    latitude = Column(Numeric(10, 7), nullable=False)
    longitude = Column(Numeric(10, 7), nullable=False)
    delivery_notes = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    customer = relationship("Customer", back_populates="addresses")

    __table_args__ = (
        Index('idx_customer_addresses_customer_id', 'customer_id'),
    )


class CustomerNit(Base):
    """Tax id (NIT) a customer can attach to an order invoice."""
    __tablename__ = 'customer_nits'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    nit = Column(String(20), nullable=False)
    nit_type = Column(String(20), nullable=False, default='personal')  # personal|company|other
    business_name = Column(String(255), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    __table_args__ = (
        UniqueConstraint('customer_id', 'nit', name='uq_customer_nits_customer_nit'),
    )


class CustomerDevice(Base):
    __tablename__ = 'customer_devices'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    fcm_token = Column(String(500), nullable=True, unique=True)
    device_identifier = Column(String(255), nullable=True, unique=True)
    device_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    login_count = Column(Integer, nullable=False, default=0)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    customer = relationship("Customer", back_populates="devices")

    __table_args__ = (
        Index('idx_customer_devices_customer_last_used', 'customer_id', 'last_used_at'),
        Index('idx_customer_devices_is_active', 'is_active'),
    )


class CustomerFavorite(Base):
    """A product or combo a customer bookmarked; exactly one target is set."""
    __tablename__ = 'customer_favorites'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='CASCADE'), nullable=True)
    combo_id = Column(UUID(as_uuid=True), ForeignKey('combos.id', ondelete='CASCADE'), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    product = relationship("Product")
    combo = relationship("Combo")

    __table_args__ = (
        Index('idx_customer_favorites_customer_created', 'customer_id', 'created_at'),
    )

    @property
    def favorable_type(self) -> str:
        return "product" if self.product_id is not None else "combo"

    @property
    def favorable_id(self):
        return self.product_id if self.product_id is not None else self.combo_id


class CustomerAccessToken(Base):
    __tablename__ = 'customer_access_tokens'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    device_id = Column(UUID(as_uuid=True), ForeignKey('customer_devices.id', ondelete='SET NULL'), nullable=True)
    # Token identity and secret hash (never store raw secret)
    token_id = Column(String(64), nullable=False, unique=True)
    token_hash = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default='active')  # active|revoked
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_customer_tokens_customer_id', 'customer_id'),
    )


class PointsSetting(Base):
    """Single-row loyalty configuration."""
    __tablename__ = 'points_settings'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quetzales_per_point = Column(Numeric(10, 2), nullable=False, default=10)
    rounding_threshold = Column(Numeric(4, 2), nullable=False, default=0.7)
    expiration_months = Column(Integer, nullable=False, default=6)
    # fifo: each earned batch expires on its own date; total: inactivity wipes the balance
    expiration_method = Column(String(10), nullable=False, default='fifo')
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)


class PointsTransaction(Base):
    __tablename__ = 'customer_points_transactions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id', ondelete='SET NULL'), nullable=True)
    points = Column(Integer, nullable=False)
    type = Column(String(20), nullable=False)  # earned|redeemed|expired
    description = Column(Text, nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_expired = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_points_tx_customer_created', 'customer_id', 'created_at'),
        Index('idx_points_tx_expires_at', 'expires_at'),
    )
