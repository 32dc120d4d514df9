"""Orders, their lines, applied promotions, status history and number counters."""
import uuid
from sqlalchemy import Column, String, Text, DateTime, Date, Integer, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc, money_column


class Order(Base):
    __tablename__ = 'orders'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_number = Column(String(40), nullable=False, unique=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='RESTRICT'), nullable=False)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey('restaurants.id', ondelete='RESTRICT'), nullable=False)
    driver_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    service_type = Column(String(20), nullable=False)
    zone = Column(String(20), nullable=False)
    delivery_address_id = Column(UUID(as_uuid=True), ForeignKey('customer_addresses.id', ondelete='SET NULL'), nullable=True)
    delivery_address_snapshot = Column(JSONB, nullable=True)
    subtotal = money_column(nullable=False, default=0)
    discount_total = money_column(nullable=False, default=0)
    delivery_fee = money_column(nullable=False, default=0)
    total = money_column(nullable=False, default=0)
    status = Column(String(30), nullable=False, default='pending')
    payment_method = Column(String(20), nullable=False, default='cash')
    payment_status = Column(String(20), nullable=False, default='pending')
    points_earned = Column(Integer, nullable=False, default=0)
    nit_id = Column(UUID(as_uuid=True), ForeignKey('customer_nits.id', ondelete='SET NULL'), nullable=True)
    scheduled_for = Column(DateTime(timezone=True), nullable=True)
    estimated_ready_at = Column(DateTime(timezone=True), nullable=True)
    ready_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    customer = relationship("Customer")
    restaurant = relationship("Restaurant")
    driver = relationship("User")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan",
                         order_by="OrderItem.created_at")
    promotions = relationship("OrderPromotion", back_populates="order", cascade="all, delete-orphan")
    status_history = relationship("OrderStatusHistory", back_populates="order", cascade="all, delete-orphan",
                                  order_by="OrderStatusHistory.created_at")

    __table_args__ = (
        Index('idx_orders_customer_created', 'customer_id', 'created_at'),
        Index('idx_orders_restaurant_status', 'restaurant_id', 'status'),
        Index('idx_orders_created_at', 'created_at'),
    )

    @property
    def can_be_cancelled(self) -> bool:
        return self.status in ('pending', 'preparing')


class OrderItem(Base):
    __tablename__ = 'order_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='SET NULL'), nullable=True)
    variant_id = Column(UUID(as_uuid=True), ForeignKey('product_variants.id', ondelete='SET NULL'), nullable=True)
    combo_id = Column(UUID(as_uuid=True), ForeignKey('combos.id', ondelete='SET NULL'), nullable=True)
    combinado_id = Column(UUID(as_uuid=True), ForeignKey('promotions.id', ondelete='SET NULL'), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = money_column(nullable=False, default=0)
    subtotal = money_column(nullable=False, default=0)
    options_price = money_column(nullable=False, default=0)
    discount_amount = money_column(nullable=False, default=0)
    final_price = money_column(nullable=False, default=0)
    selected_options = Column(JSONB, nullable=True)
    combo_selections = Column(JSONB, nullable=True)
    # Names and prices as they were at order time
    product_snapshot = Column(JSONB, nullable=True)
    promotion_snapshot = Column(JSONB, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        Index('idx_order_items_order_id', 'order_id'),
    )


class OrderPromotion(Base):
    __tablename__ = 'order_promotions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    promotion_id = Column(UUID(as_uuid=True), ForeignKey('promotions.id', ondelete='SET NULL'), nullable=True)
    promotion_type = Column(String(30), nullable=False)
    promotion_name = Column(String(200), nullable=False)
    discount_amount = money_column(nullable=False, default=0)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    order = relationship("Order", back_populates="promotions")


class OrderStatusHistory(Base):
    __tablename__ = 'order_status_history'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    previous_status = Column(String(30), nullable=True)
    new_status = Column(String(30), nullable=False)
    changed_by_type = Column(String(20), nullable=False)  # customer|user|system
    changed_by_id = Column(UUID(as_uuid=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    order = relationship("Order", back_populates="status_history")

    __table_args__ = (
        Index('idx_order_status_history_order_id', 'order_id', 'created_at'),
    )


class OrderNumberSequence(Base):
    """Per-restaurant, per-day counter behind human readable order numbers."""
    __tablename__ = 'order_number_sequences'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False)
    sequence_date = Column(Date, nullable=False)
    last_value = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        UniqueConstraint('restaurant_id', 'sequence_date', name='uq_order_number_sequences_restaurant_date'),
    )
