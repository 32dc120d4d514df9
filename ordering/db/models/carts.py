"""Shopping carts and their lines."""
import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc, money_column


class Cart(Base):
    __tablename__ = 'carts'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey('restaurants.id', ondelete='SET NULL'), nullable=True)
    service_type = Column(String(20), nullable=False, default='pickup')
    zone = Column(String(20), nullable=False, default='capital')
    delivery_address_id = Column(UUID(as_uuid=True), ForeignKey('customer_addresses.id', ondelete='SET NULL'), nullable=True)
    status = Column(String(20), nullable=False, default='active')  # active|converted|abandoned
    expires_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    customer = relationship("Customer")
    restaurant = relationship("Restaurant")
    delivery_address = relationship("CustomerAddress")
    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan",
                         order_by="CartItem.created_at")

    __table_args__ = (
        Index('idx_carts_customer_status', 'customer_id', 'status'),
    )

    @property
    def is_empty(self) -> bool:
        return not self.items


class CartItem(Base):
    """One cart line: a product (optionally a variant), a combo, or a bundle special."""
    __tablename__ = 'cart_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cart_id = Column(UUID(as_uuid=True), ForeignKey('carts.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='CASCADE'), nullable=True)
    variant_id = Column(UUID(as_uuid=True), ForeignKey('product_variants.id', ondelete='CASCADE'), nullable=True)
    combo_id = Column(UUID(as_uuid=True), ForeignKey('combos.id', ondelete='CASCADE'), nullable=True)
    # Bundle-special promotion sold as a single line
    combinado_id = Column(UUID(as_uuid=True), ForeignKey('promotions.id', ondelete='CASCADE'), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = money_column(nullable=False, default=0)
    subtotal = money_column(nullable=False, default=0)
    # [{"section_id": ..., "option_id": ..., "name": ..., "price": ...}]
    selected_options = Column(JSONB, nullable=True)
    # [{"combo_item_id": ..., "product_id": ..., "variant_id": ..., "selected_options": [...]}]
    combo_selections = Column(JSONB, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")
    variant = relationship("ProductVariant")
    combo = relationship("Combo")
    combinado = relationship("Promotion")

    __table_args__ = (
        Index('idx_cart_items_cart_id', 'cart_id'),
    )

    @property
    def is_product(self) -> bool:
        return self.product_id is not None and self.combo_id is None and self.combinado_id is None

    @property
    def is_combo(self) -> bool:
        return self.combo_id is not None

    @property
    def is_combinado(self) -> bool:
        return self.combinado_id is not None
