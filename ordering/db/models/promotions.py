"""Promotions, their scoped items, and bundle-special components."""
import uuid
from sqlalchemy import Column, String, Text, DateTime, Date, Time, Boolean, Integer, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc, money_column


class Promotion(Base):
    __tablename__ = 'promotions'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(30), nullable=False)
    special_bundle_price_capital = money_column()
    special_bundle_price_interior = money_column()
    valid_from = Column(Date, nullable=True)
    valid_until = Column(Date, nullable=True)
    time_from = Column(Time, nullable=True)
    time_until = Column(Time, nullable=True)
    weekdays = Column(JSONB, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship("PromotionItem", back_populates="promotion", cascade="all, delete-orphan")
    bundle_items = relationship("BundlePromotionItem", back_populates="promotion", cascade="all, delete-orphan",
                                order_by="BundlePromotionItem.sort_order")

    __table_args__ = (
        Index('idx_promotions_type_active', 'type', 'is_active'),
        Index('idx_promotions_dates', 'valid_from', 'valid_until'),
        CheckConstraint(
            "type in ('two_for_one','percentage_discount','daily_special','bundle_special')",
            name='ck_promotions_type',
        ),
    )


class PromotionItem(Base):
    """Scope (variant, product or category) a promotion applies to, with its own window."""
    __tablename__ = 'promotion_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    promotion_id = Column(UUID(as_uuid=True), ForeignKey('promotions.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='CASCADE'), nullable=True)
    variant_id = Column(UUID(as_uuid=True), ForeignKey('product_variants.id', ondelete='CASCADE'), nullable=True)
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='CASCADE'), nullable=True)
    discount_percentage = Column(Integer, nullable=True)
    service_type = Column(String(20), nullable=True)
    validity_type = Column(String(30), nullable=False, default='permanent')
    valid_from = Column(Date, nullable=True)
    valid_until = Column(Date, nullable=True)
    time_from = Column(Time, nullable=True)
    time_until = Column(Time, nullable=True)
    weekdays = Column(JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    promotion = relationship("Promotion", back_populates="items")

    __table_args__ = (
        Index('idx_promotion_items_promotion_id', 'promotion_id'),
        Index('idx_promotion_items_variant_id', 'variant_id'),
        Index('idx_promotion_items_product_id', 'product_id'),
        Index('idx_promotion_items_category_id', 'category_id'),
    )


class BundlePromotionItem(Base):
    """Component of a bundle special: a fixed product or a choice group."""
    __tablename__ = 'bundle_promotion_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    promotion_id = Column(UUID(as_uuid=True), ForeignKey('promotions.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='RESTRICT'), nullable=True)
    variant_id = Column(UUID(as_uuid=True), ForeignKey('product_variants.id', ondelete='RESTRICT'), nullable=True)
    is_choice_group = Column(Boolean, nullable=False, default=False)
    choice_label = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    sort_order = Column(Integer, nullable=False, default=0)

    promotion = relationship("Promotion", back_populates="bundle_items")
    product = relationship("Product")
    variant = relationship("ProductVariant")
    options = relationship("BundlePromotionItemOption", back_populates="bundle_item", cascade="all, delete-orphan",
                           order_by="BundlePromotionItemOption.sort_order")


class BundlePromotionItemOption(Base):
    __tablename__ = 'bundle_promotion_item_options'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    bundle_item_id = Column(UUID(as_uuid=True), ForeignKey('bundle_promotion_items.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='RESTRICT'), nullable=False)
    variant_id = Column(UUID(as_uuid=True), ForeignKey('product_variants.id', ondelete='RESTRICT'), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    bundle_item = relationship("BundlePromotionItem", back_populates="options")
    product = relationship("Product")
    variant = relationship("ProductVariant")
