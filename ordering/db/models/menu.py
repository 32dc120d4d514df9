"""Menu catalog: categories, products, variants, option sections and combos."""
import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from .base import Base, now_utc, money_column, RedeemableMixin, ZonePricedMixin


class Category(Base):
    __tablename__ = 'categories'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(150), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    uses_variants = Column(Boolean, nullable=False, default=False)
    is_combo_category = Column(Boolean, nullable=False, default=False)
    variant_definitions = Column(JSONB, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    category_products = relationship("CategoryProduct", back_populates="category", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_categories_active_order', 'is_active', 'sort_order'),
    )


class Product(ZonePricedMixin, RedeemableMixin, Base):
    __tablename__ = 'products'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='SET NULL'), nullable=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    has_variants = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    category = relationship("Category")
    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan",
                            order_by="ProductVariant.sort_order")
    product_sections = relationship("ProductSection", back_populates="product", cascade="all, delete-orphan",
                                    order_by="ProductSection.sort_order")

    __table_args__ = (
        Index('idx_products_category_id', 'category_id'),
        Index('idx_products_is_active', 'is_active'),
    )

    @property
    def sections(self):
        return [ps.section for ps in self.product_sections]


class CategoryProduct(Base):
    """Pivot placing a product in a (non-variant) category with its own order."""
    __tablename__ = 'category_product'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    category = relationship("Category", back_populates="category_products")
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint('category_id', 'product_id', name='uq_category_product'),
        Index('idx_category_product_order', 'category_id', 'sort_order'),
    )


class ProductVariant(ZonePricedMixin, RedeemableMixin, Base):
    __tablename__ = 'product_variants'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    sku = Column(String(100), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    size = Column(String(50), nullable=True)
    is_daily_special = Column(Boolean, nullable=False, default=False)
    # ISO weekdays, 1 = Monday .. 7 = Sunday
    daily_special_days = Column(JSONB, nullable=True)
    daily_special_precio_pickup_capital = money_column()
    daily_special_precio_domicilio_capital = money_column()
    daily_special_precio_pickup_interior = money_column()
    daily_special_precio_domicilio_interior = money_column()
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    product = relationship("Product", back_populates="variants")

    __table_args__ = (
        Index('idx_product_variants_product_id', 'product_id'),
        Index('idx_product_variants_is_active', 'is_active'),
    )

    def is_daily_special_on(self, iso_weekday: int) -> bool:
        if not self.is_daily_special or not self.daily_special_days:
            return False
        return int(iso_weekday) in {int(d) for d in self.daily_special_days}


class Section(Base):
    """Group of selectable options (breads, vegetables, extras) attached to products."""
    __tablename__ = 'sections'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    is_required = Column(Boolean, nullable=False, default=False)
    allow_multiple = Column(Boolean, nullable=False, default=False)
    min_selections = Column(Integer, nullable=False, default=0)
    max_selections = Column(Integer, nullable=True)
    bundle_discount_enabled = Column(Boolean, nullable=False, default=False)
    bundle_size = Column(Integer, nullable=False, default=2)
    bundle_discount_amount = money_column()
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    options = relationship("SectionOption", back_populates="section", cascade="all, delete-orphan",
                           order_by="SectionOption.sort_order")


class SectionOption(Base):
    __tablename__ = 'section_options'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    section_id = Column(UUID(as_uuid=True), ForeignKey('sections.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(200), nullable=False)
    is_extra = Column(Boolean, nullable=False, default=False)
    price_modifier = money_column(nullable=False, default=0)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    section = relationship("Section", back_populates="options")

    __table_args__ = (
        Index('idx_section_options_section_id', 'section_id'),
    )


class ProductSection(Base):
    __tablename__ = 'product_sections'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    section_id = Column(UUID(as_uuid=True), ForeignKey('sections.id', ondelete='CASCADE'), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="product_sections")
    section = relationship("Section")

    __table_args__ = (
        UniqueConstraint('product_id', 'section_id', name='uq_product_section'),
        Index('idx_product_sections_section_id', 'section_id'),
    )


class Combo(ZonePricedMixin, RedeemableMixin, Base):
    __tablename__ = 'combos'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='SET NULL'), nullable=True)
    name = Column(String(200), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship("ComboItem", back_populates="combo", cascade="all, delete-orphan",
                         order_by="ComboItem.sort_order")

    __table_args__ = (
        Index('idx_combos_category_id', 'category_id'),
        Index('idx_combos_is_active', 'is_active'),
    )


class ComboItem(Base):
    """Fixed product line of a combo, or a choice group when ``is_choice_group``."""
    __tablename__ = 'combo_items'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    combo_id = Column(UUID(as_uuid=True), ForeignKey('combos.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='RESTRICT'), nullable=True)
    variant_id = Column(UUID(as_uuid=True), ForeignKey('product_variants.id', ondelete='RESTRICT'), nullable=True)
    is_choice_group = Column(Boolean, nullable=False, default=False)
    choice_label = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    sort_order = Column(Integer, nullable=False, default=0)

    combo = relationship("Combo", back_populates="items")
    product = relationship("Product")
    variant = relationship("ProductVariant")
    options = relationship("ComboItemOption", back_populates="combo_item", cascade="all, delete-orphan",
                           order_by="ComboItemOption.sort_order")

    __table_args__ = (
        Index('idx_combo_items_combo_choice_group', 'combo_id', 'is_choice_group'),
    )


class ComboItemOption(Base):
    __tablename__ = 'combo_item_options'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    combo_item_id = Column(UUID(as_uuid=True), ForeignKey('combo_items.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='RESTRICT'), nullable=False)
    variant_id = Column(UUID(as_uuid=True), ForeignKey('product_variants.id', ondelete='RESTRICT'), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    combo_item = relationship("ComboItem", back_populates="options")
    product = relationship("Product")
    variant = relationship("ProductVariant")

    __table_args__ = (
        UniqueConstraint('combo_item_id', 'product_id', 'variant_id', name='uq_combo_item_option'),
    )
