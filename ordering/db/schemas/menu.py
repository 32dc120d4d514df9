import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class ZonePrices(BaseModel):
    precio_pickup_capital: Optional[Decimal] = Field(default=None, ge=0)
    precio_domicilio_capital: Optional[Decimal] = Field(default=None, ge=0)
    precio_pickup_interior: Optional[Decimal] = Field(default=None, ge=0)
    precio_domicilio_interior: Optional[Decimal] = Field(default=None, ge=0)


class Redeemable(BaseModel):
    points_cost: Optional[int] = Field(default=None, ge=1)
    is_redeemable: bool = False

    @model_validator(mode="after")
    def _check_points_cost(self):
        if self.is_redeemable and self.points_cost is None:
            raise ValueError("points_cost is required for redeemable items")
        return self


# Categories

class CategoryBase(BaseModel):
    name: str
    is_active: bool = True
    uses_variants: bool = False
    is_combo_category: bool = False
    variant_definitions: Optional[List[str]] = None
    sort_order: int = 0


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    is_active: Optional[bool] = None
    uses_variants: Optional[bool] = None
    is_combo_category: Optional[bool] = None
    variant_definitions: Optional[List[str]] = None
    sort_order: Optional[int] = None


class Category(CategoryBase):
    id: uuid.UUID
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# Sections and options

class SectionOptionBase(BaseModel):
    name: str
    is_extra: bool = False
    price_modifier: Decimal = Field(default=Decimal("0"), ge=0)
    sort_order: int = 0


class SectionOptionCreate(SectionOptionBase):
    pass


class SectionOption(SectionOptionBase):
    id: uuid.UUID
    section_id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class SectionBase(BaseModel):
    title: str
    description: Optional[str] = None
    is_required: bool = False
    allow_multiple: bool = False
    min_selections: int = Field(default=0, ge=0)
    max_selections: Optional[int] = Field(default=None, ge=1)
    bundle_discount_enabled: bool = False
    bundle_size: int = Field(default=2, ge=2)
    bundle_discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    is_active: bool = True
    sort_order: int = 0


class SectionCreate(SectionBase):
    options: List[SectionOptionCreate] = []


class SectionUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    is_required: Optional[bool] = None
    allow_multiple: Optional[bool] = None
    min_selections: Optional[int] = None
    max_selections: Optional[int] = None
    bundle_discount_enabled: Optional[bool] = None
    bundle_size: Optional[int] = Field(default=None, ge=2)
    bundle_discount_amount: Optional[Decimal] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None
    options: Optional[List[SectionOptionCreate]] = None


class Section(SectionBase):
    id: uuid.UUID
    options: List[SectionOption] = []
    model_config = ConfigDict(from_attributes=True)


# Products and variants

class VariantBase(ZonePrices, Redeemable):
    sku: str
    name: str
    size: Optional[str] = None
    is_daily_special: bool = False
    daily_special_days: Optional[List[int]] = None
    daily_special_precio_pickup_capital: Optional[Decimal] = Field(default=None, ge=0)
    daily_special_precio_domicilio_capital: Optional[Decimal] = Field(default=None, ge=0)
    daily_special_precio_pickup_interior: Optional[Decimal] = Field(default=None, ge=0)
    daily_special_precio_domicilio_interior: Optional[Decimal] = Field(default=None, ge=0)
    is_active: bool = True
    sort_order: int = 0

    @model_validator(mode="after")
    def _check_days(self):
        for day in self.daily_special_days or []:
            if day < 1 or day > 7:
                raise ValueError("daily_special_days must be ISO weekdays 1..7")
        return self


class VariantCreate(VariantBase):
    pass


class VariantUpdate(ZonePrices):
    sku: Optional[str] = None
    name: Optional[str] = None
    size: Optional[str] = None
    is_daily_special: Optional[bool] = None
    daily_special_days: Optional[List[int]] = None
    daily_special_precio_pickup_capital: Optional[Decimal] = None
    daily_special_precio_domicilio_capital: Optional[Decimal] = None
    daily_special_precio_pickup_interior: Optional[Decimal] = None
    daily_special_precio_domicilio_interior: Optional[Decimal] = None
    is_active: Optional[bool] = None
    points_cost: Optional[int] = Field(default=None, ge=1)
    is_redeemable: Optional[bool] = None
    sort_order: Optional[int] = None


class Variant(VariantBase):
    id: uuid.UUID
    product_id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class ProductBase(ZonePrices, Redeemable):
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    has_variants: bool = False
    is_active: bool = True
    sort_order: int = 0


class ProductCreate(ProductBase):
    variants: List[VariantCreate] = []
    section_ids: List[uuid.UUID] = []


class ProductUpdate(ZonePrices):
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    has_variants: Optional[bool] = None
    is_active: Optional[bool] = None
    points_cost: Optional[int] = Field(default=None, ge=1)
    is_redeemable: Optional[bool] = None
    sort_order: Optional[int] = None
    section_ids: Optional[List[uuid.UUID]] = None


class Product(ProductBase):
    id: uuid.UUID
    variants: List[Variant] = []
    sections: List[Section] = []
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# Combos

class ComboItemOptionCreate(BaseModel):
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    sort_order: int = 0


class ComboItemOption(ComboItemOptionCreate):
    id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class ComboItemCreate(BaseModel):
    product_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    is_choice_group: bool = False
    choice_label: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    sort_order: int = 0
    options: List[ComboItemOptionCreate] = []


class ComboItem(BaseModel):
    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    is_choice_group: bool
    choice_label: Optional[str] = None
    quantity: int
    sort_order: int
    options: List[ComboItemOption] = []
    model_config = ConfigDict(from_attributes=True)


class ComboBase(ZonePrices, Redeemable):
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    is_active: bool = True
    sort_order: int = 0


class ComboCreate(ComboBase):
    precio_pickup_capital: Decimal = Field(ge=0)
    precio_domicilio_capital: Decimal = Field(ge=0)
    precio_pickup_interior: Decimal = Field(ge=0)
    precio_domicilio_interior: Decimal = Field(ge=0)
    items: List[ComboItemCreate] = []


class ComboUpdate(ZonePrices):
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    category_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None
    points_cost: Optional[int] = Field(default=None, ge=1)
    is_redeemable: Optional[bool] = None
    sort_order: Optional[int] = None
    items: Optional[List[ComboItemCreate]] = None


class Combo(ComboBase):
    id: uuid.UUID
    items: List[ComboItem] = []
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ReorderRequest(BaseModel):
    ids: List[uuid.UUID]


class OptionsPriceRequest(BaseModel):
    option_ids: List[uuid.UUID]


class OptionsPrice(BaseModel):
    total: Decimal
    savings: Decimal


class MenuCategory(BaseModel):
    id: uuid.UUID
    name: str
    uses_variants: bool
    is_combo_category: bool
    sort_order: int
    products: List[Product] = []
    combos: List[Combo] = []


class PriceQuote(BaseModel):
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    original_subtotal: Decimal
    discount: Decimal
    is_daily_special: bool
    options_modifier: Decimal
    promotion: Optional[Dict[str, Any]] = None
