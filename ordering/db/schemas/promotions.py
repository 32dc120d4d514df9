import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ordering.utils.choices import PromotionTypeEnum, ValidityTypeEnum, ServiceTypeEnum


def _check_weekdays(days: Optional[List[int]]):
    for day in days or []:
        if day < 1 or day > 7:
            raise ValueError("weekdays must be ISO weekdays 1..7")


class PromotionItemBase(BaseModel):
    product_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    category_id: Optional[uuid.UUID] = None
    discount_percentage: Optional[int] = Field(default=None, ge=1, le=100)
    service_type: Optional[ServiceTypeEnum] = None
    validity_type: ValidityTypeEnum = ValidityTypeEnum.permanent
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    time_from: Optional[time] = None
    time_until: Optional[time] = None
    weekdays: Optional[List[int]] = None

    @model_validator(mode="after")
    def _check_scope_and_window(self):
        if not (self.product_id or self.variant_id or self.category_id):
            raise ValueError("A promotion item needs a product, variant or category")
        _check_weekdays(self.weekdays)
        if self.validity_type in (ValidityTypeEnum.date_range, ValidityTypeEnum.date_time_range):
            if not (self.valid_from and self.valid_until):
                raise ValueError("valid_from and valid_until are required for date ranges")
            if self.valid_until < self.valid_from:
                raise ValueError("valid_until must not be before valid_from")
        if self.validity_type in (ValidityTypeEnum.time_range, ValidityTypeEnum.date_time_range):
            if not (self.time_from and self.time_until):
                raise ValueError("time_from and time_until are required for time ranges")
        return self


class PromotionItemCreate(PromotionItemBase):
    pass


class PromotionItem(PromotionItemBase):
    id: uuid.UUID
    promotion_id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class BundleItemOptionCreate(BaseModel):
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    sort_order: int = 0


class BundleItemOption(BundleItemOptionCreate):
    id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class BundleItemCreate(BaseModel):
    product_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    is_choice_group: bool = False
    choice_label: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    sort_order: int = 0
    options: List[BundleItemOptionCreate] = []


class BundleItem(BaseModel):
    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    is_choice_group: bool
    choice_label: Optional[str] = None
    quantity: int
    sort_order: int
    options: List[BundleItemOption] = []
    model_config = ConfigDict(from_attributes=True)


class PromotionBase(BaseModel):
    name: str
    description: Optional[str] = None
    type: PromotionTypeEnum
    special_bundle_price_capital: Optional[Decimal] = Field(default=None, ge=0)
    special_bundle_price_interior: Optional[Decimal] = Field(default=None, ge=0)
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    time_from: Optional[time] = None
    time_until: Optional[time] = None
    weekdays: Optional[List[int]] = None
    is_active: bool = True
    sort_order: int = 0


class PromotionCreate(PromotionBase):
    items: List[PromotionItemCreate] = []
    bundle_items: List[BundleItemCreate] = []

    @model_validator(mode="after")
    def _check_type_requirements(self):
        _check_weekdays(self.weekdays)
        if self.type == PromotionTypeEnum.bundle_special:
            if self.special_bundle_price_capital is None or self.special_bundle_price_interior is None:
                raise ValueError("Bundle specials need capital and interior prices")
        if self.type == PromotionTypeEnum.percentage_discount:
            for item in self.items:
                if item.discount_percentage is None:
                    raise ValueError("Percentage promotions need discount_percentage on every item")
        return self


class PromotionUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    special_bundle_price_capital: Optional[Decimal] = None
    special_bundle_price_interior: Optional[Decimal] = None
    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    time_from: Optional[time] = None
    time_until: Optional[time] = None
    weekdays: Optional[List[int]] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None
    items: Optional[List[PromotionItemCreate]] = None
    bundle_items: Optional[List[BundleItemCreate]] = None


class Promotion(PromotionBase):
    id: uuid.UUID
    created_at: datetime
    items: List[PromotionItem] = []
    bundle_items: List[BundleItem] = []
    model_config = ConfigDict(from_attributes=True)
