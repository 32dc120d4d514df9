import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ordering.utils.choices import ServiceTypeEnum, ZoneEnum


class ComboSelection(BaseModel):
    combo_item_id: uuid.UUID
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    selected_options: List[uuid.UUID] = []


class CartItemAdd(BaseModel):
    product_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    combo_id: Optional[uuid.UUID] = None
    combinado_id: Optional[uuid.UUID] = None
    quantity: int = Field(default=1, ge=1, le=99)
    selected_options: List[uuid.UUID] = []
    combo_selections: List[ComboSelection] = []
    notes: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _exactly_one_target(self):
        targets = [t for t in (self.product_id, self.combo_id, self.combinado_id) if t is not None]
        if len(targets) != 1:
            raise ValueError("Provide exactly one of product_id, combo_id or combinado_id")
        return self


class CartItemUpdate(BaseModel):
    quantity: Optional[int] = Field(default=None, ge=1, le=99)
    selected_options: Optional[List[uuid.UUID]] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class CartRestaurantUpdate(BaseModel):
    restaurant_id: uuid.UUID


class CartServiceTypeUpdate(BaseModel):
    service_type: ServiceTypeEnum
    zone: Optional[ZoneEnum] = None


class CartDeliveryAddressUpdate(BaseModel):
    delivery_address_id: uuid.UUID


class CartItem(BaseModel):
    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    combo_id: Optional[uuid.UUID] = None
    combinado_id: Optional[uuid.UUID] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    selected_options: Optional[List[Dict[str, Any]]] = None
    combo_selections: Optional[List[Dict[str, Any]]] = None
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class ItemDiscount(BaseModel):
    discount_amount: Decimal
    original_price: Decimal
    final_price: Decimal
    is_daily_special: bool = False
    applied_promotion: Optional[Dict[str, Any]] = None


class AppliedPromotion(BaseModel):
    id: Optional[uuid.UUID] = None
    name: str
    type: str
    discount_amount: Decimal
    item_ids: List[uuid.UUID] = []


class CartSummary(BaseModel):
    subtotal: Decimal
    discounts: Decimal
    delivery_fee: Decimal
    total: Decimal
    items_count: int
    promotions_applied: List[AppliedPromotion] = []
    item_discounts: Dict[str, ItemDiscount] = {}


class Cart(BaseModel):
    id: uuid.UUID
    restaurant_id: Optional[uuid.UUID] = None
    service_type: str
    zone: str
    delivery_address_id: Optional[uuid.UUID] = None
    status: str
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None
    items: List[CartItem] = []
    model_config = ConfigDict(from_attributes=True)


class CartWithSummary(BaseModel):
    cart: Cart
    summary: CartSummary


class CartValidation(BaseModel):
    valid: bool
    messages: List[str] = []
