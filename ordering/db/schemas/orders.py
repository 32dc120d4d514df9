import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ordering.utils.choices import OrderStatusEnum, PaymentMethodEnum, ServiceTypeEnum


class OrderCreate(BaseModel):
    payment_method: PaymentMethodEnum = PaymentMethodEnum.cash
    nit_id: Optional[uuid.UUID] = None
    scheduled_for: Optional[datetime] = None
    delivery_address_id: Optional[uuid.UUID] = None
    notes: Optional[str] = Field(default=None, max_length=500)


class OrderCancel(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class OrderStatusUpdate(BaseModel):
    status: OrderStatusEnum
    notes: Optional[str] = None


class AssignDriver(BaseModel):
    driver_id: uuid.UUID


class OrderItem(BaseModel):
    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    variant_id: Optional[uuid.UUID] = None
    combo_id: Optional[uuid.UUID] = None
    combinado_id: Optional[uuid.UUID] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    options_price: Decimal
    discount_amount: Decimal
    final_price: Decimal
    selected_options: Optional[List[Dict[str, Any]]] = None
    combo_selections: Optional[List[Dict[str, Any]]] = None
    product_snapshot: Optional[Dict[str, Any]] = None
    promotion_snapshot: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class OrderPromotion(BaseModel):
    promotion_id: Optional[uuid.UUID] = None
    promotion_type: str
    promotion_name: str
    discount_amount: Decimal
    description: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class OrderStatusHistory(BaseModel):
    previous_status: Optional[str] = None
    new_status: str
    changed_by_type: str
    changed_by_id: Optional[uuid.UUID] = None
    notes: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class Order(BaseModel):
    id: uuid.UUID
    order_number: str
    customer_id: uuid.UUID
    restaurant_id: uuid.UUID
    driver_id: Optional[uuid.UUID] = None
    service_type: ServiceTypeEnum
    zone: str
    delivery_address_snapshot: Optional[Dict[str, Any]] = None
    subtotal: Decimal
    discount_total: Decimal
    delivery_fee: Decimal
    total: Decimal
    status: str
    payment_method: str
    payment_status: str
    points_earned: int
    scheduled_for: Optional[datetime] = None
    estimated_ready_at: Optional[datetime] = None
    ready_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    items: List[OrderItem] = []
    promotions: List[OrderPromotion] = []
    model_config = ConfigDict(from_attributes=True)


class OrderDetail(Order):
    status_history: List[OrderStatusHistory] = []


class PaginatedOrders(BaseModel):
    items: List[Order]
    total: int
    page: int
    per_page: int
    last_page: int


class ReorderResult(BaseModel):
    cart_id: uuid.UUID
    items_added: int
    skipped: List[str] = []


class OrderStatistics(BaseModel):
    by_status: Dict[str, int]
    total: int
    completed_today: int
