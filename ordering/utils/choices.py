"""
Domain vocabulary constants and enums.

Centralized definitions for zones, service types, promotion types and order
states so string literals are not scattered across the codebase.
"""

from typing import FrozenSet
from enum import Enum

# Price zones
ZONE_CAPITAL = "capital"
ZONE_INTERIOR = "interior"
ALL_ZONES: FrozenSet[str] = frozenset({ZONE_CAPITAL, ZONE_INTERIOR})

# Service types
SERVICE_PICKUP = "pickup"
SERVICE_DELIVERY = "delivery"
ALL_SERVICE_TYPES: FrozenSet[str] = frozenset({SERVICE_PICKUP, SERVICE_DELIVERY})

# Promotion types
PROMO_TWO_FOR_ONE = "two_for_one"
PROMO_PERCENTAGE = "percentage_discount"
PROMO_DAILY_SPECIAL = "daily_special"
PROMO_BUNDLE = "bundle_special"
ALL_PROMOTION_TYPES: FrozenSet[str] = frozenset(
    {PROMO_TWO_FOR_ONE, PROMO_PERCENTAGE, PROMO_DAILY_SPECIAL, PROMO_BUNDLE}
)

# Promotion item validity types
VALIDITY_PERMANENT = "permanent"
VALIDITY_WEEKDAYS = "weekdays"
VALIDITY_DATE_RANGE = "date_range"
VALIDITY_TIME_RANGE = "time_range"
VALIDITY_DATE_TIME_RANGE = "date_time_range"

# Cart states
CART_ACTIVE = "active"
CART_CONVERTED = "converted"
CART_ABANDONED = "abandoned"

# Order states
ORDER_PENDING = "pending"
ORDER_PREPARING = "preparing"
ORDER_READY = "ready"
ORDER_OUT_FOR_DELIVERY = "out_for_delivery"
ORDER_DELIVERED = "delivered"
ORDER_COMPLETED = "completed"
ORDER_CANCELLED = "cancelled"
ORDER_REFUNDED = "refunded"
ALL_ORDER_STATUSES = (
    ORDER_PENDING,
    ORDER_PREPARING,
    ORDER_READY,
    ORDER_OUT_FOR_DELIVERY,
    ORDER_DELIVERED,
    ORDER_COMPLETED,
    ORDER_CANCELLED,
    ORDER_REFUNDED,
)
TERMINAL_ORDER_STATUSES: FrozenSet[str] = frozenset({ORDER_COMPLETED, ORDER_CANCELLED, ORDER_REFUNDED})
ACTIVE_ORDER_STATUSES: FrozenSet[str] = frozenset(
    {ORDER_PENDING, ORDER_PREPARING, ORDER_READY, ORDER_OUT_FOR_DELIVERY, ORDER_DELIVERED}
)

PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"
PAYMENT_REFUNDED = "refunded"

# Who changed an order's status
CHANGED_BY_CUSTOMER = "customer"
CHANGED_BY_USER = "user"
CHANGED_BY_SYSTEM = "system"

# Points transaction types
POINTS_EARNED = "earned"
POINTS_REDEEMED = "redeemed"
POINTS_EXPIRED = "expired"

# Points expiration methods
EXPIRATION_FIFO = "fifo"
EXPIRATION_TOTAL = "total"
ALL_EXPIRATION_METHODS: FrozenSet[str] = frozenset({EXPIRATION_FIFO, EXPIRATION_TOTAL})

# Favorite and reward item kinds
ITEM_PRODUCT = "product"
ITEM_VARIANT = "variant"
ITEM_COMBO = "combo"


def is_valid_zone(zone: str) -> bool:
    return zone in ALL_ZONES


def is_valid_service_type(service_type: str) -> bool:
    return service_type in ALL_SERVICE_TYPES


class ZoneEnum(str, Enum):
    capital = ZONE_CAPITAL
    interior = ZONE_INTERIOR


class ServiceTypeEnum(str, Enum):
    pickup = SERVICE_PICKUP
    delivery = SERVICE_DELIVERY


class PromotionTypeEnum(str, Enum):
    two_for_one = PROMO_TWO_FOR_ONE
    percentage_discount = PROMO_PERCENTAGE
    daily_special = PROMO_DAILY_SPECIAL
    bundle_special = PROMO_BUNDLE


class ValidityTypeEnum(str, Enum):
    permanent = VALIDITY_PERMANENT
    weekdays = VALIDITY_WEEKDAYS
    date_range = VALIDITY_DATE_RANGE
    time_range = VALIDITY_TIME_RANGE
    date_time_range = VALIDITY_DATE_TIME_RANGE


class OrderStatusEnum(str, Enum):
    pending = ORDER_PENDING
    preparing = ORDER_PREPARING
    ready = ORDER_READY
    out_for_delivery = ORDER_OUT_FOR_DELIVERY
    delivered = ORDER_DELIVERED
    completed = ORDER_COMPLETED
    cancelled = ORDER_CANCELLED
    refunded = ORDER_REFUNDED


class PaymentMethodEnum(str, Enum):
    cash = "cash"
    card = "card"
