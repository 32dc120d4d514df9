"""
Domain-split SQLAlchemy models with an aggregator.

Importing this package registers every ORM class on `Base.metadata`, which is
what Alembic autogenerate and the SQLite test schema rely on.
"""

from .base import Base, now_utc  # re-export

# Domain models
from .users import User, Role, Permission, RolePermission, UserRole
from .restaurants import Restaurant
from .menu import (
    Category,
    Product,
    CategoryProduct,
    ProductVariant,
    Section,
    SectionOption,
    ProductSection,
    Combo,
    ComboItem,
    ComboItemOption,
)
from .promotions import Promotion, PromotionItem, BundlePromotionItem, BundlePromotionItemOption
from .customers import (
    CustomerType,
    Customer,
    CustomerAddress,
    CustomerNit,
    CustomerDevice,
    CustomerAccessToken,
    CustomerFavorite,
    PointsSetting,
    PointsTransaction,
)
from .carts import Cart, CartItem
from .orders import Order, OrderItem, OrderPromotion, OrderStatusHistory, OrderNumberSequence
from .audit import AuditLog, UserActivity
from .notifications import PushNotificationLog

__all__ = [
    # base
    "Base",
    "now_utc",
    # staff
    "User",
    "Role",
    "Permission",
    "RolePermission",
    "UserRole",
    # restaurants
    "Restaurant",
    # menu
    "Category",
    "Product",
    "CategoryProduct",
    "ProductVariant",
    "Section",
    "SectionOption",
    "ProductSection",
    "Combo",
    "ComboItem",
    "ComboItemOption",
    # promotions
    "Promotion",
    "PromotionItem",
    "BundlePromotionItem",
    "BundlePromotionItemOption",
    # customers/loyalty
    "CustomerType",
    "Customer",
    "CustomerAddress",
    "CustomerNit",
    "CustomerDevice",
    "CustomerAccessToken",
    "CustomerFavorite",
    "PointsSetting",
    "PointsTransaction",
    # carts/orders
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderPromotion",
    "OrderStatusHistory",
    "OrderNumberSequence",
    # audit/activity
    "AuditLog",
    "UserActivity",
    # push
    "PushNotificationLog",
]
