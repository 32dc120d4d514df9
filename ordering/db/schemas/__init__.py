"""
Domain-split Pydantic schemas with an aggregator.

Routers import request/response models from here rather than from the
individual modules.
"""

from .users import (
    UserBase,
    UserCreate,
    User,
    PermissionRead,
    RoleBase,
    RoleCreate,
    RoleUpdate,
    Role,
    PermissionSyncResult,
)
from .menu import (
    ZonePrices,
    CategoryBase,
    CategoryCreate,
    CategoryUpdate,
    Category,
    SectionOptionCreate,
    SectionOption,
    SectionCreate,
    SectionUpdate,
    Section,
    VariantCreate,
    VariantUpdate,
    Variant,
    ProductCreate,
    ProductUpdate,
    Product,
    ComboItemCreate,
    ComboItem,
    ComboCreate,
    ComboUpdate,
    Combo,
    ReorderRequest,
    OptionsPriceRequest,
    OptionsPrice,
    MenuCategory,
    PriceQuote,
)
from .promotions import (
    PromotionItemCreate,
    PromotionItem,
    BundleItemCreate,
    BundleItem,
    PromotionCreate,
    PromotionUpdate,
    Promotion,
)
from .restaurants import DaySchedule, RestaurantCreate, RestaurantUpdate, Restaurant
from .customers import (
    CustomerTypeCreate,
    CustomerTypeUpdate,
    CustomerType,
    CustomerRegister,
    CustomerUpdate,
    Customer,
    AddressCreate,
    AddressUpdate,
    Address,
    NitCreate,
    NitUpdate,
    Nit,
    DeviceRegister,
    Device,
    NotificationBroadcast,
    NotificationResult,
    PointsSettingUpdate,
    PointsSetting,
    PointsTransaction,
    PointsBalance,
    Reward,
    RewardList,
    RedeemRequest,
    RedeemResult,
    FavoriteCreate,
    Favorite,
    PasswordChange,
)
from .tokens import LoginRequest, TokenCreateResponse, TokenInfo
from .carts import (
    ComboSelection,
    CartItemAdd,
    CartItemUpdate,
    CartRestaurantUpdate,
    CartServiceTypeUpdate,
    CartDeliveryAddressUpdate,
    CartItem,
    ItemDiscount,
    AppliedPromotion,
    CartSummary,
    Cart,
    CartWithSummary,
    CartValidation,
)
from .orders import (
    OrderCreate,
    OrderCancel,
    OrderStatusUpdate,
    AssignDriver,
    OrderItem,
    OrderPromotion,
    OrderStatusHistory,
    Order,
    OrderDetail,
    PaginatedOrders,
    ReorderResult,
    OrderStatistics,
)
from .audits import AuditLogBase, AuditLog, ActivityCreate, FeedUser, FeedEntry, ActivityFeed
