import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CustomerTypeBase(BaseModel):
    name: str
    points_required: int = Field(default=0, ge=0)
    multiplier: Decimal = Field(default=Decimal("1"), ge=1)
    color: Optional[str] = None
    is_active: bool = True


class CustomerTypeCreate(CustomerTypeBase):
    pass


class CustomerTypeUpdate(BaseModel):
    name: Optional[str] = None
    points_required: Optional[int] = Field(default=None, ge=0)
    multiplier: Optional[Decimal] = Field(default=None, ge=1)
    color: Optional[str] = None
    is_active: Optional[bool] = None


class CustomerType(CustomerTypeBase):
    id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class CustomerBase(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    birth_date: Optional[date] = None


class CustomerRegister(CustomerBase):
    password: str = Field(min_length=8)
    device_identifier: Optional[str] = None
    device_name: Optional[str] = None
    fcm_token: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str):
        v = (v or "").strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class CustomerUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    birth_date: Optional[date] = None


class Customer(CustomerBase):
    id: uuid.UUID
    points: int
    customer_type: Optional[CustomerType] = None
    email_verified_at: Optional[datetime] = None
    last_purchase_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class AddressBase(BaseModel):
    label: str
    address_line: str
    latitude: Decimal = Field(ge=-90, le=90)
    longitude: Decimal = Field(ge=-180, le=180)
    delivery_notes: Optional[str] = None
    is_default: bool = False


class AddressCreate(AddressBase):
    pass


class AddressUpdate(BaseModel):
    label: Optional[str] = None
    address_line: Optional[str] = None
    latitude: Optional[Decimal] = Field(default=None, ge=-90, le=90)
    longitude: Optional[Decimal] = Field(default=None, ge=-180, le=180)
    delivery_notes: Optional[str] = None
    is_default: Optional[bool] = None


class Address(AddressBase):
    id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class NitBase(BaseModel):
    nit: str
    nit_type: str = "personal"
    business_name: Optional[str] = None
    is_default: bool = False

    @field_validator("nit_type")
    @classmethod
    def _check_type(cls, v: str):
        if v not in {"personal", "company", "other"}:
            raise ValueError("nit_type must be personal, company or other")
        return v


class NitCreate(NitBase):
    pass


class NitUpdate(BaseModel):
    nit: Optional[str] = None
    nit_type: Optional[str] = None
    business_name: Optional[str] = None
    is_default: Optional[bool] = None


class Nit(NitBase):
    id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class DeviceRegister(BaseModel):
    fcm_token: str
    device_identifier: Optional[str] = None
    device_name: Optional[str] = None


class Device(BaseModel):
    id: uuid.UUID
    device_identifier: Optional[str] = None
    device_name: Optional[str] = None
    is_active: bool
    last_used_at: Optional[datetime] = None
    login_count: int
    model_config = ConfigDict(from_attributes=True)


class NotificationBroadcast(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    body: str = Field(min_length=1)
    data: Optional[Dict[str, Any]] = None
    # Everyone with a verified email when omitted
    customer_ids: Optional[List[uuid.UUID]] = None


class NotificationResult(BaseModel):
    sent: int
    failed: int
    customers: int


class PointsSettingUpdate(BaseModel):
    quetzales_per_point: Optional[Decimal] = Field(default=None, gt=0)
    rounding_threshold: Optional[Decimal] = Field(default=None, ge=0, le=1)
    expiration_months: Optional[int] = Field(default=None, ge=1)
    expiration_method: Optional[Literal["fifo", "total"]] = None


class PointsSetting(BaseModel):
    quetzales_per_point: Decimal
    rounding_threshold: Decimal
    expiration_months: int
    expiration_method: str
    model_config = ConfigDict(from_attributes=True)


class PointsTransaction(BaseModel):
    id: uuid.UUID
    order_id: Optional[uuid.UUID] = None
    points: int
    type: str
    description: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_expired: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PointsBalance(BaseModel):
    points: int
    customer_type: Optional[CustomerType] = None
    transactions: List[PointsTransaction] = []


class Reward(BaseModel):
    type: Literal["product", "variant", "combo"]
    id: uuid.UUID
    name: str
    points_cost: int
    description: Optional[str] = None
    image: Optional[str] = None


class RewardList(BaseModel):
    data: List[Reward]
    total: int


class RedeemRequest(BaseModel):
    order_id: uuid.UUID
    points_to_redeem: int = Field(ge=1)


class RedeemResult(BaseModel):
    transaction: PointsTransaction
    points: int
    customer_type: Optional[CustomerType] = None


class FavoriteCreate(BaseModel):
    favorable_type: Literal["product", "combo"]
    favorable_id: uuid.UUID


class Favorite(BaseModel):
    id: uuid.UUID
    favorable_type: str
    favorable_id: uuid.UUID
    name: Optional[str] = None
    created_at: datetime


class PasswordChange(BaseModel):
    current_password: Optional[str] = None
    password: str = Field(min_length=8)
