import re
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ordering.utils.choices import ZoneEnum

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class DaySchedule(BaseModel):
    is_open: bool = False
    open: Optional[str] = None
    close: Optional[str] = None

    @field_validator("open", "close")
    @classmethod
    def _hhmm(cls, v: Optional[str]):
        if v is not None and not _HHMM.match(v):
            raise ValueError("Times must use HH:MM")
        return v


def _validate_schedule(v: Optional[Dict[str, DaySchedule]]):
    if v is None:
        return v
    unknown = set(v) - set(WEEKDAY_NAMES)
    if unknown:
        raise ValueError(f"Unknown weekdays in schedule: {sorted(unknown)}")
    return v


class RestaurantBase(BaseModel):
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    is_active: bool = True
    delivery_active: bool = True
    pickup_active: bool = True
    price_location: ZoneEnum = ZoneEnum.capital
    schedule: Optional[Dict[str, DaySchedule]] = None
    minimum_order_amount: Decimal = Field(default=Decimal("0"), ge=0)
    estimated_pickup_time: Optional[int] = Field(default=None, ge=0)
    estimated_delivery_time: Optional[int] = Field(default=None, ge=0)
    sort_order: int = 0

    @field_validator("schedule")
    @classmethod
    def _check_schedule(cls, v):
        return _validate_schedule(v)


class RestaurantCreate(RestaurantBase):
    pass


class RestaurantUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    latitude: Optional[Decimal] = None
    longitude: Optional[Decimal] = None
    is_active: Optional[bool] = None
    delivery_active: Optional[bool] = None
    pickup_active: Optional[bool] = None
    price_location: Optional[ZoneEnum] = None
    schedule: Optional[Dict[str, DaySchedule]] = None
    minimum_order_amount: Optional[Decimal] = Field(default=None, ge=0)
    estimated_pickup_time: Optional[int] = None
    estimated_delivery_time: Optional[int] = None
    sort_order: Optional[int] = None

    @field_validator("schedule")
    @classmethod
    def _check_schedule(cls, v):
        return _validate_schedule(v)


class Restaurant(RestaurantBase):
    id: uuid.UUID
    created_at: datetime
    open_now: Optional[bool] = None
    model_config = ConfigDict(from_attributes=True)
