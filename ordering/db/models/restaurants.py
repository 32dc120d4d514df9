import uuid
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, Numeric, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc, money_column
from ordering.utils.runtime import to_local

DEFAULT_PICKUP_PREPARATION_MINUTES = 15


class Restaurant(Base):
    __tablename__ = 'restaurants'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(320), nullable=True)
    latitude = Column(Numeric(10, 7), nullable=True)
    longitude = Column(Numeric(10, 7), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    delivery_active = Column(Boolean, nullable=False, default=True)
    pickup_active = Column(Boolean, nullable=False, default=True)
    # Which price column set applies to orders placed here: capital|interior
    price_location = Column(String(20), nullable=False, default='capital')
    # {"monday": {"is_open": true, "open": "08:00", "close": "21:00"}, ...}
    schedule = Column(JSONB, nullable=True)
    minimum_order_amount = money_column(nullable=False, default=0)
    estimated_pickup_time = Column(Integer, nullable=True)
    estimated_delivery_time = Column(Integer, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('idx_restaurants_is_active', 'is_active'),
    )

    def schedule_for(self, moment: Optional[datetime] = None) -> Optional[dict]:
        """Today's schedule entry when the restaurant opens that day, else None."""
        if not self.schedule:
            return None
        day = self.schedule.get(to_local(moment).strftime('%A').lower())
        if not day or not day.get('is_open') or not day.get('open') or not day.get('close'):
            return None
        return day

    def is_open_now(self, moment: Optional[datetime] = None) -> bool:
        if not self.is_active:
            return False
        day = self.schedule_for(moment)
        if day is None:
            return False
        current = to_local(moment).strftime('%H:%M')
        return day['open'] <= current <= day['close']

    def last_order_time(self, service_type: str = 'pickup', moment: Optional[datetime] = None) -> Optional[str]:
        """Latest HH:MM an order is accepted today.

        Pickup stops taking orders the preparation time before closing;
        delivery takes them until closing.
        """
        day = self.schedule_for(moment)
        if day is None:
            return None
        if service_type != 'pickup':
            return day['close']
        minutes = self.estimated_pickup_time if self.estimated_pickup_time is not None else DEFAULT_PICKUP_PREPARATION_MINUTES
        close = datetime.strptime(day['close'], '%H:%M')
        return (close - timedelta(minutes=minutes)).strftime('%H:%M')

    def can_accept_orders_now(self, service_type: str = 'pickup', moment: Optional[datetime] = None) -> bool:
        if not self.is_active:
            return False
        if service_type == 'pickup' and not self.pickup_active:
            return False
        if service_type == 'delivery' and not self.delivery_active:
            return False
        day = self.schedule_for(moment)
        if day is None:
            return False
        current = to_local(moment).strftime('%H:%M')
        if current < day['open']:
            return False
        return current <= self.last_order_time(service_type, moment)
