import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class PushNotificationLog(Base):
    """One FCM delivery attempt to a customer device."""
    __tablename__ = 'push_notification_logs'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    customer_id = Column(UUID(as_uuid=True), ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    device_id = Column(UUID(as_uuid=True), ForeignKey('customer_devices.id', ondelete='SET NULL'), nullable=True)
    event_type = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=True)
    data = Column(JSONB, nullable=True)
    status = Column(String(20), nullable=False, default='pending')  # pending|sent|failed
    provider_message_id = Column(String(255), nullable=True)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_push_notification_logs_customer_created', 'customer_id', 'created_at'),
        Index('idx_push_notification_logs_status', 'status'),
        Index('idx_push_notification_logs_event_type', 'event_type'),
    )
