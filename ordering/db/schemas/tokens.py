import uuid
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, field_validator

from .customers import Customer


class LoginRequest(BaseModel):
    email: str
    password: str
    device_identifier: Optional[str] = None
    device_name: Optional[str] = None
    fcm_token: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str):
        return (v or "").strip().lower()


class TokenCreateResponse(BaseModel):
    token: str  # one-time secret string
    token_type: str = "bearer"
    expires_at: Optional[datetime] = None
    customer: Customer


class TokenInfo(BaseModel):
    token_id: str
    customer_id: uuid.UUID
    status: str
    expires_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
