import uuid
from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field


class AuditLogBase(BaseModel):
    action_type: str
    status: str
    target_type: Optional[str] = None
    target_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="metadata_json")


class AuditLog(AuditLogBase):
    id: uuid.UUID
    actor_user_id: Optional[uuid.UUID] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ActivityCreate(BaseModel):
    activity_type: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None
    url: Optional[str] = Field(default=None, max_length=500)
    method: Optional[str] = Field(default=None, max_length=10)
    metadata: Optional[Dict[str, Any]] = None


class FeedUser(BaseModel):
    id: Optional[uuid.UUID] = None
    name: str
    email: Optional[str] = None
    initials: str


class FeedEntry(BaseModel):
    id: str
    source: str
    event_type: str
    description: Optional[str] = None
    target_type: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime
    user: FeedUser


class ActivityFeed(BaseModel):
    data: List[FeedEntry]
    total: int
    page: int
    per_page: int
    last_page: int
