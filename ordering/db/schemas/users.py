import uuid
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, field_validator


class UserBase(BaseModel):
    email: str
    display_name: str | None = None


class UserCreate(UserBase):
    restaurant_id: Optional[uuid.UUID] = None
    is_driver: bool = False
    role_ids: List[uuid.UUID] = []


class User(UserBase):
    id: uuid.UUID
    is_superadmin: bool
    is_active: bool
    is_driver: bool
    restaurant_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PermissionRead(BaseModel):
    id: uuid.UUID
    name: str
    display_name: str
    description: Optional[str] = None
    group: str
    model_config = ConfigDict(from_attributes=True)


class RoleBase(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str):
        v = (v or "").strip()
        if not v:
            raise ValueError("Role name is required")
        return v


class RoleCreate(RoleBase):
    permission_ids: List[uuid.UUID] = []


class RoleUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    permission_ids: Optional[List[uuid.UUID]] = None


class Role(RoleBase):
    id: uuid.UUID
    is_system: bool
    created_at: datetime
    permissions: List[str] = []
    model_config = ConfigDict(from_attributes=True)


class PermissionSyncResult(BaseModel):
    created: int
    updated: int
    deleted: int
    total: int
