from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, EmailStr, Field
from suagrana.models.role import TenantRole
from suagrana.schemas.common import Pagination


class TenantResponse(BaseModel):
    """Tenant details response"""

    id: int
    name: str
    slug: str
    settings: Optional[dict[str, Any]] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TenantWithRoleResponse(BaseModel):
    id: int
    name: str
    slug: str
    role: TenantRole
    created_at: datetime


class TenantUpdate(BaseModel):
    """Update tenant details (OWNER only)"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    settings: Optional[dict[str, Any]] = None


class TenantMemberResponse(BaseModel):
    """Tenant member with user info"""

    id: int
    user_id: int
    email: str
    name: str
    role: TenantRole
    created_at: datetime


class TenantInviteRequest(BaseModel):
    """Add an existing user to the tenant"""

    email: EmailStr
    role: TenantRole = Field(default=TenantRole.MEMBER, description="Role to assign (default: MEMBER)")


class TenantRoleUpdate(BaseModel):
    role: TenantRole = Field(..., description="New role to assign")


class TenantMemberRemoveResponse(BaseModel):
    removed_user_id: int


class AuditEventResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    entity_type: str
    entity_id: Optional[int] = None
    action: str
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    severity: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditEventListData(BaseModel):
    events: list[AuditEventResponse]
    pagination: Pagination
