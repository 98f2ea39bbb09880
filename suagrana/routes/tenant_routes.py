from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from suagrana.core.exceptions import ForbiddenException
from suagrana.database import get_db
from suagrana.dependencies import get_current_user, get_tenant_context
from suagrana.models.tenant_context import TenantContext
from suagrana.models.user import User
from suagrana.schemas.common import ApiResponse, Pagination, page_offset
from suagrana.schemas.tenant_schemas import (
    AuditEventListData,
    AuditEventResponse,
    TenantInviteRequest,
    TenantMemberRemoveResponse,
    TenantMemberResponse,
    TenantResponse,
    TenantRoleUpdate,
    TenantUpdate,
    TenantWithRoleResponse,
)
from suagrana.services.audit_service import AuditService
from suagrana.services.tenant_service import TenantService

router = APIRouter()


@router.get("", response_model=ApiResponse[list[TenantWithRoleResponse]])
def list_user_tenants(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    List every tenant the authenticated user belongs to.

    Does not need a tenant context, which makes it the entry point for
    switching tenants.
    """
    return ApiResponse(data=TenantService(db).list_user_tenants(user))


@router.get("/me", response_model=ApiResponse[TenantResponse])
def get_current_tenant(context: TenantContext = Depends(get_tenant_context)):
    return ApiResponse(data=TenantResponse.model_validate(context.tenant))


@router.patch("/me", response_model=ApiResponse[TenantResponse])
def update_tenant(
    tenant_update: TenantUpdate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """
    Update tenant name or settings.

    - **Requires OWNER permissions**
    """
    tenant = TenantService(db).update_tenant(tenant_update, context)
    return ApiResponse(data=TenantResponse.model_validate(tenant), message="Tenant updated")


@router.get("/me/members", response_model=ApiResponse[list[TenantMemberResponse]])
def list_members(context: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    """Members of the current tenant; available to every role"""
    return ApiResponse(data=TenantService(db).get_members(context))


@router.post("/me/members", response_model=ApiResponse[TenantMemberResponse], status_code=201)
def invite_member(
    invite_request: TenantInviteRequest,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """
    Add a registered user to the current tenant.

    - **Requires ADMIN or OWNER permissions**
    - Only an OWNER can add another OWNER
    - 404 if no user has the email, 409 if already a member
    """
    member = TenantService(db).invite_member(invite_request, context)
    return ApiResponse(data=member, message="Member added")


@router.patch("/me/members/{user_id}/role", response_model=ApiResponse[TenantMemberResponse])
def update_member_role(
    user_id: int,
    role_update: TenantRoleUpdate,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """
    Change a member's role.

    - **Requires OWNER permissions**
    - Cannot change your own role or the owner's role
    """
    membership = TenantService(db).update_member_role(user_id, role_update, context)
    return ApiResponse(
        data={
            "id": membership.id,
            "user_id": membership.user_id,
            "email": membership.user.email,
            "name": membership.user.name,
            "role": membership.role,
            "created_at": membership.created_at,
        },
        message="Role updated",
    )


@router.delete("/me/members/{user_id}", response_model=ApiResponse[TenantMemberRemoveResponse])
def remove_member(
    user_id: int,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """
    Remove a member from the current tenant.

    - **Requires ADMIN or OWNER permissions**
    - Cannot remove yourself or the owner
    """
    TenantService(db).remove_member(user_id, context)
    return ApiResponse(
        data=TenantMemberRemoveResponse(removed_user_id=user_id),
        message=f"User {user_id} removed from tenant",
    )


@router.get("/me/audit", response_model=ApiResponse[AuditEventListData])
def list_audit_events(
    entity_type: Optional[str] = Query(None, description="Filter by entity type"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """
    Audit trail of the current tenant, newest first.

    - **Requires ADMIN or OWNER permissions**
    """
    if not context.is_admin_or_higher():
        raise ForbiddenException("Only admins and owners can read the audit trail")

    events, total = AuditService(db).list_events(
        context, entity_type, limit=limit, offset=page_offset(page, limit)
    )
    return ApiResponse(
        data=AuditEventListData(
            events=[AuditEventResponse.model_validate(e) for e in events],
            pagination=Pagination.build(page, limit, total),
        )
    )
