from typing import Optional
from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from suagrana.config import settings
from suagrana.core.exceptions import (
    ForbiddenException,
    UnauthorizedException,
    ValidationException,
)
from suagrana.core.security import extract_user_id
from suagrana.database import get_db
from suagrana.models.tenant_context import TenantContext
from suagrana.models.user import User
from suagrana.repositories.tenant_membership_repository import TenantMembershipRepository
from suagrana.repositories.user_repository import UserRepository

security = HTTPBearer(auto_error=False)


def get_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Access token from the Authorization header, falling back to the cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
    if token:
        return token
    raise UnauthorizedException("Access token required")


def get_current_user(token: str = Depends(get_token), db: Session = Depends(get_db)) -> User:
    """
    FastAPI dependency returning the authenticated user.

    Raises:
        UnauthorizedException: If the token is invalid or the user no longer
            exists or is inactive
    """
    user_id = extract_user_id(token)
    user = UserRepository(db).get_by_id(user_id)
    if not user or not user.is_active:
        raise UnauthorizedException("User not found or inactive")
    return user


def get_tenant_context(
    x_tenant_id: Optional[str] = Header(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> TenantContext:
    """
    Resolve the tenant a request acts on.

    Flow:
    1. Use the x-tenant-id header when present
    2. Otherwise fall back to the user's oldest membership
    3. Verify the membership and that the tenant is active

    Raises:
        ValidationException: If the header is not a tenant id
        ForbiddenException: If the user is not a member of the tenant
    """
    membership_repo = TenantMembershipRepository(db)

    if x_tenant_id is not None and x_tenant_id.strip():
        try:
            tenant_id = int(x_tenant_id)
        except ValueError:
            raise ValidationException("Invalid x-tenant-id header")
        membership = membership_repo.get_membership(user.id, tenant_id)
    else:
        membership = membership_repo.get_default_membership(user.id)

    if not membership:
        raise ForbiddenException("Access to this tenant is not allowed")
    if not membership.tenant.is_active:
        raise ForbiddenException("Tenant is inactive")

    return TenantContext(user=user, tenant=membership.tenant, role=membership.role)


def require_member(context: TenantContext = Depends(get_tenant_context)) -> TenantContext:
    """Tenant context for write operations (MEMBER or higher)"""
    if not context.can_write():
        raise ForbiddenException("Viewers cannot modify financial data")
    return context
