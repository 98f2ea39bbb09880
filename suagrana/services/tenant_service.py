import logging
from sqlalchemy.orm import Session

from suagrana.core.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from suagrana.models.role import TenantRole
from suagrana.models.tenant import Tenant
from suagrana.models.tenant_context import TenantContext
from suagrana.models.tenant_membership import TenantMembership
from suagrana.models.user import User
from suagrana.repositories.tenant_membership_repository import TenantMembershipRepository
from suagrana.repositories.tenant_repository import TenantRepository
from suagrana.repositories.user_repository import UserRepository
from suagrana.schemas.tenant_schemas import (
    TenantInviteRequest,
    TenantRoleUpdate,
    TenantUpdate,
)
from suagrana.services.audit_service import AuditService

logger = logging.getLogger(__name__)


class TenantService:
    """Service layer for tenant and membership administration"""

    def __init__(self, db: Session):
        self.db = db
        self.tenant_repo = TenantRepository(db)
        self.membership_repo = TenantMembershipRepository(db)
        self.user_repo = UserRepository(db)
        self.audit = AuditService(db)

    def list_user_tenants(self, user: User) -> list[dict]:
        """Every tenant the user belongs to, with the user's role in each"""
        return [
            {
                "id": m.tenant.id,
                "name": m.tenant.name,
                "slug": m.tenant.slug,
                "role": m.role,
                "created_at": m.tenant.created_at,
            }
            for m in self.membership_repo.get_user_memberships(user.id)
        ]

    def update_tenant(self, tenant_update: TenantUpdate, context: TenantContext) -> Tenant:
        """
        Update tenant name and settings (OWNER only).

        Raises:
            ForbiddenException: If user is not OWNER
        """
        if not context.is_owner():
            raise ForbiddenException("Only owner can update tenant details")

        tenant = context.tenant
        updates = tenant_update.model_dump(exclude_unset=True, exclude_none=True)
        old_values = {key: getattr(tenant, key) for key in updates}
        for key, value in updates.items():
            setattr(tenant, key, value)

        self.audit.record(context, "tenant", tenant.id, "update", old_values, updates)
        return self.tenant_repo.update(tenant)

    def get_members(self, context: TenantContext) -> list[dict]:
        return [
            {
                "id": m.id,
                "user_id": m.user_id,
                "email": m.user.email,
                "name": m.user.name,
                "role": m.role,
                "created_at": m.created_at,
            }
            for m in self.membership_repo.get_tenant_members(context.tenant_id)
        ]

    def invite_member(self, invite_request: TenantInviteRequest, context: TenantContext) -> dict:
        """
        Add an existing user to the tenant (ADMIN or OWNER).

        Raises:
            ForbiddenException: If user lacks admin permissions or an ADMIN
                tries to add an OWNER
            NotFoundException: If no user has that email
            ConflictException: If the user is already a member
        """
        if not context.is_admin_or_higher():
            raise ForbiddenException("Only admins and owners can invite members")

        if invite_request.role == TenantRole.OWNER and not context.is_owner():
            raise ForbiddenException("Only owner can invite other owners")

        user = self.user_repo.get_by_email(invite_request.email)
        if not user:
            raise NotFoundException("User not found")

        if self.membership_repo.get_membership(user.id, context.tenant_id):
            raise ConflictException(f"User {user.email} is already a member")

        self.audit.record(
            context, "membership", user.id, "invite", new_values={"role": invite_request.role.value}
        )
        membership = self.membership_repo.create(
            TenantMembership(tenant_id=context.tenant_id, user_id=user.id, role=invite_request.role)
        )
        logger.info(
            "Member added tenant_id=%s user_id=%s role=%s by=%s",
            context.tenant_id, user.id, membership.role.value, context.user_id,
        )
        return {
            "id": membership.id,
            "user_id": user.id,
            "email": user.email,
            "name": user.name,
            "role": membership.role,
            "created_at": membership.created_at,
        }

    def update_member_role(
        self, user_id: int, role_update: TenantRoleUpdate, context: TenantContext
    ) -> TenantMembership:
        """
        Change a member's role (OWNER only).

        Raises:
            ForbiddenException: If user is not OWNER, targets themself or the owner
            NotFoundException: If membership not found
        """
        if not context.is_owner():
            raise ForbiddenException("Only owner can change member roles")

        membership = self.membership_repo.get_membership(user_id, context.tenant_id)
        if not membership:
            raise NotFoundException("Member not found in this tenant")

        if user_id == context.user_id:
            raise ForbiddenException("Cannot change your own role")

        if membership.role == TenantRole.OWNER:
            raise ForbiddenException("Cannot change owner's role")

        self.audit.record(
            context,
            "membership",
            user_id,
            "role_change",
            old_values={"role": membership.role.value},
            new_values={"role": role_update.role.value},
        )
        membership.role = role_update.role
        return self.membership_repo.update(membership)

    def remove_member(self, user_id: int, context: TenantContext) -> None:
        """
        Remove a member (ADMIN or OWNER).

        Raises:
            ForbiddenException: If user lacks permissions, targets themself or the owner
            NotFoundException: If membership not found
        """
        if not context.is_admin_or_higher():
            raise ForbiddenException("Only admins and owners can remove members")

        membership = self.membership_repo.get_membership(user_id, context.tenant_id)
        if not membership:
            raise NotFoundException("Member not found in this tenant")

        if user_id == context.user_id:
            raise ForbiddenException("Cannot remove yourself from tenant")

        if membership.role == TenantRole.OWNER:
            raise ForbiddenException("Cannot remove owner from tenant")

        self.audit.record(
            context, "membership", user_id, "remove", old_values={"role": membership.role.value},
            severity="warning",
        )
        self.membership_repo.delete(membership)
        logger.info(
            "Member removed tenant_id=%s user_id=%s by=%s", context.tenant_id, user_id, context.user_id
        )
