"""Per-request tenant context used for authorization."""

from dataclasses import dataclass
from suagrana.models.user import User
from suagrana.models.tenant import Tenant
from suagrana.models.role import TenantRole


@dataclass
class TenantContext:
    """
    The authenticated user, the tenant the request targets and the
    user's role in it.

    Built by the get_tenant_context dependency after the membership has
    been verified. Services take it instead of raw ids so every query is
    scoped to context.tenant.id.
    """

    user: User
    tenant: Tenant
    role: TenantRole

    @property
    def tenant_id(self) -> int:
        return self.tenant.id

    @property
    def user_id(self) -> int:
        return self.user.id

    def has_permission(self, required_role: TenantRole) -> bool:
        """True if the user's role meets or exceeds required_role"""
        return self.role.rank >= required_role.rank

    def is_owner(self) -> bool:
        return self.role == TenantRole.OWNER

    def is_admin_or_higher(self) -> bool:
        return self.has_permission(TenantRole.ADMIN)

    def can_write(self) -> bool:
        """MEMBER or higher may change financial data"""
        return self.has_permission(TenantRole.MEMBER)

    def __repr__(self) -> str:
        return f"<TenantContext(user_id={self.user.id}, tenant_id={self.tenant.id}, role={self.role.value})>"
