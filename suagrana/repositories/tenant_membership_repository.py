"""Repository for TenantMembership model operations."""

from sqlalchemy.orm import Session, joinedload
from suagrana.models.tenant_membership import TenantMembership


class TenantMembershipRepository:
    """Repository for TenantMembership model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_membership(self, user_id: int, tenant_id: int) -> TenantMembership | None:
        """
        Get membership for a specific user in a specific tenant.

        Args:
            user_id: User ID
            tenant_id: Tenant ID

        Returns:
            TenantMembership object or None if not found
        """
        return (
            self.db.query(TenantMembership)
            .options(joinedload(TenantMembership.tenant))
            .filter(
                TenantMembership.user_id == user_id,
                TenantMembership.tenant_id == tenant_id,
            )
            .first()
        )

    def get_default_membership(self, user_id: int) -> TenantMembership | None:
        """The user's oldest membership, used when no tenant header is sent"""
        return (
            self.db.query(TenantMembership)
            .options(joinedload(TenantMembership.tenant))
            .filter(TenantMembership.user_id == user_id)
            .order_by(TenantMembership.created_at.asc(), TenantMembership.id.asc())
            .first()
        )

    def get_tenant_members(self, tenant_id: int) -> list[TenantMembership]:
        """All memberships of a tenant with their users loaded"""
        return (
            self.db.query(TenantMembership)
            .options(joinedload(TenantMembership.user))
            .filter(TenantMembership.tenant_id == tenant_id)
            .order_by(TenantMembership.id.asc())
            .all()
        )

    def get_user_memberships(self, user_id: int) -> list[TenantMembership]:
        """All memberships of a user with their tenants loaded"""
        return (
            self.db.query(TenantMembership)
            .options(joinedload(TenantMembership.tenant))
            .filter(TenantMembership.user_id == user_id)
            .order_by(TenantMembership.id.asc())
            .all()
        )

    def create(self, membership: TenantMembership) -> TenantMembership:
        """
        Create a new tenant membership.

        Raises:
            IntegrityError: If (tenant_id, user_id) already exists
        """
        self.db.add(membership)
        self.db.commit()
        self.db.refresh(membership)
        return membership

    def create_no_commit(self, membership: TenantMembership) -> TenantMembership:
        self.db.add(membership)
        self.db.flush()
        return membership

    def update(self, membership: TenantMembership) -> TenantMembership:
        self.db.commit()
        self.db.refresh(membership)
        return membership

    def delete(self, membership: TenantMembership) -> None:
        self.db.delete(membership)
        self.db.commit()
