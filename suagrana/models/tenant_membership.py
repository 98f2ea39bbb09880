"""Tenant membership model linking users to tenants with roles."""

from sqlalchemy import Integer, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING

from suagrana.models.base import Base, TimestampMixin
from suagrana.models.role import TenantRole

if TYPE_CHECKING:
    from suagrana.models.user import User
    from suagrana.models.tenant import Tenant


class TenantMembership(Base, TimestampMixin):
    """
    A user's role inside one tenant.

    A user gets an OWNER membership in a personal tenant at registration
    and may be invited into other tenants. There is at most one membership
    per (tenant, user) pair.
    """

    __tablename__ = "tenant_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[TenantRole] = mapped_column(
        Enum(TenantRole, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=TenantRole.MEMBER,
    )

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="memberships")
    user: Mapped["User"] = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_tenant_user"),
    )

    def __repr__(self) -> str:
        return f"<TenantMembership(tenant_id={self.tenant_id}, user_id={self.user_id}, role={self.role.value})>"
