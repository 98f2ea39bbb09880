"""Tenant role enum for role-based access control."""

from enum import Enum as PyEnum


class TenantRole(str, PyEnum):
    """
    Roles a user can hold inside a tenant, highest first.

    - OWNER: edits the tenant itself and changes member roles
    - ADMIN: invites and removes members, reads the audit trail
    - MEMBER: creates and edits financial data
    - VIEWER: read-only access
    """

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"

    @property
    def rank(self) -> int:
        return ROLE_RANK[self]


ROLE_RANK = {
    TenantRole.OWNER: 4,
    TenantRole.ADMIN: 3,
    TenantRole.MEMBER: 2,
    TenantRole.VIEWER: 1,
}
