"""Repository for Tenant model operations."""

from sqlalchemy.orm import Session
from suagrana.models.tenant import Tenant


class TenantRepository:
    """Repository for Tenant model operations"""

    def __init__(self, db: Session):
        self.db = db

    def slug_exists(self, slug: str) -> bool:
        return self.db.query(Tenant.id).filter(Tenant.slug == slug).first() is not None

    def create_no_commit(self, tenant: Tenant) -> Tenant:
        """Add a tenant and assign its id; the caller commits"""
        self.db.add(tenant)
        self.db.flush()
        return tenant

    def update(self, tenant: Tenant) -> Tenant:
        self.db.commit()
        self.db.refresh(tenant)
        return tenant
