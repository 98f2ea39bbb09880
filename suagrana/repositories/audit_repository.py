from typing import Optional
from sqlalchemy.orm import Session
from suagrana.models.audit_event import AuditEvent


class AuditRepository:
    """Append and page through a tenant's audit trail"""

    def __init__(self, db: Session):
        self.db = db

    def add_no_commit(self, event: AuditEvent) -> AuditEvent:
        """Stage an event; it is committed together with the audited change"""
        self.db.add(event)
        return event

    def get_by_tenant(
        self,
        tenant_id: int,
        entity_type: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[AuditEvent], int]:
        query = self.db.query(AuditEvent).filter(AuditEvent.tenant_id == tenant_id)
        if entity_type:
            query = query.filter(AuditEvent.entity_type == entity_type)

        total = query.count()
        events = (
            query.order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return events, total
