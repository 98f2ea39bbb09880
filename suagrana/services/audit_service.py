import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from sqlalchemy.orm import Session

from suagrana.models.audit_event import AuditEvent
from suagrana.models.tenant_context import TenantContext
from suagrana.repositories.audit_repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Writes and reads the tenant audit trail"""

    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditRepository(db)

    def record(
        self,
        context: TenantContext,
        entity_type: str,
        entity_id: Optional[int],
        action: str,
        old_values: Optional[dict[str, Any]] = None,
        new_values: Optional[dict[str, Any]] = None,
        severity: str = "info",
    ) -> AuditEvent:
        """
        Stage an audit event in the current session.

        Nothing is committed here: the event lands in the same database
        transaction as the change it describes.
        """
        event = AuditEvent(
            tenant_id=context.tenant_id,
            user_id=context.user_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            old_values=old_values,
            new_values=new_values,
            severity=severity,
        )
        logger.debug(
            "Audit %s %s:%s tenant=%s user=%s",
            action, entity_type, entity_id, context.tenant_id, context.user_id,
        )
        return self.audit_repo.add_no_commit(event)

    def list_events(
        self,
        context: TenantContext,
        entity_type: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[AuditEvent], int]:
        return self.audit_repo.get_by_tenant(context.tenant_id, entity_type, limit, offset)


def snapshot(obj: Any, fields: tuple[str, ...]) -> dict[str, Any]:
    """JSON-safe copy of selected attributes for old_values/new_values"""
    values = {}
    for field in fields:
        value = getattr(obj, field)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, Decimal):
            value = float(value)
        elif isinstance(value, (date, datetime)):
            value = value.isoformat()
        values[field] = value
    return values
