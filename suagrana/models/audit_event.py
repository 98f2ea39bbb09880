from sqlalchemy import String, Integer, ForeignKey, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from suagrana.models.base import Base, TimestampMixin


class AuditEvent(Base, TimestampMixin):
    """
    Append-only record of a change to tenant data.

    Written in the same database transaction as the change it describes.
    """

    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    old_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    new_values: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, default="info")

    __table_args__ = (
        Index("ix_audit_events_tenant_entity", "tenant_id", "entity_type"),
    )

    def __repr__(self) -> str:
        return f"<AuditEvent(id={self.id}, {self.entity_type}:{self.entity_id} {self.action})>"
