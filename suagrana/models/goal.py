from datetime import date
from decimal import Decimal
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, Numeric, ForeignKey, Date, Text, Enum, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column
from suagrana.models.base import Base, TimestampMixin


class GoalPriority(str, PyEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalStatus(str, PyEnum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


class RecurringPeriod(str, PyEnum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class Goal(Base, TimestampMixin):
    """Savings target tracked against a deadline"""

    __tablename__ = "goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    current_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00")
    )
    target_date: Mapped[date] = mapped_column(Date, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    priority: Mapped[GoalPriority] = mapped_column(
        Enum(GoalPriority, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=GoalPriority.MEDIUM,
    )
    status: Mapped[GoalStatus] = mapped_column(
        Enum(GoalStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=GoalStatus.ACTIVE,
    )
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurring_period: Mapped[RecurringPeriod | None] = mapped_column(
        Enum(RecurringPeriod, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=True,
    )

    __table_args__ = (
        Index("ix_goals_tenant_status", "tenant_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Goal(id={self.id}, name='{self.name}', status={self.status.value})>"
