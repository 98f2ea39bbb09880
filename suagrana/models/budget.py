from datetime import date
from decimal import Decimal
from enum import Enum as PyEnum
from typing import TYPE_CHECKING
from sqlalchemy import String, Integer, Numeric, ForeignKey, Date, Enum, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from suagrana.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from suagrana.models.category import Category


class BudgetPeriod(str, PyEnum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Budget(Base, TimestampMixin):
    """
    Spending limit for an expense category.

    Spending is never stored; it is summed from completed expense
    transactions of the category inside the current period.
    """

    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    period: Mapped[BudgetPeriod] = mapped_column(
        Enum(BudgetPeriod, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=BudgetPeriod.MONTHLY,
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    alert_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=80)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    category: Mapped["Category"] = relationship("Category")

    __table_args__ = (
        Index("ix_budgets_tenant_active", "tenant_id", "is_active"),
    )

    @property
    def category_name(self) -> str:
        return self.category.name

    def __repr__(self) -> str:
        return f"<Budget(id={self.id}, category_id={self.category_id}, amount={self.amount})>"
