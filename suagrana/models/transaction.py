import datetime as dt
from decimal import Decimal
from enum import Enum as PyEnum
from sqlalchemy import (
    String,
    Integer,
    Numeric,
    ForeignKey,
    Date,
    Text,
    JSON,
    Enum,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING, Optional
from suagrana.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from suagrana.models.account import Account
    from suagrana.models.category import Category
    from suagrana.models.entry import Entry
    from suagrana.models.user import User


class TransactionType(str, PyEnum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionStatus(str, PyEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REVERSED = "reversed"


# Statuses whose entries count towards account balances. A reversed
# transaction stays posted and is offset by its reversal.
POSTED_STATUSES = (TransactionStatus.COMPLETED, TransactionStatus.REVERSED)


class Transaction(Base, TimestampMixin):
    """
    A financial event made of balanced ledger entries.

    amount is always positive; direction comes from type and from the
    entries. account_id is the user-facing account the event belongs to
    (the source for transfers) and to_account_id the transfer destination.
    """

    __tablename__ = "transactions"

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
    transaction_type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=TransactionStatus.COMPLETED,
    )
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id"), nullable=False, index=True
    )
    to_account_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("accounts.id"), nullable=True
    )
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    external_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reversal_of_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True
    )

    account: Mapped["Account"] = relationship("Account", foreign_keys=[account_id])
    to_account: Mapped[Optional["Account"]] = relationship("Account", foreign_keys=[to_account_id])
    category: Mapped[Optional["Category"]] = relationship("Category")
    creator: Mapped[Optional["User"]] = relationship("User")
    entries: Mapped[list["Entry"]] = relationship(
        "Entry",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="Entry.id",
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "external_id", name="uq_transaction_tenant_external_id"),
        Index("ix_transactions_tenant_date", "tenant_id", "date"),
        Index("ix_transactions_tenant_status", "tenant_id", "status"),
    )

    @property
    def category_name(self) -> str | None:
        return self.category.name if self.category else None

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, type={self.transaction_type.value}, "
            f"amount={self.amount}, status={self.status.value})>"
        )
