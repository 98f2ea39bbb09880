from decimal import Decimal
from sqlalchemy import Integer, Numeric, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING, Optional
from suagrana.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from suagrana.models.account import Account
    from suagrana.models.category import Category
    from suagrana.models.transaction import Transaction


class Entry(Base, TimestampMixin):
    """
    One side of a posting. Exactly one of debit and credit is positive.

    For user-facing accounts a credit is money in and a debit money out.
    """

    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transaction_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("accounts.id"), nullable=False, index=True
    )
    category_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    debit: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00")
    )
    credit: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00")
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    transaction: Mapped["Transaction"] = relationship("Transaction", back_populates="entries")
    account: Mapped["Account"] = relationship("Account", back_populates="entries")
    category: Mapped[Optional["Category"]] = relationship("Category")

    __table_args__ = (
        CheckConstraint("debit >= 0 AND credit >= 0", name="ck_entry_non_negative"),
        CheckConstraint(
            "(debit > 0 AND credit = 0) OR (credit > 0 AND debit = 0)",
            name="ck_entry_one_side",
        ),
    )

    def __repr__(self) -> str:
        return f"<Entry(id={self.id}, account_id={self.account_id}, debit={self.debit}, credit={self.credit})>"
