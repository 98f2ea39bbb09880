from decimal import Decimal
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, Numeric, ForeignKey, Enum, Boolean, Text, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import TYPE_CHECKING
from suagrana.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from suagrana.models.tenant import Tenant
    from suagrana.models.entry import Entry


class AccountType(str, PyEnum):
    """Account type enumeration"""

    CHECKING = "checking"
    SAVINGS = "savings"
    INVESTMENT = "investment"
    CREDIT_CARD = "credit_card"
    CASH = "cash"
    OTHER = "other"
    # Nominal accounts, one of each per tenant, created by the ledger
    INCOME = "income"
    EXPENSE = "expense"


USER_ACCOUNT_TYPES = (
    AccountType.CHECKING,
    AccountType.SAVINGS,
    AccountType.INVESTMENT,
    AccountType.CREDIT_CARD,
    AccountType.CASH,
    AccountType.OTHER,
)
NOMINAL_ACCOUNT_TYPES = (AccountType.INCOME, AccountType.EXPENSE)


class Account(Base, TimestampMixin):
    """
    A ledger account owned by a tenant.

    There is no stored balance. The balance is opening_balance plus the sum
    of credits minus debits of the account's posted entries, see
    EntryRepository.get_balances.
    """

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(
        Enum(AccountType, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="BRL")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    opening_balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00")
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_system: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="accounts")
    entries: Mapped[list["Entry"]] = relationship("Entry", back_populates="account")

    __table_args__ = (
        Index("ix_accounts_tenant_type", "tenant_id", "account_type"),
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id}, name='{self.name}', type={self.account_type.value})>"
