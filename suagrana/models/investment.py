from datetime import date
from decimal import Decimal
from enum import Enum as PyEnum
from sqlalchemy import String, Integer, Numeric, ForeignKey, Date, Text, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from suagrana.models.base import Base, TimestampMixin


class InvestmentType(str, PyEnum):
    STOCK = "stock"
    BOND = "bond"
    FUND = "fund"
    ETF = "etf"
    CRYPTO = "crypto"
    REAL_ESTATE = "real_estate"
    OTHER = "other"


class DividendType(str, PyEnum):
    CASH = "cash"
    STOCK = "stock"
    OTHER = "other"


class Investment(Base, TimestampMixin):
    """A holding bought at purchase_price and marked at current_price"""

    __tablename__ = "investments"

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
    symbol: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    investment_type: Mapped[InvestmentType] = mapped_column(
        Enum(InvestmentType, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=8), nullable=False)
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    current_price: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=15, scale=2), nullable=True
    )
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    dividends: Mapped[list["Dividend"]] = relationship(
        "Dividend",
        back_populates="investment",
        cascade="all, delete-orphan",
        order_by="Dividend.payment_date.desc()",
    )

    def __repr__(self) -> str:
        return f"<Investment(id={self.id}, symbol='{self.symbol}')>"


class Dividend(Base, TimestampMixin):
    __tablename__ = "dividends"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    investment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("investments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=15, scale=2), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    dividend_type: Mapped[DividendType] = mapped_column(
        Enum(DividendType, native_enum=False, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=DividendType.CASH,
    )

    investment: Mapped["Investment"] = relationship("Investment", back_populates="dividends")

    def __repr__(self) -> str:
        return f"<Dividend(id={self.id}, investment_id={self.investment_id}, amount={self.amount})>"
