import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session

from suagrana.core.dates import month_bounds
from suagrana.core.exceptions import NotFoundException, ValidationException
from suagrana.models.investment import Dividend, Investment, InvestmentType
from suagrana.models.tenant_context import TenantContext
from suagrana.repositories.investment_repository import InvestmentRepository
from suagrana.schemas.investment_schemas import DividendCreate, InvestmentCreate, InvestmentUpdate

logger = logging.getLogger(__name__)


def investment_metrics(investment: Investment) -> dict:
    """
    Valuation of a holding. Without a current price the position is marked
    at its purchase price.
    """
    quantity = float(investment.quantity)
    purchase_price = float(investment.purchase_price)
    price = float(investment.current_price) if investment.current_price is not None else purchase_price

    total_invested = quantity * purchase_price
    current_value = quantity * price
    gain_loss = current_value - total_invested
    total_dividends = sum(float(d.amount) for d in investment.dividends)

    return {
        "total_invested": round(total_invested, 2),
        "current_value": round(current_value, 2),
        "gain_loss": round(gain_loss, 2),
        "gain_loss_percentage": round(gain_loss / total_invested * 100, 2) if total_invested > 0 else 0.0,
        "total_dividends": round(total_dividends, 2),
        "dividend_yield": round(total_dividends / total_invested * 100, 2) if total_invested > 0 else 0.0,
    }


class InvestmentService:
    """Service for investment holdings and dividends"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = InvestmentRepository(db)

    def get_investment(self, investment_id: int, context: TenantContext) -> Investment:
        investment = self.repo.get_by_id_and_tenant(investment_id, context.tenant_id)
        if not investment:
            raise NotFoundException("Investment not found")
        return investment

    def list_investments(
        self,
        context: TenantContext,
        investment_type: Optional[InvestmentType] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Investment], int]:
        return self.repo.get_with_filters(context.tenant_id, investment_type, search, limit, offset)

    def get_portfolio_summary(self, context: TenantContext) -> dict:
        investments = self.repo.get_all(context.tenant_id)

        total_invested = 0.0
        current_value = 0.0
        total_dividends = 0.0
        allocation: dict[InvestmentType, dict] = {}
        for investment in investments:
            metrics = investment_metrics(investment)
            total_invested += metrics["total_invested"]
            current_value += metrics["current_value"]
            total_dividends += metrics["total_dividends"]
            slot = allocation.setdefault(
                investment.investment_type,
                {"investment_type": investment.investment_type, "count": 0, "current_value": 0.0},
            )
            slot["count"] += 1
            slot["current_value"] += metrics["current_value"]

        for slot in allocation.values():
            slot["percentage"] = (
                round(slot["current_value"] / current_value * 100, 2) if current_value > 0 else 0.0
            )
            slot["current_value"] = round(slot["current_value"], 2)

        gain_loss = current_value - total_invested
        return {
            "total_investments": len(investments),
            "total_invested": round(total_invested, 2),
            "current_value": round(current_value, 2),
            "gain_loss": round(gain_loss, 2),
            "gain_loss_percentage": round(gain_loss / total_invested * 100, 2) if total_invested > 0 else 0.0,
            "total_dividends": round(total_dividends, 2),
            "allocation": sorted(allocation.values(), key=lambda s: s["current_value"], reverse=True),
        }

    def list_dividends(
        self, context: TenantContext, year: Optional[int] = None, month: Optional[int] = None
    ) -> list[Dividend]:
        """
        Dividends of the tenant, optionally limited to a year or a month.

        Raises:
            ValidationException: If month is given without year
        """
        start_date = end_date = None
        if month is not None and year is None:
            raise ValidationException("month filter requires year")
        if year is not None and month is not None:
            start_date, end_date = month_bounds(year, month)
        elif year is not None:
            start_date, end_date = date(year, 1, 1), date(year, 12, 31)
        return self.repo.get_dividends(context.tenant_id, start_date, end_date)

    def create_investment(self, data: InvestmentCreate, context: TenantContext) -> Investment:
        investment = Investment(
            tenant_id=context.tenant_id,
            created_by=context.user_id,
            symbol=data.symbol,
            name=data.name.strip(),
            investment_type=data.investment_type,
            quantity=Decimal(str(data.quantity)),
            purchase_price=Decimal(str(data.purchase_price)),
            current_price=Decimal(str(data.current_price)) if data.current_price is not None else None,
            purchase_date=data.purchase_date,
            notes=data.notes,
        )
        investment = self.repo.create(investment)
        logger.info(
            "Investment created investment_id=%s symbol=%s tenant_id=%s user_id=%s",
            investment.id, investment.symbol, context.tenant_id, context.user_id,
        )
        return investment

    def update_investment(self, investment_id: int, data: InvestmentUpdate, context: TenantContext) -> Investment:
        investment = self.get_investment(investment_id, context)
        updates = data.model_dump(exclude_unset=True)

        for field, value in updates.items():
            if field in ("quantity", "purchase_price", "current_price") and value is not None:
                value = Decimal(str(value))
            if value is None and field not in ("current_price", "notes"):
                continue
            setattr(investment, field, value)
        return self.repo.update(investment)

    def delete_investment(self, investment_id: int, context: TenantContext) -> None:
        """Delete a holding together with its dividends"""
        investment = self.get_investment(investment_id, context)
        self.repo.delete(investment)
        logger.info("Investment deleted investment_id=%s tenant_id=%s", investment_id, context.tenant_id)

    def add_dividend(self, investment_id: int, data: DividendCreate, context: TenantContext) -> Dividend:
        investment = self.get_investment(investment_id, context)
        dividend = self.repo.add_dividend(
            Dividend(
                investment_id=investment.id,
                amount=Decimal(str(data.amount)),
                payment_date=data.payment_date,
                dividend_type=data.dividend_type,
            )
        )
        logger.info(
            "Dividend added investment_id=%s amount=%s tenant_id=%s user_id=%s",
            investment.id, dividend.amount, context.tenant_id, context.user_id,
        )
        return dividend
