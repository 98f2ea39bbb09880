from datetime import date
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from suagrana.models.investment import Dividend, Investment, InvestmentType


class InvestmentRepository:
    """Repository for Investment and Dividend operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_with_filters(
        self,
        tenant_id: int,
        investment_type: Optional[InvestmentType] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Investment], int]:
        query = self.db.query(Investment).filter(Investment.tenant_id == tenant_id)

        if investment_type is not None:
            query = query.filter(Investment.investment_type == investment_type)
        if search:
            query = query.filter(
                or_(Investment.symbol.ilike(f"%{search}%"), Investment.name.ilike(f"%{search}%"))
            )

        total = query.count()
        investments = (
            query.options(selectinload(Investment.dividends))
            .order_by(Investment.purchase_date.desc(), Investment.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return investments, total

    def get_all(self, tenant_id: int) -> list[Investment]:
        return (
            self.db.query(Investment)
            .options(selectinload(Investment.dividends))
            .filter(Investment.tenant_id == tenant_id)
            .order_by(Investment.id.asc())
            .all()
        )

    def get_by_id_and_tenant(self, investment_id: int, tenant_id: int) -> Investment | None:
        return (
            self.db.query(Investment)
            .options(selectinload(Investment.dividends))
            .filter(Investment.id == investment_id, Investment.tenant_id == tenant_id)
            .first()
        )

    def get_dividends(
        self,
        tenant_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Dividend]:
        query = (
            self.db.query(Dividend)
            .join(Investment, Dividend.investment_id == Investment.id)
            .options(selectinload(Dividend.investment))
            .filter(Investment.tenant_id == tenant_id)
        )
        if start_date is not None:
            query = query.filter(Dividend.payment_date >= start_date)
        if end_date is not None:
            query = query.filter(Dividend.payment_date <= end_date)
        return query.order_by(Dividend.payment_date.desc(), Dividend.id.desc()).all()

    def create(self, investment: Investment) -> Investment:
        self.db.add(investment)
        self.db.commit()
        self.db.refresh(investment)
        return investment

    def add_dividend(self, dividend: Dividend) -> Dividend:
        self.db.add(dividend)
        self.db.commit()
        self.db.refresh(dividend)
        return dividend

    def update(self, investment: Investment) -> Investment:
        self.db.commit()
        self.db.refresh(investment)
        return investment

    def delete(self, investment: Investment) -> None:
        self.db.delete(investment)
        self.db.commit()
