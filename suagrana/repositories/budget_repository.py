from datetime import date
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from suagrana.models.budget import Budget, BudgetPeriod
from suagrana.models.category import Category
from suagrana.models.transaction import Transaction, TransactionStatus, TransactionType


class BudgetRepository:
    """Repository for Budget model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_with_filters(
        self,
        tenant_id: int,
        period: Optional[BudgetPeriod] = None,
        is_active: Optional[bool] = None,
        category_id: Optional[int] = None,
    ) -> list[Budget]:
        """Active budgets first, then by category name"""
        query = (
            self.db.query(Budget)
            .join(Category, Budget.category_id == Category.id)
            .options(selectinload(Budget.category))
            .filter(Budget.tenant_id == tenant_id)
        )
        if period is not None:
            query = query.filter(Budget.period == period)
        if is_active is not None:
            query = query.filter(Budget.is_active.is_(is_active))
        if category_id is not None:
            query = query.filter(Budget.category_id == category_id)
        return query.order_by(Budget.is_active.desc(), Category.name.asc(), Budget.id.asc()).all()

    def get_by_id_and_tenant(self, budget_id: int, tenant_id: int) -> Budget | None:
        return self.db.query(Budget).filter(Budget.id == budget_id, Budget.tenant_id == tenant_id).first()

    def get_active_for_category(
        self,
        tenant_id: int,
        category_id: int,
        period: BudgetPeriod,
        exclude_id: Optional[int] = None,
    ) -> Budget | None:
        query = self.db.query(Budget).filter(
            Budget.tenant_id == tenant_id,
            Budget.category_id == category_id,
            Budget.period == period,
            Budget.is_active.is_(True),
        )
        if exclude_id is not None:
            query = query.filter(Budget.id != exclude_id)
        return query.first()

    def category_has_budgets(self, category_id: int) -> bool:
        return self.db.query(Budget.id).filter(Budget.category_id == category_id).first() is not None

    def _spending(self, tenant_id: int, category_id: int, start_date: date, end_date: date):
        # reversal pairs cancel out, so neither side counts as spending
        return self.db.query(Transaction).filter(
            Transaction.tenant_id == tenant_id,
            Transaction.category_id == category_id,
            Transaction.transaction_type == TransactionType.EXPENSE,
            Transaction.status == TransactionStatus.COMPLETED,
            Transaction.reversal_of_id.is_(None),
            Transaction.date >= start_date,
            Transaction.date <= end_date,
        )

    def get_spent(self, tenant_id: int, category_id: int, start_date: date, end_date: date) -> tuple[float, int]:
        """
        Returns:
            Tuple of (amount spent, expense count) in the date range
        """
        total, count = (
            self._spending(tenant_id, category_id, start_date, end_date)
            .with_entities(func.coalesce(func.sum(Transaction.amount), 0), func.count(Transaction.id))
            .one()
        )
        return float(total), count

    def get_daily_spending(self, tenant_id: int, category_id: int, start_date: date, end_date: date) -> list:
        """
        Returns:
            Rows of (date, amount spent)
        """
        return (
            self._spending(tenant_id, category_id, start_date, end_date)
            .with_entities(Transaction.date, func.sum(Transaction.amount))
            .group_by(Transaction.date)
            .order_by(Transaction.date.asc())
            .all()
        )

    def create(self, budget: Budget) -> Budget:
        self.db.add(budget)
        self.db.commit()
        self.db.refresh(budget)
        return budget

    def update(self, budget: Budget) -> Budget:
        self.db.commit()
        self.db.refresh(budget)
        return budget

    def delete(self, budget: Budget) -> None:
        self.db.delete(budget)
        self.db.commit()
