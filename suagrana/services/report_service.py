import logging
from datetime import date, timedelta
from typing import Optional
from sqlalchemy.orm import Session

from suagrana.core.dates import iter_months, month_key, shift_months
from suagrana.core.exceptions import ValidationException
from suagrana.models.tenant_context import TenantContext
from suagrana.models.transaction import TransactionType
from suagrana.repositories.transaction_repository import TransactionRepository
from suagrana.services.account_service import AccountService
from suagrana.services.goal_service import GoalService
from suagrana.services.investment_service import InvestmentService
from suagrana.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


def _check_range(start_date: date, end_date: date) -> None:
    if start_date > end_date:
        raise ValidationException("start_date must be on or before end_date")


class ReportService:
    """Read-only aggregations over the tenant's data"""

    def __init__(self, db: Session):
        self.db = db
        self.transaction_repo = TransactionRepository(db)

    def _expense_by_category(self, tenant_id: int, start_date: date, end_date: date) -> dict:
        rows = self.transaction_repo.get_category_totals(
            tenant_id, start_date, end_date, transaction_type=TransactionType.EXPENSE
        )
        return {
            category_id: (name or "Uncategorized", float(total or 0), count)
            for category_id, name, _, total, count in rows
        }

    def category_spending(
        self, context: TenantContext, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> dict:
        """
        Expense per category compared with the preceding period of the same
        length. Defaults to the current month up to today.
        """
        today = date.today()
        start_date = start_date or today.replace(day=1)
        end_date = end_date or today
        _check_range(start_date, end_date)

        length = (end_date - start_date).days + 1
        previous_end = start_date - timedelta(days=1)
        previous_start = previous_end - timedelta(days=length - 1)

        current = self._expense_by_category(context.tenant_id, start_date, end_date)
        previous = self._expense_by_category(context.tenant_id, previous_start, previous_end)
        total_spending = sum(total for _, total, _ in current.values())

        categories = []
        for category_id, (name, total, count) in current.items():
            previous_total = previous.get(category_id, (name, 0.0, 0))[1]
            categories.append(
                {
                    "category_id": category_id,
                    "category": name,
                    "total": round(total, 2),
                    "count": count,
                    "average": round(total / count, 2) if count else 0.0,
                    "percentage": round(total / total_spending * 100, 2) if total_spending > 0 else 0.0,
                    "previous_total": round(previous_total, 2),
                    "change_percentage": (
                        round((total - previous_total) / previous_total * 100, 2)
                        if previous_total > 0 else None
                    ),
                }
            )
        categories.sort(key=lambda c: c["total"], reverse=True)

        return {
            "start_date": start_date,
            "end_date": end_date,
            "previous_start_date": previous_start,
            "previous_end_date": previous_end,
            "total_spending": round(total_spending, 2),
            "categories": categories,
        }

    def cash_flow(
        self, context: TenantContext, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> dict:
        """Monthly income, expense and net. Defaults to the last six months."""
        today = date.today()
        end_date = end_date or today
        start_date = start_date or shift_months(end_date.replace(day=1), -5)
        _check_range(start_date, end_date)

        months = {
            key: {"month": key, "income": 0.0, "expense": 0.0, "net": 0.0}
            for key in iter_months(start_date, end_date)
        }
        # Days are bucketed here so the query stays portable across databases
        for day, transaction_type, total in self.transaction_repo.get_daily_type_totals(
            context.tenant_id, start_date, end_date
        ):
            bucket = months[month_key(day)]
            field = "income" if transaction_type == TransactionType.INCOME else "expense"
            bucket[field] += float(total or 0)

        total_income = 0.0
        total_expense = 0.0
        for bucket in months.values():
            bucket["income"] = round(bucket["income"], 2)
            bucket["expense"] = round(bucket["expense"], 2)
            bucket["net"] = round(bucket["income"] - bucket["expense"], 2)
            total_income += bucket["income"]
            total_expense += bucket["expense"]

        return {
            "start_date": start_date,
            "end_date": end_date,
            "months": list(months.values()),
            "total_income": round(total_income, 2),
            "total_expense": round(total_expense, 2),
            "net": round(total_income - total_expense, 2),
        }

    def trial_balance(self, context: TenantContext, as_of: Optional[date] = None) -> dict:
        return LedgerService(self.db).get_trial_balance(context, as_of)

    def dashboard(self, context: TenantContext) -> dict:
        today = date.today()
        month_start = today.replace(day=1)
        income, expense, _ = self.transaction_repo.get_totals(
            context.tenant_id, start_date=month_start, end_date=today
        )
        portfolio = InvestmentService(self.db).get_portfolio_summary(context)
        goals = GoalService(self.db).get_progress_report(context)

        return {
            "accounts": AccountService(self.db).get_summary(context),
            "month": {
                "start_date": month_start,
                "end_date": today,
                "income": round(income, 2),
                "expense": round(expense, 2),
                "net": round(income - expense, 2),
            },
            "goals": goals["overview"],
            "portfolio": {
                "total_invested": portfolio["total_invested"],
                "current_value": portfolio["current_value"],
                "gain_loss": portfolio["gain_loss"],
            },
        }
