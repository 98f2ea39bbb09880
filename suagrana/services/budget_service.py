import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session

from suagrana.core.dates import iter_months, month_bounds, month_key, shift_months
from suagrana.core.exceptions import ConflictException, NotFoundException, ValidationException
from suagrana.models.budget import Budget, BudgetPeriod
from suagrana.models.category import Category, CategoryType
from suagrana.models.tenant_context import TenantContext
from suagrana.repositories.budget_repository import BudgetRepository
from suagrana.repositories.category_repository import CategoryRepository
from suagrana.schemas.budget_schemas import BudgetCreate, BudgetUpdate

logger = logging.getLogger(__name__)

HISTORY_MONTHS = 6


def budget_window(budget: Budget, today: Optional[date] = None) -> tuple[date, date]:
    """Current month or year, narrowed by the budget's own start and end dates"""
    today = today or date.today()
    if budget.period == BudgetPeriod.YEARLY:
        start, end = date(today.year, 1, 1), date(today.year, 12, 31)
    else:
        start, end = month_bounds(today.year, today.month)
    if budget.start_date and budget.start_date > start:
        start = budget.start_date
    if budget.end_date and budget.end_date < end:
        end = budget.end_date
    return start, end


def budget_status(percentage: float, alert_threshold: int) -> str:
    if percentage > 100:
        return "exceeded"
    if percentage >= alert_threshold:
        return "warning"
    return "good"


class BudgetService:
    """Spending limits per expense category"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BudgetRepository(db)
        self.category_repo = CategoryRepository(db)

    def metrics(self, budget: Budget, today: Optional[date] = None) -> dict:
        start, end = budget_window(budget, today)
        spent, count = (0.0, 0)
        if start <= end:
            spent, count = self.repo.get_spent(budget.tenant_id, budget.category_id, start, end)

        amount = float(budget.amount)
        percentage = round(spent / amount * 100, 2) if amount > 0 else 0.0
        return {
            "period_start": start,
            "period_end": end,
            "spent": round(spent, 2),
            "remaining": max(round(amount - spent, 2), 0.0),
            "percentage": percentage,
            "status": budget_status(percentage, budget.alert_threshold),
            "transaction_count": count,
        }

    def _expense_category(self, category_id: int, context: TenantContext) -> Category:
        """
        Raises:
            NotFoundException: If the category is not in the tenant
            ValidationException: If it is an income category
        """
        category = self.category_repo.get_by_id_and_tenant(category_id, context.tenant_id)
        if not category:
            raise NotFoundException("Category not found")
        if category.category_type != CategoryType.EXPENSE:
            raise ValidationException("Budgets can only track expense categories")
        return category

    def get_budget(self, budget_id: int, context: TenantContext) -> Budget:
        budget = self.repo.get_by_id_and_tenant(budget_id, context.tenant_id)
        if not budget:
            raise NotFoundException("Budget not found")
        return budget

    def list_budgets(self, context: TenantContext, **filters) -> list[tuple[Budget, dict]]:
        budgets = self.repo.get_with_filters(context.tenant_id, **filters)
        return [(budget, self.metrics(budget)) for budget in budgets]

    def get_budget_detail(self, budget_id: int, context: TenantContext) -> tuple[Budget, dict, list[dict]]:
        """
        Budget metrics plus the category's spending per month over the last
        six months, oldest first.
        """
        budget = self.get_budget(budget_id, context)
        today = date.today()
        start = shift_months(today.replace(day=1), -(HISTORY_MONTHS - 1))

        months = {key: 0.0 for key in iter_months(start, today)}
        for day, total in self.repo.get_daily_spending(context.tenant_id, budget.category_id, start, today):
            months[month_key(day)] += float(total or 0)

        history = [{"month": key, "spent": round(spent, 2)} for key, spent in months.items()]
        return budget, self.metrics(budget, today), history

    def create_budget(self, data: BudgetCreate, context: TenantContext) -> Budget:
        """
        Raises:
            ConflictException: If the category already has an active budget for the period
        """
        category = self._expense_category(data.category_id, context)
        if data.is_active and self.repo.get_active_for_category(context.tenant_id, category.id, data.period):
            raise ConflictException("An active budget for this category and period already exists")

        budget = Budget(
            tenant_id=context.tenant_id,
            created_by=context.user_id,
            category_id=category.id,
            amount=Decimal(str(data.amount)),
            period=data.period,
            start_date=data.start_date,
            end_date=data.end_date,
            alert_threshold=data.alert_threshold,
            description=data.description,
            is_active=data.is_active,
        )
        budget = self.repo.create(budget)
        logger.info(
            "Budget created budget_id=%s category_id=%s amount=%s tenant_id=%s user_id=%s",
            budget.id, budget.category_id, budget.amount, context.tenant_id, context.user_id,
        )
        return budget

    def update_budget(self, budget_id: int, data: BudgetUpdate, context: TenantContext) -> Budget:
        budget = self.get_budget(budget_id, context)
        updates = data.model_dump(exclude_unset=True)

        category_id = updates.get("category_id") or budget.category_id
        if category_id != budget.category_id:
            self._expense_category(category_id, context)

        period = updates.get("period") or budget.period
        is_active = updates.get("is_active")
        if is_active is None:
            is_active = budget.is_active
        if is_active and self.repo.get_active_for_category(
            context.tenant_id, category_id, period, exclude_id=budget.id
        ):
            raise ConflictException("An active budget for this category and period already exists")

        start_date = updates["start_date"] if "start_date" in updates else budget.start_date
        end_date = updates["end_date"] if "end_date" in updates else budget.end_date
        if start_date and end_date and end_date < start_date:
            raise ValidationException("end_date must not be before start_date")

        if updates.get("amount") is not None:
            updates["amount"] = Decimal(str(updates["amount"]))

        for field, value in updates.items():
            if value is None and field not in ("description", "start_date", "end_date"):
                continue
            setattr(budget, field, value)

        budget = self.repo.update(budget)
        logger.info("Budget updated budget_id=%s tenant_id=%s user_id=%s", budget.id, context.tenant_id, context.user_id)
        return budget

    def delete_budget(self, budget_id: int, context: TenantContext) -> None:
        budget = self.get_budget(budget_id, context)
        self.repo.delete(budget)
        logger.info("Budget deleted budget_id=%s tenant_id=%s", budget_id, context.tenant_id)

    def get_summary(self, context: TenantContext) -> dict:
        """Totals over active budgets for their current periods"""
        rows = self.list_budgets(context, is_active=True)
        items = [
            {
                "budget_id": budget.id,
                "category_name": budget.category_name,
                "budgeted": round(float(budget.amount), 2),
                "spent": metrics["spent"],
                "percentage": metrics["percentage"],
                "status": metrics["status"],
            }
            for budget, metrics in rows
        ]
        total_budgeted = sum(item["budgeted"] for item in items)
        total_spent = sum(item["spent"] for item in items)
        exceeded = sum(1 for item in items if item["status"] == "exceeded")
        warning = sum(1 for item in items if item["status"] == "warning")

        return {
            "total_budgeted": round(total_budgeted, 2),
            "total_spent": round(total_spent, 2),
            "total_remaining": round(total_budgeted - total_spent, 2),
            "overall_percentage": round(total_spent / total_budgeted * 100, 2) if total_budgeted > 0 else 0.0,
            "budget_count": len(items),
            "exceeded_count": exceeded,
            "warning_count": warning,
            "good_count": len(items) - exceeded - warning,
            "budgets": items,
        }

    def get_alerts(self, context: TenantContext) -> dict:
        """Active budgets at or past their alert threshold; critical once over the limit"""
        alerts = []
        for budget, metrics in self.list_budgets(context, is_active=True):
            percentage = metrics["percentage"]
            if percentage < budget.alert_threshold:
                continue
            name = budget.category_name
            if percentage > 100:
                severity = "critical"
                message = f"{name} budget exceeded by {round(percentage - 100, 2)}%"
            else:
                severity = "warning"
                message = f"{name} budget reached {percentage}% of its limit"
            alerts.append(
                {
                    "budget_id": budget.id,
                    "category_name": name,
                    "budgeted": round(float(budget.amount), 2),
                    "spent": metrics["spent"],
                    "percentage": percentage,
                    "alert_threshold": budget.alert_threshold,
                    "severity": severity,
                    "message": message,
                }
            )
        alerts.sort(key=lambda a: a["percentage"], reverse=True)

        return {
            "alerts": alerts,
            "critical_count": sum(1 for a in alerts if a["severity"] == "critical"),
            "warning_count": sum(1 for a in alerts if a["severity"] == "warning"),
        }
