import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session

from suagrana.core.exceptions import ConflictException, NotFoundException, ValidationException
from suagrana.models.goal import Goal, GoalPriority, GoalStatus
from suagrana.models.tenant_context import TenantContext
from suagrana.repositories.goal_repository import GoalRepository
from suagrana.schemas.goal_schemas import GoalCreate, GoalProgressUpdate, GoalUpdate

logger = logging.getLogger(__name__)

URGENT_DAYS = 30
NEAR_COMPLETION_PERCENT = 80
TOP_GOALS = 5


def goal_metrics(goal: Goal, today: Optional[date] = None) -> dict:
    """Progress figures derived from amounts and the target date"""
    today = today or date.today()
    current = float(goal.current_amount or 0)
    target = float(goal.target_amount)

    percentage = min(round(current / target * 100, 2), 100.0) if target > 0 else 0.0
    remaining = max(round(target - current, 2), 0.0)
    days_remaining = (goal.target_date - today).days

    return {
        "percentage": percentage,
        "remaining_amount": remaining,
        "is_completed": current >= target,
        "days_remaining": days_remaining,
        "is_overdue": days_remaining < 0,
        "daily_target_amount": round(remaining / days_remaining, 2) if days_remaining > 0 else 0.0,
    }


class GoalService:
    """Service for savings goals"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = GoalRepository(db)

    def get_goal(self, goal_id: int, context: TenantContext) -> Goal:
        goal = self.repo.get_by_id_and_tenant(goal_id, context.tenant_id)
        if not goal:
            raise NotFoundException("Goal not found")
        return goal

    def list_goals(
        self, context: TenantContext, limit: int = 20, offset: int = 0, **filters
    ) -> tuple[list[Goal], int, dict]:
        goals, total = self.repo.get_with_filters(context.tenant_id, limit=limit, offset=offset, **filters)
        summary = {
            status.value: {
                "count": count,
                "target_amount": round(float(target), 2),
                "current_amount": round(float(current), 2),
            }
            for status, count, target, current in self.repo.get_status_summary(context.tenant_id)
        }
        return goals, total, summary

    def get_goal_detail(self, goal_id: int, context: TenantContext) -> tuple[Goal, dict]:
        """
        Goal metrics plus the progress expected if saving were linear from
        the creation date to the target date.
        """
        goal = self.get_goal(goal_id, context)
        metrics = goal_metrics(goal)
        total_days = max((goal.target_date - goal.created_at.date()).days, 0)
        elapsed_days = total_days - metrics["days_remaining"]
        expected = (elapsed_days / total_days * 100) if elapsed_days > 0 and total_days > 0 else 0.0
        expected = round(min(expected, 100.0), 2)
        return goal, {
            "metrics": metrics,
            "total_days": total_days,
            "elapsed_days": max(elapsed_days, 0),
            "expected_percentage": expected,
            "progress_vs_expected": round(metrics["percentage"] - expected, 2),
        }

    def get_progress_report(self, context: TenantContext) -> dict:
        active = self.repo.get_all(context.tenant_id, statuses=(GoalStatus.ACTIVE,))
        with_metrics = [(goal, goal_metrics(goal)) for goal in active]

        urgent = [g for g, m in with_metrics if 0 < m["days_remaining"] <= URGENT_DAYS]
        overdue = [g for g, m in with_metrics if m["is_overdue"]]
        near = [g for g, m in with_metrics if m["percentage"] >= NEAR_COMPLETION_PERCENT]
        high = [g for g, _ in with_metrics if g.priority == GoalPriority.HIGH]

        total_goals = 0
        completed = 0
        total_target = 0.0
        total_saved = 0.0
        for status, count, target, current in self.repo.get_status_summary(context.tenant_id):
            total_goals += count
            total_target += float(target)
            total_saved += float(current)
            if status == GoalStatus.COMPLETED:
                completed = count

        by_category: dict[str, dict] = {}
        for goal in active:
            bucket = by_category.setdefault(
                goal.category,
                {"category": goal.category, "count": 0, "target_amount": 0.0, "current_amount": 0.0},
            )
            bucket["count"] += 1
            bucket["target_amount"] += float(goal.target_amount)
            bucket["current_amount"] += float(goal.current_amount)
        for bucket in by_category.values():
            bucket["progress"] = (
                round(bucket["current_amount"] / bucket["target_amount"] * 100, 2)
                if bucket["target_amount"] > 0 else 0.0
            )
            bucket["target_amount"] = round(bucket["target_amount"], 2)
            bucket["current_amount"] = round(bucket["current_amount"], 2)

        return {
            "overview": {
                "total_goals": total_goals,
                "active_goals": len(active),
                "completed_goals": completed,
                "total_target": round(total_target, 2),
                "total_saved": round(total_saved, 2),
                "overall_progress": round(total_saved / total_target * 100, 2) if total_target > 0 else 0.0,
            },
            "alerts": {"urgent": len(urgent), "overdue": len(overdue), "near_completion": len(near)},
            "top_goals": {
                "urgent": urgent[:TOP_GOALS],
                "overdue": overdue[:TOP_GOALS],
                "near_completion": near[:TOP_GOALS],
                "high_priority": high[:TOP_GOALS],
            },
            "by_category": sorted(by_category.values(), key=lambda b: b["category"]),
        }

    def create_goal(self, data: GoalCreate, context: TenantContext) -> Goal:
        if self.repo.get_open_by_name(context.tenant_id, data.name):
            raise ConflictException("An active goal with this name already exists")

        goal = Goal(
            tenant_id=context.tenant_id,
            created_by=context.user_id,
            name=data.name.strip(),
            description=data.description,
            target_amount=Decimal(str(data.target_amount)),
            current_amount=Decimal(str(data.current_amount)),
            target_date=data.target_date,
            category=data.category,
            priority=data.priority,
            status=GoalStatus.ACTIVE,
            is_recurring=data.is_recurring,
            recurring_period=data.recurring_period if data.is_recurring else None,
        )
        if goal.current_amount >= goal.target_amount:
            goal.status = GoalStatus.COMPLETED
        goal = self.repo.create(goal)
        logger.info("Goal created goal_id=%s tenant_id=%s user_id=%s", goal.id, context.tenant_id, context.user_id)
        return goal

    def update_goal(self, goal_id: int, data: GoalUpdate, context: TenantContext) -> Goal:
        goal = self.get_goal(goal_id, context)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("name") and self.repo.get_open_by_name(
            context.tenant_id, updates["name"], exclude_id=goal.id
        ):
            raise ConflictException("An active goal with this name already exists")

        is_recurring = updates.get("is_recurring")
        if is_recurring is None:
            is_recurring = goal.is_recurring
        period = updates["recurring_period"] if "recurring_period" in updates else goal.recurring_period
        if is_recurring and period is None:
            raise ValidationException("recurring_period is required for recurring goals")

        for field in ("target_amount", "current_amount"):
            if updates.get(field) is not None:
                updates[field] = Decimal(str(updates[field]))

        for field, value in updates.items():
            if value is None and field not in ("description", "recurring_period"):
                continue
            setattr(goal, field, value)

        if goal.status == GoalStatus.ACTIVE and goal.current_amount >= goal.target_amount:
            goal.status = GoalStatus.COMPLETED
        return self.repo.update(goal)

    def add_progress(self, goal_id: int, data: GoalProgressUpdate, context: TenantContext) -> Goal:
        """
        Add a contribution to an active goal, completing it once the target is met.

        Raises:
            ValidationException: If the goal is not active
        """
        goal = self.get_goal(goal_id, context)
        if goal.status != GoalStatus.ACTIVE:
            raise ValidationException("Progress can only be added to active goals")

        goal.current_amount = Decimal(goal.current_amount) + Decimal(str(data.amount))
        if goal.current_amount >= goal.target_amount:
            goal.status = GoalStatus.COMPLETED
        goal = self.repo.update(goal)
        logger.info(
            "Goal progress goal_id=%s amount=%s completed=%s tenant_id=%s user_id=%s",
            goal.id, data.amount, goal.status == GoalStatus.COMPLETED, context.tenant_id, context.user_id,
        )
        return goal

    def delete_goal(self, goal_id: int, context: TenantContext) -> None:
        goal = self.get_goal(goal_id, context)
        self.repo.delete(goal)
        logger.info("Goal deleted goal_id=%s tenant_id=%s", goal_id, context.tenant_id)
