from typing import Optional
from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from suagrana.models.goal import Goal, GoalPriority, GoalStatus

# Sort key so that high > medium > low regardless of the stored string
PRIORITY_ORDER = case(
    (Goal.priority == GoalPriority.HIGH, 3),
    (Goal.priority == GoalPriority.MEDIUM, 2),
    else_=1,
)


class GoalRepository:
    """Repository for Goal model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_with_filters(
        self,
        tenant_id: int,
        status: Optional[GoalStatus] = None,
        category: Optional[str] = None,
        priority: Optional[GoalPriority] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Goal], int]:
        query = self.db.query(Goal).filter(Goal.tenant_id == tenant_id)

        if status is not None:
            query = query.filter(Goal.status == status)
        if category:
            query = query.filter(Goal.category.ilike(f"%{category}%"))
        if priority is not None:
            query = query.filter(Goal.priority == priority)
        if search:
            query = query.filter(
                or_(Goal.name.ilike(f"%{search}%"), Goal.description.ilike(f"%{search}%"))
            )

        total = query.count()
        goals = (
            query.order_by(PRIORITY_ORDER.desc(), Goal.target_date.asc(), Goal.id.asc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return goals, total

    def get_all(self, tenant_id: int, statuses: Optional[tuple[GoalStatus, ...]] = None) -> list[Goal]:
        query = self.db.query(Goal).filter(Goal.tenant_id == tenant_id)
        if statuses:
            query = query.filter(Goal.status.in_(statuses))
        return query.order_by(PRIORITY_ORDER.desc(), Goal.target_date.asc()).all()

    def get_status_summary(self, tenant_id: int) -> list:
        """
        Returns:
            Rows of (status, count, total target, total current)
        """
        return (
            self.db.query(
                Goal.status,
                func.count(Goal.id),
                func.coalesce(func.sum(Goal.target_amount), 0),
                func.coalesce(func.sum(Goal.current_amount), 0),
            )
            .filter(Goal.tenant_id == tenant_id)
            .group_by(Goal.status)
            .all()
        )

    def get_by_id_and_tenant(self, goal_id: int, tenant_id: int) -> Goal | None:
        return self.db.query(Goal).filter(Goal.id == goal_id, Goal.tenant_id == tenant_id).first()

    def get_open_by_name(
        self, tenant_id: int, name: str, exclude_id: Optional[int] = None
    ) -> Goal | None:
        """Active or paused goal with the same name (case-insensitive)"""
        query = self.db.query(Goal).filter(
            Goal.tenant_id == tenant_id,
            Goal.status.in_((GoalStatus.ACTIVE, GoalStatus.PAUSED)),
            func.lower(Goal.name) == name.strip().lower(),
        )
        if exclude_id is not None:
            query = query.filter(Goal.id != exclude_id)
        return query.first()

    def create(self, goal: Goal) -> Goal:
        self.db.add(goal)
        self.db.commit()
        self.db.refresh(goal)
        return goal

    def update(self, goal: Goal) -> Goal:
        self.db.commit()
        self.db.refresh(goal)
        return goal

    def delete(self, goal: Goal) -> None:
        self.db.delete(goal)
        self.db.commit()
