from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from suagrana.models.goal import Goal, GoalPriority, GoalStatus, RecurringPeriod
from suagrana.schemas.common import Pagination


class GoalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    target_amount: float = Field(..., gt=0)
    current_amount: float = Field(default=0.0, ge=0)
    target_date: date
    category: str = Field(..., min_length=1, max_length=50)
    priority: GoalPriority = GoalPriority.MEDIUM
    is_recurring: bool = False
    recurring_period: Optional[RecurringPeriod] = None

    @model_validator(mode="after")
    def check_goal(self) -> "GoalCreate":
        if self.target_date <= date.today():
            raise ValueError("Target date must be in the future")
        if self.is_recurring and self.recurring_period is None:
            raise ValueError("recurring_period is required for recurring goals")
        return self


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    target_amount: Optional[float] = Field(None, gt=0)
    current_amount: Optional[float] = Field(None, ge=0)
    target_date: Optional[date] = None
    category: Optional[str] = Field(None, min_length=1, max_length=50)
    priority: Optional[GoalPriority] = None
    status: Optional[GoalStatus] = None
    is_recurring: Optional[bool] = None
    recurring_period: Optional[RecurringPeriod] = None


class GoalProgressUpdate(BaseModel):
    amount: float = Field(..., gt=0)
    note: Optional[str] = Field(None, max_length=500)


class GoalMetrics(BaseModel):
    percentage: float
    remaining_amount: float
    is_completed: bool
    days_remaining: int
    is_overdue: bool
    daily_target_amount: float


class GoalResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    target_amount: float
    current_amount: float
    target_date: date
    category: str
    priority: GoalPriority
    status: GoalStatus
    is_recurring: bool
    recurring_period: Optional[RecurringPeriod] = None
    created_at: datetime
    updated_at: datetime
    metrics: Optional[GoalMetrics] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_goal(cls, goal: Goal, metrics: dict) -> "GoalResponse":
        return cls.model_validate(goal).model_copy(update={"metrics": GoalMetrics(**metrics)})


class GoalDetailResponse(GoalResponse):
    total_days: int
    elapsed_days: int
    expected_percentage: float
    progress_vs_expected: float


class GoalStatusSummary(BaseModel):
    count: int
    target_amount: float
    current_amount: float


class GoalListData(BaseModel):
    goals: list[GoalResponse]
    pagination: Pagination
    summary: dict[str, GoalStatusSummary]


class GoalOverview(BaseModel):
    total_goals: int
    active_goals: int
    completed_goals: int
    total_target: float
    total_saved: float
    overall_progress: float


class GoalAlerts(BaseModel):
    urgent: int
    overdue: int
    near_completion: int


class GoalCategoryProgress(BaseModel):
    category: str
    count: int
    target_amount: float
    current_amount: float
    progress: float


class GoalProgressReport(BaseModel):
    overview: GoalOverview
    alerts: GoalAlerts
    top_goals: dict[str, list[GoalResponse]]
    by_category: list[GoalCategoryProgress]
