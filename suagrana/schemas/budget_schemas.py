from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

from suagrana.models.budget import Budget, BudgetPeriod

BudgetStatus = Literal["good", "warning", "exceeded"]


class BudgetCreate(BaseModel):
    category_id: int = Field(..., gt=0)
    amount: float = Field(..., gt=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    alert_threshold: int = Field(default=80, ge=0, le=100)
    description: Optional[str] = Field(None, max_length=500)
    is_active: bool = True

    @model_validator(mode="after")
    def check_dates(self) -> "BudgetCreate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BudgetUpdate(BaseModel):
    category_id: Optional[int] = Field(None, gt=0)
    amount: Optional[float] = Field(None, gt=0)
    period: Optional[BudgetPeriod] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    alert_threshold: Optional[int] = Field(None, ge=0, le=100)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class BudgetMetrics(BaseModel):
    period_start: date
    period_end: date
    spent: float
    remaining: float
    percentage: float
    status: BudgetStatus
    transaction_count: int


class BudgetResponse(BaseModel):
    id: int
    category_id: int
    category_name: str
    amount: float
    period: BudgetPeriod
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    alert_threshold: int
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    metrics: Optional[BudgetMetrics] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_budget(cls, budget: Budget, metrics: dict) -> "BudgetResponse":
        return cls.model_validate(budget).model_copy(update={"metrics": BudgetMetrics(**metrics)})


class MonthlySpending(BaseModel):
    month: str
    spent: float


class BudgetDetailResponse(BudgetResponse):
    monthly_spending: list[MonthlySpending]


class BudgetListData(BaseModel):
    budgets: list[BudgetResponse]
    total: int


class BudgetSummaryItem(BaseModel):
    budget_id: int
    category_name: str
    budgeted: float
    spent: float
    percentage: float
    status: BudgetStatus


class BudgetSummary(BaseModel):
    total_budgeted: float
    total_spent: float
    total_remaining: float
    overall_percentage: float
    budget_count: int
    exceeded_count: int
    warning_count: int
    good_count: int
    budgets: list[BudgetSummaryItem]


class BudgetAlert(BaseModel):
    budget_id: int
    category_name: str
    budgeted: float
    spent: float
    percentage: float
    alert_threshold: int
    severity: Literal["warning", "critical"]
    message: str


class BudgetAlertsData(BaseModel):
    alerts: list[BudgetAlert]
    critical_count: int
    warning_count: int
