from datetime import date
from typing import Optional
from pydantic import BaseModel

from suagrana.schemas.account_schemas import AccountsSummary
from suagrana.schemas.goal_schemas import GoalOverview


class CategorySpending(BaseModel):
    category_id: Optional[int] = None
    category: str
    total: float
    count: int
    average: float
    percentage: float
    previous_total: float
    change_percentage: Optional[float] = None


class CategorySpendingReport(BaseModel):
    start_date: date
    end_date: date
    previous_start_date: date
    previous_end_date: date
    total_spending: float
    categories: list[CategorySpending]


class CashFlowMonth(BaseModel):
    month: str
    income: float
    expense: float
    net: float


class CashFlowReport(BaseModel):
    start_date: date
    end_date: date
    months: list[CashFlowMonth]
    total_income: float
    total_expense: float
    net: float


class TrialBalanceRow(BaseModel):
    account_id: int
    account_name: str
    account_type: str
    total_debit: float
    total_credit: float
    balance: float


class TrialBalance(BaseModel):
    as_of: date
    accounts: list[TrialBalanceRow]
    total_debit: float
    total_credit: float
    difference: float
    balanced: bool


class MonthTotals(BaseModel):
    start_date: date
    end_date: date
    income: float
    expense: float
    net: float


class PortfolioValue(BaseModel):
    total_invested: float
    current_value: float
    gain_loss: float


class Dashboard(BaseModel):
    accounts: AccountsSummary
    month: MonthTotals
    goals: GoalOverview
    portfolio: PortfolioValue
