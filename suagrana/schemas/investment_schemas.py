from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from suagrana.models.investment import DividendType, InvestmentType
from suagrana.schemas.common import Pagination


class InvestmentCreate(BaseModel):
    symbol: str = Field(..., min_length=2, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    investment_type: InvestmentType
    quantity: float = Field(..., gt=0)
    purchase_price: float = Field(..., gt=0)
    current_price: Optional[float] = Field(None, ge=0)
    purchase_date: date
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("symbol")
    @classmethod
    def upper_symbol(cls, v: str) -> str:
        return v.strip().upper()


class InvestmentUpdate(BaseModel):
    symbol: Optional[str] = Field(None, min_length=2, max_length=20)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    investment_type: Optional[InvestmentType] = None
    quantity: Optional[float] = Field(None, gt=0)
    purchase_price: Optional[float] = Field(None, gt=0)
    current_price: Optional[float] = Field(None, ge=0)
    purchase_date: Optional[date] = None
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("symbol")
    @classmethod
    def upper_symbol(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v


class DividendCreate(BaseModel):
    amount: float = Field(..., gt=0)
    payment_date: date
    dividend_type: DividendType = DividendType.CASH


class DividendResponse(BaseModel):
    id: int
    investment_id: int
    amount: float
    payment_date: date
    dividend_type: DividendType
    created_at: datetime

    model_config = {"from_attributes": True}


class DividendWithSymbol(DividendResponse):
    symbol: str
    investment_name: str


class InvestmentMetrics(BaseModel):
    total_invested: float
    current_value: float
    gain_loss: float
    gain_loss_percentage: float
    total_dividends: float
    dividend_yield: float


class InvestmentResponse(BaseModel):
    id: int
    symbol: str
    name: str
    investment_type: InvestmentType
    quantity: float
    purchase_price: float
    current_price: Optional[float] = None
    purchase_date: date
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    metrics: Optional[InvestmentMetrics] = None

    model_config = {"from_attributes": True}


class InvestmentDetailResponse(InvestmentResponse):
    dividends: list[DividendResponse] = []


class InvestmentListData(BaseModel):
    investments: list[InvestmentResponse]
    pagination: Pagination


class AllocationSlice(BaseModel):
    investment_type: InvestmentType
    count: int
    current_value: float
    percentage: float


class PortfolioSummary(BaseModel):
    total_investments: int
    total_invested: float
    current_value: float
    gain_loss: float
    gain_loss_percentage: float
    total_dividends: float
    allocation: list[AllocationSlice]


class DividendListData(BaseModel):
    dividends: list[DividendWithSymbol]
    total: float
    count: int
