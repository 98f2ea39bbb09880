import datetime as dt
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from suagrana.models.transaction import TransactionStatus, TransactionType
from suagrana.schemas.common import Pagination


def _clean_tags(tags: Optional[list[str]]) -> Optional[list[str]]:
    if tags is None:
        return None
    seen = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class TransactionCreate(BaseModel):
    """
    Schema for creating a transaction.

    account_id is the account money enters (income) or leaves (expense,
    transfer). to_account_id is required for transfers only.
    """

    transaction_type: TransactionType
    account_id: int = Field(..., gt=0)
    to_account_id: Optional[int] = Field(None, gt=0)
    amount: float = Field(..., gt=0)
    category: Optional[str] = Field(None, min_length=2, max_length=50)
    category_id: Optional[int] = Field(None, gt=0)
    description: str = Field(..., min_length=1, max_length=500)
    date: dt.date
    reference: Optional[str] = Field(None, max_length=100)
    tags: list[str] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=1000)
    status: Literal["pending", "completed"] = "completed"
    idempotency_key: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: list[str]) -> list[str]:
        return _clean_tags(v)

    @model_validator(mode="after")
    def check_accounts(self) -> "TransactionCreate":
        if self.transaction_type == TransactionType.TRANSFER:
            if self.to_account_id is None:
                raise ValueError("to_account_id is required for transfers")
            if self.to_account_id == self.account_id:
                raise ValueError("Source and destination accounts must be different")
        elif self.to_account_id is not None:
            raise ValueError("to_account_id is only allowed for transfers")
        return self


class TransactionUpdate(BaseModel):
    """Partial update; only provided fields change"""

    account_id: Optional[int] = Field(None, gt=0)
    to_account_id: Optional[int] = Field(None, gt=0)
    amount: Optional[float] = Field(None, gt=0)
    category: Optional[str] = Field(None, min_length=2, max_length=50)
    category_id: Optional[int] = Field(None, gt=0)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    date: Optional[dt.date] = None
    reference: Optional[str] = Field(None, max_length=100)
    tags: Optional[list[str]] = None
    notes: Optional[str] = Field(None, max_length=1000)
    status: Optional[Literal["pending", "completed", "cancelled"]] = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return _clean_tags(v)


class TransactionReverse(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class EntryResponse(BaseModel):
    id: int
    account_id: int
    category_id: Optional[int] = None
    debit: float
    credit: float
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    id: int
    tenant_id: int
    transaction_type: TransactionType
    status: TransactionStatus
    account_id: int
    to_account_id: Optional[int] = None
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    amount: float
    date: dt.date
    description: Optional[str] = None
    reference: Optional[str] = None
    external_id: Optional[str] = None
    tags: Optional[list[str]] = None
    notes: Optional[str] = None
    reversal_of_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TransactionDetailResponse(TransactionResponse):
    entries: list[EntryResponse] = []


class TransactionTotals(BaseModel):
    total_income: float
    total_expense: float
    net_amount: float


class TransactionListData(BaseModel):
    transactions: list[TransactionResponse]
    pagination: Pagination
    summary: TransactionTotals


class CategoryTotal(BaseModel):
    category_id: Optional[int] = None
    category: str
    transaction_type: TransactionType
    total: float
    count: int


class PeriodSummary(BaseModel):
    period: str
    start_date: dt.date
    end_date: dt.date
    total_income: float
    total_expense: float
    net_amount: float
    transaction_count: int
    by_category: list[CategoryTotal]
