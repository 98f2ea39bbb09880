import datetime as dt
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from suagrana.models.account import Account, AccountType, USER_ACCOUNT_TYPES
from suagrana.schemas.common import Pagination


def _user_account_type(v: Optional[AccountType]) -> Optional[AccountType]:
    if v is not None and v not in USER_ACCOUNT_TYPES:
        raise ValueError("Income and expense accounts are managed by the ledger")
    return v


class AccountCreate(BaseModel):
    """Schema for creating a new account"""

    name: str = Field(..., min_length=2, max_length=100)
    account_type: AccountType
    currency: str = Field(default="BRL", min_length=3, max_length=3)
    description: Optional[str] = Field(None, max_length=500)
    opening_balance: float = Field(default=0.00)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must have at least 2 characters")
        return v

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator("account_type")
    @classmethod
    def user_account_type(cls, v: Optional[AccountType]) -> Optional[AccountType]:
        return _user_account_type(v)


class AccountUpdate(BaseModel):
    """Partial update; only provided fields change"""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    account_type: Optional[AccountType] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    @field_validator("account_type")
    @classmethod
    def user_account_type(cls, v: Optional[AccountType]) -> Optional[AccountType]:
        return _user_account_type(v)


class AccountResponse(BaseModel):
    id: int
    tenant_id: int
    name: str
    account_type: AccountType
    currency: str
    description: Optional[str] = None
    opening_balance: float
    balance: float = 0.0
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_account(cls, account: Account, balance: float) -> "AccountResponse":
        return cls.model_validate(account).model_copy(update={"balance": balance})


class AccountRecentTransaction(BaseModel):
    id: int
    transaction_type: str
    status: str
    description: Optional[str] = None
    amount: float
    date: dt.date


class AccountDetailResponse(AccountResponse):
    recent_transactions: list[AccountRecentTransaction] = []


class AccountListData(BaseModel):
    accounts: list[AccountResponse]
    pagination: Pagination
    summary: dict[str, int]


class AccountTypeSummary(BaseModel):
    count: int
    balance: float


class AccountsSummary(BaseModel):
    total_accounts: int
    active_accounts: int
    inactive_accounts: int
    total_balance: float
    by_type: dict[str, AccountTypeSummary]


class BalanceHistoryPoint(BaseModel):
    date: dt.date
    balance: float
    change: float
    transaction_count: int


class BalanceHistory(BaseModel):
    account_id: int
    days: int
    current_balance: float
    history: list[BalanceHistoryPoint]
