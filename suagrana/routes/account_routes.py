from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from suagrana.database import get_db
from suagrana.dependencies import get_tenant_context, require_member
from suagrana.models.account import AccountType
from suagrana.models.tenant_context import TenantContext
from suagrana.schemas.account_schemas import (
    AccountCreate,
    AccountDetailResponse,
    AccountListData,
    AccountRecentTransaction,
    AccountResponse,
    AccountsSummary,
    AccountUpdate,
    BalanceHistory,
)
from suagrana.schemas.common import ApiResponse, Pagination, page_offset
from suagrana.services.account_service import AccountService

router = APIRouter()


@router.get("", response_model=ApiResponse[AccountListData])
def list_accounts(
    account_type: Optional[AccountType] = Query(None, alias="type", description="Filter by account type"),
    is_active: Optional[bool] = Query(None, description="Filter by active flag"),
    search: Optional[str] = Query(None, max_length=100, description="Name contains"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """
    List the tenant's accounts with their current balances.

    Includes a count of active accounts per type.
    """
    accounts, balances, total, counts = AccountService(db).list_accounts(
        context, account_type, is_active, search, limit, page_offset(page, limit)
    )
    return ApiResponse(
        data=AccountListData(
            accounts=[AccountResponse.from_account(a, balances[a.id]) for a in accounts],
            pagination=Pagination.build(page, limit, total),
            summary=counts,
        )
    )


@router.get("/summary", response_model=ApiResponse[AccountsSummary])
def accounts_summary(context: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    return ApiResponse(data=AccountService(db).get_summary(context))


@router.get("/{account_id}", response_model=ApiResponse[AccountDetailResponse])
def get_account(
    account_id: int,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """
    Account with balance and its 10 most recent transactions.

    - Returns 404 if the account doesn't exist or belongs to another tenant
    """
    account, balance, recent = AccountService(db).get_account_detail(account_id, context)
    detail = AccountDetailResponse(
        **AccountResponse.from_account(account, balance).model_dump(),
        recent_transactions=[
            AccountRecentTransaction(
                id=t.id,
                transaction_type=t.transaction_type.value,
                status=t.status.value,
                description=t.description,
                amount=float(t.amount),
                date=t.date,
            )
            for t in recent
        ],
    )
    return ApiResponse(data=detail)


@router.post("", response_model=ApiResponse[AccountResponse], status_code=status.HTTP_201_CREATED)
def create_account(
    data: AccountCreate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """
    Create a new account.

    - 409 when an active account already uses the name (case-insensitive)
    - Only credit cards may open with a negative balance
    """
    service = AccountService(db)
    account = service.create_account(data, context)
    return ApiResponse(
        data=AccountResponse.from_account(account, service.get_balance(account)),
        message="Account created successfully",
    )


@router.put("/{account_id}", response_model=ApiResponse[AccountResponse])
@router.patch("/{account_id}", response_model=ApiResponse[AccountResponse])
def update_account(
    account_id: int,
    data: AccountUpdate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """Partial update; only provided fields change"""
    service = AccountService(db)
    account = service.update_account(account_id, data, context)
    return ApiResponse(
        data=AccountResponse.from_account(account, service.get_balance(account)),
        message="Account updated successfully",
    )


@router.delete("/{account_id}", response_model=ApiResponse[None])
def delete_account(
    account_id: int,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """
    Delete an account.

    Accounts referenced by ledger entries are deactivated instead, which
    keeps their history intact.
    """
    deleted = AccountService(db).delete_account(account_id, context)
    message = "Account deleted successfully" if deleted else "Account has transactions and was deactivated"
    return ApiResponse(message=message)


@router.get("/{account_id}/balance-history", response_model=ApiResponse[BalanceHistory])
def balance_history(
    account_id: int,
    days: int = Query(30, ge=1, le=365),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=AccountService(db).get_balance_history(account_id, days, context))
