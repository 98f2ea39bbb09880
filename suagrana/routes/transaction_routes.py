from datetime import date
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Header, Query, Response, status
from sqlalchemy.orm import Session

from suagrana.database import get_db
from suagrana.dependencies import get_tenant_context, require_member
from suagrana.models.tenant_context import TenantContext
from suagrana.models.transaction import TransactionStatus, TransactionType
from suagrana.schemas.common import ApiResponse, Pagination, page_offset
from suagrana.schemas.transaction_schemas import (
    CategoryTotal,
    PeriodSummary,
    TransactionCreate,
    TransactionDetailResponse,
    TransactionListData,
    TransactionResponse,
    TransactionReverse,
    TransactionUpdate,
)
from suagrana.services.transaction_service import TransactionService

router = APIRouter()


@router.post("", response_model=ApiResponse[TransactionDetailResponse], status_code=status.HTTP_201_CREATED)
def create_transaction(
    transaction_data: TransactionCreate,
    response: Response,
    idempotency_key: Optional[str] = Header(None, max_length=255),
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """
    Create a transaction and post its ledger entries.

    - Income credits account_id, expense debits it, transfers move money
      from account_id to to_account_id
    - A category name that doesn't exist yet is created
    - Repeating an Idempotency-Key returns the original transaction (200)
    - Requires MEMBER or higher permissions
    """
    transaction, created = TransactionService(db).create_transaction(
        transaction_data, context, idempotency_key
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return ApiResponse(
        data=TransactionDetailResponse.model_validate(transaction),
        message="Transaction created successfully" if created else "Transaction already recorded",
    )


@router.get("", response_model=ApiResponse[TransactionListData])
def list_transactions(
    account_id: Optional[int] = Query(None, description="Filter by account ID"),
    transaction_type: Optional[TransactionType] = Query(None, alias="type"),
    transaction_status: Optional[TransactionStatus] = Query(None, alias="status"),
    category: Optional[str] = Query(None, description="Category name contains"),
    start_date: Optional[date] = Query(None, description="Start date (inclusive)"),
    end_date: Optional[date] = Query(None, description="End date (inclusive)"),
    min_amount: Optional[float] = Query(None, ge=0),
    max_amount: Optional[float] = Query(None, ge=0),
    search: Optional[str] = Query(None, max_length=100, description="Description contains"),
    tags: Optional[str] = Query(None, description="Comma-separated list of tags (matches ANY)"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """
    List transactions, newest first.

    The summary covers every completed transaction matching the filters,
    not just the current page.
    """
    tags_list = [tag.strip() for tag in tags.split(",") if tag.strip()] if tags else None

    transactions, total, summary = TransactionService(db).list_transactions(
        context,
        limit=limit,
        offset=page_offset(page, limit),
        account_id=account_id,
        transaction_type=transaction_type,
        status=transaction_status,
        category=category,
        start_date=start_date,
        end_date=end_date,
        min_amount=min_amount,
        max_amount=max_amount,
        search=search,
        tags=tags_list,
    )
    return ApiResponse(
        data=TransactionListData(
            transactions=[TransactionResponse.model_validate(t) for t in transactions],
            pagination=Pagination.build(page, limit, total),
            summary=summary,
        )
    )


@router.get("/summary", response_model=ApiResponse[PeriodSummary])
def transactions_summary(
    period: Literal["week", "month", "quarter", "year"] = Query("month"),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=TransactionService(db).get_summary(context, period))


@router.get("/categories", response_model=ApiResponse[list[CategoryTotal]])
def transactions_by_category(
    context: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)
):
    """Completed income and expense totals per category"""
    return ApiResponse(data=TransactionService(db).get_category_totals(context))


@router.get("/{transaction_id}", response_model=ApiResponse[TransactionDetailResponse])
def get_transaction(
    transaction_id: int,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """
    Get a transaction with its ledger entries.

    - Returns 404 if transaction doesn't exist or doesn't belong to tenant
    """
    transaction = TransactionService(db).get_transaction(transaction_id, context)
    return ApiResponse(data=TransactionDetailResponse.model_validate(transaction))


@router.put("/{transaction_id}", response_model=ApiResponse[TransactionDetailResponse])
@router.patch("/{transaction_id}", response_model=ApiResponse[TransactionDetailResponse])
def update_transaction(
    transaction_id: int,
    transaction_data: TransactionUpdate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """
    Update a transaction.

    - Amount, account or category changes re-post the ledger entries
    - Cancelled and reversed transactions cannot be edited
    - Only provided fields are updated (partial update)
    """
    transaction = TransactionService(db).update_transaction(transaction_id, transaction_data, context)
    return ApiResponse(
        data=TransactionDetailResponse.model_validate(transaction),
        message="Transaction updated successfully",
    )


@router.delete("/{transaction_id}", response_model=ApiResponse[None])
def delete_transaction(
    transaction_id: int,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """Delete a transaction and its ledger entries"""
    TransactionService(db).delete_transaction(transaction_id, context)
    return ApiResponse(message="Transaction deleted successfully")


@router.post(
    "/{transaction_id}/reverse",
    response_model=ApiResponse[TransactionDetailResponse],
    status_code=status.HTTP_201_CREATED,
)
def reverse_transaction(
    transaction_id: int,
    data: TransactionReverse,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """
    Reverse a completed transaction.

    Posts a mirror transaction and marks the original as reversed.
    """
    reversal = TransactionService(db).reverse_transaction(transaction_id, data.reason, context)
    return ApiResponse(
        data=TransactionDetailResponse.model_validate(reversal),
        message="Transaction reversed successfully",
    )
