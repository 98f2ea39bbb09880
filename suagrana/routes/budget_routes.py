from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from suagrana.database import get_db
from suagrana.dependencies import get_tenant_context, require_member
from suagrana.models.budget import BudgetPeriod
from suagrana.models.tenant_context import TenantContext
from suagrana.schemas.common import ApiResponse
from suagrana.schemas.budget_schemas import (
    BudgetAlertsData,
    BudgetCreate,
    BudgetDetailResponse,
    BudgetListData,
    BudgetResponse,
    BudgetSummary,
    BudgetUpdate,
)
from suagrana.services.budget_service import BudgetService

router = APIRouter()


@router.get("", response_model=ApiResponse[BudgetListData])
def list_budgets(
    period: Optional[BudgetPeriod] = Query(None),
    active: Optional[bool] = Query(None),
    category_id: Optional[int] = Query(None),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """Budgets with spending for their current period"""
    rows = BudgetService(db).list_budgets(
        context, period=period, is_active=active, category_id=category_id
    )
    return ApiResponse(
        data=BudgetListData(
            budgets=[BudgetResponse.from_budget(b, m) for b, m in rows],
            total=len(rows),
        )
    )


@router.get("/stats/summary", response_model=ApiResponse[BudgetSummary])
def budgets_summary(context: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    return ApiResponse(data=BudgetService(db).get_summary(context))


@router.get("/stats/alerts", response_model=ApiResponse[BudgetAlertsData])
def budget_alerts(context: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    """Active budgets at or above their alert threshold, highest usage first"""
    return ApiResponse(data=BudgetService(db).get_alerts(context))


@router.get("/{budget_id}", response_model=ApiResponse[BudgetDetailResponse])
def get_budget(
    budget_id: int,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    budget, metrics, history = BudgetService(db).get_budget_detail(budget_id, context)
    return ApiResponse(
        data=BudgetDetailResponse(
            **BudgetResponse.from_budget(budget, metrics).model_dump(), monthly_spending=history
        )
    )


@router.post("", response_model=ApiResponse[BudgetResponse], status_code=status.HTTP_201_CREATED)
def create_budget(
    data: BudgetCreate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """409 when the category already has an active budget for the period"""
    service = BudgetService(db)
    budget = service.create_budget(data, context)
    return ApiResponse(
        data=BudgetResponse.from_budget(budget, service.metrics(budget)),
        message="Budget created successfully",
    )


@router.put("/{budget_id}", response_model=ApiResponse[BudgetResponse])
@router.patch("/{budget_id}", response_model=ApiResponse[BudgetResponse])
def update_budget(
    budget_id: int,
    data: BudgetUpdate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    service = BudgetService(db)
    budget = service.update_budget(budget_id, data, context)
    return ApiResponse(
        data=BudgetResponse.from_budget(budget, service.metrics(budget)),
        message="Budget updated successfully",
    )


@router.delete("/{budget_id}", response_model=ApiResponse[None])
def delete_budget(
    budget_id: int,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    BudgetService(db).delete_budget(budget_id, context)
    return ApiResponse(message="Budget deleted successfully")
