from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from suagrana.database import get_db
from suagrana.dependencies import get_tenant_context
from suagrana.models.tenant_context import TenantContext
from suagrana.schemas.common import ApiResponse
from suagrana.schemas.report_schemas import (
    CashFlowReport,
    CategorySpendingReport,
    Dashboard,
    TrialBalance,
)
from suagrana.services.report_service import ReportService

router = APIRouter()


@router.get("/category-spending", response_model=ApiResponse[CategorySpendingReport])
def category_spending(
    start_date: Optional[date] = Query(None, description="Defaults to the first day of this month"),
    end_date: Optional[date] = Query(None, description="Defaults to today"),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """Expenses per category, compared with the previous period of equal length"""
    return ApiResponse(data=ReportService(db).category_spending(context, start_date, end_date))


@router.get("/cash-flow", response_model=ApiResponse[CashFlowReport])
def cash_flow(
    start_date: Optional[date] = Query(None, description="Defaults to six months back"),
    end_date: Optional[date] = Query(None, description="Defaults to today"),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    return ApiResponse(data=ReportService(db).cash_flow(context, start_date, end_date))


@router.get("/trial-balance", response_model=ApiResponse[TrialBalance])
def trial_balance(
    as_of: Optional[date] = Query(None, description="Defaults to today"),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """Debit and credit totals per ledger account"""
    return ApiResponse(data=ReportService(db).trial_balance(context, as_of))


@router.get("/dashboard", response_model=ApiResponse[Dashboard])
def dashboard(context: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    return ApiResponse(data=ReportService(db).dashboard(context))
