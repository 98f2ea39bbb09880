from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from suagrana.database import get_db
from suagrana.dependencies import get_tenant_context, require_member
from suagrana.models.investment import Investment, InvestmentType
from suagrana.models.tenant_context import TenantContext
from suagrana.schemas.common import ApiResponse, Pagination, page_offset
from suagrana.schemas.investment_schemas import (
    DividendCreate,
    DividendListData,
    DividendResponse,
    DividendWithSymbol,
    InvestmentCreate,
    InvestmentDetailResponse,
    InvestmentListData,
    InvestmentMetrics,
    InvestmentResponse,
    InvestmentUpdate,
    PortfolioSummary,
)
from suagrana.services.investment_service import InvestmentService, investment_metrics

router = APIRouter()


def to_response(investment: Investment) -> InvestmentResponse:
    return InvestmentResponse.model_validate(investment).model_copy(
        update={"metrics": InvestmentMetrics(**investment_metrics(investment))}
    )


@router.get("", response_model=ApiResponse[InvestmentListData])
def list_investments(
    investment_type: Optional[InvestmentType] = Query(None, alias="type"),
    search: Optional[str] = Query(None, max_length=100, description="Symbol or name contains"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    investments, total = InvestmentService(db).list_investments(
        context, investment_type, search, limit, page_offset(page, limit)
    )
    return ApiResponse(
        data=InvestmentListData(
            investments=[to_response(i) for i in investments],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.get("/portfolio/summary", response_model=ApiResponse[PortfolioSummary])
def portfolio_summary(context: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    """Portfolio totals and allocation by investment type"""
    return ApiResponse(data=InvestmentService(db).get_portfolio_summary(context))


@router.get("/dividends", response_model=ApiResponse[DividendListData])
def list_dividends(
    year: Optional[int] = Query(None, ge=1900, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    dividends = InvestmentService(db).list_dividends(context, year, month)
    items = [
        DividendWithSymbol(
            **DividendResponse.model_validate(d).model_dump(),
            symbol=d.investment.symbol,
            investment_name=d.investment.name,
        )
        for d in dividends
    ]
    return ApiResponse(
        data=DividendListData(
            dividends=items,
            total=round(sum(item.amount for item in items), 2),
            count=len(items),
        )
    )


@router.get("/{investment_id}", response_model=ApiResponse[InvestmentDetailResponse])
def get_investment(
    investment_id: int,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    investment = InvestmentService(db).get_investment(investment_id, context)
    return ApiResponse(
        data=InvestmentDetailResponse(
            **to_response(investment).model_dump(),
            dividends=[DividendResponse.model_validate(d) for d in investment.dividends],
        )
    )


@router.post("", response_model=ApiResponse[InvestmentResponse], status_code=status.HTTP_201_CREATED)
def create_investment(
    data: InvestmentCreate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    investment = InvestmentService(db).create_investment(data, context)
    return ApiResponse(data=to_response(investment), message="Investment created successfully")


@router.put("/{investment_id}", response_model=ApiResponse[InvestmentResponse])
@router.patch("/{investment_id}", response_model=ApiResponse[InvestmentResponse])
def update_investment(
    investment_id: int,
    data: InvestmentUpdate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    investment = InvestmentService(db).update_investment(investment_id, data, context)
    return ApiResponse(data=to_response(investment), message="Investment updated successfully")


@router.delete("/{investment_id}", response_model=ApiResponse[None])
def delete_investment(
    investment_id: int,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """Delete a holding; its dividends are removed with it"""
    InvestmentService(db).delete_investment(investment_id, context)
    return ApiResponse(message="Investment deleted successfully")


@router.post(
    "/{investment_id}/dividends",
    response_model=ApiResponse[DividendResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_dividend(
    investment_id: int,
    data: DividendCreate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    dividend = InvestmentService(db).add_dividend(investment_id, data, context)
    return ApiResponse(data=DividendResponse.model_validate(dividend), message="Dividend added successfully")
