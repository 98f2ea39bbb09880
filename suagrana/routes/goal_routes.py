from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from suagrana.database import get_db
from suagrana.dependencies import get_tenant_context, require_member
from suagrana.models.goal import Goal, GoalPriority, GoalStatus
from suagrana.models.tenant_context import TenantContext
from suagrana.schemas.common import ApiResponse, Pagination, page_offset
from suagrana.schemas.goal_schemas import (
    GoalCreate,
    GoalDetailResponse,
    GoalListData,
    GoalProgressReport,
    GoalProgressUpdate,
    GoalResponse,
    GoalUpdate,
)
from suagrana.services.goal_service import GoalService, goal_metrics

router = APIRouter()


def to_response(goal: Goal) -> GoalResponse:
    return GoalResponse.from_goal(goal, goal_metrics(goal))


@router.get("", response_model=ApiResponse[GoalListData])
def list_goals(
    goal_status: Optional[GoalStatus] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    priority: Optional[GoalPriority] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    """Goals ordered by priority then target date, with per-status totals"""
    goals, total, summary = GoalService(db).list_goals(
        context,
        limit=limit,
        offset=page_offset(page, limit),
        status=goal_status,
        category=category,
        priority=priority,
        search=search,
    )
    return ApiResponse(
        data=GoalListData(
            goals=[to_response(g) for g in goals],
            pagination=Pagination.build(page, limit, total),
            summary=summary,
        )
    )


@router.get("/progress", response_model=ApiResponse[GoalProgressReport])
def goals_progress(context: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    """
    Progress overview of active goals.

    - Urgent: due within 30 days
    - Overdue: target date passed
    - Near completion: 80% or more saved
    """
    report = GoalService(db).get_progress_report(context)
    report["top_goals"] = {
        group: [to_response(g) for g in goals] for group, goals in report["top_goals"].items()
    }
    return ApiResponse(data=report)


@router.get("/{goal_id}", response_model=ApiResponse[GoalDetailResponse])
def get_goal(
    goal_id: int,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    goal, detail = GoalService(db).get_goal_detail(goal_id, context)
    metrics = detail.pop("metrics")
    return ApiResponse(
        data=GoalDetailResponse(**GoalResponse.from_goal(goal, metrics).model_dump(), **detail)
    )


@router.post("", response_model=ApiResponse[GoalResponse], status_code=status.HTTP_201_CREATED)
def create_goal(
    data: GoalCreate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """409 when an active or paused goal already uses the name"""
    goal = GoalService(db).create_goal(data, context)
    return ApiResponse(data=to_response(goal), message="Goal created successfully")


@router.put("/{goal_id}", response_model=ApiResponse[GoalResponse])
@router.patch("/{goal_id}", response_model=ApiResponse[GoalResponse])
def update_goal(
    goal_id: int,
    data: GoalUpdate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    goal = GoalService(db).update_goal(goal_id, data, context)
    return ApiResponse(data=to_response(goal), message="Goal updated successfully")


@router.post("/{goal_id}/progress", response_model=ApiResponse[GoalResponse])
def add_goal_progress(
    goal_id: int,
    data: GoalProgressUpdate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """Add to the saved amount of an active goal"""
    goal = GoalService(db).add_progress(goal_id, data, context)
    message = "Goal completed" if goal.status == GoalStatus.COMPLETED else "Progress added"
    return ApiResponse(data=to_response(goal), message=message)


@router.delete("/{goal_id}", response_model=ApiResponse[None])
def delete_goal(
    goal_id: int,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    GoalService(db).delete_goal(goal_id, context)
    return ApiResponse(message="Goal deleted successfully")
