from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from suagrana.database import get_db
from suagrana.dependencies import get_tenant_context, require_member
from suagrana.models.category import CategoryType
from suagrana.models.tenant_context import TenantContext
from suagrana.schemas.category_schemas import (
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    CategoryUsage,
)
from suagrana.schemas.common import ApiResponse
from suagrana.services.category_service import CategoryService

router = APIRouter()


@router.get("", response_model=ApiResponse[list[CategoryResponse]])
def list_categories(
    category_type: Optional[CategoryType] = Query(None, alias="type"),
    active: Optional[bool] = Query(None),
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    categories = CategoryService(db).list_categories(context, category_type, active)
    return ApiResponse(data=[CategoryResponse.model_validate(c) for c in categories])


@router.get("/stats/usage", response_model=ApiResponse[list[CategoryUsage]])
def category_usage(context: TenantContext = Depends(get_tenant_context), db: Session = Depends(get_db)):
    """Entry count and posted amount per category, most used first"""
    return ApiResponse(data=CategoryService(db).get_usage_stats(context))


@router.get("/{category_id}", response_model=ApiResponse[CategoryResponse])
def get_category(
    category_id: int,
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
):
    category = CategoryService(db).get_category(category_id, context)
    return ApiResponse(data=CategoryResponse.model_validate(category))


@router.post("", response_model=ApiResponse[CategoryResponse], status_code=status.HTTP_201_CREATED)
def create_category(
    data: CategoryCreate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """409 when the tenant already has a category with this name and type"""
    category = CategoryService(db).create_category(data, context)
    return ApiResponse(data=CategoryResponse.model_validate(category), message="Category created successfully")


@router.put("/{category_id}", response_model=ApiResponse[CategoryResponse])
@router.patch("/{category_id}", response_model=ApiResponse[CategoryResponse])
def update_category(
    category_id: int,
    data: CategoryUpdate,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    category = CategoryService(db).update_category(category_id, data, context)
    return ApiResponse(data=CategoryResponse.model_validate(category), message="Category updated successfully")


@router.delete("/{category_id}", response_model=ApiResponse[None])
def delete_category(
    category_id: int,
    context: TenantContext = Depends(require_member),
    db: Session = Depends(get_db),
):
    """Categories still referenced by ledger entries cannot be deleted (409)"""
    CategoryService(db).delete_category(category_id, context)
    return ApiResponse(message="Category deleted successfully")
