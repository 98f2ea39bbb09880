import logging
from typing import Optional
from sqlalchemy.orm import Session

from suagrana.core.exceptions import ConflictException, NotFoundException
from suagrana.models.category import Category, CategoryType
from suagrana.models.tenant_context import TenantContext
from suagrana.repositories.budget_repository import BudgetRepository
from suagrana.repositories.category_repository import CategoryRepository
from suagrana.repositories.entry_repository import EntryRepository
from suagrana.schemas.category_schemas import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for category business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CategoryRepository(db)
        self.entry_repo = EntryRepository(db)
        self.budget_repo = BudgetRepository(db)

    def list_categories(
        self,
        context: TenantContext,
        category_type: Optional[CategoryType] = None,
        is_active: Optional[bool] = None,
    ) -> list[Category]:
        return self.repo.get_by_tenant(context.tenant_id, category_type, is_active)

    def get_category(self, category_id: int, context: TenantContext) -> Category:
        category = self.repo.get_by_id_and_tenant(category_id, context.tenant_id)
        if not category:
            raise NotFoundException("Category not found")
        return category

    def get_or_create(self, tenant_id: int, name: str, category_type: CategoryType) -> Category:
        """
        Find a category by name and type, creating it when missing.

        Used by the ledger when a transaction names its category. The new row
        is flushed, not committed.
        """
        category = self.repo.get_by_name(tenant_id, name, category_type)
        if category:
            return category
        category = Category(tenant_id=tenant_id, name=name.strip(), category_type=category_type, is_active=True)
        logger.info("Category created on demand tenant_id=%s name=%s", tenant_id, category.name)
        return self.repo.create_no_commit(category)

    def create_category(self, data: CategoryCreate, context: TenantContext) -> Category:
        if self.repo.get_by_name(context.tenant_id, data.name, data.category_type):
            raise ConflictException("A category with this name and type already exists")

        category = Category(
            tenant_id=context.tenant_id,
            name=data.name.strip(),
            category_type=data.category_type,
            description=data.description,
            color=data.color,
            icon=data.icon,
            is_active=True,
        )
        return self.repo.create(category)

    def update_category(self, category_id: int, data: CategoryUpdate, context: TenantContext) -> Category:
        category = self.get_category(category_id, context)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        if "name" in updates and self.repo.get_by_name(
            context.tenant_id, updates["name"], category.category_type, exclude_id=category.id
        ):
            raise ConflictException("A category with this name and type already exists")

        for field, value in updates.items():
            setattr(category, field, value.strip() if field == "name" else value)
        return self.repo.update(category)

    def delete_category(self, category_id: int, context: TenantContext) -> None:
        """
        Raises:
            ConflictException: While ledger entries or budgets still reference the category
        """
        category = self.get_category(category_id, context)
        if self.entry_repo.category_has_entries(category.id):
            raise ConflictException("Category is used by existing transactions")
        if self.budget_repo.category_has_budgets(category.id):
            raise ConflictException("Category is used by budgets")
        self.repo.delete(category)
        logger.info("Category deleted category_id=%s tenant_id=%s", category_id, context.tenant_id)

    def get_usage_stats(self, context: TenantContext) -> list[dict]:
        return [
            {
                "id": category.id,
                "name": category.name,
                "category_type": category.category_type,
                "entry_count": count,
                "total_amount": round(float(total or 0), 2),
            }
            for category, count, total in self.repo.get_usage(context.tenant_id)
        ]
