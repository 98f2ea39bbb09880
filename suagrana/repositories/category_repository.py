from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from suagrana.models.category import Category, CategoryType
from suagrana.models.entry import Entry
from suagrana.models.transaction import Transaction, POSTED_STATUSES


class CategoryRepository:
    """Repository for Category model operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_tenant(
        self,
        tenant_id: int,
        category_type: Optional[CategoryType] = None,
        is_active: Optional[bool] = None,
    ) -> list[Category]:
        query = self.db.query(Category).filter(Category.tenant_id == tenant_id)
        if category_type is not None:
            query = query.filter(Category.category_type == category_type)
        if is_active is not None:
            query = query.filter(Category.is_active.is_(is_active))
        return query.order_by(Category.category_type.asc(), Category.name.asc()).all()

    def get_by_id_and_tenant(self, category_id: int, tenant_id: int) -> Category | None:
        return (
            self.db.query(Category)
            .filter(Category.id == category_id, Category.tenant_id == tenant_id)
            .first()
        )

    def get_by_name(
        self,
        tenant_id: int,
        name: str,
        category_type: CategoryType,
        exclude_id: Optional[int] = None,
    ) -> Category | None:
        """Same-name category of the given type, case-insensitive"""
        query = self.db.query(Category).filter(
            Category.tenant_id == tenant_id,
            Category.category_type == category_type,
            func.lower(Category.name) == name.strip().lower(),
        )
        if exclude_id is not None:
            query = query.filter(Category.id != exclude_id)
        return query.first()

    def get_usage(self, tenant_id: int) -> list:
        """
        Entry count and posted amount per category.

        Postings put the category on both of their entries, so the gross
        amount is halved.

        Returns:
            Rows of (Category, entry_count, total_amount), most used first
        """
        usage = (
            self.db.query(
                Entry.category_id.label("category_id"),
                func.count(Entry.id).label("entry_count"),
                func.sum(Entry.credit + Entry.debit).label("gross"),
            )
            .join(Transaction, Entry.transaction_id == Transaction.id)
            .filter(
                Transaction.tenant_id == tenant_id,
                Transaction.status.in_(POSTED_STATUSES),
                Entry.category_id.isnot(None),
            )
            .group_by(Entry.category_id)
            .subquery()
        )
        entry_count = func.coalesce(usage.c.entry_count, 0)
        return (
            self.db.query(
                Category,
                entry_count,
                func.coalesce(usage.c.gross, 0) / 2,
            )
            .outerjoin(usage, usage.c.category_id == Category.id)
            .filter(Category.tenant_id == tenant_id)
            .order_by(entry_count.desc(), Category.name.asc())
            .all()
        )

    def create(self, category: Category) -> Category:
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category

    def create_no_commit(self, category: Category) -> Category:
        self.db.add(category)
        self.db.flush()
        return category

    def update(self, category: Category) -> Category:
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete(self, category: Category) -> None:
        self.db.delete(category)
        self.db.commit()
