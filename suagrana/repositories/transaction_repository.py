from datetime import date
from typing import Optional
from sqlalchemy import String, and_, case, cast, func, or_
from sqlalchemy.orm import Session, Query, selectinload

from suagrana.models.category import Category
from suagrana.models.entry import Entry
from suagrana.models.transaction import (
    Transaction,
    TransactionStatus,
    TransactionType,
)


class TransactionRepository:
    """Repository for Transaction data access, always scoped by tenant"""

    def __init__(self, db: Session):
        self.db = db

    def create_no_commit(self, transaction: Transaction) -> Transaction:
        """Create single transaction without committing (for atomic ops)"""
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def get_by_id_and_tenant(self, transaction_id: int, tenant_id: int) -> Optional[Transaction]:
        """
        Get transaction by ID, ensuring it belongs to the tenant.

        Returns:
            Transaction with entries loaded, or None if not found in this tenant
        """
        return (
            self.db.query(Transaction)
            .options(selectinload(Transaction.entries))
            .filter(Transaction.id == transaction_id, Transaction.tenant_id == tenant_id)
            .first()
        )

    def get_by_external_id(self, tenant_id: int, external_id: str) -> Optional[Transaction]:
        """Lookup by idempotency key"""
        return (
            self.db.query(Transaction)
            .filter(Transaction.tenant_id == tenant_id, Transaction.external_id == external_id)
            .first()
        )

    def get_recent_for_account(self, account_id: int, limit: int = 10) -> list[Transaction]:
        """Most recent transactions with an entry on the account"""
        return (
            self.db.query(Transaction)
            .filter(Transaction.entries.any(Entry.account_id == account_id))
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .limit(limit)
            .all()
        )

    def _filtered(
        self,
        tenant_id: int,
        account_id: Optional[int] = None,
        transaction_type: Optional[TransactionType] = None,
        status: Optional[TransactionStatus] = None,
        category: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        search: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> Query:
        query = self.db.query(Transaction).filter(Transaction.tenant_id == tenant_id)

        if account_id is not None:
            query = query.filter(Transaction.entries.any(Entry.account_id == account_id))

        if transaction_type is not None:
            query = query.filter(Transaction.transaction_type == transaction_type)

        if status is not None:
            query = query.filter(Transaction.status == status)

        if category:
            query = query.filter(Transaction.category.has(Category.name.ilike(f"%{category}%")))

        if start_date is not None:
            query = query.filter(Transaction.date >= start_date)

        if end_date is not None:
            query = query.filter(Transaction.date <= end_date)

        if min_amount is not None:
            query = query.filter(Transaction.amount >= min_amount)

        if max_amount is not None:
            query = query.filter(Transaction.amount <= max_amount)

        if search:
            query = query.filter(Transaction.description.ilike(f"%{search}%"))

        if tags:
            # JSON arrays are matched on their serialized form, which works on
            # both SQLite and PostgreSQL
            tag_filters = [cast(Transaction.tags, String).contains(f'"{tag}"') for tag in tags]
            query = query.filter(or_(*tag_filters))

        return query

    def get_with_filters(
        self, tenant_id: int, limit: int = 20, offset: int = 0, **filters
    ) -> tuple[list[Transaction], int]:
        """
        Get transactions with filters, ensuring multi-tenant isolation.

        Args:
            tenant_id: Tenant ID for isolation
            limit: Maximum number of results
            offset: Pagination offset
            **filters: account_id, transaction_type, status, category,
                start_date, end_date, min_amount, max_amount, search, tags

        Returns:
            Tuple of (transactions list, total count)
        """
        query = self._filtered(tenant_id, **filters)
        total = query.count()
        transactions = (
            query.options(selectinload(Transaction.category))
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return transactions, total

    def get_totals(self, tenant_id: int, **filters) -> tuple[float, float, int]:
        """
        Income and expense totals of completed, unreversed transactions matching filters.

        Returns:
            Tuple of (total income, total expense, completed count)
        """
        filters.pop("status", None)
        query = self._filtered(tenant_id, **filters).filter(
            Transaction.status == TransactionStatus.COMPLETED,
            Transaction.reversal_of_id.is_(None),
        )
        income, expense, count = query.with_entities(
            func.coalesce(
                func.sum(
                    case(
                        (Transaction.transaction_type == TransactionType.INCOME, Transaction.amount),
                        else_=0,
                    )
                ),
                0,
            ),
            func.coalesce(
                func.sum(
                    case(
                        (Transaction.transaction_type == TransactionType.EXPENSE, Transaction.amount),
                        else_=0,
                    )
                ),
                0,
            ),
            func.count(Transaction.id),
        ).one()
        return float(income), float(expense), count

    def get_category_totals(
        self,
        tenant_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> list:
        """
        Completed income/expense totals grouped by category and type.

        Returns:
            Rows of (category_id, category_name, transaction_type, total, count);
            category fields are None for uncategorized transactions
        """
        query = (
            self.db.query(
                Category.id,
                Category.name,
                Transaction.transaction_type,
                func.sum(Transaction.amount),
                func.count(Transaction.id),
            )
            .select_from(Transaction)
            .outerjoin(Category, Transaction.category_id == Category.id)
            .filter(
                Transaction.tenant_id == tenant_id,
                Transaction.status == TransactionStatus.COMPLETED,
                Transaction.reversal_of_id.is_(None),
                Transaction.transaction_type.in_((TransactionType.INCOME, TransactionType.EXPENSE)),
            )
        )
        if transaction_type is not None:
            query = query.filter(Transaction.transaction_type == transaction_type)
        if start_date is not None:
            query = query.filter(Transaction.date >= start_date)
        if end_date is not None:
            query = query.filter(Transaction.date <= end_date)

        return (
            query.group_by(Category.id, Category.name, Transaction.transaction_type)
            .order_by(func.sum(Transaction.amount).desc())
            .all()
        )

    def get_daily_type_totals(self, tenant_id: int, start_date: date, end_date: date) -> list:
        """
        Completed income/expense totals per day and type.

        Returns:
            Rows of (date, transaction_type, total)
        """
        return (
            self.db.query(
                Transaction.date,
                Transaction.transaction_type,
                func.sum(Transaction.amount),
            )
            .filter(
                and_(
                    Transaction.tenant_id == tenant_id,
                    Transaction.status == TransactionStatus.COMPLETED,
                    Transaction.reversal_of_id.is_(None),
                    Transaction.transaction_type.in_((TransactionType.INCOME, TransactionType.EXPENSE)),
                    Transaction.date >= start_date,
                    Transaction.date <= end_date,
                )
            )
            .group_by(Transaction.date, Transaction.transaction_type)
            .order_by(Transaction.date.asc())
            .all()
        )

    def update(self, transaction: Transaction) -> Transaction:
        self.db.commit()
        self.db.refresh(transaction)
        return transaction

    def delete_no_commit(self, transaction: Transaction) -> None:
        self.db.delete(transaction)
        self.db.flush()
