import logging
from datetime import date, timedelta
from typing import Optional
from sqlalchemy.orm import Session

from suagrana.core.dates import shift_months
from suagrana.core.exceptions import NotFoundException, ValidationException
from suagrana.models.category import Category, CategoryType
from suagrana.models.tenant_context import TenantContext
from suagrana.models.transaction import Transaction, TransactionStatus, TransactionType
from suagrana.repositories.category_repository import CategoryRepository
from suagrana.repositories.transaction_repository import TransactionRepository
from suagrana.schemas.transaction_schemas import TransactionCreate, TransactionUpdate
from suagrana.services.audit_service import AuditService, snapshot
from suagrana.services.category_service import CategoryService
from suagrana.services.ledger_service import AUDITED_FIELDS, LedgerService, to_money

logger = logging.getLogger(__name__)

# (current status, requested status) pairs an update may perform
ALLOWED_STATUS_CHANGES = {
    (TransactionStatus.PENDING, TransactionStatus.COMPLETED),
    (TransactionStatus.PENDING, TransactionStatus.CANCELLED),
    (TransactionStatus.COMPLETED, TransactionStatus.CANCELLED),
    (TransactionStatus.CANCELLED, TransactionStatus.COMPLETED),
}

# Fields whose change would re-post entries
LEDGER_FIELDS = ("account_id", "to_account_id", "amount", "category", "category_id")


def period_start(period: str, today: date) -> date:
    if period == "week":
        return today - timedelta(days=7)
    if period == "quarter":
        return shift_months(today, -3)
    if period == "year":
        return shift_months(today, -12)
    return shift_months(today, -1)


class TransactionService:
    """Service for transaction business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TransactionRepository(db)
        self.category_repo = CategoryRepository(db)
        self.categories = CategoryService(db)
        self.ledger = LedgerService(db)
        self.audit = AuditService(db)

    def _resolve_category(
        self,
        context: TenantContext,
        transaction_type: TransactionType,
        category_id: Optional[int],
        category_name: Optional[str],
    ) -> Optional[Category]:
        if category_id is not None:
            category = self.category_repo.get_by_id_and_tenant(category_id, context.tenant_id)
            if not category:
                raise NotFoundException("Category not found")
            return category
        if category_name:
            category_type = (
                CategoryType.INCOME if transaction_type == TransactionType.INCOME else CategoryType.EXPENSE
            )
            return self.categories.get_or_create(context.tenant_id, category_name, category_type)
        return None

    @staticmethod
    def _amount(value: float):
        amount = to_money(value)
        if amount <= 0:
            raise ValidationException("Amount must be at least 0.01")
        return amount

    def create_transaction(
        self,
        data: TransactionCreate,
        context: TenantContext,
        idempotency_key: Optional[str] = None,
    ) -> tuple[Transaction, bool]:
        """
        Create and post a transaction.

        A repeated idempotency key returns the transaction recorded the
        first time instead of posting again.

        Returns:
            (transaction, created) where created is False on a replay

        Raises:
            NotFoundException: If an account or category is not in the tenant
        """
        key = idempotency_key or data.idempotency_key
        if key:
            existing = self.repo.get_by_external_id(context.tenant_id, key)
            if existing:
                logger.info(
                    "Idempotent replay transaction_id=%s tenant_id=%s", existing.id, context.tenant_id
                )
                return existing, False

        account = self.ledger.resolve_account(data.account_id, context.tenant_id)
        to_account = None
        if data.transaction_type == TransactionType.TRANSFER:
            to_account = self.ledger.resolve_account(data.to_account_id, context.tenant_id)

        category = self._resolve_category(
            context, data.transaction_type, data.category_id, data.category
        )

        transaction = Transaction(
            tenant_id=context.tenant_id,
            created_by=context.user_id,
            transaction_type=data.transaction_type,
            status=TransactionStatus(data.status),
            account_id=account.id,
            to_account_id=to_account.id if to_account else None,
            category_id=category.id if category else None,
            amount=self._amount(data.amount),
            date=data.date,
            description=data.description.strip(),
            reference=data.reference,
            external_id=key,
            tags=data.tags,
            notes=data.notes,
        )
        return self.ledger.record(transaction, context), True

    def get_transaction(self, transaction_id: int, context: TenantContext) -> Transaction:
        """
        Raises:
            NotFoundException: If transaction doesn't exist or belongs to another tenant
        """
        transaction = self.repo.get_by_id_and_tenant(transaction_id, context.tenant_id)
        if not transaction:
            raise NotFoundException("Transaction not found")
        return transaction

    def list_transactions(
        self, context: TenantContext, limit: int = 20, offset: int = 0, **filters
    ) -> tuple[list[Transaction], int, dict]:
        """
        Returns:
            (page of transactions, total matching, totals over completed matches)
        """
        transactions, total = self.repo.get_with_filters(
            context.tenant_id, limit=limit, offset=offset, **filters
        )
        income, expense, _ = self.repo.get_totals(context.tenant_id, **filters)
        summary = {
            "total_income": round(income, 2),
            "total_expense": round(expense, 2),
            "net_amount": round(income - expense, 2),
        }
        return transactions, total, summary

    def update_transaction(
        self, transaction_id: int, data: TransactionUpdate, context: TenantContext
    ) -> Transaction:
        """
        Apply a partial update, re-posting entries when amount, accounts or
        category change.

        Raises:
            ValidationException: For reversed or cancelled transactions and
                for status changes outside ALLOWED_STATUS_CHANGES
        """
        transaction = self.get_transaction(transaction_id, context)
        updates = data.model_dump(exclude_unset=True)
        requested = updates.pop("status", None)
        new_status = TransactionStatus(requested) if requested else None

        if transaction.status == TransactionStatus.REVERSED:
            raise ValidationException("Reversed transactions cannot be changed")

        # a reversal must keep mirroring the original's entries
        if transaction.reversal_of_id is not None and (
            new_status is not None or any(updates.get(f) is not None for f in LEDGER_FIELDS)
        ):
            raise ValidationException("Reversal transactions cannot change amount, accounts, category or status")

        if transaction.status == TransactionStatus.CANCELLED and (
            any(v is not None for v in updates.values()) or new_status != TransactionStatus.COMPLETED
        ):
            raise ValidationException("Cancelled transactions cannot be changed")

        if new_status is not None and new_status != transaction.status:
            if (transaction.status, new_status) not in ALLOWED_STATUS_CHANGES:
                raise ValidationException(
                    f"Cannot change status from {transaction.status.value} to {new_status.value}"
                )

        old_values = snapshot(transaction, AUDITED_FIELDS)
        repost = False

        account_id = updates.pop("account_id", None)
        if account_id is not None and account_id != transaction.account_id:
            transaction.account_id = self.ledger.resolve_account(account_id, context.tenant_id).id
            repost = True

        to_account_id = updates.pop("to_account_id", None)
        if to_account_id is not None:
            if transaction.transaction_type != TransactionType.TRANSFER:
                raise ValidationException("to_account_id is only allowed for transfers")
            if to_account_id != transaction.to_account_id:
                transaction.to_account_id = self.ledger.resolve_account(to_account_id, context.tenant_id).id
                repost = True

        amount = updates.pop("amount", None)
        if amount is not None:
            amount = self._amount(amount)
            if amount != to_money(transaction.amount):
                transaction.amount = amount
                repost = True

        category_id = updates.pop("category_id", None)
        category_name = updates.pop("category", None)
        if category_id is not None or category_name:
            category = self._resolve_category(
                context, transaction.transaction_type, category_id, category_name
            )
            if category.id != transaction.category_id:
                transaction.category_id = category.id
                repost = True

        for field, value in updates.items():
            if value is None and field in ("description", "date"):
                continue
            setattr(transaction, field, value)

        if new_status is not None:
            transaction.status = new_status

        try:
            if repost:
                self.ledger.post(transaction)
            self.audit.record(
                context, "transaction", transaction.id, "update",
                old_values, snapshot(transaction, AUDITED_FIELDS),
            )
            transaction = self.repo.update(transaction)
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Transaction updated transaction_id=%s reposted=%s tenant_id=%s user_id=%s",
            transaction.id, repost, context.tenant_id, context.user_id,
        )
        return transaction

    def delete_transaction(self, transaction_id: int, context: TenantContext) -> None:
        """
        Delete a transaction; its entries go with it.

        Deleting a reversal puts its original back to completed.

        Raises:
            ValidationException: If the transaction has been reversed
        """
        transaction = self.get_transaction(transaction_id, context)
        if transaction.status == TransactionStatus.REVERSED:
            raise ValidationException("Reversed transactions cannot be deleted; delete the reversal first")

        original = None
        if transaction.reversal_of_id is not None:
            original = self.repo.get_by_id_and_tenant(transaction.reversal_of_id, context.tenant_id)

        try:
            self.audit.record(
                context, "transaction", transaction.id, "delete",
                old_values=snapshot(transaction, AUDITED_FIELDS), severity="warning",
            )
            if original is not None and original.status == TransactionStatus.REVERSED:
                original.status = TransactionStatus.COMPLETED
                self.audit.record(
                    context, "transaction", original.id, "update",
                    old_values={"status": TransactionStatus.REVERSED.value},
                    new_values={"status": TransactionStatus.COMPLETED.value},
                )
            self.repo.delete_no_commit(transaction)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(
            "Transaction deleted transaction_id=%s tenant_id=%s user_id=%s",
            transaction_id, context.tenant_id, context.user_id,
        )

    def reverse_transaction(self, transaction_id: int, reason: str, context: TenantContext) -> Transaction:
        transaction = self.get_transaction(transaction_id, context)
        return self.ledger.reverse(transaction, reason, context)

    def get_summary(self, context: TenantContext, period: str = "month") -> dict:
        today = date.today()
        start = period_start(period, today)
        income, expense, count = self.repo.get_totals(
            context.tenant_id, start_date=start, end_date=today
        )
        rows = self.repo.get_category_totals(context.tenant_id, start_date=start, end_date=today)
        return {
            "period": period,
            "start_date": start,
            "end_date": today,
            "total_income": round(income, 2),
            "total_expense": round(expense, 2),
            "net_amount": round(income - expense, 2),
            "transaction_count": count,
            "by_category": [self._category_row(row) for row in rows],
        }

    def get_category_totals(self, context: TenantContext) -> list[dict]:
        return [self._category_row(row) for row in self.repo.get_category_totals(context.tenant_id)]

    @staticmethod
    def _category_row(row) -> dict:
        category_id, name, transaction_type, total, count = row
        return {
            "category_id": category_id,
            "category": name or "Uncategorized",
            "transaction_type": transaction_type,
            "total": round(float(total or 0), 2),
            "count": count,
        }
