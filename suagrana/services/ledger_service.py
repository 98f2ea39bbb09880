"""
Double-entry posting.

Every transaction is stored with a balanced set of entries. For accounts the
user sees, a credit is money in and a debit is money out:

- income X into A: credit A, debit the tenant's income account
- expense X from A: debit A, credit the tenant's expense account
- transfer X from A to B: debit A, credit B

Balances are never stored; they are summed from posted entries.
"""

import logging
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from sqlalchemy.orm import Session

from suagrana.config import settings
from suagrana.core.exceptions import NotFoundException, ValidationException
from suagrana.models.account import Account, AccountType
from suagrana.models.entry import Entry
from suagrana.models.tenant_context import TenantContext
from suagrana.models.transaction import Transaction, TransactionStatus, TransactionType
from suagrana.repositories.account_repository import AccountRepository
from suagrana.repositories.entry_repository import EntryRepository
from suagrana.repositories.transaction_repository import TransactionRepository
from suagrana.services.audit_service import AuditService, snapshot

logger = logging.getLogger(__name__)

BALANCE_TOLERANCE = Decimal("0.01")
CENT = Decimal("0.01")

SYSTEM_ACCOUNT_NAMES = {
    AccountType.INCOME: "Income",
    AccountType.EXPENSE: "Expenses",
}

AUDITED_FIELDS = (
    "transaction_type",
    "status",
    "account_id",
    "to_account_id",
    "category_id",
    "amount",
    "date",
    "description",
    "reference",
)


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def is_balanced(debits: Decimal, credits: Decimal) -> bool:
    return abs(debits - credits) <= BALANCE_TOLERANCE


def validate_balance(entries: list[Entry]) -> None:
    """
    Raises:
        ValidationException: If debits and credits differ by more than a cent
    """
    debits = sum((Decimal(e.debit) for e in entries), Decimal("0"))
    credits = sum((Decimal(e.credit) for e in entries), Decimal("0"))
    if not is_balanced(debits, credits):
        raise ValidationException(
            f"Unbalanced transaction: debits {debits} != credits {credits}"
        )


class LedgerService:
    """Builds, validates and persists balanced entries"""

    def __init__(self, db: Session):
        self.db = db
        self.account_repo = AccountRepository(db)
        self.entry_repo = EntryRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.audit = AuditService(db)

    def get_system_account(self, tenant_id: int, account_type: AccountType) -> Account:
        """The tenant's nominal income or expense account, created on first use"""
        account = self.account_repo.get_system_account(tenant_id, account_type)
        if account is None:
            account = self.account_repo.create_no_commit(
                Account(
                    tenant_id=tenant_id,
                    name=SYSTEM_ACCOUNT_NAMES[account_type],
                    account_type=account_type,
                    currency=settings.DEFAULT_CURRENCY,
                    opening_balance=Decimal("0.00"),
                    is_active=True,
                    is_system=True,
                )
            )
            logger.info("System %s account created tenant_id=%s", account_type.value, tenant_id)
        return account

    def build_entries(self, transaction: Transaction) -> list[Entry]:
        """Entries for the transaction's type, amount, accounts and category"""
        amount = to_money(transaction.amount)
        category_id = transaction.category_id
        zero = Decimal("0.00")

        if transaction.transaction_type == TransactionType.INCOME:
            income = self.get_system_account(transaction.tenant_id, AccountType.INCOME)
            label = f"Income: {transaction.description}"
            return [
                Entry(account_id=transaction.account_id, category_id=category_id,
                      debit=zero, credit=amount, description=label),
                Entry(account_id=income.id, category_id=category_id,
                      debit=amount, credit=zero, description=label),
            ]

        if transaction.transaction_type == TransactionType.EXPENSE:
            expense = self.get_system_account(transaction.tenant_id, AccountType.EXPENSE)
            label = f"Expense: {transaction.description}"
            return [
                Entry(account_id=transaction.account_id, category_id=category_id,
                      debit=amount, credit=zero, description=label),
                Entry(account_id=expense.id, category_id=category_id,
                      debit=zero, credit=amount, description=label),
            ]

        if transaction.transaction_type == TransactionType.TRANSFER:
            if not transaction.to_account_id:
                raise ValidationException("Transfers need a destination account")
            if transaction.to_account_id == transaction.account_id:
                raise ValidationException("Source and destination accounts must be different")
            label = f"Transfer: {transaction.description}"
            return [
                Entry(account_id=transaction.account_id, category_id=category_id,
                      debit=amount, credit=zero, description=label),
                Entry(account_id=transaction.to_account_id, category_id=category_id,
                      debit=zero, credit=amount, description=label),
            ]

        raise ValidationException(f"Unsupported transaction type: {transaction.transaction_type}")

    def post(self, transaction: Transaction) -> Transaction:
        """
        Attach balanced entries to a transaction and flush.

        Existing entries are replaced, so this also re-posts an edited
        transaction. Nothing is committed.
        """
        entries = self.build_entries(transaction)
        validate_balance(entries)

        transaction.entries.clear()
        self.db.flush()
        transaction.entries.extend(entries)
        self.db.flush()
        return transaction

    def record(self, transaction: Transaction, context: TenantContext) -> Transaction:
        """
        Insert and post a new transaction in one database transaction.

        Returns:
            The committed transaction
        """
        try:
            self.transaction_repo.create_no_commit(transaction)
            self.post(transaction)
            self.audit.record(
                context, "transaction", transaction.id, "create",
                new_values=snapshot(transaction, AUDITED_FIELDS),
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(transaction)
        logger.info(
            "Transaction created transaction_id=%s type=%s amount=%s tenant_id=%s user_id=%s",
            transaction.id, transaction.transaction_type.value, transaction.amount,
            context.tenant_id, context.user_id,
        )
        return transaction

    def reverse(self, transaction: Transaction, reason: str, context: TenantContext) -> Transaction:
        """
        Offset a completed transaction with a mirror transaction.

        The reversal swaps debit and credit of every original entry. Both
        transactions stay posted, so affected balances net to zero.

        Raises:
            ValidationException: If the transaction is not completed or is itself a reversal
        """
        if transaction.status == TransactionStatus.REVERSED:
            raise ValidationException("Transaction already reversed")
        if transaction.status != TransactionStatus.COMPLETED:
            raise ValidationException("Only completed transactions can be reversed")
        if transaction.reversal_of_id is not None:
            raise ValidationException("Reversals cannot be reversed; delete the reversal instead")

        reversal = Transaction(
            tenant_id=transaction.tenant_id,
            created_by=context.user_id,
            transaction_type=transaction.transaction_type,
            status=TransactionStatus.COMPLETED,
            account_id=transaction.account_id,
            to_account_id=transaction.to_account_id,
            category_id=transaction.category_id,
            amount=transaction.amount,
            date=date.today(),
            description=f"REVERSAL: {transaction.description}",
            reference=f"REV-{transaction.reference or transaction.id}"[:100],
            tags=[*(transaction.tags or []), "reversal"],
            notes=reason,
            reversal_of_id=transaction.id,
        )
        reversal.entries = [
            Entry(
                account_id=entry.account_id,
                category_id=entry.category_id,
                debit=entry.credit,
                credit=entry.debit,
                description=f"REVERSAL: {entry.description}",
            )
            for entry in transaction.entries
        ]

        try:
            validate_balance(reversal.entries)
            self.transaction_repo.create_no_commit(reversal)
            transaction.status = TransactionStatus.REVERSED
            self.audit.record(
                context, "transaction", transaction.id, "reverse",
                old_values={"status": TransactionStatus.COMPLETED.value},
                new_values={"status": TransactionStatus.REVERSED.value,
                            "reversal_id": reversal.id, "reason": reason},
                severity="warning",
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(reversal)
        logger.info(
            "Transaction reversed transaction_id=%s reversal_id=%s tenant_id=%s user_id=%s",
            transaction.id, reversal.id, context.tenant_id, context.user_id,
        )
        return reversal

    def get_trial_balance(self, context: TenantContext, as_of: Optional[date] = None) -> dict:
        """Debit and credit totals per account; balanced when they agree within a cent"""
        as_of = as_of or date.today()
        rows = self.entry_repo.get_trial_balance_rows(context.tenant_id, as_of)

        accounts = []
        total_debit = Decimal("0")
        total_credit = Decimal("0")
        for account_id, name, account_type, debit, credit in rows:
            debit, credit = Decimal(debit), Decimal(credit)
            total_debit += debit
            total_credit += credit
            accounts.append(
                {
                    "account_id": account_id,
                    "account_name": name,
                    "account_type": account_type.value,
                    "total_debit": float(debit),
                    "total_credit": float(credit),
                    "balance": float(credit - debit),
                }
            )

        difference = total_debit - total_credit
        return {
            "as_of": as_of,
            "accounts": accounts,
            "total_debit": float(total_debit),
            "total_credit": float(total_credit),
            "difference": float(difference),
            "balanced": is_balanced(total_debit, total_credit),
        }

    def resolve_account(self, account_id: int, tenant_id: int) -> Account:
        """
        Raises:
            NotFoundException: If the account is not an active user account of the tenant
        """
        account = self.account_repo.get_by_id_and_tenant(account_id, tenant_id)
        if not account or account.is_system or not account.is_active:
            raise NotFoundException("Account not found or inactive")
        return account
