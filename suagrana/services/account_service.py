import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session

from suagrana.core.exceptions import ConflictException, NotFoundException, ValidationException
from suagrana.models.account import Account, AccountType
from suagrana.models.tenant_context import TenantContext
from suagrana.repositories.account_repository import AccountRepository
from suagrana.repositories.entry_repository import EntryRepository
from suagrana.repositories.transaction_repository import TransactionRepository
from suagrana.schemas.account_schemas import AccountCreate, AccountUpdate
from suagrana.services.audit_service import AuditService, snapshot

logger = logging.getLogger(__name__)

AUDITED_FIELDS = ("name", "account_type", "currency", "description", "opening_balance", "is_active")


class AccountService:
    """Service for account business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AccountRepository(db)
        self.entry_repo = EntryRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.audit = AuditService(db)

    def list_accounts(
        self,
        context: TenantContext,
        account_type: Optional[AccountType] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Account], dict[int, float], int, dict[str, int]]:
        """
        Page through the tenant's accounts.

        Returns:
            (accounts, balances by account id, total, active counts by type)
        """
        accounts, total = self.repo.get_with_filters(
            context.tenant_id, account_type, is_active, search, limit, offset
        )
        balances = self.entry_repo.get_balances(accounts)
        counts = {t.value: n for t, n in self.repo.count_active_by_type(context.tenant_id).items()}
        return accounts, balances, total, counts

    def get_summary(self, context: TenantContext) -> dict:
        """Totals over user-facing accounts; balances only include active ones"""
        accounts = self.repo.get_user_accounts(context.tenant_id)
        balances = self.entry_repo.get_balances(accounts)

        by_type: dict[str, dict] = {}
        total_balance = 0.0
        active = 0
        for account in accounts:
            if not account.is_active:
                continue
            active += 1
            balance = balances[account.id]
            total_balance += balance
            bucket = by_type.setdefault(account.account_type.value, {"count": 0, "balance": 0.0})
            bucket["count"] += 1
            bucket["balance"] = round(bucket["balance"] + balance, 2)

        return {
            "total_accounts": len(accounts),
            "active_accounts": active,
            "inactive_accounts": len(accounts) - active,
            "total_balance": round(total_balance, 2),
            "by_type": by_type,
        }

    def get_account(self, account_id: int, context: TenantContext) -> Account:
        """
        Get a user-facing account of the tenant.

        Raises:
            NotFoundException: If the account is missing, system-owned or
                belongs to another tenant
        """
        account = self.repo.get_by_id_and_tenant(account_id, context.tenant_id)
        if not account or account.is_system:
            raise NotFoundException("Account not found")
        return account

    def get_balance(self, account: Account) -> float:
        return self.entry_repo.get_balance(account)

    def get_account_detail(self, account_id: int, context: TenantContext) -> tuple[Account, float, list]:
        account = self.get_account(account_id, context)
        recent = self.transaction_repo.get_recent_for_account(account.id, limit=10)
        return account, self.get_balance(account), recent

    def create_account(self, data: AccountCreate, context: TenantContext) -> Account:
        """
        Raises:
            ConflictException: If an active account already uses the name
            ValidationException: If a non credit-card account opens negative
        """
        if self.repo.get_active_by_name(context.tenant_id, data.name):
            raise ConflictException("An account with this name already exists")

        if data.opening_balance < 0 and data.account_type != AccountType.CREDIT_CARD:
            raise ValidationException("Only credit card accounts can have a negative opening balance")

        account = Account(
            tenant_id=context.tenant_id,
            name=data.name,
            account_type=data.account_type,
            currency=data.currency,
            description=data.description,
            opening_balance=Decimal(str(data.opening_balance)),
            is_active=True,
            is_system=False,
        )
        self.repo.create_no_commit(account)
        self.audit.record(context, "account", account.id, "create", new_values=snapshot(account, AUDITED_FIELDS))
        account = self.repo.update(account)
        logger.info(
            "Account created account_id=%s tenant_id=%s user_id=%s",
            account.id, context.tenant_id, context.user_id,
        )
        return account

    def update_account(self, account_id: int, data: AccountUpdate, context: TenantContext) -> Account:
        account = self.get_account(account_id, context)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        if "name" in updates:
            updates["name"] = updates["name"].strip()

        reactivating = updates.get("is_active") is True and not account.is_active
        if "name" in updates or reactivating:
            name = updates.get("name", account.name)
            if self.repo.get_active_by_name(context.tenant_id, name, exclude_id=account.id):
                raise ConflictException("An account with this name already exists")

        if (
            updates.get("account_type") not in (None, AccountType.CREDIT_CARD)
            and account.opening_balance < 0
        ):
            raise ValidationException("Only credit card accounts can have a negative opening balance")

        old_values = snapshot(account, AUDITED_FIELDS)
        for field, value in updates.items():
            setattr(account, field, value)

        self.audit.record(
            context, "account", account.id, "update", old_values, snapshot(account, AUDITED_FIELDS)
        )
        account = self.repo.update(account)
        logger.info(
            "Account updated account_id=%s tenant_id=%s user_id=%s",
            account.id, context.tenant_id, context.user_id,
        )
        return account

    def delete_account(self, account_id: int, context: TenantContext) -> bool:
        """
        Delete an account, or deactivate it when ledger entries reference it.

        Returns:
            True if the account was deleted, False if it was deactivated
        """
        account = self.get_account(account_id, context)
        old_values = snapshot(account, AUDITED_FIELDS)

        if self.repo.has_entries(account.id):
            account.is_active = False
            self.audit.record(context, "account", account.id, "deactivate", old_values, {"is_active": False})
            self.repo.update(account)
            logger.info(
                "Account deactivated account_id=%s tenant_id=%s user_id=%s",
                account.id, context.tenant_id, context.user_id,
            )
            return False

        self.audit.record(context, "account", account.id, "delete", old_values, severity="warning")
        self.repo.delete(account)
        logger.info(
            "Account deleted account_id=%s tenant_id=%s user_id=%s",
            account_id, context.tenant_id, context.user_id,
        )
        return True

    def get_balance_history(self, account_id: int, days: int, context: TenantContext) -> dict:
        """
        Running balance for the last `days` days, today included.

        Days without activity carry the previous balance with a zero change.
        """
        account = self.get_account(account_id, context)
        today = date.today()
        start = today - timedelta(days=days - 1)

        balance = self.entry_repo.get_balance(account, as_of=start - timedelta(days=1))
        changes = self.entry_repo.get_daily_changes(account.id, start)

        history = []
        for offset in range(days):
            day = start + timedelta(days=offset)
            change, count = changes.get(day, (0.0, 0))
            balance = round(balance + change, 2)
            history.append(
                {"date": day, "balance": balance, "change": round(change, 2), "transaction_count": count}
            )

        return {
            "account_id": account.id,
            "days": days,
            "current_balance": self.get_balance(account),
            "history": history,
        }

