from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from suagrana.models.account import Account, AccountType
from suagrana.models.entry import Entry


class AccountRepository:
    """Repository for Account model operations with multi-tenant support"""

    def __init__(self, db: Session):
        self.db = db

    def get_with_filters(
        self,
        tenant_id: int,
        account_type: Optional[AccountType] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Account], int]:
        """
        List the tenant's user-facing accounts.

        System (nominal) accounts are never returned.

        Returns:
            Tuple of (accounts, total count before pagination)
        """
        query = self.db.query(Account).filter(
            Account.tenant_id == tenant_id,
            Account.is_system.is_(False),
        )

        if account_type is not None:
            query = query.filter(Account.account_type == account_type)

        if is_active is not None:
            query = query.filter(Account.is_active.is_(is_active))

        if search:
            query = query.filter(Account.name.ilike(f"%{search}%"))

        total = query.count()
        accounts = (
            query.order_by(Account.name.asc(), Account.id.asc())
            .limit(limit)
            .offset(offset)
            .all()
        )
        return accounts, total

    def get_user_accounts(self, tenant_id: int) -> list[Account]:
        """All non-system accounts of the tenant, active or not"""
        return (
            self.db.query(Account)
            .filter(Account.tenant_id == tenant_id, Account.is_system.is_(False))
            .order_by(Account.id.asc())
            .all()
        )

    def get_by_id_and_tenant(self, account_id: int, tenant_id: int) -> Account | None:
        """
        Get account ensuring it belongs to the tenant (multi-tenant safety).

        Returns None if the account doesn't exist or belongs to another tenant.
        """
        return (
            self.db.query(Account)
            .filter(Account.id == account_id, Account.tenant_id == tenant_id)
            .first()
        )

    def get_active_by_name(
        self, tenant_id: int, name: str, exclude_id: Optional[int] = None
    ) -> Account | None:
        """Active account with the same name, compared case-insensitively"""
        query = self.db.query(Account).filter(
            Account.tenant_id == tenant_id,
            Account.is_active.is_(True),
            func.lower(Account.name) == name.strip().lower(),
        )
        if exclude_id is not None:
            query = query.filter(Account.id != exclude_id)
        return query.first()

    def get_system_account(self, tenant_id: int, account_type: AccountType) -> Account | None:
        return (
            self.db.query(Account)
            .filter(
                Account.tenant_id == tenant_id,
                Account.account_type == account_type,
                Account.is_system.is_(True),
            )
            .first()
        )

    def count_active_by_type(self, tenant_id: int) -> dict[AccountType, int]:
        rows = (
            self.db.query(Account.account_type, func.count(Account.id))
            .filter(
                Account.tenant_id == tenant_id,
                Account.is_system.is_(False),
                Account.is_active.is_(True),
            )
            .group_by(Account.account_type)
            .all()
        )
        return {account_type: count for account_type, count in rows}

    def has_entries(self, account_id: int) -> bool:
        return (
            self.db.query(Entry.id).filter(Entry.account_id == account_id).first() is not None
        )

    def create_no_commit(self, account: Account) -> Account:
        """Create account without committing (for atomic ops)"""
        self.db.add(account)
        self.db.flush()
        return account

    def update(self, account: Account) -> Account:
        self.db.commit()
        self.db.refresh(account)
        return account

    def delete(self, account: Account) -> None:
        self.db.delete(account)
        self.db.commit()
