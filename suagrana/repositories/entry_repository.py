"""Aggregate queries over ledger entries: balances and trial balance."""

from datetime import date
from typing import Iterable, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from suagrana.models.account import Account
from suagrana.models.entry import Entry
from suagrana.models.transaction import Transaction, POSTED_STATUSES


class EntryRepository:
    """Read-side queries over posted entries"""

    def __init__(self, db: Session):
        self.db = db

    def _posted(self):
        return (
            self.db.query(Entry)
            .join(Transaction, Entry.transaction_id == Transaction.id)
            .filter(Transaction.status.in_(POSTED_STATUSES))
        )

    def get_movements(
        self, account_ids: Iterable[int], as_of: Optional[date] = None
    ) -> dict[int, float]:
        """
        Sum of credit minus debit per account over posted entries.

        Args:
            account_ids: Accounts to aggregate
            as_of: Only count transactions dated on or before this day

        Returns:
            Mapping account_id -> movement; accounts without entries are absent
        """
        account_ids = list(account_ids)
        if not account_ids:
            return {}

        query = (
            self._posted()
            .with_entities(Entry.account_id, func.sum(Entry.credit - Entry.debit))
            .filter(Entry.account_id.in_(account_ids))
        )
        if as_of is not None:
            query = query.filter(Transaction.date <= as_of)

        rows = query.group_by(Entry.account_id).all()
        return {account_id: float(total or 0) for account_id, total in rows}

    def get_balances(self, accounts: Iterable[Account], as_of: Optional[date] = None) -> dict[int, float]:
        """Opening balance plus posted movement for each account"""
        accounts = list(accounts)
        movements = self.get_movements((a.id for a in accounts), as_of=as_of)
        return {
            a.id: round(float(a.opening_balance or 0) + movements.get(a.id, 0.0), 2)
            for a in accounts
        }

    def get_balance(self, account: Account, as_of: Optional[date] = None) -> float:
        return self.get_balances([account], as_of=as_of)[account.id]

    def get_daily_changes(self, account_id: int, start_date: date) -> dict[date, tuple[float, int]]:
        """
        Net change and transaction count per day for one account.

        Returns:
            Mapping day -> (change, transaction count) for days with activity
        """
        rows = (
            self._posted()
            .with_entities(
                Transaction.date,
                func.sum(Entry.credit - Entry.debit),
                func.count(func.distinct(Transaction.id)),
            )
            .filter(Entry.account_id == account_id, Transaction.date >= start_date)
            .group_by(Transaction.date)
            .all()
        )
        return {day: (float(change or 0), count) for day, change, count in rows}

    def get_trial_balance_rows(self, tenant_id: int, as_of: Optional[date] = None) -> list:
        """
        Debit and credit totals per account with posted entries.

        Returns:
            Rows of (account_id, name, account_type, total_debit, total_credit)
        """
        query = (
            self._posted()
            .join(Account, Entry.account_id == Account.id)
            .with_entities(
                Account.id,
                Account.name,
                Account.account_type,
                func.coalesce(func.sum(Entry.debit), 0),
                func.coalesce(func.sum(Entry.credit), 0),
            )
            .filter(Account.tenant_id == tenant_id)
        )
        if as_of is not None:
            query = query.filter(Transaction.date <= as_of)

        return (
            query.group_by(Account.id, Account.name, Account.account_type)
            .order_by(Account.id.asc())
            .all()
        )

    def category_has_entries(self, category_id: int) -> bool:
        return (
            self.db.query(Entry.id).filter(Entry.category_id == category_id).first() is not None
        )
