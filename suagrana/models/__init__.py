# Import every model so Base.metadata knows all tables
from suagrana.models.base import Base
from suagrana.models.user import User
from suagrana.models.tenant import Tenant
from suagrana.models.tenant_membership import TenantMembership
from suagrana.models.account import Account
from suagrana.models.category import Category
from suagrana.models.transaction import Transaction
from suagrana.models.entry import Entry
from suagrana.models.goal import Goal
from suagrana.models.budget import Budget
from suagrana.models.investment import Investment, Dividend
from suagrana.models.audit_event import AuditEvent

__all__ = [
    "Base",
    "User",
    "Tenant",
    "TenantMembership",
    "Account",
    "Category",
    "Transaction",
    "Entry",
    "Goal",
    "Budget",
    "Investment",
    "Dividend",
    "AuditEvent",
]
