"""
Demo data generator.

Creates a demo user (demo@suagrana.com / Demo123!) owning a "SuaGrana Demo"
tenant with categories, accounts, a few months of posted transactions,
goals and an investment portfolio. Everything is written in one database
transaction.

Usage:
    python -m suagrana.scripts.seed [--reset] [--months N]
"""

import argparse
import logging
import random
from datetime import date, timedelta
from decimal import Decimal

from faker import Faker
from sqlalchemy import select, text
from sqlalchemy.orm import Session

from suagrana.config import settings
from suagrana.core.dates import shift_months
from suagrana.core.logging import configure_logging
from suagrana.core.security import hash_password
from suagrana.database import SessionLocal, engine
from suagrana.models import (
    Account,
    AuditEvent,
    Base,
    Budget,
    Category,
    Dividend,
    Entry,
    Goal,
    Investment,
    Tenant,
    TenantMembership,
    Transaction,
    User,
)
from suagrana.models.account import AccountType
from suagrana.models.budget import BudgetPeriod
from suagrana.models.category import CategoryType
from suagrana.models.goal import GoalPriority, RecurringPeriod
from suagrana.models.investment import InvestmentType
from suagrana.models.role import TenantRole
from suagrana.models.transaction import TransactionStatus, TransactionType
from suagrana.services.ledger_service import LedgerService, to_money

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@suagrana.com"
DEMO_PASSWORD = "Demo123!"
DEMO_SLUG = "demo"

CATEGORIES = [
    ("Alimentação", CategoryType.EXPENSE, "#f97316"),
    ("Transporte", CategoryType.EXPENSE, "#0ea5e9"),
    ("Moradia", CategoryType.EXPENSE, "#8b5cf6"),
    ("Saúde", CategoryType.EXPENSE, "#ef4444"),
    ("Educação", CategoryType.EXPENSE, "#14b8a6"),
    ("Lazer", CategoryType.EXPENSE, "#eab308"),
    ("Outros", CategoryType.EXPENSE, "#64748b"),
    ("Salário", CategoryType.INCOME, "#22c55e"),
    ("Freelance", CategoryType.INCOME, "#84cc16"),
    ("Investimentos", CategoryType.INCOME, "#06b6d4"),
]

ACCOUNTS = [
    ("Conta Corrente", AccountType.CHECKING, Decimal("2500.00")),
    ("Conta Poupança", AccountType.SAVINGS, Decimal("8000.00")),
    ("Cartão de Crédito", AccountType.CREDIT_CARD, Decimal("0.00")),
    ("Investimentos", AccountType.INVESTMENT, Decimal("15000.00")),
]

BUDGETS = [
    ("Alimentação", BudgetPeriod.MONTHLY, Decimal("1500.00"), 80),
    ("Transporte", BudgetPeriod.MONTHLY, Decimal("600.00"), 80),
    ("Lazer", BudgetPeriod.MONTHLY, Decimal("400.00"), 70),
    ("Educação", BudgetPeriod.YEARLY, Decimal("6000.00"), 90),
]

# (name, monthly amount, day of month, category)
RECURRING_EXPENSES = [
    ("Aluguel", Decimal("1800.00"), 5, "Moradia"),
    ("Conta de luz", Decimal("180.00"), 12, "Moradia"),
    ("Internet", Decimal("99.90"), 10, "Moradia"),
    ("Academia", Decimal("89.90"), 3, "Saúde"),
    ("Streaming", Decimal("39.90"), 8, "Lazer"),
]

VARIABLE_EXPENSES = [
    ("Alimentação", 25, 350),
    ("Transporte", 10, 120),
    ("Lazer", 30, 250),
    ("Saúde", 40, 300),
    ("Educação", 50, 400),
    ("Outros", 10, 150),
]

HOLDINGS = [
    ("PETR4", "Petrobras PN", InvestmentType.STOCK, Decimal("200"), Decimal("32.50"), Decimal("37.80")),
    ("ITUB4", "Itaú Unibanco PN", InvestmentType.STOCK, Decimal("150"), Decimal("28.10"), Decimal("33.40")),
    ("BOVA11", "iShares Ibovespa", InvestmentType.ETF, Decimal("40"), Decimal("118.00"), Decimal("126.30")),
    ("HGLG11", "CSHG Logística FII", InvestmentType.REAL_ESTATE, Decimal("25"), Decimal("160.00"), Decimal("158.20")),
    ("TESOURO-IPCA", "Tesouro IPCA+ 2035", InvestmentType.BOND, Decimal("3"), Decimal("2100.00"), Decimal("2245.00")),
]


def set_statement_timeout(db: Session) -> None:
    """Bound the seeding transaction on PostgreSQL; other backends have no equivalent"""
    if db.get_bind().dialect.name == "postgresql":
        timeout_ms = settings.LEDGER_TRANSACTION_TIMEOUT_SECONDS * 1000
        db.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))


def remove_demo_tenant(db: Session) -> None:
    """Delete the demo tenant table by table in dependency order; SQLite ignores ON DELETE"""
    tenant = db.query(Tenant).filter(Tenant.slug == DEMO_SLUG).first()
    if tenant:
        tenant_id = tenant.id
        member_ids = [
            m.user_id
            for m in db.query(TenantMembership).filter(TenantMembership.tenant_id == tenant_id)
        ]
        transaction_ids = select(Transaction.id).where(Transaction.tenant_id == tenant_id)
        investment_ids = select(Investment.id).where(Investment.tenant_id == tenant_id)

        db.query(Entry).filter(Entry.transaction_id.in_(transaction_ids)).delete(synchronize_session=False)
        db.query(Transaction).filter(Transaction.tenant_id == tenant_id).update(
            {Transaction.reversal_of_id: None}, synchronize_session=False
        )
        db.query(Dividend).filter(Dividend.investment_id.in_(investment_ids)).delete(synchronize_session=False)
        for model in (Transaction, Investment, Goal, Budget, AuditEvent, Category, Account, TenantMembership):
            db.query(model).filter(model.tenant_id == tenant_id).delete(synchronize_session=False)
        db.query(Tenant).filter(Tenant.id == tenant_id).delete(synchronize_session=False)

        # Members with no other tenant were created by the seed
        still_member = select(TenantMembership.user_id)
        db.query(User).filter(User.id.in_(member_ids), User.id.not_in(still_member)).delete(
            synchronize_session=False
        )

    db.query(User).filter(User.email == DEMO_EMAIL).delete(synchronize_session=False)
    db.flush()
    db.expire_all()
    logger.info("Existing demo data removed")


def create_owner(db: Session, fake: Faker) -> tuple[User, Tenant]:
    user = User(email=DEMO_EMAIL, name="Usuário Demo", password_hash=hash_password(DEMO_PASSWORD))
    tenant = Tenant(
        name="SuaGrana Demo",
        slug=DEMO_SLUG,
        settings={"currency": "BRL", "timezone": "America/Sao_Paulo", "date_format": "DD/MM/YYYY"},
    )
    db.add_all([user, tenant])
    db.flush()
    db.add(TenantMembership(tenant_id=tenant.id, user_id=user.id, role=TenantRole.OWNER))

    # A second household member who can record but not manage
    partner = User(
        email=fake.unique.email(),
        name=fake.name(),
        password_hash=hash_password(DEMO_PASSWORD),
    )
    db.add(partner)
    db.flush()
    db.add(TenantMembership(tenant_id=tenant.id, user_id=partner.id, role=TenantRole.MEMBER))
    db.flush()
    return user, tenant


def create_categories(db: Session, tenant: Tenant) -> dict[str, Category]:
    categories = {}
    for name, category_type, color in CATEGORIES:
        category = Category(tenant_id=tenant.id, name=name, category_type=category_type, color=color)
        db.add(category)
        categories[name] = category
    db.flush()
    return categories


def create_accounts(db: Session, tenant: Tenant) -> dict[AccountType, Account]:
    accounts = {}
    for name, account_type, opening_balance in ACCOUNTS:
        account = Account(
            tenant_id=tenant.id,
            name=name,
            account_type=account_type,
            currency=settings.DEFAULT_CURRENCY,
            opening_balance=opening_balance,
        )
        db.add(account)
        accounts[account_type] = account
    db.flush()
    return accounts


class TransactionWriter:
    """Posts generated transactions through the ledger without committing"""

    def __init__(self, db: Session, tenant: Tenant, user: User):
        self.db = db
        self.ledger = LedgerService(db)
        self.tenant = tenant
        self.user = user
        self.count = 0

    def write(
        self,
        transaction_type: TransactionType,
        account: Account,
        amount: Decimal,
        day: date,
        description: str,
        category: Category | None = None,
        to_account: Account | None = None,
        tags: list[str] | None = None,
    ) -> Transaction:
        transaction = Transaction(
            tenant_id=self.tenant.id,
            created_by=self.user.id,
            transaction_type=transaction_type,
            status=TransactionStatus.COMPLETED,
            account_id=account.id,
            to_account_id=to_account.id if to_account else None,
            category_id=category.id if category else None,
            amount=to_money(amount),
            date=day,
            description=description,
            tags=tags or [],
        )
        self.db.add(transaction)
        self.db.flush()
        self.ledger.post(transaction)
        self.count += 1
        return transaction


def create_transactions(
    fake: Faker,
    writer: TransactionWriter,
    accounts: dict[AccountType, Account],
    categories: dict[str, Category],
    months: int,
) -> None:
    today = date.today()
    checking = accounts[AccountType.CHECKING]
    savings = accounts[AccountType.SAVINGS]
    credit_card = accounts[AccountType.CREDIT_CARD]

    for offset in range(months, -1, -1):
        first = shift_months(today.replace(day=1), -offset)

        def on(day_of_month: int) -> date | None:
            day = first.replace(day=min(day_of_month, 28))
            return day if day <= today else None

        if payday := on(5):
            writer.write(TransactionType.INCOME, checking, Decimal("6500.00"), payday,
                         "Salário mensal", categories["Salário"], tags=["salario"])

        for name, amount, day_of_month, category_name in RECURRING_EXPENSES:
            if due := on(day_of_month):
                writer.write(TransactionType.EXPENSE, checking, amount, due, name,
                             categories[category_name], tags=["recorrente"])

        if transfer_day := on(6):
            writer.write(TransactionType.TRANSFER, checking, Decimal("800.00"), transfer_day,
                         "Reserva mensal", to_account=savings)

        if random.random() < 0.5 and (gig_day := on(random.randint(10, 25))):
            writer.write(TransactionType.INCOME, checking, Decimal(random.randint(400, 2500)),
                         gig_day, f"Projeto {fake.company()}", categories["Freelance"])

        for _ in range(random.randint(12, 20)):
            category_name, low, high = random.choice(VARIABLE_EXPENSES)
            if not (spent_on := on(random.randint(1, 28))):
                continue
            account = credit_card if random.random() < 0.4 else checking
            amount = Decimal(str(round(random.uniform(low, high), 2)))
            writer.write(TransactionType.EXPENSE, account, amount, spent_on,
                         fake.sentence(nb_words=3).rstrip("."), categories[category_name])

        if (card_day := on(20)) and offset > 0:
            writer.write(TransactionType.TRANSFER, checking, Decimal("1200.00"), card_day,
                         "Pagamento da fatura", to_account=credit_card)


def create_goals(db: Session, tenant: Tenant, user: User) -> None:
    today = date.today()
    goals = [
        Goal(name="Reserva de emergência", target_amount=Decimal("30000.00"),
             current_amount=Decimal("12500.00"), target_date=shift_months(today, 18),
             category="Segurança", priority=GoalPriority.HIGH),
        Goal(name="Viagem de férias", target_amount=Decimal("8000.00"),
             current_amount=Decimal("6900.00"), target_date=today + timedelta(days=25),
             category="Lazer", priority=GoalPriority.MEDIUM),
        Goal(name="Curso de especialização", target_amount=Decimal("5000.00"),
             current_amount=Decimal("750.00"), target_date=shift_months(today, 10),
             category="Educação", priority=GoalPriority.LOW),
        Goal(name="Aporte mensal", target_amount=Decimal("1000.00"),
             current_amount=Decimal("400.00"), target_date=shift_months(today, 1),
             category="Investimentos", priority=GoalPriority.MEDIUM,
             is_recurring=True, recurring_period=RecurringPeriod.MONTHLY),
    ]
    for goal in goals:
        goal.tenant_id = tenant.id
        goal.created_by = user.id
    db.add_all(goals)
    db.flush()


def create_budgets(db: Session, tenant: Tenant, user: User, categories: dict[str, Category]) -> None:
    for name, period, amount, threshold in BUDGETS:
        db.add(Budget(tenant_id=tenant.id, created_by=user.id, category_id=categories[name].id,
                      amount=amount, period=period, alert_threshold=threshold))
    db.flush()


def create_portfolio(db: Session, tenant: Tenant, user: User, months: int) -> None:
    today = date.today()
    for symbol, name, investment_type, quantity, purchase_price, current_price in HOLDINGS:
        investment = Investment(
            tenant_id=tenant.id,
            created_by=user.id,
            symbol=symbol,
            name=name,
            investment_type=investment_type,
            quantity=quantity,
            purchase_price=purchase_price,
            current_price=current_price,
            purchase_date=shift_months(today, -(months + 2)),
        )
        if investment_type in (InvestmentType.STOCK, InvestmentType.REAL_ESTATE):
            for offset in range(months, 0, -1):
                per_share = Decimal(str(round(random.uniform(0.2, 1.1), 2)))
                investment.dividends.append(
                    Dividend(amount=to_money(per_share * quantity),
                             payment_date=shift_months(today.replace(day=15), -offset))
                )
        db.add(investment)
    db.flush()


def seed(db: Session, months: int, reset: bool) -> None:
    fake = Faker("pt_BR")
    Faker.seed(123)
    random.seed(123)

    try:
        set_statement_timeout(db)
        existing = db.query(User).filter(User.email == DEMO_EMAIL).first()
        if existing and not reset:
            logger.info("Demo user already exists, use --reset to recreate it")
            return
        if reset:
            remove_demo_tenant(db)

        user, tenant = create_owner(db, fake)
        categories = create_categories(db, tenant)
        accounts = create_accounts(db, tenant)

        writer = TransactionWriter(db, tenant, user)
        create_transactions(fake, writer, accounts, categories, months)
        create_goals(db, tenant, user)
        create_budgets(db, tenant, user, categories)
        create_portfolio(db, tenant, user, months)

        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Seeding failed, nothing was written")
        raise

    logger.info(
        "Demo data ready tenant_id=%s transactions=%s login=%s",
        tenant.id, writer.count, DEMO_EMAIL,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Load SuaGrana demo data")
    parser.add_argument("--reset", action="store_true", help="Delete and recreate the demo tenant")
    parser.add_argument("--months", type=int, default=4, help="Months of history to generate")
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed(db, months=max(args.months, 1), reset=args.reset)
    finally:
        db.close()


if __name__ == "__main__":
    main()
