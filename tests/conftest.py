import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-suagrana")

import pytest
from datetime import date, datetime, timedelta, UTC
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from jose import jwt

from suagrana.config import settings
from suagrana.database import get_db
# Import every model so Base.metadata knows all tables
from suagrana.models import Base
# Import FastAPI app AFTER model imports
from suagrana.main import app

# Test database (SQLite in-memory for speed)
# Use StaticPool to ensure all connections share the same in-memory database
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "Secret123!"


@pytest.fixture(scope="function")
def db_session():
    """Create fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """FastAPI test client with test database"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def create_test_token(user_id: int = 1, expired: bool = False, token_type: str = "access") -> str:
    """
    Generate a JWT signed with the test SECRET_KEY.

    Args:
        user_id: User ID to embed in 'sub' claim
        expired: If True, create expired token
        token_type: Value of the 'type' claim
    """
    if expired:
        exp = datetime.now(UTC) - timedelta(minutes=5)
    else:
        exp = datetime.now(UTC) + timedelta(minutes=15)

    payload = {"sub": str(user_id), "type": token_type, "exp": exp, "iat": datetime.now(UTC)}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register_user(client, name: str, email: str, password: str = DEFAULT_PASSWORD) -> dict:
    """
    Register through the API and return the response data.

    The auth cookies set by the response are dropped so that requests only
    authenticate through the headers a test passes explicitly.
    """
    response = client.post(
        "/api/auth/register", json={"name": name, "email": email, "password": password}
    )
    assert response.status_code == 201, response.text
    client.cookies.clear()
    return response.json()["data"]


def tenant_id_for(client, headers: dict) -> int:
    """ID of the tenant the headers act on by default"""
    response = client.get("/api/tenants/me", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]["id"]


def create_account(client, headers: dict, name: str = "Conta Corrente", account_type: str = "checking",
                   opening_balance: float = 0.0, **extra) -> dict:
    response = client.post(
        "/api/accounts",
        headers=headers,
        json={"name": name, "account_type": account_type, "opening_balance": opening_balance, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def create_transaction(client, headers: dict, account_id: int, transaction_type: str = "expense",
                       amount: float = 100.0, **extra) -> dict:
    payload = {
        "transaction_type": transaction_type,
        "account_id": account_id,
        "amount": amount,
        "description": extra.pop("description", f"Test {transaction_type}"),
        "date": extra.pop("date", date.today().isoformat()),
        **extra,
    }
    response = client.post("/api/transactions", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def account_balance(client, headers: dict, account_id: int) -> float:
    response = client.get(f"/api/accounts/{account_id}", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]["balance"]


@pytest.fixture
def user_a(client):
    """Registered user A with a personal tenant"""
    return register_user(client, "Alice Souza", "alice@example.com")


@pytest.fixture
def user_b(client):
    """Registered user B with a personal tenant"""
    return register_user(client, "Bruno Lima", "bruno@example.com")


@pytest.fixture
def auth_headers(user_a):
    """Authorization headers for user A"""
    return bearer(user_a["access_token"])


@pytest.fixture
def user_b_headers(user_b):
    """Authorization headers for user B"""
    return bearer(user_b["access_token"])


@pytest.fixture
def checking(client, auth_headers):
    """User A's checking account opened with 1000.00"""
    return create_account(client, auth_headers, "Conta Corrente", "checking", 1000.0)


@pytest.fixture
def savings(client, auth_headers):
    """User A's savings account opened with 500.00"""
    return create_account(client, auth_headers, "Poupança", "savings", 500.0)
