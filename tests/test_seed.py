from suagrana.models import Tenant, User
from suagrana.scripts.seed import DEMO_EMAIL, DEMO_PASSWORD, seed
from tests.conftest import bearer


def demo_headers(client) -> dict:
    response = client.post("/api/auth/login", json={"email": DEMO_EMAIL, "password": DEMO_PASSWORD})
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return bearer(response.json()["data"]["access_token"])


class TestSeed:
    """Demo data loader"""

    def test_seed_creates_balanced_demo_tenant(self, client, db_session):
        seed(db_session, months=2, reset=False)

        headers = demo_headers(client)
        accounts = client.get("/api/accounts", headers=headers).json()["data"]
        trial_balance = client.get("/api/reports/trial-balance", headers=headers).json()["data"]
        goals = client.get("/api/goals", headers=headers).json()["data"]
        portfolio = client.get("/api/investments/portfolio/summary", headers=headers).json()["data"]
        members = client.get("/api/tenants/me/members", headers=headers).json()["data"]
        budgets = client.get("/api/budgets/stats/summary", headers=headers).json()["data"]

        assert accounts["pagination"]["total"] == 4
        assert trial_balance["balanced"] is True
        assert trial_balance["total_debit"] > 0
        assert goals["pagination"]["total"] == 4
        assert portfolio["total_investments"] > 0
        assert len(members) == 2
        assert budgets["budget_count"] == 4

    def test_seed_is_skipped_when_demo_exists(self, db_session):
        seed(db_session, months=1, reset=False)
        seed(db_session, months=1, reset=False)

        assert db_session.query(User).filter(User.email == DEMO_EMAIL).count() == 1
        assert db_session.query(Tenant).count() == 1

    def test_reset_recreates_demo(self, db_session):
        seed(db_session, months=1, reset=False)

        seed(db_session, months=1, reset=True)

        tenants = db_session.query(Tenant).all()
        assert [t.slug for t in tenants] == ["demo"]
        assert db_session.query(User).count() == 2
