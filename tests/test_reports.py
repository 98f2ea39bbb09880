import pytest
from decimal import Decimal

from suagrana.models import Entry
from tests.conftest import create_transaction


@pytest.fixture
def history(client, auth_headers, checking, savings):
    """A few months of activity on user A's accounts"""
    account_id = checking["id"]
    create_transaction(client, auth_headers, account_id, "income", 3000, category="Salário", date="2024-01-05")
    create_transaction(client, auth_headers, account_id, "expense", 500, category="Aluguel", date="2024-01-20")
    create_transaction(client, auth_headers, account_id, "expense", 200, category="Mercado", date="2024-02-10")
    create_transaction(client, auth_headers, account_id, "expense", 300, category="Mercado", date="2024-03-05")
    create_transaction(client, auth_headers, account_id, "expense", 100, category="Mercado", date="2024-03-20")
    create_transaction(client, auth_headers, account_id, "expense", 100, category="Lazer", date="2024-03-15")
    create_transaction(client, auth_headers, account_id, "expense", 999, category="Lazer", date="2024-03-16",
                       status="pending")
    create_transaction(client, auth_headers, account_id, "transfer", 300, to_account_id=savings["id"],
                       date="2024-03-25")


class TestCashFlow:
    def test_monthly_buckets(self, client, auth_headers, history):
        response = client.get(
            "/api/reports/cash-flow?start_date=2024-01-01&end_date=2024-03-31", headers=auth_headers
        )

        assert response.status_code == 200
        report = response.json()["data"]
        assert report["months"] == [
            {"month": "2024-01", "income": 3000.0, "expense": 500.0, "net": 2500.0},
            {"month": "2024-02", "income": 0.0, "expense": 200.0, "net": -200.0},
            {"month": "2024-03", "income": 0.0, "expense": 500.0, "net": -500.0},
        ]
        assert report["total_income"] == 3000.0
        assert report["total_expense"] == 1200.0
        assert report["net"] == 1800.0

    def test_default_range_is_six_months(self, client, auth_headers):
        report = client.get("/api/reports/cash-flow", headers=auth_headers).json()["data"]

        assert len(report["months"]) == 6

    def test_inverted_range(self, client, auth_headers):
        response = client.get(
            "/api/reports/cash-flow?start_date=2024-03-01&end_date=2024-01-01", headers=auth_headers
        )

        assert response.status_code == 400

    def test_reversed_expense_leaves_cash_flow(self, client, auth_headers, checking):
        create_transaction(client, auth_headers, checking["id"], "expense", 60)
        reversed_one = create_transaction(client, auth_headers, checking["id"], "expense", 40)
        client.post(f"/api/transactions/{reversed_one['id']}/reverse", headers=auth_headers, json={"reason": "r"})

        report = client.get("/api/reports/cash-flow", headers=auth_headers).json()["data"]

        assert report["total_expense"] == 60.0
        assert report["months"][-1]["expense"] == 60.0


class TestCategorySpending:
    def test_compares_with_previous_period(self, client, auth_headers, history):
        response = client.get(
            "/api/reports/category-spending?start_date=2024-03-01&end_date=2024-03-31", headers=auth_headers
        )

        assert response.status_code == 200
        report = response.json()["data"]
        assert report["previous_start_date"] == "2024-01-30"
        assert report["previous_end_date"] == "2024-02-29"
        assert report["total_spending"] == 500.0

        mercado, lazer = report["categories"]
        assert mercado["category"] == "Mercado"
        assert mercado["total"] == 400.0
        assert mercado["count"] == 2
        assert mercado["average"] == 200.0
        assert mercado["percentage"] == 80.0
        assert mercado["previous_total"] == 200.0
        assert mercado["change_percentage"] == 100.0
        assert lazer["category"] == "Lazer"
        assert lazer["total"] == 100.0
        assert lazer["change_percentage"] is None

    def test_empty_period(self, client, auth_headers):
        report = client.get("/api/reports/category-spending", headers=auth_headers).json()["data"]

        assert report["total_spending"] == 0.0
        assert report["categories"] == []

    def test_reversed_expense_is_not_spending(self, client, auth_headers, checking):
        create_transaction(client, auth_headers, checking["id"], "expense", 25, category="Mercado")
        reversed_one = create_transaction(client, auth_headers, checking["id"], "expense", 40, category="Mercado")
        client.post(f"/api/transactions/{reversed_one['id']}/reverse", headers=auth_headers, json={"reason": "r"})

        report = client.get("/api/reports/category-spending", headers=auth_headers).json()["data"]

        assert report["total_spending"] == 25.0
        assert [(c["category"], c["total"], c["count"]) for c in report["categories"]] == [("Mercado", 25.0, 1)]


class TestTrialBalance:
    def test_ledger_is_balanced(self, client, auth_headers, history, checking, savings):
        response = client.get("/api/reports/trial-balance", headers=auth_headers)

        assert response.status_code == 200
        report = response.json()["data"]
        assert report["balanced"] is True
        assert report["difference"] == 0.0
        assert report["total_debit"] == report["total_credit"] == 4500.0

        rows = {row["account_id"]: row for row in report["accounts"]}
        assert rows[checking["id"]]["balance"] == 1500.0
        assert rows[savings["id"]]["balance"] == 300.0
        by_type = {row["account_type"]: row for row in report["accounts"]}
        assert by_type["income"]["balance"] == -3000.0
        assert by_type["expense"]["balance"] == 1200.0

    def test_as_of_excludes_later_entries(self, client, auth_headers, history):
        report = client.get("/api/reports/trial-balance?as_of=2024-01-31", headers=auth_headers).json()["data"]

        assert report["total_debit"] == 3500.0
        assert report["balanced"] is True

    def test_reversals_keep_balance(self, client, auth_headers, checking):
        transaction = create_transaction(client, auth_headers, checking["id"], "expense", 75)
        client.post(f"/api/transactions/{transaction['id']}/reverse", headers=auth_headers, json={"reason": "r"})

        report = client.get("/api/reports/trial-balance", headers=auth_headers).json()["data"]

        assert report["balanced"] is True
        assert report["total_debit"] == 150.0

    def test_one_cent_difference_is_balanced(self, client, auth_headers, checking, db_session):
        """Same tolerance as posting: a difference of exactly one cent still balances"""
        transaction = create_transaction(client, auth_headers, checking["id"], "expense", 10)
        entry = db_session.query(Entry).filter(
            Entry.transaction_id == transaction["id"], Entry.credit > 0
        ).one()
        entry.credit = Decimal("9.99")
        db_session.commit()

        report = client.get("/api/reports/trial-balance", headers=auth_headers).json()["data"]

        assert report["difference"] == 0.01
        assert report["balanced"] is True


class TestDashboard:
    def test_dashboard_sections(self, client, auth_headers, checking, savings):
        create_transaction(client, auth_headers, checking["id"], "income", 1000)
        create_transaction(client, auth_headers, checking["id"], "expense", 250)

        response = client.get("/api/reports/dashboard", headers=auth_headers)

        assert response.status_code == 200
        dashboard = response.json()["data"]
        assert dashboard["accounts"]["total_balance"] == 2250.0
        assert dashboard["month"]["income"] == 1000.0
        assert dashboard["month"]["expense"] == 250.0
        assert dashboard["month"]["net"] == 750.0
        assert dashboard["goals"]["total_goals"] == 0
        assert dashboard["portfolio"] == {"total_invested": 0.0, "current_value": 0.0, "gain_loss": 0.0}
