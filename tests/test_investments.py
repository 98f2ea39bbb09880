def create_investment(client, headers, symbol="petr4", name="Petrobras PN", investment_type="stock",
                      quantity=100, purchase_price=30.0, **extra):
    payload = {
        "symbol": symbol,
        "name": name,
        "investment_type": investment_type,
        "quantity": quantity,
        "purchase_price": purchase_price,
        "purchase_date": extra.pop("purchase_date", "2024-01-15"),
        **extra,
    }
    response = client.post("/api/investments", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def add_dividend(client, headers, investment_id, amount, payment_date, dividend_type="cash"):
    response = client.post(
        f"/api/investments/{investment_id}/dividends",
        headers=headers,
        json={"amount": amount, "payment_date": payment_date, "dividend_type": dividend_type},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestInvestments:
    """Tests for /api/investments"""

    def test_create_investment(self, client, auth_headers):
        investment = create_investment(client, auth_headers, current_price=36.0)

        assert investment["symbol"] == "PETR4"
        assert investment["metrics"] == {
            "total_invested": 3000.0,
            "current_value": 3600.0,
            "gain_loss": 600.0,
            "gain_loss_percentage": 20.0,
            "total_dividends": 0.0,
            "dividend_yield": 0.0,
        }

    def test_metrics_without_current_price(self, client, auth_headers):
        """Holdings without a quote are valued at purchase price"""
        investment = create_investment(client, auth_headers)

        assert investment["current_price"] is None
        assert investment["metrics"]["current_value"] == 3000.0
        assert investment["metrics"]["gain_loss"] == 0.0

    def test_invalid_quantity(self, client, auth_headers):
        response = client.post(
            "/api/investments",
            headers=auth_headers,
            json={"symbol": "BTC", "name": "Bitcoin", "investment_type": "crypto",
                  "quantity": 0, "purchase_price": 100, "purchase_date": "2024-01-01"},
        )

        assert response.status_code == 422

    def test_list_filters(self, client, auth_headers):
        create_investment(client, auth_headers, "PETR4", "Petrobras PN")
        create_investment(client, auth_headers, "BTC", "Bitcoin", "crypto", 0.5, 200000)

        crypto = client.get("/api/investments?type=crypto", headers=auth_headers).json()["data"]
        search = client.get("/api/investments?search=petro", headers=auth_headers).json()["data"]

        assert [i["symbol"] for i in crypto["investments"]] == ["BTC"]
        assert [i["symbol"] for i in search["investments"]] == ["PETR4"]
        assert crypto["pagination"]["total"] == 1

    def test_update_price(self, client, auth_headers):
        investment = create_investment(client, auth_headers)

        response = client.patch(
            f"/api/investments/{investment['id']}", headers=auth_headers, json={"current_price": 27.0}
        )

        assert response.status_code == 200
        assert response.json()["data"]["metrics"]["gain_loss"] == -300.0
        assert response.json()["data"]["metrics"]["gain_loss_percentage"] == -10.0

    def test_detail_includes_dividends(self, client, auth_headers):
        investment = create_investment(client, auth_headers)
        add_dividend(client, auth_headers, investment["id"], 45.5, "2024-03-10")
        add_dividend(client, auth_headers, investment["id"], 54.5, "2024-06-10")

        response = client.get(f"/api/investments/{investment['id']}", headers=auth_headers)

        detail = response.json()["data"]
        assert [d["payment_date"] for d in detail["dividends"]] == ["2024-06-10", "2024-03-10"]
        assert detail["metrics"]["total_dividends"] == 100.0
        assert detail["metrics"]["dividend_yield"] == 3.33

    def test_delete_removes_dividends(self, client, auth_headers):
        investment = create_investment(client, auth_headers)
        add_dividend(client, auth_headers, investment["id"], 10, "2024-03-10")

        response = client.delete(f"/api/investments/{investment['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert client.get(f"/api/investments/{investment['id']}", headers=auth_headers).status_code == 404
        assert client.get("/api/investments/dividends", headers=auth_headers).json()["data"]["count"] == 0

    def test_other_tenant_investment(self, client, auth_headers, user_b_headers):
        investment = create_investment(client, auth_headers)

        assert client.get(f"/api/investments/{investment['id']}", headers=user_b_headers).status_code == 404
        response = client.post(
            f"/api/investments/{investment['id']}/dividends",
            headers=user_b_headers,
            json={"amount": 10, "payment_date": "2024-03-10"},
        )
        assert response.status_code == 404


class TestPortfolio:
    """Portfolio summary and dividend listing"""

    def test_portfolio_summary(self, client, auth_headers):
        create_investment(client, auth_headers, "PETR4", "Petrobras PN", "stock", 100, 30.0, current_price=33.0)
        create_investment(client, auth_headers, "IVVB11", "iShares S&P 500", "etf", 10, 270.0, current_price=330.0)
        create_investment(client, auth_headers, "VALE3", "Vale ON", "stock", 50, 60.0, current_price=54.0)

        response = client.get("/api/investments/portfolio/summary", headers=auth_headers)

        summary = response.json()["data"]
        assert summary["total_investments"] == 3
        assert summary["total_invested"] == 8700.0
        assert summary["current_value"] == 9300.0
        assert summary["gain_loss"] == 600.0
        assert summary["gain_loss_percentage"] == 6.9
        allocation = {a["investment_type"]: a for a in summary["allocation"]}
        assert allocation["stock"]["count"] == 2
        assert allocation["stock"]["current_value"] == 6000.0
        assert allocation["stock"]["percentage"] == 64.52
        assert allocation["etf"]["percentage"] == 35.48
        assert summary["allocation"][0]["investment_type"] == "stock"

    def test_empty_portfolio(self, client, auth_headers):
        summary = client.get("/api/investments/portfolio/summary", headers=auth_headers).json()["data"]

        assert summary["total_investments"] == 0
        assert summary["gain_loss_percentage"] == 0.0
        assert summary["allocation"] == []

    def test_dividends_by_year_and_month(self, client, auth_headers):
        investment = create_investment(client, auth_headers)
        add_dividend(client, auth_headers, investment["id"], 10, "2023-12-20")
        add_dividend(client, auth_headers, investment["id"], 20, "2024-03-10")
        add_dividend(client, auth_headers, investment["id"], 30, "2024-03-25")
        add_dividend(client, auth_headers, investment["id"], 40, "2024-07-01")

        all_dividends = client.get("/api/investments/dividends", headers=auth_headers).json()["data"]
        year = client.get("/api/investments/dividends?year=2024", headers=auth_headers).json()["data"]
        month = client.get("/api/investments/dividends?year=2024&month=3", headers=auth_headers).json()["data"]

        assert all_dividends["count"] == 4
        assert year["count"] == 3
        assert year["total"] == 90.0
        assert [d["amount"] for d in month["dividends"]] == [30.0, 20.0]
        assert month["dividends"][0]["symbol"] == "PETR4"
        assert month["dividends"][0]["investment_name"] == "Petrobras PN"

    def test_month_requires_year(self, client, auth_headers):
        response = client.get("/api/investments/dividends?month=3", headers=auth_headers)

        assert response.status_code == 400

    def test_dividend_date_is_validated(self, client, auth_headers):
        investment = create_investment(client, auth_headers)

        response = client.post(
            f"/api/investments/{investment['id']}/dividends",
            headers=auth_headers,
            json={"amount": 10, "payment_date": "not-a-date"},
        )

        assert response.status_code == 422
