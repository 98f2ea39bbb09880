from tests.conftest import create_transaction


def create_category(client, headers, name="Mercado", category_type="expense", **extra):
    response = client.post(
        "/api/categories", headers=headers, json={"name": name, "category_type": category_type, **extra}
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestCategoryCrud:
    """Tests for /api/categories"""

    def test_create_category(self, client, auth_headers):
        response = client.post(
            "/api/categories",
            headers=auth_headers,
            json={"name": "Moradia", "category_type": "expense", "color": "#FF5733", "icon": "home"},
        )

        assert response.status_code == 201
        category = response.json()["data"]
        assert category["name"] == "Moradia"
        assert category["category_type"] == "expense"
        assert category["color"] == "#FF5733"
        assert category["is_active"] is True

    def test_invalid_color(self, client, auth_headers):
        response = client.post(
            "/api/categories",
            headers=auth_headers,
            json={"name": "Moradia", "category_type": "expense", "color": "red"},
        )

        assert response.status_code == 422

    def test_duplicate_name_same_type(self, client, auth_headers):
        create_category(client, auth_headers, "Lazer")

        response = client.post(
            "/api/categories", headers=auth_headers, json={"name": "lazer", "category_type": "expense"}
        )

        assert response.status_code == 409

    def test_same_name_different_type(self, client, auth_headers):
        """Names only need to be unique within a category type"""
        create_category(client, auth_headers, "Outros", "expense")

        response = client.post(
            "/api/categories", headers=auth_headers, json={"name": "Outros", "category_type": "income"}
        )

        assert response.status_code == 201

    def test_list_filter_by_type(self, client, auth_headers):
        create_category(client, auth_headers, "Salário", "income")
        create_category(client, auth_headers, "Mercado", "expense")

        everything = client.get("/api/categories", headers=auth_headers).json()["data"]
        income = client.get("/api/categories?type=income", headers=auth_headers).json()["data"]

        assert len(everything) == 2
        assert [c["name"] for c in income] == ["Salário"]

    def test_list_filter_by_active(self, client, auth_headers):
        category = create_category(client, auth_headers, "Antiga")
        create_category(client, auth_headers, "Atual")
        client.patch(f"/api/categories/{category['id']}", headers=auth_headers, json={"is_active": False})

        active = client.get("/api/categories?active=true", headers=auth_headers).json()["data"]

        assert [c["name"] for c in active] == ["Atual"]

    def test_get_category(self, client, auth_headers):
        category = create_category(client, auth_headers)

        response = client.get(f"/api/categories/{category['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Mercado"

    def test_get_missing_category(self, client, auth_headers):
        response = client.get("/api/categories/9999", headers=auth_headers)

        assert response.status_code == 404

    def test_update_category(self, client, auth_headers):
        category = create_category(client, auth_headers)

        response = client.put(
            f"/api/categories/{category['id']}",
            headers=auth_headers,
            json={"name": "Supermercado", "icon": "cart"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Supermercado"
        assert response.json()["data"]["icon"] == "cart"

    def test_update_to_existing_name(self, client, auth_headers):
        create_category(client, auth_headers, "Mercado")
        other = create_category(client, auth_headers, "Feira")

        response = client.patch(
            f"/api/categories/{other['id']}", headers=auth_headers, json={"name": "MERCADO"}
        )

        assert response.status_code == 409

    def test_delete_unused_category(self, client, auth_headers):
        category = create_category(client, auth_headers)

        response = client.delete(f"/api/categories/{category['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert client.get(f"/api/categories/{category['id']}", headers=auth_headers).status_code == 404

    def test_delete_category_in_use(self, client, auth_headers, checking):
        category = create_category(client, auth_headers)
        create_transaction(client, auth_headers, checking["id"], "expense", 10, category_id=category["id"])

        response = client.delete(f"/api/categories/{category['id']}", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["error"]["message"] == "Category is used by existing transactions"

    def test_other_tenant_category_hidden(self, client, auth_headers, user_b_headers):
        category = create_category(client, auth_headers)

        assert client.get(f"/api/categories/{category['id']}", headers=user_b_headers).status_code == 404
        assert client.get("/api/categories", headers=user_b_headers).json()["data"] == []


class TestCategoryUsage:
    """GET /api/categories/stats/usage"""

    def test_usage_counts_posted_amounts(self, client, auth_headers, checking):
        mercado = create_category(client, auth_headers, "Mercado")
        create_category(client, auth_headers, "Viagem")
        create_transaction(client, auth_headers, checking["id"], "expense", 100, category_id=mercado["id"])
        create_transaction(client, auth_headers, checking["id"], "expense", 50, category_id=mercado["id"])
        create_transaction(client, auth_headers, checking["id"], "expense", 70,
                           category_id=mercado["id"], status="pending")

        response = client.get("/api/categories/stats/usage", headers=auth_headers)

        assert response.status_code == 200
        rows = response.json()["data"]
        assert [r["name"] for r in rows] == ["Mercado", "Viagem"]
        assert rows[0]["entry_count"] == 4
        assert rows[0]["total_amount"] == 150.0
        assert rows[1]["entry_count"] == 0
        assert rows[1]["total_amount"] == 0.0
