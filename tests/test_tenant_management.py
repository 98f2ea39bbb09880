import pytest
from tests.conftest import create_account, create_transaction, register_user, bearer, tenant_id_for


def add_member(client, headers, email, role="member"):
    response = client.post("/api/tenants/me/members", headers=headers, json={"email": email, "role": role})
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def tenant_a(client, auth_headers):
    """ID of Alice's personal tenant"""
    return tenant_id_for(client, auth_headers)


@pytest.fixture
def bruno_in_a(client, auth_headers, user_b, tenant_a):
    """Headers for Bruno acting inside Alice's tenant as a MEMBER"""
    add_member(client, auth_headers, "bruno@example.com", "member")
    return {**bearer(user_b["access_token"]), "x-tenant-id": str(tenant_a)}


class TestListUserTenants:
    """Tests for GET /api/tenants"""

    def test_new_user_has_one_tenant(self, client, auth_headers):
        response = client.get("/api/tenants", headers=auth_headers)

        assert response.status_code == 200
        tenants = response.json()["data"]
        assert len(tenants) == 1
        assert tenants[0]["role"] == "owner"

    def test_invited_user_sees_both_tenants(self, client, user_b_headers, bruno_in_a):
        response = client.get("/api/tenants", headers=user_b_headers)

        roles = {t["name"]: t["role"] for t in response.json()["data"]}
        assert roles == {"Bruno Lima's finances": "owner", "Alice Souza's finances": "member"}

    def test_requires_auth(self, client):
        assert client.get("/api/tenants").status_code == 401


class TestCurrentTenant:
    """Tests for /api/tenants/me"""

    def test_get_current_tenant(self, client, auth_headers, tenant_a):
        response = client.get("/api/tenants/me", headers=auth_headers)

        assert response.status_code == 200
        tenant = response.json()["data"]
        assert tenant["id"] == tenant_a
        assert tenant["name"] == "Alice Souza's finances"
        assert tenant["is_active"] is True

    def test_owner_updates_tenant(self, client, auth_headers):
        response = client.patch(
            "/api/tenants/me",
            headers=auth_headers,
            json={"name": "Família Souza", "settings": {"currency": "BRL"}},
        )

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Família Souza"
        assert response.json()["data"]["settings"] == {"currency": "BRL"}

    def test_member_cannot_update_tenant(self, client, bruno_in_a):
        response = client.patch("/api/tenants/me", headers=bruno_in_a, json={"name": "Mine now"})

        assert response.status_code == 403


class TestTenantSelection:
    """The x-tenant-id header picks the tenant a request acts on"""

    def test_default_is_oldest_membership(self, client, user_b, user_b_headers, bruno_in_a):
        own = client.get("/api/tenants/me", headers=user_b_headers).json()["data"]

        assert own["name"] == "Bruno Lima's finances"

    def test_header_switches_tenant(self, client, bruno_in_a, tenant_a):
        response = client.get("/api/tenants/me", headers=bruno_in_a)

        assert response.json()["data"]["id"] == tenant_a

    def test_non_numeric_header(self, client, auth_headers):
        response = client.get("/api/accounts", headers={**auth_headers, "x-tenant-id": "abc"})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid x-tenant-id header"

    def test_header_for_foreign_tenant(self, client, auth_headers, user_b_headers):
        tenant_b = tenant_id_for(client, user_b_headers)

        response = client.get("/api/accounts", headers={**auth_headers, "x-tenant-id": str(tenant_b)})

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTHORIZATION_ERROR"

    def test_members_share_ledger(self, client, auth_headers, bruno_in_a):
        """A member's writes land in the shared tenant"""
        account = create_account(client, auth_headers, "Conta Conjunta", opening_balance=100)
        create_transaction(client, bruno_in_a, account["id"], "expense", 40, description="Farmácia")

        names = [t["description"] for t in
                 client.get("/api/transactions", headers=auth_headers).json()["data"]["transactions"]]
        balance = client.get(f"/api/accounts/{account['id']}", headers=auth_headers).json()["data"]["balance"]
        assert names == ["Farmácia"]
        assert balance == 60.0


class TestMembers:
    """Inviting, listing, role changes and removal"""

    def test_list_members(self, client, auth_headers, bruno_in_a):
        response = client.get("/api/tenants/me/members", headers=bruno_in_a)

        members = {m["email"]: m["role"] for m in response.json()["data"]}
        assert members == {"alice@example.com": "owner", "bruno@example.com": "member"}

    def test_invite_unknown_email(self, client, auth_headers):
        response = client.post(
            "/api/tenants/me/members", headers=auth_headers, json={"email": "ghost@example.com"}
        )

        assert response.status_code == 404

    def test_invite_existing_member(self, client, auth_headers, bruno_in_a):
        response = client.post(
            "/api/tenants/me/members", headers=auth_headers, json={"email": "bruno@example.com"}
        )

        assert response.status_code == 409

    def test_member_cannot_invite(self, client, bruno_in_a):
        register_user(client, "Carla Dias", "carla@example.com")

        response = client.post(
            "/api/tenants/me/members", headers=bruno_in_a, json={"email": "carla@example.com"}
        )

        assert response.status_code == 403

    def test_admin_cannot_add_owner(self, client, auth_headers, user_b, tenant_a):
        add_member(client, auth_headers, "bruno@example.com", "admin")
        register_user(client, "Carla Dias", "carla@example.com")
        admin_headers = {**bearer(user_b["access_token"]), "x-tenant-id": str(tenant_a)}

        as_owner = client.post(
            "/api/tenants/me/members", headers=admin_headers, json={"email": "carla@example.com", "role": "owner"}
        )
        as_member = client.post(
            "/api/tenants/me/members", headers=admin_headers, json={"email": "carla@example.com"}
        )

        assert as_owner.status_code == 403
        assert as_member.status_code == 201

    def test_owner_changes_role(self, client, auth_headers, user_b, bruno_in_a):
        response = client.patch(
            f"/api/tenants/me/members/{user_b['user']['id']}/role", headers=auth_headers, json={"role": "admin"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "admin"

    def test_owner_cannot_change_own_role(self, client, auth_headers, user_a):
        response = client.patch(
            f"/api/tenants/me/members/{user_a['user']['id']}/role", headers=auth_headers, json={"role": "member"}
        )

        assert response.status_code == 403

    def test_admin_cannot_change_roles(self, client, auth_headers, user_a, user_b, bruno_in_a):
        client.patch(
            f"/api/tenants/me/members/{user_b['user']['id']}/role", headers=auth_headers, json={"role": "admin"}
        )

        response = client.patch(
            f"/api/tenants/me/members/{user_a['user']['id']}/role", headers=bruno_in_a, json={"role": "viewer"}
        )

        assert response.status_code == 403

    def test_change_role_of_non_member(self, client, auth_headers):
        response = client.patch("/api/tenants/me/members/9999/role", headers=auth_headers, json={"role": "admin"})

        assert response.status_code == 404

    def test_remove_member(self, client, auth_headers, user_b, bruno_in_a):
        response = client.delete(f"/api/tenants/me/members/{user_b['user']['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"removed_user_id": user_b["user"]["id"]}
        assert client.get("/api/accounts", headers=bruno_in_a).status_code == 403

    def test_cannot_remove_owner(self, client, auth_headers, user_a, user_b, bruno_in_a):
        client.patch(
            f"/api/tenants/me/members/{user_b['user']['id']}/role", headers=auth_headers, json={"role": "admin"}
        )

        response = client.delete(f"/api/tenants/me/members/{user_a['user']['id']}", headers=bruno_in_a)

        assert response.status_code == 403

    def test_cannot_remove_self(self, client, auth_headers, user_a):
        response = client.delete(f"/api/tenants/me/members/{user_a['user']['id']}", headers=auth_headers)

        assert response.status_code == 403


class TestViewerRole:
    """VIEWER can read but not write"""

    @pytest.fixture
    def viewer_headers(self, client, auth_headers, user_b, tenant_a):
        add_member(client, auth_headers, "bruno@example.com", "viewer")
        return {**bearer(user_b["access_token"]), "x-tenant-id": str(tenant_a)}

    def test_viewer_can_read(self, client, auth_headers, checking, viewer_headers):
        response = client.get("/api/accounts", headers=viewer_headers)

        assert response.status_code == 200
        assert [a["name"] for a in response.json()["data"]["accounts"]] == ["Conta Corrente"]

    @pytest.mark.parametrize(
        "method,url,payload",
        [
            ("post", "/api/accounts", {"name": "X1", "account_type": "cash"}),
            ("post", "/api/categories", {"name": "X1", "category_type": "expense"}),
            ("post", "/api/budgets", {"category_id": 1, "amount": 10}),
            ("post", "/api/goals", {"name": "X1", "target_amount": 10, "target_date": "2999-01-01",
                                    "category": "X1"}),
        ],
    )
    def test_viewer_cannot_write(self, client, viewer_headers, method, url, payload):
        response = getattr(client, method)(url, headers=viewer_headers, json=payload)

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Viewers cannot modify financial data"

    def test_viewer_cannot_post_transactions(self, client, checking, viewer_headers):
        response = client.post(
            "/api/transactions",
            headers=viewer_headers,
            json={"transaction_type": "expense", "account_id": checking["id"], "amount": 5,
                  "description": "Nope", "date": "2024-01-01"},
        )

        assert response.status_code == 403


class TestAuditTrail:
    """GET /api/tenants/me/audit"""

    def test_owner_reads_audit(self, client, auth_headers, bruno_in_a):
        response = client.get("/api/tenants/me/audit", headers=auth_headers)

        assert response.status_code == 200
        events = response.json()["data"]["events"]
        invite = [e for e in events if e["action"] == "invite"][0]
        assert invite["entity_type"] == "membership"
        assert invite["new_values"] == {"role": "member"}

    def test_member_cannot_read_audit(self, client, bruno_in_a):
        response = client.get("/api/tenants/me/audit", headers=bruno_in_a)

        assert response.status_code == 403

    def test_audit_is_per_tenant(self, client, auth_headers, user_b_headers, checking):
        create_transaction(client, auth_headers, checking["id"], "expense", 10)

        response = client.get("/api/tenants/me/audit", headers=user_b_headers)

        assert response.json()["data"]["events"] == []
