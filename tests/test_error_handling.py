import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from suagrana.config import settings
from suagrana.database import get_db
from suagrana.main import app
from suagrana.models import Tenant


def explode():
    raise RuntimeError("ledger exploded")


def duplicate_tenant(db: Session = Depends(get_db)):
    db.add(Tenant(name="First", slug="same-slug"))
    db.add(Tenant(name="Second", slug="same-slug"))
    db.flush()
    return {"ok": True}


@pytest.fixture
def failing_client(client):
    """Client with routes that fail on purpose; server errors become responses"""
    app.add_api_route("/test-errors/explode", explode, methods=["GET"])
    app.add_api_route("/test-errors/duplicate", duplicate_tenant, methods=["POST"])
    added = app.router.routes[-2:]
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        for route in added:
            app.router.routes.remove(route)


class TestErrorEnvelope:
    """Unexpected errors and database conflicts use the error envelope"""

    def test_unhandled_error_hides_details(self, failing_client, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", False)

        response = failing_client.get("/test-errors/explode")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": {"code": "INTERNAL_ERROR", "message": "Internal server error"},
        }

    def test_unhandled_error_details_in_debug(self, failing_client, monkeypatch):
        monkeypatch.setattr(settings, "DEBUG", True)

        response = failing_client.get("/test-errors/explode")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "INTERNAL_ERROR"
        assert error["details"] == {"type": "RuntimeError", "message": "ledger exploded"}

    def test_integrity_error_is_conflict(self, failing_client):
        response = failing_client.post("/test-errors/duplicate")

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "error": {"code": "CONFLICT_ERROR", "message": "Resource conflicts with existing data"},
        }

    def test_request_validation_has_details(self, client, auth_headers):
        response = client.post("/api/accounts", headers=auth_headers, json={"account_type": "cash"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["loc"] == ["body", "name"]
