"""
tests/test_api_users.py -- Integration tests for the /api/v1/users routes.

These tests exercise the full stack: FastAPI routing -> bearer-token
dependency -> AccountService -> SQLAccountStore -> response model
serialization and the AccountError exception handler.

Coverage:
  - authenticate: 200 with a verifiable token; one 401 shape for every failure
  - register: 201, 409 duplicate, 400 blank password, 422 malformed email
  - admin routes: 401 without token, 403 for a User token
  - get/list/update/delete happy paths and 404/409 mappings

Fixtures used (from conftest.py):
  - api_client: ApiContext with an Admin and a User account already stored.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from accounts.models import Address, User
from accounts.tokens import decode_token


def register_user(client: TestClient, email: str, password: str = "customer-pass-1", **fields):
    """POST /users/register and return the raw response."""
    return client.post("/api/v1/users/register", json={"email": email, "password": password, **fields})


class TestAuthenticate:
    def test_valid_credentials_return_token(self, api_client) -> None:
        resp = api_client.client.post(
            "/api/v1/users/authenticate",
            json={"email": "admin@example.com", "password": "admin-pass-123"},
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["id"] == api_client.admin.id
        assert data["role"] == "Admin"
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 7 * 24 * 3600
        assert "password_hash" not in data
        assert resp.headers["Cache-Control"] == "no-store"

        payload = decode_token(data["access_token"])
        assert payload["sub"] == api_client.admin.id
        assert payload["role"] == "Admin"

    @pytest.mark.parametrize(
        "body",
        [
            {"email": "admin@example.com", "password": "wrong-password"},
            {"email": "ghost@example.com", "password": "admin-pass-123"},
            {"email": "", "password": ""},
            {"email": "admin@example.com", "password": "   "},
            {},
        ],
    )
    def test_failures_are_indistinguishable(self, api_client, body) -> None:
        resp = api_client.client.post("/api/v1/users/authenticate", json=body)
        assert resp.status_code == 401
        assert resp.json() == {"error": {"code": "bad_credentials", "message": "Email or password is incorrect."}}


class TestRegister:
    def test_register_creates_user_account(self, api_client) -> None:
        resp = register_user(
            api_client.client,
            "new.customer@example.com",
            first_name="Nia",
            addresses=[{"street": "5 Oak Ave", "city": "Portland", "kind": "billing"}],
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["id"]
        assert data["role"] == "User"
        assert data["first_name"] == "Nia"
        assert data["addresses"][0]["street"] == "5 Oak Ave"
        assert data["addresses"][0]["kind"] == "billing"
        assert data["orders"] == []
        assert "password_salt" not in data

        stored = api_client.service.get_by_email("new.customer@example.com")
        assert stored.id == data["id"]

    def test_registered_user_can_authenticate(self, api_client) -> None:
        register_user(api_client.client, "login.after.register@example.com", password="fresh-pass-1")
        resp = api_client.client.post(
            "/api/v1/users/authenticate",
            json={"email": "login.after.register@example.com", "password": "fresh-pass-1"},
        )
        assert resp.status_code == 200

    def test_duplicate_email_is_409(self, api_client) -> None:
        resp = register_user(api_client.client, "shopper@example.com")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "conflict"

    def test_blank_password_is_400(self, api_client) -> None:
        resp = register_user(api_client.client, "blank.pass@example.com", password="   ")
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_input"
        assert api_client.service.get_by_email("blank.pass@example.com") is None

    def test_malformed_email_is_422(self, api_client) -> None:
        resp = register_user(api_client.client, "not-an-email")
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"


class TestAdminAuthorization:
    @pytest.mark.parametrize(
        "method,path",
        [("get", "/api/v1/users"), ("get", "/api/v1/users/abc"), ("delete", "/api/v1/users/abc")],
    )
    def test_missing_token_is_401(self, api_client, method, path) -> None:
        resp = getattr(api_client.client, method)(path)
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthorized"

    def test_invalid_token_is_401(self, api_client) -> None:
        resp = api_client.client.get("/api/v1/users", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401

    def test_user_role_is_403(self, api_client) -> None:
        resp = api_client.client.get("/api/v1/users", headers=api_client.shopper_headers())
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "forbidden"


class TestUserManagement:
    def test_list_users(self, api_client) -> None:
        resp = api_client.client.get("/api/v1/users", headers=api_client.admin_headers())
        assert resp.status_code == 200
        emails = [u["email"] for u in resp.json()]
        assert "admin@example.com" in emails
        assert "shopper@example.com" in emails

    def test_get_user(self, api_client) -> None:
        resp = api_client.client.get(f"/api/v1/users/{api_client.shopper.id}", headers=api_client.admin_headers())
        assert resp.status_code == 200
        assert resp.json()["email"] == "shopper@example.com"

    def test_get_unknown_user_is_404(self, api_client) -> None:
        resp = api_client.client.get("/api/v1/users/does-not-exist", headers=api_client.admin_headers())
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_update_merges_fields_and_appends_orders(self, api_client) -> None:
        user_id = register_user(api_client.client, "merge.me@example.com", first_name="Mia").json()["id"]
        headers = api_client.admin_headers()

        first = api_client.client.put(f"/api/v1/users/{user_id}", json={"orders": ["ord-1"]}, headers=headers)
        assert first.status_code == 200, first.text

        resp = api_client.client.put(
            f"/api/v1/users/{user_id}",
            json={"first_name": "  ", "last_name": "Moss", "orders": ["ord-2", "ord-3"]},
            headers=headers,
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["first_name"] == "Mia"
        assert data["last_name"] == "Moss"
        assert data["role"] == "User"
        assert data["orders"] == ["ord-1", "ord-2", "ord-3"]

    def test_update_password_changes_login(self, api_client) -> None:
        user_id = register_user(api_client.client, "rotate@example.com", password="old-pass-1").json()["id"]
        resp = api_client.client.put(
            f"/api/v1/users/{user_id}", json={"password": "new-pass-2"}, headers=api_client.admin_headers()
        )
        assert resp.status_code == 200
        assert api_client.service.authenticate("rotate@example.com", "new-pass-2") is not None
        assert api_client.service.authenticate("rotate@example.com", "old-pass-1") is None

    def test_update_email_conflict_is_409(self, api_client) -> None:
        user_id = register_user(api_client.client, "keep.mine@example.com").json()["id"]
        resp = api_client.client.put(
            f"/api/v1/users/{user_id}",
            json={"email": "shopper@example.com", "first_name": "Changed"},
            headers=api_client.admin_headers(),
        )
        assert resp.status_code == 409
        stored = api_client.service.get_by_id(user_id)
        assert stored.email == "keep.mine@example.com"
        assert stored.first_name is None

    def test_update_unknown_user_is_404(self, api_client) -> None:
        resp = api_client.client.put(
            "/api/v1/users/does-not-exist", json={"first_name": "X"}, headers=api_client.admin_headers()
        )
        assert resp.status_code == 404

    def test_delete_is_idempotent(self, api_client) -> None:
        user_id = register_user(api_client.client, "delete.me@example.com").json()["id"]
        headers = api_client.admin_headers()

        assert api_client.client.delete(f"/api/v1/users/{user_id}", headers=headers).status_code == 204
        assert api_client.client.get(f"/api/v1/users/{user_id}", headers=headers).status_code == 404
        assert api_client.client.delete(f"/api/v1/users/{user_id}", headers=headers).status_code == 204
        assert api_client.client.delete("/api/v1/users/never-existed", headers=headers).status_code == 204

    def test_token_of_deleted_user_stops_working(self, api_client) -> None:
        user_id = register_user(api_client.client, "promoted@example.com").json()["id"]
        api_client.client.put(f"/api/v1/users/{user_id}", json={"role": "Admin"}, headers=api_client.admin_headers())
        login = api_client.client.post(
            "/api/v1/users/authenticate", json={"email": "promoted@example.com", "password": "customer-pass-1"}
        )
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
        assert api_client.client.get("/api/v1/users", headers=headers).status_code == 200

        api_client.client.delete(f"/api/v1/users/{user_id}", headers=api_client.admin_headers())
        assert api_client.client.get("/api/v1/users", headers=headers).status_code == 401

    def test_addresses_written_by_the_service_are_served(self, api_client) -> None:
        created = api_client.service.create(
            User(
                email="two.addresses@example.com",
                addresses=[Address(street="1 A", kind="billing"), Address(street="2 B")],
            ),
            "customer-pass-1",
        )
        resp = api_client.client.get(f"/api/v1/users/{created.id}", headers=api_client.admin_headers())
        assert resp.status_code == 200
        assert [a["kind"] for a in resp.json()["addresses"]] == ["billing", "shipping"]

    def test_update_with_unknown_address_kind_is_422(self, api_client) -> None:
        resp = api_client.client.put(
            f"/api/v1/users/{api_client.shopper.id}",
            json={"addresses": [{"street": "1 A", "kind": "home"}]},
            headers=api_client.admin_headers(),
        )
        assert resp.status_code == 422
