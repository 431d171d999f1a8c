"""HTTP-level tests for the authentication routes."""

import pytest
from fastapi.testclient import TestClient

from account_service.core.app_factory import create_application
from account_service.core.config import Settings

from tests.test_doubles import TEST_SECRET, RecordingEmailDispatcher

REGISTRATION = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "a@x.com",
    "password": "pw123",
    "accountType": "domiciliary",
    "phone": "+44 20 0000 0000",
    "zip": "EC1A",
}


@pytest.fixture
def mailbox():
    return RecordingEmailDispatcher()


@pytest.fixture
def client(tmp_path, monkeypatch, mailbox):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "api.db"))
    monkeypatch.setenv("SESSION_TOKEN_SECRET", TEST_SECRET)
    monkeypatch.setenv("PASSWORD_HASH_ROUNDS", "4")
    monkeypatch.setenv("FRONTEND_BASE_URL", "https://bankofatlantic.co.uk")
    app = create_application(Settings(), email_dispatcher=mailbox)
    with TestClient(app) as test_client:
        yield test_client
    assert mailbox.opened and mailbox.closed


def _register_and_verify(client, mailbox, **overrides):
    body = {**REGISTRATION, **overrides}
    assert client.post("/api/auth/register", json=body).status_code == 200
    assert client.post("/api/auth/verify", json={"token": mailbox.last.token}).status_code == 200
    return body


def _login(client, email="a@x.com", password="pw123"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


class TestHealth:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["success"] is True


class TestRegisterRoute:
    def test_returns_sanitized_user(self, client, mailbox):
        response = client.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        user = body["user"]
        assert user["email"] == "a@x.com"
        assert user["firstName"] == "Ada"
        assert user["accountType"] == "domiciliary"
        assert user["verified"] is False
        assert "password" not in user and "password_hash" not in user
        assert "pw123" not in response.text
        assert mailbox.last.token not in response.text

    def test_missing_fields(self, client):
        response = client.post("/api/auth/register", json={"email": "a@x.com"})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Email and password are required",
            "code": "invalid_input",
        }

    def test_email_taken(self, client):
        client.post("/api/auth/register", json=REGISTRATION)

        response = client.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 400
        assert response.json()["code"] == "email_taken"

    def test_dispatch_failure_is_generic_server_error(self, client, mailbox):
        mailbox.fail_with = "smtp exploded at host 10.0.0.1"

        response = client.post("/api/auth/register", json=REGISTRATION)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error", "code": "server_error"}
        mailbox.fail_with = None
        assert client.post("/api/auth/register", json=REGISTRATION).status_code == 200


class TestVerifyRoute:
    def test_verify(self, client, mailbox):
        client.post("/api/auth/register", json=REGISTRATION)

        response = client.post("/api/auth/verify", json={"token": mailbox.last.token})

        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_unknown_token(self, client):
        response = client.post("/api/auth/verify", json={"token": "nope"})

        assert response.status_code == 400
        assert response.json()["code"] == "token_not_found"

    def test_token_reuse(self, client, mailbox):
        _register_and_verify(client, mailbox)

        response = client.post("/api/auth/verify", json={"token": mailbox.last.token})

        assert response.status_code == 400
        assert response.json()["code"] == "token_not_found"


class TestLoginRoute:
    def test_login_and_me(self, client, mailbox):
        _register_and_verify(client, mailbox)

        response = _login(client)

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["email"] == "a@x.com"
        assert body["user"]["verified"] is True
        me = client.get("/api/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()["user"] == {"id": body["user"]["_id"], "email": "a@x.com"}

    def test_not_verified(self, client):
        client.post("/api/auth/register", json=REGISTRATION)

        response = _login(client)

        assert response.status_code == 403
        assert response.json()["code"] == "not_verified"

    def test_unknown_email_and_wrong_password_match(self, client, mailbox):
        _register_and_verify(client, mailbox)

        unknown = _login(client, email="nobody@x.com")
        wrong = _login(client, password="wrong")

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()


class TestMeRoute:
    def test_requires_token(self, client):
        response = client.get("/api/me")

        assert response.status_code == 401
        assert response.json()["code"] == "unauthenticated"

    def test_rejects_garbage(self, client):
        response = client.get("/api/me", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401


class TestPasswordResetRoutes:
    def test_forgot_password_is_identical_for_unknown_email(self, client, mailbox):
        _register_and_verify(client, mailbox)
        sent_before = len(mailbox.sent)

        known = client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
        unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@x.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        assert len(mailbox.sent) == sent_before + 1

    def test_reset_flow(self, client, mailbox):
        _register_and_verify(client, mailbox)
        client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
        token = mailbox.last.token

        response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "brand-new"})

        assert response.status_code == 200
        assert _login(client, password="brand-new").status_code == 200
        assert _login(client).status_code == 401
        again = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "other"})
        assert again.status_code == 400
        assert again.json()["code"] == "invalid_or_expired_token"

    def test_reset_requires_new_password(self, client):
        response = client.post("/api/auth/reset-password", json={"token": "whatever"})

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"


class TestMalformedBodies:
    @pytest.mark.parametrize("path", ["/api/auth/register", "/api/auth/verify", "/api/auth/login", "/api/auth/reset-password"])
    def test_missing_body_is_invalid_input(self, client, path):
        response = client.post(path)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Missing or invalid fields", "code": "invalid_input"}

    def test_non_json_body_is_invalid_input(self, client):
        response = client.post(
            "/api/auth/login", content=b"email=a@x.com", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"

    def test_wrong_field_type_is_invalid_input(self, client):
        response = client.post("/api/auth/login", json={"email": 123, "password": "pw123"})

        assert response.status_code == 400
        assert response.json()["code"] == "invalid_input"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {},
            {"json": {"email": 123}},
            {"json": ["a@x.com"]},
            {"content": b"not json", "headers": {"Content-Type": "application/json"}},
        ],
    )
    def test_forgot_password_answers_the_same_for_any_body(self, client, mailbox, kwargs):
        expected = client.post("/api/auth/forgot-password", json={"email": "nobody@x.com"})

        response = client.post("/api/auth/forgot-password", **kwargs)

        assert response.status_code == expected.status_code == 200
        assert response.json() == expected.json()
        assert mailbox.sent == []
