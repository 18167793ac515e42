"""
HTTP surface of authentication, password reset and session management.
"""

from unittest.mock import patch

import pytest
from fastapi import BackgroundTasks

from appbase_backend.model import PasswordResetToken, UserRole
from appbase_backend.settings import settings
from appbase_backend.tests.fixtures import DEFAULT_PASSWORD, bearer, login


@pytest.fixture
def ada(make_user, make_role):
    return make_user(email="ada@example.com", roles=[make_role("editor", ["content:edit"])])


def reset_token_from(email_service) -> str:
    return email_service.sent[-1].text.split("token=")[1].split()[0]


# ============================================================================
# Registration and login
# ============================================================================

class TestRegisterEndpoint:

    def test_register_then_login(self, client):
        response = client.post("/auth/register", json={
            "first_name": "Grace",
            "last_name": "Hopper",
            "email": "grace@example.com",
            "password": "long-enough-pw",
        })

        assert response.status_code == 201
        assert response.json()["email"] == "grace@example.com"
        assert "password" not in response.text

        login(client, "grace@example.com", "long-enough-pw")

    def test_duplicate_email(self, client, ada):
        response = client.post("/auth/register", json={
            "first_name": "Ada", "last_name": "Again", "email": "ada@example.com", "password": "long-enough-pw",
        })
        assert response.status_code == 409

    def test_weak_password(self, client):
        response = client.post("/auth/register", json={
            "first_name": "A", "last_name": "B", "email": "b@example.com", "password": "short",
        })
        assert response.status_code == 400


class TestLoginEndpoint:

    def test_login_returns_token_and_sets_cookie(self, client, ada):
        response = client.post(
            "/auth/login",
            json={"email": "ada@example.com", "password": DEFAULT_PASSWORD},
            headers={"User-Agent": "pytest-agent", "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "ada@example.com"
        assert data["user"]["permissions"] == ["content:edit"]
        assert settings.SESSION_COOKIE_NAME in response.cookies

        sessions = client.get("/sessions", headers=bearer(data["token"])).json()
        assert sessions[0]["ip_address"] == "203.0.113.7"
        assert sessions[0]["user_agent"] == "pytest-agent"

    def test_failures_are_indistinguishable(self, client, ada):
        wrong_password = client.post("/auth/login", json={"email": "ada@example.com", "password": "nope"})
        unknown_email = client.post("/auth/login", json={"email": "ghost@example.com", "password": "nope"})

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json() == {"detail": "Invalid credentials"}


class TestMeAndLogout:

    def test_login_me_logout_cycle(self, client, ada):
        token = login(client, "ada@example.com")

        me = client.get("/auth/me", headers=bearer(token))
        assert me.status_code == 200
        assert me.json()["user"]["id"] == ada.id
        assert me.json()["permissions"] == ["content:edit"]

        assert client.post("/auth/logout", headers=bearer(token)).json()["ok"] is True

        # the signature is still valid but its session is gone
        assert client.get("/auth/me", headers=bearer(token)).status_code == 401

    def test_me_reflects_role_changes_immediately(self, client, db, ada, make_role):
        token = login(client, "ada@example.com")

        db.add(UserRole(user_id=ada.id, role_id=make_role("publisher", ["content:publish"]).id))
        db.commit()

        me = client.get("/auth/me", headers=bearer(token)).json()
        assert me["user"]["permissions"] == ["content:edit"]
        assert me["permissions"] == ["content:edit", "content:publish"]

    def test_cookie_authentication(self, client, ada):
        token = login(client, "ada@example.com")
        client.cookies.clear()

        client.cookies.set(settings.SESSION_COOKIE_NAME, token)
        response = client.get("/auth/me")
        assert response.status_code == 200

    @pytest.mark.parametrize("headers", [
        {},
        {"Authorization": "Bearer not-a-token"},
        {"Authorization": "Basic YWRhOnB3"},
    ])
    def test_unauthenticated(self, client, headers):
        client.cookies.clear()
        response = client.get("/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_logout_without_token_is_ok(self, client):
        client.cookies.clear()
        assert client.post("/auth/logout").status_code == 200


# ============================================================================
# Password reset
# ============================================================================

class TestPasswordResetEndpoints:

    def test_known_and_unknown_emails_get_identical_answers(self, client, ada, email_service):
        known = client.post("/auth/password-reset/request", json={"email": "ada@example.com"})
        unknown = client.post("/auth/password-reset/request", json={"email": "ghost@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()
        assert [m.to for m in email_service.sent] == ["ada@example.com"]

    def test_fourth_request_from_same_address_is_limited(self, client, ada):
        for _ in range(3):
            assert client.post("/auth/password-reset/request", json={"email": "ada@example.com"}).status_code == 200

        response = client.post("/auth/password-reset/request", json={"email": "ada@example.com"})
        assert response.status_code == 429

    def test_delivery_failure_still_answers_ok(self, client, ada, email_service):
        email_service.fail = True
        response = client.post("/auth/password-reset/request", json={"email": "ada@example.com"})
        assert response.status_code == 200

    def test_email_is_sent_in_the_background(self, client, ada, email_service):
        with patch.object(BackgroundTasks, "add_task") as add_task:
            known = client.post("/auth/password-reset/request", json={"email": "ada@example.com"})
            unknown = client.post("/auth/password-reset/request", json={"email": "ghost@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert email_service.sent == []

        add_task.assert_called_once()
        task, delivery = add_task.call_args.args
        assert task.__name__ == "deliver_password_reset"
        assert delivery.email == "ada@example.com"

    def test_validate_and_complete_revokes_every_session(self, client, db, ada, email_service):
        first = login(client, "ada@example.com")
        second = login(client, "ada@example.com")

        client.post("/auth/password-reset/request", json={"email": "ada@example.com"})
        raw = reset_token_from(email_service)

        assert client.get("/auth/password-reset/validate", params={"token": raw}).status_code == 200

        response = client.post("/auth/password-reset/complete", json={"token": raw, "password": "brand-new-password"})
        assert response.status_code == 200

        client.cookies.clear()
        assert client.get("/auth/me", headers=bearer(first)).status_code == 401
        assert client.get("/auth/me", headers=bearer(second)).status_code == 401
        assert db.query(PasswordResetToken).count() == 0

        login(client, "ada@example.com", "brand-new-password")

        reused = client.post("/auth/password-reset/complete", json={"token": raw, "password": "another-password"})
        assert reused.status_code == 400
        assert reused.json()["detail"]["reason"] == "invalid"

    def test_unknown_token(self, client):
        response = client.get("/auth/password-reset/validate", params={"token": "0" * 64})
        assert response.status_code == 400
        assert response.json()["detail"]["reason"] == "invalid"


class TestPasswordChangeEndpoint:

    def test_change_password_signs_out_everywhere(self, client, ada):
        token = login(client, "ada@example.com")
        other = login(client, "ada@example.com")

        response = client.post("/auth/password", headers=bearer(token), json={
            "current_password": DEFAULT_PASSWORD,
            "new_password": "brand-new-password",
        })
        assert response.status_code == 200
        assert response.json()["revoked"] == 2

        client.cookies.clear()
        assert client.get("/auth/me", headers=bearer(other)).status_code == 401

    def test_wrong_current_password(self, client, ada):
        token = login(client, "ada@example.com")
        response = client.post("/auth/password", headers=bearer(token), json={
            "current_password": "wrong",
            "new_password": "brand-new-password",
        })
        assert response.status_code == 401


# ============================================================================
# Session management
# ============================================================================

class TestSessionEndpoints:

    def test_list_count_and_revoke(self, client, ada):
        current = login(client, "ada@example.com")
        login(client, "ada@example.com")
        login(client, "ada@example.com")
        client.cookies.clear()

        sessions = client.get("/sessions", headers=bearer(current)).json()
        assert len(sessions) == 3
        assert sessions[0]["is_current"] is True
        assert client.get("/sessions/count", headers=bearer(current)).json() == {"active": 3}

        target = sessions[1]["session_token"]
        assert client.delete(f"/sessions/{target}", headers=bearer(current)).status_code == 200
        assert client.delete(f"/sessions/{target}", headers=bearer(current)).status_code == 404

        own = sessions[0]["session_token"]
        assert client.delete(f"/sessions/{own}", headers=bearer(current)).status_code == 400

        assert client.post("/sessions/revoke-others", headers=bearer(current)).json()["revoked"] == 1
        assert client.post("/sessions/revoke-all", headers=bearer(current)).json()["revoked"] == 1
        assert client.get("/sessions", headers=bearer(current)).status_code == 401
