"""Tests for the forgot-password / reset-password flow."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from src.exceptions import EmailDeliveryError, TokenExpiredError, TokenInvalidError
from src.models.password_reset_token import PasswordResetToken
from src.services.auth import verify_password
from src.services.password_reset import (
    FORGOT_PASSWORD_MESSAGE,
    PasswordResetService,
    generate_reset_token,
)


def issue_token(db, user, expires_in=timedelta(hours=1), used=False) -> str:
    token = generate_reset_token()
    db.add(
        PasswordResetToken(
            user_id=user.id, token=token, expires_at=datetime.now(UTC) + expires_in, used=used
        )
    )
    db.commit()
    return token


def tokens_for(db, user):
    return db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).all()


@pytest.fixture
def email_service():
    service = MagicMock()
    service.send_password_reset.return_value = True
    return service


class TestForgotPassword:
    def test_responses_identical_for_any_email(self, client, employee_user, user_factory):
        user_factory("inactive@example.com", is_active=False)

        responses = [
            client.post("/api/v1/auth/forgot-password", json={"email": email})
            for email in ("employee@example.com", "nobody@example.com", "inactive@example.com")
        ]

        assert {r.status_code for r in responses} == {200}
        assert responses[0].content == responses[1].content == responses[2].content
        assert responses[0].json()["message"] == FORGOT_PASSWORD_MESSAGE

    def test_creates_token_only_for_active_account(self, client, db, employee_user, user_factory):
        inactive = user_factory("inactive@example.com", is_active=False)

        client.post("/api/v1/auth/forgot-password", json={"email": "employee@example.com"})
        client.post("/api/v1/auth/forgot-password", json={"email": "inactive@example.com"})

        assert len(tokens_for(db, employee_user)) == 1
        assert tokens_for(db, inactive) == []

    def test_new_request_supersedes_previous_token(self, db, employee_user, email_service):
        service = PasswordResetService(db, email_service)

        service.request_reset("employee@example.com")
        first = tokens_for(db, employee_user)[0].token
        service.request_reset("employee@example.com")

        tokens = tokens_for(db, employee_user)
        assert len(tokens) == 1
        assert tokens[0].token != first
        with pytest.raises(TokenInvalidError):
            service.verify_token(first)

    def test_token_format_and_expiry(self, db, employee_user, email_service):
        service = PasswordResetService(db, email_service)
        before = datetime.now(UTC)

        service.request_reset("employee@example.com")

        record = tokens_for(db, employee_user)[0]
        assert len(record.token) == 64
        int(record.token, 16)
        assert not record.used
        expires_at = record.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        assert before + timedelta(minutes=59) < expires_at <= datetime.now(UTC) + timedelta(hours=1)

    def test_email_contains_reset_link(self, db, employee_user, email_service):
        service = PasswordResetService(db, email_service)

        service.request_reset("employee@example.com")

        token = tokens_for(db, employee_user)[0].token
        to, name, url = email_service.send_password_reset.call_args[0]
        assert to == "employee@example.com"
        assert name == "Sarah Smith"
        assert url.endswith(f"/reset-password?token={token}")

    def test_email_failure_is_not_surfaced(self, db, employee_user, email_service):
        email_service.send_password_reset.side_effect = EmailDeliveryError("boom")
        service = PasswordResetService(db, email_service)

        service.request_reset("employee@example.com")

        # The token stays valid; the user can request another email
        assert len(tokens_for(db, employee_user)) == 1

    def test_unexpected_mail_error_is_not_surfaced(self, db, employee_user, email_service):
        email_service.send_password_reset.side_effect = RuntimeError("mailer crashed")
        service = PasswordResetService(db, email_service)

        service.request_reset("employee@example.com")

        assert len(tokens_for(db, employee_user)) == 1

    def test_malformed_mail_url_keeps_response_identical(
        self, client, employee_user, settings_env
    ):
        settings_env(resend_api_key="re_test_key", resend_api_url="http://[::1/emails")

        known = client.post("/api/v1/auth/forgot-password", json={"email": "employee@example.com"})
        unknown = client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.content == unknown.content

    def test_unknown_email_sends_nothing(self, db, email_service):
        PasswordResetService(db, email_service).request_reset("nobody@example.com")
        email_service.send_password_reset.assert_not_called()


class TestVerifyResetToken:
    def test_valid_token(self, client, db, employee_user):
        token = issue_token(db, employee_user)

        response = client.get(f"/api/v1/auth/verify-reset-token/{token}")

        assert response.status_code == 200
        assert response.json()["user"]["email"] == "employee@example.com"

    def test_unknown_token(self, client):
        response = client.get(f"/api/v1/auth/verify-reset-token/{generate_reset_token()}")
        assert response.status_code == 400
        assert response.json()["errorCode"] == "TOKEN_INVALID"

    def test_expired_token(self, client, db, employee_user):
        token = issue_token(db, employee_user, expires_in=timedelta(minutes=-1))

        response = client.get(f"/api/v1/auth/verify-reset-token/{token}")

        assert response.status_code == 400
        assert response.json()["errorCode"] == "TOKEN_EXPIRED"

    def test_used_token(self, client, db, employee_user):
        token = issue_token(db, employee_user, used=True)

        response = client.get(f"/api/v1/auth/verify-reset-token/{token}")

        assert response.json()["errorCode"] == "TOKEN_INVALID"

    def test_token_of_deleted_user(self, db, employee_user, email_service):
        token = issue_token(db, employee_user)
        db.query(PasswordResetToken).filter_by(token=token).update({"user_id": 99999})
        db.commit()

        with pytest.raises(TokenInvalidError):
            PasswordResetService(db, email_service).verify_token(token)

    def test_verify_does_not_consume(self, db, employee_user, email_service):
        token = issue_token(db, employee_user)
        service = PasswordResetService(db, email_service)

        assert service.verify_token(token) == "employee@example.com"
        assert service.verify_token(token) == "employee@example.com"

    def test_token_still_valid_at_expiry_instant(self, db, employee_user):
        token = issue_token(db, employee_user)
        record = db.query(PasswordResetToken).filter_by(token=token).one()
        expires_at = record.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)

        assert not record.is_expired(now=expires_at)
        assert record.is_expired(now=expires_at + timedelta(microseconds=1))


class TestResetPassword:
    def test_reset_with_token(self, client, db, employee_user):
        token = issue_token(db, employee_user)

        response = client.post(
            "/api/v1/auth/reset-password",
            json={"token": token, "password": "newpass456", "confirmPassword": "newpass456"},
        )

        assert response.status_code == 200
        db.refresh(employee_user)
        assert verify_password("newpass456", employee_user.password_hash)
        assert tokens_for(db, employee_user) == []

        login = client.post(
            "/api/v1/auth/login", json={"email": "employee@example.com", "password": "newpass456"}
        )
        assert login.status_code == 200

    def test_reset_invalidates_other_outstanding_tokens(self, client, db, employee_user):
        first = issue_token(db, employee_user)
        second = issue_token(db, employee_user)

        response = client.post(
            "/api/v1/auth/reset-password",
            json={"token": first, "password": "newpass456", "confirmPassword": "newpass456"},
        )
        assert response.status_code == 200

        verify = client.get(f"/api/v1/auth/verify-reset-token/{second}")
        assert verify.status_code == 400
        assert verify.json()["errorCode"] == "TOKEN_INVALID"

        reuse = client.post(
            "/api/v1/auth/reset-password",
            json={"token": second, "password": "other789", "confirmPassword": "other789"},
        )
        assert reuse.status_code == 400
        db.refresh(employee_user)
        assert verify_password("newpass456", employee_user.password_hash)

    def test_token_cannot_be_reused(self, client, db, employee_user):
        token = issue_token(db, employee_user)
        body = {"token": token, "password": "newpass456", "confirmPassword": "newpass456"}

        assert client.post("/api/v1/auth/reset-password", json=body).status_code == 200
        response = client.post("/api/v1/auth/reset-password", json=body)

        assert response.status_code == 400
        assert response.json()["errorCode"] == "TOKEN_INVALID"

    def test_expired_token_changes_nothing(self, client, db, employee_user):
        old_hash = employee_user.password_hash
        token = issue_token(db, employee_user, expires_in=timedelta(seconds=-5))

        response = client.post(
            "/api/v1/auth/reset-password",
            json={"token": token, "password": "newpass456", "confirmPassword": "newpass456"},
        )

        assert response.json()["errorCode"] == "TOKEN_EXPIRED"
        db.refresh(employee_user)
        assert employee_user.password_hash == old_hash

    def test_password_mismatch(self, client, db, employee_user):
        token = issue_token(db, employee_user)
        response = client.post(
            "/api/v1/auth/reset-password",
            json={"token": token, "password": "newpass456", "confirmPassword": "other456"},
        )
        assert response.status_code == 400
        assert "do not match" in response.json()["message"]

    def test_password_too_short(self, client, db, employee_user):
        token = issue_token(db, employee_user)
        response = client.post(
            "/api/v1/auth/reset-password",
            json={"token": token, "password": "abc", "confirmPassword": "abc"},
        )
        assert response.status_code == 400

    def test_missing_token(self, client):
        response = client.post(
            "/api/v1/auth/reset-password",
            json={"password": "newpass456", "confirmPassword": "newpass456"},
        )
        assert response.status_code == 400


class TestSupabaseSync:
    def sync(self, client, email="employee@example.com"):
        return client.post(
            "/api/v1/auth/reset-password",
            json={
                "supabaseSync": True,
                "email": email,
                "password": "synced789",
                "confirmPassword": "synced789",
            },
        )

    def test_disabled_by_default(self, client, db, employee_user):
        old_hash = employee_user.password_hash

        response = self.sync(client)

        assert response.status_code == 400
        db.refresh(employee_user)
        assert employee_user.password_hash == old_hash

    def test_sync_sets_password_and_clears_tokens(self, client, db, employee_user, settings_env):
        settings_env(supabase_sync_enabled=True)
        issue_token(db, employee_user)

        response = self.sync(client, email="EMPLOYEE@example.com")

        assert response.status_code == 200
        db.refresh(employee_user)
        assert verify_password("synced789", employee_user.password_hash)
        assert tokens_for(db, employee_user) == []

    def test_sync_unknown_account(self, client, settings_env):
        settings_env(supabase_sync_enabled=True)
        assert self.sync(client, email="nobody@example.com").status_code == 400

    def test_sync_requires_email(self, client, settings_env):
        settings_env(supabase_sync_enabled=True)
        response = client.post(
            "/api/v1/auth/reset-password",
            json={"supabaseSync": True, "password": "synced789", "confirmPassword": "synced789"},
        )
        assert response.status_code == 400


class TestTokenErrors:
    def test_service_raises_expired(self, db, employee_user, email_service):
        token = issue_token(db, employee_user, expires_in=timedelta(minutes=-10))
        with pytest.raises(TokenExpiredError):
            PasswordResetService(db, email_service).complete_reset(token, "newpass456")
