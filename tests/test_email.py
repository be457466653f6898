"""Tests for the Resend email client."""

import json

import httpx
import pytest

from src.config import Settings
from src.exceptions import EmailDeliveryError
from src.services.email import EmailService


@pytest.fixture
def settings():
    return Settings(
        resend_api_key="re_test_key",
        email_from="Timecards <noreply@example.com>",
        company_name="Acme",
        frontend_url="https://app.example.com",
    )


def make_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_not_configured_returns_false():
    def handler(request):
        raise AssertionError("no request expected")

    service = EmailService(Settings(resend_api_key=None), client=make_client(handler))

    assert service.is_configured is False
    assert service.send_welcome("user@example.com", "User") is False


def test_send_password_reset(settings):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "msg_123"})

    service = EmailService(settings, client=make_client(handler))
    url = "https://app.example.com/reset-password?token=abc"

    assert service.send_password_reset("user@example.com", "Pat", url) is True

    assert captured["url"] == settings.resend_api_url
    assert captured["auth"] == "Bearer re_test_key"
    body = captured["body"]
    assert body["to"] == ["user@example.com"]
    assert body["from"] == "Timecards <noreply@example.com>"
    assert body["subject"] == "Reset Your Password - Acme"
    assert url in body["html"]
    assert url in body["text"]
    assert "60 minutes" in body["text"]


def test_send_welcome(settings):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "msg_456"})

    service = EmailService(settings, client=make_client(handler))

    assert service.send_welcome("new@example.com", "New Hire") is True
    assert bodies[0]["subject"] == "Welcome to Acme"
    assert "https://app.example.com/login" in bodies[0]["html"]


def test_names_are_escaped_in_html(settings):
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "msg_789"})

    service = EmailService(settings, client=make_client(handler))
    name = '<a href="https://evil.example.com">Pat</a>'

    service.send_welcome("new@example.com", name)
    service.send_password_reset("new@example.com", name, "https://app.example.com/r?a=1&b=2")

    for body in bodies:
        assert "<a href=\"https://evil.example.com\">" not in body["html"]
        assert "&lt;a href=&quot;https://evil.example.com&quot;&gt;Pat&lt;/a&gt;" in body["html"]
    assert "https://app.example.com/r?a=1&amp;b=2" in bodies[1]["html"]
    assert name in bodies[1]["text"]


def test_api_error_raises(settings):
    def handler(request):
        return httpx.Response(422, json={"message": "invalid from address"})

    service = EmailService(settings, client=make_client(handler))

    with pytest.raises(EmailDeliveryError):
        service.send_welcome("new@example.com", "New Hire")


def test_transport_error_raises(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = EmailService(settings, client=make_client(handler))

    with pytest.raises(EmailDeliveryError):
        service.send_password_reset("user@example.com", "Pat", "https://x/reset")


def test_non_json_success_response(settings):
    def handler(request):
        return httpx.Response(200, text="ok")

    service = EmailService(settings, client=make_client(handler))

    assert service.send_welcome("new@example.com", "New Hire") is True


def test_delivery_error_message_is_sanitized(client, admin_headers, employer_user, monkeypatch):
    """Upstream failures during account creation never reach the response."""

    def fail(self, to, name):
        raise EmailDeliveryError("Resend request failed: secret detail")

    monkeypatch.setattr(EmailService, "send_welcome", fail)

    response = client.post(
        "/api/v1/admin/users/create",
        headers=admin_headers,
        json={
            "name": "New Hire",
            "email": "new@example.com",
            "password": "welcome1",
            "role": "employee",
            "employerId": employer_user.id,
        },
    )

    assert response.status_code == 201
    assert "secret" not in response.text
