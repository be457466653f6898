"""Transactional email via the Resend HTTP API."""

import html
import logging
from datetime import UTC, datetime

import httpx

from src.config import Settings, get_settings
from src.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)


class EmailService:
    """Send password reset and welcome emails.

    Every send returns ``True`` once Resend accepted the message and ``False``
    when no API key is configured. Transport and API failures raise
    :class:`EmailDeliveryError`; callers decide whether that matters.
    """

    def __init__(self, settings: Settings | None = None, client: httpx.Client | None = None):
        self.settings = settings or get_settings()
        self._client = client
        self.timeout = 10.0

    @property
    def is_configured(self) -> bool:
        return self.settings.email_configured

    def _send(self, to: str, subject: str, html: str, text: str | None = None) -> bool:
        if not self.is_configured:
            logger.warning(f"RESEND_API_KEY not configured, email to {to} not sent")
            return False

        payload = {
            "from": self.settings.email_from,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text

        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            response = client.post(
                self.settings.resend_api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise EmailDeliveryError(f"Resend request failed: {e}") from e
        finally:
            if self._client is None:
                client.close()

        try:
            message_id = response.json().get("id")
        except ValueError:
            message_id = None
        logger.info(f"Email '{subject}' sent to {to} (id={message_id})")
        return True

    def send_password_reset(self, to: str, name: str, reset_url: str) -> bool:
        company = self.settings.company_name
        ttl_minutes = self.settings.password_reset_token_ttl_minutes
        safe_name = html.escape(name)
        safe_url = html.escape(reset_url)
        body = f"""
<h2>Reset Your Password</h2>
<p>Hello <strong>{safe_name}</strong>,</p>
<p>We received a request to reset your password. Click the link below to create a new one:</p>
<p><a href="{safe_url}">Reset Password</a></p>
<p>Or copy and paste this link into your browser:<br>{safe_url}</p>
<p><strong>This link will expire in {ttl_minutes} minutes.</strong></p>
<p>If you didn't request this password reset, you can safely ignore this email.</p>
<p>&copy; {datetime.now(UTC).year} {company}</p>
"""
        text = (
            f"Reset Your Password - {company}\n\n"
            f"Hello {name},\n\n"
            "We received a request to reset your password.\n\n"
            f"Open this link to reset it:\n{reset_url}\n\n"
            f"This link will expire in {ttl_minutes} minutes.\n\n"
            "If you didn't request this password reset, you can safely ignore this email.\n"
        )
        return self._send(to, f"Reset Your Password - {company}", body, text)

    def send_welcome(self, to: str, name: str) -> bool:
        company = self.settings.company_name
        body = f"""
<h2>Welcome to {company}!</h2>
<p>Hello <strong>{html.escape(name)}</strong>,</p>
<p>Your account has been created. You can now log in at
<a href="{self.settings.frontend_url}/login">{self.settings.frontend_url}/login</a>.</p>
<p>If you have any questions, please contact your administrator.</p>
"""
        return self._send(to, f"Welcome to {company}", body)
