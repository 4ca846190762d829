"""Recovery e-mail delivery through the Mailgun HTTP API."""

from __future__ import annotations

import html
import logging
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from brote.core.config import Settings

logger = logging.getLogger(__name__)

RECOVERY_SUBJECT = "Recuperación de contraseña"
LOGO_URL = "https://cnc.brote.store/themes/2019/img/logo.png"


class MailerNotConfiguredError(Exception):
    """Raised when mail is sent but MAILGUN_DOMAIN or MAILGUN_API_KEY is missing."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MailerError(Exception):
    """Raised when Mailgun is unreachable or rejects the message."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def render_recovery_email(token: str, frontend_url: str) -> str:
    """HTML body with the token and a link to the password recovery page."""
    safe_token = html.escape(token)
    link = f"{frontend_url.rstrip('/')}/password-recovery/{safe_token}/"
    return f"""
<html>
<body>
    <div style="text-align: center;">
        <img src="{LOGO_URL}" alt="Logo BROTE" style="max-width: 200px; margin-bottom: 20px;">
        <p>Tu token de recuperación es: <strong>{safe_token}</strong></p>
        <p>Introdúcelo en la página web para poder recuperar tu contraseña:</p>
        <a href="{link}" style="display: inline-block; background-color: #007BFF; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px; font-weight: bold;">Recuperar Contraseña</a>
    </div>
</body>
</html>
"""


class Mailer:
    """Sends transactional mail. Every request is bounded by OUTBOUND_TIMEOUT_SEC."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def is_configured(self) -> bool:
        s = self._settings
        if not s.MAILGUN_DOMAIN or not s.MAILGUN_DOMAIN.strip():
            return False
        if s.MAILGUN_API_KEY is None or not s.MAILGUN_API_KEY.get_secret_value().strip():
            return False
        return True

    def send_recovery_email(self, to_address: str, token: str) -> None:
        """Send the recovery token to `to_address`. Raises MailerNotConfiguredError or MailerError."""
        if not self.is_configured():
            raise MailerNotConfiguredError(
                "Mail is not configured; set MAILGUN_DOMAIN and MAILGUN_API_KEY."
            )
        s = self._settings
        url = f"{s.MAILGUN_BASE_URL.rstrip('/')}/{s.MAILGUN_DOMAIN.strip()}/messages"
        data = {
            "from": s.MAIL_SENDER,
            "to": to_address,
            "subject": RECOVERY_SUBJECT,
            "html": render_recovery_email(token, s.FRONTEND_URL),
        }
        auth = ("api", s.MAILGUN_API_KEY.get_secret_value())
        try:
            with httpx.Client(
                auth=auth,
                timeout=s.OUTBOUND_TIMEOUT_SEC,
                transport=self._transport,
            ) as client:
                resp = client.post(url, data=data)
        except httpx.TimeoutException as e:
            raise MailerError("Mailgun request timed out.") from e
        except httpx.HTTPError as e:
            raise MailerError(f"Mailgun unreachable: {e}") from e
        if resp.status_code == 401:
            raise MailerError("Mailgun authentication failed (invalid API key).", 401)
        if resp.status_code >= 400:
            detail = resp.text[:500] if resp.text else "Unknown error"
            raise MailerError(f"Mailgun returned {resp.status_code}: {detail}", resp.status_code)
        logger.info("Recovery e-mail sent", extra={"mail_status": "sent"})
