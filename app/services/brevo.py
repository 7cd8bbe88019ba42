"""
Brevo transactional email client (https://api.brevo.com/v3).
Uses the platform BREVO_API_KEY; sender defaults to Tikiti <noreply@tikiti.com>.
"""
import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.core.exceptions import ConfigurationError, UpstreamServiceError

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3"


class BrevoClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        sender_email: Optional[str] = None,
        sender_name: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 15.0,
    ):
        self.api_key = ((api_key if api_key is not None else settings.BREVO_API_KEY) or "").strip()
        self.sender_email = sender_email or settings.BREVO_SENDER_EMAIL
        self.sender_name = sender_name or settings.BREVO_SENDER_NAME
        self._http = http_client
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> dict:
        if not self.api_key:
            raise ConfigurationError("Email service not configured")
        return {
            "accept": "application/json",
            "content-type": "application/json",
            "api-key": self.api_key,
        }

    def _send(self, method: str, path: str, payload: Optional[dict] = None) -> httpx.Response:
        headers = self._headers()
        client = self._http or httpx.Client(timeout=self.timeout)
        try:
            return client.request(method, f"{BREVO_API_URL}{path}", headers=headers, json=payload)
        except httpx.RequestError as e:
            logger.error(f"[EMAIL] Brevo request error [{method} {path}]: {e}")
            raise UpstreamServiceError(f"Failed to reach Brevo: {e}")
        finally:
            if self._http is None:
                client.close()

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        *,
        to_name: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> dict:
        """Send one transactional email. Returns Brevo's response body (messageId)."""
        recipient = {"email": to_email.strip()}
        if to_name and to_name.strip():
            recipient["name"] = to_name.strip()
        payload = {
            "sender": {"name": self.sender_name, "email": self.sender_email},
            "to": [recipient],
            "subject": subject,
            "htmlContent": html_content,
        }
        if reply_to:
            payload["replyTo"] = {"email": reply_to, "name": self.sender_name}

        response = self._send("POST", "/smtp/email", payload)
        if response.status_code not in (200, 201, 202):
            logger.error(f"[EMAIL] Brevo send failed for {to_email} ({response.status_code}): {response.text}")
            raise UpstreamServiceError(
                _error_message(response) or f"Brevo API error: {response.status_code}",
                upstream_status=response.status_code,
                payload=response.text,
            )
        try:
            return response.json()
        except ValueError:
            return {}

    def get_account(self) -> dict:
        response = self._send("GET", "/account")
        if not response.is_success:
            raise UpstreamServiceError(
                _error_message(response) or f"Brevo API error: {response.status_code}",
                upstream_status=response.status_code,
                payload=response.text,
            )
        return response.json()


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("message") if isinstance(body, dict) else None
