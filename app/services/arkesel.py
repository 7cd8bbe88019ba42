"""
Arkesel SMS client (Ghana).

Arkesel's v1 endpoint takes everything as query parameters on a GET:
https://sms.arkesel.com/sms/api?action=send-sms&api_key=...&to=...&from=...&sms=...
Responses come back as JSON ({"code": "ok", "message": "Successfully Sent", ...}),
as plain text, or as an HTML error page.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional
from urllib.parse import urlencode

import httpx

from app.core.config import settings
from app.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ARKESEL_SMS_URL = "https://sms.arkesel.com/sms/api"
MAX_SMS_LENGTH = 1600

_SUCCESS_WORDS = ("success", "sent", "ok", "delivered")
_MESSAGE_ID_KEYS = ("messageId", "id", "bulk_id", "bulkId", "message_id", "sms_id", "smsId")


def format_phone_number(phone: str) -> str:
    """Normalize to international format without '+', assuming Ghana (233) when no country code."""
    number = (phone or "").replace(" ", "").replace("\t", "").replace("+", "")
    if number.startswith("0"):
        return "233" + number[1:]
    if not number.startswith("233"):
        return "233" + number
    return number


@dataclass
class SmsResult:
    success: bool
    status_code: Optional[int] = None
    response: Any = None
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BulkSmsResult:
    sent: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)
    message_ids: List[dict] = field(default_factory=list)


def _is_html(text: str) -> bool:
    head = text.strip()[:15].lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def parse_response(status_code: int, text: str, phone: str) -> SmsResult:
    """Decide whether an Arkesel answer means the SMS went out."""
    ok_status = 200 <= status_code < 300
    try:
        data = json.loads(text)
    except ValueError:
        data = None

    if isinstance(data, dict):
        status = str(data.get("status", "")).lower()
        code = str(data.get("code", "")).lower()
        message = str(data.get("message", "")).lower()
        success = (
            status in ("success", "ok")
            or code in ("ok", "200")
            or "success" in message
            or "sent" in message
        )
        delivered = ok_status and success
        return SmsResult(
            success=delivered,
            status_code=status_code,
            response=data,
            message_id=_extract_message_id(data, phone) if delivered else None,
            error=None if delivered else (data.get("message") or data.get("error") or text or "Failed to send SMS"),
        )

    if _is_html(text):
        return SmsResult(
            success=False,
            status_code=status_code,
            response={"status": "error", "htmlResponse": text[:200]},
            error="Arkesel API returned an error page. Check API endpoint and parameters.",
        )

    lowered = text.lower()
    success = any(word in lowered for word in _SUCCESS_WORDS)
    return SmsResult(
        success=ok_status and success,
        status_code=status_code,
        response={"message": text, "status": "success" if success else "error"},
        error=None if (ok_status and success) else (text or "Failed to send SMS"),
    )


def _extract_message_id(data: dict, phone: str) -> Optional[str]:
    items = data.get("data")
    if isinstance(items, list):
        for item in items:
            if not isinstance(item, dict):
                continue
            if phone in (item.get("recipient"), item.get("to"), item.get("phone")):
                found = item.get("id") or item.get("messageId") or item.get("message_id")
                if found:
                    return str(found)
    for key in _MESSAGE_ID_KEYS:
        if data.get(key):
            return str(data[key])
    return None


class ArkeselClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        sender_id: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.api_key = ((api_key if api_key is not None else settings.ARKESEL_API_KEY) or "").strip()
        self.sender_id = sender_id or settings.ARKESEL_SENDER_ID
        self._http = http_client
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_url(self, phone: str, message: str) -> str:
        query = urlencode({
            "action": "send-sms",
            "api_key": self.api_key,
            "to": phone,
            "from": self.sender_id,
            "sms": message,
        })
        return f"{ARKESEL_SMS_URL}?{query}"

    def masked_url(self, phone: str, message: str) -> str:
        url = self.build_url(phone, message)
        if self.api_key:
            url = url.replace(urlencode({"api_key": self.api_key}), "api_key=***")
        return url

    def send_sms(self, phone: str, message: str) -> SmsResult:
        if not self.is_configured:
            raise ConfigurationError("SMS service not configured. Please configure ARKESEL_API_KEY environment variable.")

        formatted = format_phone_number(phone)
        logger.info(f"[SMS] Sending to {formatted} via Arkesel ({len(message)} chars)")
        client = self._http or httpx.Client(timeout=self.timeout)
        try:
            response = client.get(
                self.build_url(formatted, message),
                headers={
                    "Accept": "application/json, text/plain, */*",
                    "User-Agent": "Tikiti-Events/1.0",
                },
            )
        except httpx.RequestError as e:
            logger.error(f"[SMS] Request to Arkesel failed for {formatted}: {e}")
            return SmsResult(success=False, error=str(e))
        finally:
            if self._http is None:
                client.close()

        result = parse_response(response.status_code, response.text, formatted)
        if result.success:
            logger.info(f"[SMS] Sent to {formatted}" + (f" (id {result.message_id})" if result.message_id else ""))
        else:
            logger.warning(f"[SMS] Failed for {formatted} ({response.status_code}): {response.text[:500]}")
        return result

    def send_bulk(self, recipients: List[dict], message: str, event_name: Optional[str] = None) -> BulkSmsResult:
        """Send the same message to each recipient in turn; one request per number."""
        full_message = f"{event_name}: {message}" if event_name else message
        full_message = full_message[:MAX_SMS_LENGTH]

        results = BulkSmsResult()
        for recipient in recipients:
            label = recipient.get("name") or recipient.get("phone") or "Guest"
            phone = recipient.get("phone")
            if not phone:
                results.failed += 1
                results.errors.append(f"{label}: Missing phone number")
                continue
            outcome = self.send_sms(phone, full_message)
            if outcome.success:
                results.sent += 1
                if outcome.message_id:
                    results.message_ids.append({"phone": format_phone_number(phone), "messageId": outcome.message_id})
            else:
                results.failed += 1
                results.errors.append(f"{label}: {outcome.error or 'Failed to send SMS'}")
        return results
