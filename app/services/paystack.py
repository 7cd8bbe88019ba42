"""
Paystack REST client.

Thin wrapper over https://api.paystack.co: transactions, customers and subscriptions.
Every call returns the response's `data` object; non-2xx responses raise
UpstreamServiceError carrying Paystack's `message`.
"""
import hashlib
import hmac
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from app.core.config import settings
from app.core.exceptions import ConfigurationError, UpstreamServiceError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-paystack-signature"


class PaystackClient:
    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self.secret_key = (secret_key if secret_key is not None else settings.PAYSTACK_SECRET_KEY) or ""
        self.base_url = (base_url or settings.PAYSTACK_BASE_URL).rstrip("/")
        self._http = http_client
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        if not self.secret_key.strip():
            raise ConfigurationError("PAYSTACK_SECRET_KEY is not configured")
        return {
            "Authorization": f"Bearer {self.secret_key.strip()}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, endpoint: str, body: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{endpoint}"
        headers = self._headers()
        client = self._http or httpx.Client(timeout=self.timeout)
        try:
            response = client.request(
                method,
                url,
                headers=headers,
                json=body if body is not None and method != "GET" else None,
            )
        except httpx.RequestError as e:
            logger.error(f"[BILLING] Paystack request error [{method} {endpoint}]: {e}")
            raise UpstreamServiceError(f"Failed to reach Paystack: {e}")
        finally:
            if self._http is None:
                client.close()

        try:
            result = response.json()
        except ValueError:
            result = {}

        if not response.is_success:
            logger.error(f"[BILLING] Paystack API error [{method} {endpoint}] ({response.status_code}): {result}")
            message = result.get("message") if isinstance(result, dict) else None
            raise UpstreamServiceError(
                message or f"Paystack API error: {response.status_code}",
                upstream_status=response.status_code,
                payload=result,
            )
        return result.get("data") if isinstance(result, dict) else None

    # Transactions

    def initialize_transaction(
        self,
        email: str,
        amount: int,
        *,
        currency: Optional[str] = None,
        reference: Optional[str] = None,
        callback_url: Optional[str] = None,
        metadata: Optional[dict] = None,
        plan: Optional[str] = None,
        channels: Optional[List[str]] = None,
    ) -> dict:
        """Start a hosted checkout. Returns authorization_url, access_code and reference."""
        body: Dict[str, Any] = {"email": email, "amount": amount}
        optional = {
            "currency": currency,
            "reference": reference,
            "callback_url": callback_url,
            "metadata": metadata,
            "plan": plan,
            "channels": channels,
        }
        body.update({k: v for k, v in optional.items() if v is not None})
        return self._request("POST", "/transaction/initialize", body)

    def verify_transaction(self, reference: str) -> dict:
        return self._request("GET", f"/transaction/verify/{quote(reference, safe='')}")

    # Customers

    def create_customer(self, email: str, first_name: Optional[str] = None, last_name: Optional[str] = None) -> dict:
        return self._request("POST", "/customer", {
            "email": email,
            "first_name": first_name,
            "last_name": last_name,
        })

    def get_customer(self, email_or_code: str) -> dict:
        return self._request("GET", f"/customer/{quote(email_or_code, safe='')}")

    def get_or_create_customer(self, email: str, first_name: Optional[str] = None, last_name: Optional[str] = None) -> dict:
        try:
            return self.get_customer(email)
        except UpstreamServiceError:
            logger.info(f"[BILLING] No Paystack customer for {email}, creating one")
            return self.create_customer(email, first_name, last_name)

    # Subscriptions

    def create_subscription(self, customer_code: str, plan_code: str, authorization_code: str) -> dict:
        return self._request("POST", "/subscription", {
            "customer": customer_code,
            "plan": plan_code,
            "authorization": authorization_code,
        })

    def get_subscription(self, subscription_code: str) -> dict:
        return self._request("GET", f"/subscription/{quote(subscription_code, safe='')}")

    def disable_subscription(self, subscription_code: str, email_token: str) -> None:
        self._request("POST", "/subscription/disable", {"code": subscription_code, "token": email_token})

    def enable_subscription(self, subscription_code: str, email_token: str) -> None:
        self._request("POST", "/subscription/enable", {"code": subscription_code, "token": email_token})


def compute_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()


def verify_webhook_signature(raw_body: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """Check the hex HMAC-SHA512 of the raw request body against the signature header."""
    if not secret:
        raise ConfigurationError("PAYSTACK_SECRET_KEY is not configured")
    if not signature:
        return False
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected, signature.strip())
