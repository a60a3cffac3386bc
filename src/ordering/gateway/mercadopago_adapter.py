"""MercadoPago adapter for Yape wallet payments.

Talks to the MercadoPago REST API with ``requests``:

- ``POST /v1/payments`` charges a Yape token for the order total
- ``GET /v1/payments/{id}`` reads back the authoritative status for webhooks

Declined payments come back as regular responses with ``status="rejected"``.
Only transport failures and API errors (4xx/5xx) raise ``PaymentProviderError``.
"""

from decimal import Decimal

import requests

from ordering.errors import PaymentProviderError
from ordering.gateway.port import ChargeResult, PaymentGateway
from ordering.utils.logging import get_logger

logger = get_logger(__name__)

# Sandbox and seeded accounts that MercadoPago refuses as payers
_TEST_EMAIL_MARKERS = ("@testuser.com", "@test.com", "@example.com", "test_user", "buyer_")


def _payer_email(email: str | None) -> str | None:
    if not email:
        return None
    email = email.strip()
    if "@" not in email or len(email) <= 5:
        return None
    if any(marker in email for marker in _TEST_EMAIL_MARKERS):
        return None
    return email


def _error_message(response: requests.Response) -> str:
    """Extract the most specific message MercadoPago put in an error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if not isinstance(body, dict):
        return str(body)

    message = body.get("message") or body.get("error")
    causes = body.get("cause") or []
    if not message and causes and isinstance(causes[0], dict):
        message = causes[0].get("description") or causes[0].get("message")
    message = message or f"HTTP {response.status_code}"

    if "Invalid users involved" in message:
        message = "Invalid users involved: the Yape token may have expired or is not valid"
    return message


class MercadoPagoGateway(PaymentGateway):
    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.mercadopago.com",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        if not access_token:
            raise ValueError("MercadoPago access token is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            }
        )

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.error("mercadopago_unreachable", method=method, path=path, error=str(exc))
            raise PaymentProviderError(f"Payment provider unreachable: {exc}") from exc

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(
                "mercadopago_api_error",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message,
            )
            raise PaymentProviderError(message, status_code=response.status_code)

        return response.json()

    @staticmethod
    def _result(body: dict) -> ChargeResult:
        payment_id = body.get("id")
        return ChargeResult(
            status=str(body.get("status") or "unknown"),
            payment_id=str(payment_id) if payment_id is not None else None,
            status_detail=body.get("status_detail"),
        )

    def charge(
        self,
        amount: Decimal,
        token: str,
        description: str,
        payer_email: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        payload = {
            "transaction_amount": float(amount),
            "description": description,
            "installments": 1,
            "payment_method_id": "yape",
            "token": token,
        }
        email = _payer_email(payer_email)
        if email:
            payload["payer"] = {"email": email}

        body = self._request(
            "POST",
            "/v1/payments",
            json=payload,
            headers={"X-Idempotency-Key": idempotency_key},
        )
        result = self._result(body)
        logger.info(
            "mercadopago_charge_settled",
            payment_id=result.payment_id,
            status=result.status,
            status_detail=result.status_detail,
        )
        return result

    def get_payment(self, payment_id: str) -> ChargeResult:
        return self._result(self._request("GET", f"/v1/payments/{payment_id}"))
