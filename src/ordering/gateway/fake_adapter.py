"""Configurable fake payment gateway for development and testing.

Charges settle with whatever status the gateway is configured for, and every
payment it issues can later be queried (or have its status changed) to drive
webhook scenarios without a real provider.
"""

from decimal import Decimal
from uuid import uuid4

from ordering.errors import PaymentProviderError
from ordering.gateway.port import APPROVED, ChargeResult, PaymentGateway


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.status: str = APPROVED
        self.status_detail: str | None = "accredited"
        self.error: str | None = None
        self.payments: dict[str, ChargeResult] = {}
        self.calls: list[dict] = []

    def configure(self, status: str = APPROVED, status_detail: str | None = None, error: str | None = None) -> None:
        """Configure how the next charges settle, or make the provider fail outright."""
        self.status = status
        self.status_detail = status_detail
        self.error = error

    def set_payment_status(self, payment_id: str, status: str, status_detail: str | None = None) -> None:
        """Change what ``get_payment`` reports, as the provider would after settlement."""
        self.payments[payment_id] = ChargeResult(status=status, payment_id=payment_id, status_detail=status_detail)

    def charge(
        self,
        amount: Decimal,
        token: str,
        description: str,
        payer_email: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        self.calls.append(
            {
                "method": "charge",
                "amount": amount,
                "token": token,
                "description": description,
                "payer_email": payer_email,
                "idempotency_key": idempotency_key,
            }
        )
        if self.error:
            raise PaymentProviderError(self.error)

        payment_id = f"fake_pay_{uuid4().hex[:12]}"
        result = ChargeResult(status=self.status, payment_id=payment_id, status_detail=self.status_detail)
        self.payments[payment_id] = result
        return result

    def get_payment(self, payment_id: str) -> ChargeResult:
        self.calls.append({"method": "get_payment", "payment_id": payment_id})
        if self.error:
            raise PaymentProviderError(self.error)

        result = self.payments.get(payment_id)
        if result is None:
            raise PaymentProviderError(f"Payment {payment_id} not found", status_code=404)
        return result
