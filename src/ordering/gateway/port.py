"""Payment gateway port (abstract interface).

The ordering core consumes only the settlement outcome of a payment: the
provider's tokenization flow happens on the client. Adapters translate their
provider's vocabulary into the statuses below.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

APPROVED = "approved"
REJECTED = "rejected"
CANCELLED = "cancelled"
PENDING = "pending"
IN_PROCESS = "in_process"


@dataclass(frozen=True)
class ChargeResult:
    """Result of a charge attempt, or of a status query for an existing payment."""

    status: str
    payment_id: str | None = None
    status_detail: str | None = None

    @property
    def approved(self) -> bool:
        return self.status == APPROVED

    @property
    def rejected(self) -> bool:
        return self.status in (REJECTED, CANCELLED)

    @property
    def pending(self) -> bool:
        return self.status in (PENDING, IN_PROCESS)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def charge(
        self,
        amount: Decimal,
        token: str,
        description: str,
        payer_email: str | None,
        idempotency_key: str,
    ) -> ChargeResult:
        """Charge ``amount`` against a wallet/card token.

        Raises ``PaymentProviderError`` when the provider cannot be reached or
        refuses the request itself (as opposed to declining the payment).
        """
        ...

    @abstractmethod
    def get_payment(self, payment_id: str) -> ChargeResult:
        """Return the provider's authoritative status for a payment."""
        ...
