"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (``PAYMENT_GATEWAY=fake``)
- MercadoPagoGateway for production (``PAYMENT_GATEWAY=mercadopago``)
"""

from ordering.gateway.fake_adapter import FakeGateway
from ordering.gateway.mercadopago_adapter import MercadoPagoGateway
from ordering.gateway.port import PaymentGateway
from ordering.utils.settings import get_settings

_current_gateway: PaymentGateway | None = None


def _build_gateway() -> PaymentGateway:
    settings = get_settings()
    if settings.payment_gateway == "mercadopago":
        return MercadoPagoGateway(
            access_token=settings.mercadopago_access_token,
            base_url=settings.mercadopago_base_url,
            timeout=settings.mercadopago_timeout_seconds,
        )
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from settings on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
