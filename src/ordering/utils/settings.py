"""Runtime settings for the ordering service, read from environment variables.

Infrastructure (databases, brokers, event store) is configured through
``domain.toml`` and the ``PROTEAN_ENV`` overlay. The values here are the
business knobs: timezone, pickup defaults, sweeper cadence and payment bounds.
"""

import os
from dataclasses import dataclass
from datetime import UTC, time, tzinfo
from decimal import Decimal
from functools import lru_cache
from zoneinfo import ZoneInfo


def _flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    timezone_name: str = "UTC"
    default_pickup_time: time = time(18, 0)
    expiration_window_minutes: int = 5
    sweep_interval_seconds: float = 60.0
    sweeper_enabled: bool = True
    payment_min_amount: Decimal = Decimal("1.00")
    payment_max_amount: Decimal = Decimal("999999.99")
    payment_gateway: str = "fake"
    mercadopago_access_token: str | None = None
    mercadopago_base_url: str = "https://api.mercadopago.com"
    mercadopago_timeout_seconds: float = 10.0

    @property
    def timezone(self) -> tzinfo:
        if self.timezone_name.upper() == "UTC":
            return UTC
        return ZoneInfo(self.timezone_name)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            timezone_name=os.getenv("ORDERING_TIMEZONE", "UTC"),
            default_pickup_time=time.fromisoformat(os.getenv("ORDERING_DEFAULT_PICKUP_TIME", "18:00")),
            expiration_window_minutes=int(os.getenv("ORDERING_EXPIRATION_WINDOW_MINUTES", "5")),
            sweep_interval_seconds=float(os.getenv("ORDERING_SWEEP_INTERVAL_SECONDS", "60")),
            sweeper_enabled=_flag("ORDERING_SWEEPER_ENABLED", True),
            payment_min_amount=Decimal(os.getenv("PAYMENT_MIN_AMOUNT", "1.00")),
            payment_max_amount=Decimal(os.getenv("PAYMENT_MAX_AMOUNT", "999999.99")),
            payment_gateway=os.getenv("PAYMENT_GATEWAY", "fake").lower(),
            mercadopago_access_token=os.getenv("MERCADOPAGO_ACCESS_TOKEN"),
            mercadopago_base_url=os.getenv("MERCADOPAGO_BASE_URL", "https://api.mercadopago.com"),
            mercadopago_timeout_seconds=float(os.getenv("MERCADOPAGO_TIMEOUT_SECONDS", "10")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings. Call ``get_settings.cache_clear()`` after changing the environment."""
    return Settings.from_env()
