"""Simple dependency container for wiring long-lived collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from leadmarket.core.config import Settings, get_settings
from leadmarket.infrastructure.database.session import get_engine
from leadmarket.modules.notifications.mailer import LowBalanceMailer, SmtpMailer
from leadmarket.modules.purchases.provider import PaymentProvider, StripePaymentProvider


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    payment_provider: PaymentProvider
    mailer: LowBalanceMailer

    def init_infrastructure(self) -> None:
        """Ensure infrastructure singletons (database engine, etc.) are initialised."""
        get_engine()


@lru_cache()
def get_container() -> ApplicationContainer:
    settings = get_settings()
    container = ApplicationContainer(
        settings=settings,
        payment_provider=StripePaymentProvider(settings.stripe),
        mailer=SmtpMailer(settings.mail),
    )
    container.init_infrastructure()
    return container


__all__ = ["ApplicationContainer", "get_container"]
