from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable

from booking_cancellation.core.config import Settings, settings
from booking_cancellation.services.calendly_client import CalendlyClient, CalendlyConfig
from booking_cancellation.services.email_service import EmailTransport
from booking_cancellation.services.stripe_client import StripeClient, StripeConfig


@dataclass
class CancellationGateways:
    """External systems a cancellation talks to."""
    payments: Any  # create_refund(charge_ref, reason, metadata) -> refund id; get_charge_fee(charge_ref) -> cents
    mailer: Any  # send(to, subject, html_body)
    calendar_factory: Callable[[str], Any]  # partner token -> client with cancel_scheduled_event(event_id, reason)


def build_gateways(cfg: Settings = settings) -> CancellationGateways:
    calendly_cfg = CalendlyConfig(api_base=cfg.CALENDLY_API_BASE, timeout=cfg.CALENDLY_TIMEOUT)
    return CancellationGateways(
        payments=StripeClient(StripeConfig(
            secret_key=cfg.STRIPE_SECRET_KEY,
            api_base=cfg.STRIPE_API_BASE,
            timeout=cfg.STRIPE_TIMEOUT,
        )),
        mailer=EmailTransport(),
        calendar_factory=lambda token: CalendlyClient(calendly_cfg, token),
    )


@lru_cache
def get_gateways() -> CancellationGateways:
    return build_gateways(settings)
