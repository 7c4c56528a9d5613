"""
QuitFlow - Session wiring.

Builds a StepController from Settings: file-backed draft store, HTTP
gateways against the configured registry, settings-driven offer timer and an
optional funnel logger. Everything is torn down when the context exits.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from onboarding.controller import StepController
from onboarding.draft_store import JsonFileDraftStore
from onboarding.gateways import AccountProvisioningGateway, EmailUniquenessGateway
from onboarding.offer_timer import OfferTimer

from quitflow.config import Settings
from quitflow.observability import FunnelLogger

logger = logging.getLogger(__name__)


def create_draft_store(settings: Settings) -> JsonFileDraftStore:
    return JsonFileDraftStore(settings.draft_dir, key=settings.draft_key)


def offer_timer_factory(settings: Settings):
    """Zero-arg factory so each offer step gets a fresh timer."""

    def factory() -> OfferTimer:
        return OfferTimer(
            countdown_seconds=settings.offer_countdown_seconds,
            seats=settings.offer_seats_start,
            scarcity_delay_ms=settings.scarcity_delay_ms,
        )

    return factory


@asynccontextmanager
async def onboarding_session(settings: Settings) -> AsyncIterator[StepController]:
    """
    Started controller wired to real collaborators.

    Usage:
        async with onboarding_session(get_settings()) as controller:
            await controller.select_product("cigarettes")
    """
    funnel = FunnelLogger(log_dir=settings.funnel_log_dir) if settings.funnel_log_enabled else None

    email_gateway = EmailUniquenessGateway(
        base_url=settings.api_base_url,
        timeout=settings.api_timeout_seconds,
    )
    provisioning = AccountProvisioningGateway(
        base_url=settings.api_base_url,
        timeout=settings.api_timeout_seconds,
        habit_record_path=settings.habit_record_path,
    )
    controller = StepController(
        store=create_draft_store(settings),
        email_gateway=email_gateway,
        provisioning=provisioning,
        advance_delay=settings.auto_advance_ms / 1000,
        timer_factory=offer_timer_factory(settings),
        funnel=funnel,
    )

    try:
        async with controller:
            yield controller
    finally:
        await email_gateway.aclose()
        await provisioning.aclose()
        if funnel is not None:
            log_path = funnel.close()
            logger.info(f"Funnel log written to {log_path}")
