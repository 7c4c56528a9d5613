"""
Pytest configuration and fixtures for QuitFlow tests.
"""

import asyncio
import os
from unittest.mock import AsyncMock

import pytest

# Set test environment before importing quitflow modules
os.environ["QUITFLOW_ENV"] = "development"
os.environ["FUNNEL_LOG_ENABLED"] = "false"

from onboarding.controller import StepController
from onboarding.draft_store import InMemoryDraftStore
from onboarding.gateways import EmailStatus
from onboarding.offer_timer import OfferTimer
from onboarding.state import AuthSession, HabitRecord


async def parked_sleep(_seconds: float) -> None:
    """Sleep that never returns on its own. Timers using it run until cancelled."""
    await asyncio.Event().wait()


@pytest.fixture
def draft_store():
    """Empty in-memory draft store."""
    return InMemoryDraftStore()


@pytest.fixture
def email_gateway():
    """Email gateway mock. Defaults to "not registered"."""
    gateway = AsyncMock()
    gateway.check_exists.return_value = EmailStatus.NOT_EXISTS
    return gateway


@pytest.fixture
def provisioning():
    """Provisioning gateway mock that succeeds on both phases."""
    gateway = AsyncMock()
    gateway.sign_up.return_value = AuthSession(
        user={"id": "user-1", "email": "ada@example.com", "username": "Ada Lovelace"},
        token="token-abc",
    )

    def _record(token, request):
        return HabitRecord(
            quit_date=request.quit_date,
            product_type=request.product_type,
            daily_usage=request.daily_usage,
            cost=request.cost,
            id="habit-1",
        )

    gateway.create_habit_record.side_effect = _record
    return gateway


@pytest.fixture
def make_controller(draft_store, email_gateway, provisioning):
    """
    Factory for controllers with instant auto-advance and parked timers.

    Call inside a running event loop (timers are asyncio tasks).
    """

    def _make(**overrides) -> StepController:
        kwargs = {
            "store": draft_store,
            "email_gateway": email_gateway,
            "provisioning": provisioning,
            "advance_delay": 0,
            "timer_factory": lambda: OfferTimer(sleep=parked_sleep),
        }
        kwargs.update(overrides)
        return StepController(**kwargs)

    return _make


@pytest.fixture
def sample_draft_dict():
    """A draft as written to storage halfway through step 5."""
    return {
        "product_type": "cigarettes",
        "daily_usage": 2,
        "unit_cost": 8,
        "duration_bucket": "5_to_10y",
        "identity": {
            "first_name": "Ada",
            "last_name": "Lovelace",
            "email": "ada@example.com",
            "phone": "",
            "opt_in_messages": False,
        },
        "credentials": {"password": "", "confirm_password": ""},
        "declined_initial_offer": False,
    }
