"""
Offer Timer.

Two independent background processes that run while the offer step is shown:

- Expiry countdown: 300 -> 0, one tick per second. Cosmetic: nothing happens
  when it reaches zero.
- Scarcity counter: "seats left", 6 -> 1, one seat per random 1-5 s delay.
  Only runs once the flash sale is showing.

Both are asyncio tasks owned by the timer and cancelled together.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_COUNTDOWN_SECONDS = 300
DEFAULT_SEATS = 6
MIN_SEATS = 1
DEFAULT_SCARCITY_DELAY_MS = (1000, 5000)

Sleep = Callable[[float], Awaitable[None]]


def format_time(seconds: int) -> str:
    """Render seconds as m:ss (300 -> '5:00')."""
    seconds = max(int(seconds), 0)
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"


class OfferTimer:
    """
    Countdown and scarcity processes for the offer step.

    `sleep` and `rng` are injectable so tests can run both processes to
    completion without waiting on the wall clock.
    """

    def __init__(
        self,
        countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        seats: int = DEFAULT_SEATS,
        scarcity_delay_ms: tuple[int, int] = DEFAULT_SCARCITY_DELAY_MS,
        tick_seconds: float = 1.0,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
        on_change: Callable[["OfferTimer"], None] | None = None,
    ):
        self.time_left = max(int(countdown_seconds), 0)
        self.seats_left = max(int(seats), MIN_SEATS)
        self.scarcity_delay_ms = scarcity_delay_ms
        self.tick_seconds = tick_seconds
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._on_change = on_change

        self.countdown_task: asyncio.Task | None = None
        self.scarcity_task: asyncio.Task | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> None:
        """Start the expiry countdown. No-op if already running or expired."""
        if self.countdown_task is not None and not self.countdown_task.done():
            return
        if self.time_left <= 0:
            return
        self.countdown_task = asyncio.create_task(self._run_countdown())

    def start_scarcity(self) -> None:
        """Start the seats-left counter. No-op if already running or at the floor."""
        if self.scarcity_task is not None and not self.scarcity_task.done():
            return
        if self.seats_left <= MIN_SEATS:
            return
        self.scarcity_task = asyncio.create_task(self._run_scarcity())

    def cancel(self) -> None:
        """Cancel both processes. Safe to call repeatedly."""
        for task in (self.countdown_task, self.scarcity_task):
            if task is not None and not task.done():
                task.cancel()

    async def aclose(self) -> None:
        """Cancel both processes and wait for them to unwind."""
        self.cancel()
        tasks = [t for t in (self.countdown_task, self.scarcity_task) if t is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def running(self) -> bool:
        return any(
            t is not None and not t.done()
            for t in (self.countdown_task, self.scarcity_task)
        )

    @property
    def display_time(self) -> str:
        return format_time(self.time_left)

    # =========================================================================
    # Workers
    # =========================================================================

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    def next_scarcity_delay(self) -> float:
        """Seconds until the next seat disappears, uniform in [min, max)."""
        low, high = self.scarcity_delay_ms
        return (low + self._rng.random() * (high - low)) / 1000

    async def _run_countdown(self) -> None:
        while self.time_left > 0:
            await self._sleep(self.tick_seconds)
            self.time_left = max(self.time_left - 1, 0)
            self._notify()
        logger.debug("Offer countdown reached 0:00")

    async def _run_scarcity(self) -> None:
        while self.seats_left > MIN_SEATS:
            await self._sleep(self.next_scarcity_delay())
            self.seats_left = max(self.seats_left - 1, MIN_SEATS)
            self._notify()
        logger.debug("Scarcity counter stopped at last seat")
