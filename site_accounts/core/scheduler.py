"""Clock and delay scheduling for simulated latency."""

import asyncio
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


def isoformat_utc(moment: datetime) -> str:
    """
    Format a datetime the way browsers serialize dates.

    Args:
        moment: Timezone-aware datetime

    Returns:
        ISO-8601 string with millisecond precision and a ``Z`` suffix
    """
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


class Scheduler(ABC):
    """Source of the current time and of artificial delays."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current UTC time."""

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend the caller for ``seconds``."""

    def timestamp(self) -> str:
        """Return the current time as an ISO-8601 string."""
        return isoformat_utc(self.now())


class AsyncioScheduler(Scheduler):
    """Wall clock with real event loop timers."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class ManualScheduler(Scheduler):
    """
    Scheduler whose time only moves when ``advance`` is called.

    Sleepers are parked on futures and released once the simulated clock
    reaches their deadline. Time is tracked in whole milliseconds so
    repeated small advances never drift.
    """

    def __init__(self, start: datetime | None = None):
        """Initialize the clock at ``start`` (defaults to 2025-01-01 UTC)."""
        self._origin = start or datetime(2025, 1, 1, tzinfo=UTC)
        self._elapsed_ms = 0
        self._timers: list[tuple[int, asyncio.Future[None]]] = []

    @staticmethod
    def _to_ms(seconds: float) -> int:
        return round(seconds * 1000)

    def now(self) -> datetime:
        return self._origin + timedelta(milliseconds=self._elapsed_ms)

    async def sleep(self, seconds: float) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._timers.append((self._elapsed_ms + self._to_ms(seconds), future))
        await future

    @property
    def pending(self) -> int:
        """Number of sleepers still waiting."""
        return sum(1 for _, future in self._timers if not future.done())

    async def advance(self, seconds: float) -> None:
        """
        Move the clock forward and release every sleeper that is now due.

        Args:
            seconds: Amount of simulated time to add
        """
        await self._drain()
        self._elapsed_ms += self._to_ms(seconds)

        due = [timer for timer in self._timers if timer[0] <= self._elapsed_ms]
        self._timers = [timer for timer in self._timers if timer[0] > self._elapsed_ms]
        for _, future in due:
            if not future.done():
                future.set_result(None)

        await self._drain()

    @staticmethod
    async def _drain(rounds: int = 5) -> None:
        # Let ready tasks run up to their next suspension point.
        for _ in range(rounds):
            await asyncio.sleep(0)
