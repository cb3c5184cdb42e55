import asyncio
import logging
import time
from datetime import timedelta
from typing import Callable, List
from jsonds.engine.model import Event
from .eventlog import EventStore

logger = logging.getLogger(__name__)

SEED_STEP = timedelta(minutes=20)

def seed(store: EventStore, count: int, step: timedelta = SEED_STEP,
         now: float | None = None) -> List[Event]:
    """Backfill `count` events spaced `step` apart, the last one at `now`."""
    if count < 0:
        raise ValueError(f"seed count must be >= 0, got {count}")
    if now is None:
        now = time.time()
    now_ms = int(now * 1000)
    step_ms = step // timedelta(milliseconds=1)
    if step_ms <= 0:
        raise ValueError(f"seed step must be at least 1ms, got {step}")
    start_ms = now_ms - step_ms * count
    events = [store.record(start_ms + (i + 1) * step_ms) for i in range(count)]
    logger.info("Seeded %d events (step %s)", count, step)
    return events

class Generator:
    """Async driver that appends one synthetic event per tick."""

    def __init__(self, store: EventStore, period_s: float = 60.0,
                 clock: Callable[[], float] = time.time):
        if period_s <= 0:
            raise ValueError(f"generator period must be positive, got {period_s}")
        self.store = store
        self.period_s = period_s
        self.clock = clock
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self):
        """Start the tick loop."""
        if self._task:
            return
        logger.info("Generator started (period %.3fs)", self.period_s)
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        """Cancel the tick loop and wait for it to exit."""
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Generator stopped")

    async def _loop(self):
        while True:
            await asyncio.sleep(self.period_s)
            event = self.store.record(int(self.clock() * 1000))
            logger.debug("Generated %s at %d", event.title, event.timestamp)
