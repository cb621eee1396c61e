import asyncio
import logging
import time
from datetime import datetime
from typing import Callable, Optional

from .redis_service import RedisService
from .timing import format_time
from .tracker import FleetTracker

logger = logging.getLogger(__name__)


class SimulationLoop:
    """Drives the fleet from a periodic asyncio tick.

    The tick may fire more often than ``min_update_interval``; updates and
    snapshot publication run at most once per interval.
    """

    def __init__(
        self,
        tracker: FleetTracker,
        clock: Callable[[], float] = time.time,
        min_update_interval: float = 0.1,
        tick_interval: float = 0.02,
        publisher: Optional[RedisService] = None,
        auto_traffic: bool = False,
    ):
        self.tracker = tracker
        self.clock = clock
        self.min_update_interval = min_update_interval
        self.tick_interval = tick_interval
        self.publisher = publisher
        self.auto_traffic = auto_traffic
        self.last_tick_time: Optional[float] = None
        self._traffic_hour: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start_simulation(self, initial_trains: int = 8) -> None:
        """Seed the fleet before the first tick."""
        self.tracker.generate_trains(initial_trains, now=self.clock())
        logger.info("Simulation started with %d trains", len(self.tracker.trains))

    def tick(self, now: Optional[float] = None) -> bool:
        """Run one update if the minimum interval has elapsed."""
        now = self.clock() if now is None else now
        if self.last_tick_time is not None and now - self.last_tick_time < self.min_update_interval:
            return False

        if self.auto_traffic:
            hour = datetime.fromtimestamp(now).hour
            if hour != self._traffic_hour:
                self.tracker.apply_time_of_day_traffic(hour)
                self._traffic_hour = hour

        self.tracker.update_trains(now)
        self.last_tick_time = now

        if self.publisher is not None and self.publisher.available:
            self.publisher.publish_snapshot(
                [train.get_info() for train in self.tracker.get_visible_trains()],
                self.tracker.get_statistics(),
            )
        return True

    def clock_display(self) -> str:
        return format_time(datetime.fromtimestamp(self.clock()))

    async def _run(self) -> None:
        while True:
            try:
                self.tick()
            except Exception:
                logger.exception("Simulation tick failed")
            await asyncio.sleep(self.tick_interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Simulation loop running")

    async def stop(self) -> None:
        """Cancel the scheduled tick and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Simulation loop stopped")
