import logging
import math
import random
import time
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from ..models.metro import FleetStatistics, LineStatistics
from .registry import NEUTRAL_TRAFFIC, NetworkRegistry
from .timing import generate_train_number, get_active_train_count, get_traffic_status
from .train import DEFAULT_TRAVEL_TIME, Train

logger = logging.getLogger(__name__)


class FleetTracker:
    """Owns the live trains and the controls that act on them.

    Every time-dependent operation takes ``now`` as epoch seconds; trains added
    without one are stamped with ``clock``. The random source and the
    stopped-train sweep chance are injectable so that tests can fix their
    outcome.
    """

    def __init__(
        self,
        registry: NetworkRegistry,
        rng: Optional[random.Random] = None,
        cleanup_chance: float = 0.1,
        min_trains: int = 5,
        travel_time: float = DEFAULT_TRAVEL_TIME,
        speed_multiplier: float = 1.0,
        clock: Callable[[], float] = time.time,
    ):
        self.registry = registry
        self.clock = clock
        self.rng = rng or random.Random()
        self.cleanup_chance = cleanup_chance
        self.min_trains = min_trains
        self.travel_time = travel_time
        self.speed_multiplier = speed_multiplier
        self.trains: List[Train] = []
        self.visible_lines = set(registry.lines)
        self.traffic_status: Dict[str, str] = {line_id: NEUTRAL_TRAFFIC for line_id in registry.lines}
        self.last_update_time: Optional[float] = None

    def add_train(
        self,
        line_id: str,
        train_number: Optional[str] = None,
        model: Optional[str] = None,
        now: Optional[float] = None,
    ) -> Optional[Train]:
        line = self.registry.get_line(line_id)
        if line is None or len(line.stations) < 2:
            return None

        station_count = len(line.stations)
        # Leaves at least one segment before the terminal.
        station_start = self.rng.randrange(station_count - 2) if station_count > 2 else 0
        station_end = station_count - 1

        train = Train(
            self.registry,
            line_id,
            station_start,
            station_end,
            train_number or generate_train_number(self.rng),
            model or self.registry.model_for_line(line_id, self.rng),
            now if now is not None else self.clock(),
            travel_time=self.travel_time,
        )
        self.trains.append(train)
        logger.debug("Added train %s on line %s at station %d", train.train_number, line_id, station_start)
        return train

    def generate_trains(self, target_count: int = 10, now: Optional[float] = None) -> int:
        """Add trains on random lines until the fleet reaches ``target_count``."""
        line_ids = self.registry.runnable_line_ids()
        if not line_ids:
            logger.warning("No line has enough stations to run trains")
            return 0

        added = 0
        while len(self.trains) < target_count:
            if self.add_train(self.rng.choice(line_ids), now=now) is not None:
                added += 1

        if added:
            logger.info("Generated %d trains, fleet size is now %d", added, len(self.trains))
        return added

    def get_train(self, train_id: str) -> Optional[Train]:
        for train in self.trains:
            if train.id == train_id:
                return train
        return None

    def remove_train(self, train_id: str) -> bool:
        before = len(self.trains)
        self.trains = [train for train in self.trains if train.id != train_id]
        return len(self.trains) != before

    def remove_stopped_trains(self) -> int:
        before = len(self.trains)
        self.trains = [train for train in self.trains if not train.is_stopped]
        removed = before - len(self.trains)
        if removed:
            logger.debug("Removed %d stopped trains", removed)
        return removed

    def traffic_multiplier_for(self, line_id: str) -> float:
        return self.registry.traffic_multiplier(self.traffic_status.get(line_id)) * self.speed_multiplier

    def update_trains(self, now: float) -> None:
        """Advance visible trains, top up the fleet and sweep finished trains."""
        for train in self.trains:
            if train.line_id in self.visible_lines:
                train.update(now, self.traffic_multiplier_for(train.line_id))

        local_time = datetime.fromtimestamp(now)
        target_count = get_active_train_count(local_time.hour, local_time.minute)
        if len(self.trains) < target_count:
            self.generate_trains(max(target_count, self.min_trains), now=now)

        if self.rng.random() < self.cleanup_chance:
            self.remove_stopped_trains()

        self.last_update_time = now

    def get_visible_trains(self) -> List[Train]:
        return [
            train for train in self.trains
            if train.line_id in self.visible_lines and not train.is_stopped
        ]

    def set_visible_lines(self, line_ids: Iterable[str]) -> None:
        self.visible_lines = set(line_ids)

    def toggle_line(self, line_id: str) -> bool:
        """Flip a line's visibility and return whether it is now visible."""
        if line_id in self.visible_lines:
            self.visible_lines.discard(line_id)
            return False
        self.visible_lines.add(line_id)
        return True

    def set_traffic_status(self, line_id: str, status: str) -> bool:
        if not self.registry.is_traffic_state(status):
            logger.debug("Ignoring unknown traffic state %r for line %s", status, line_id)
            return False
        self.traffic_status[line_id] = status
        return True

    def apply_time_of_day_traffic(self, hour: int) -> str:
        """Set every line to the traffic state expected at ``hour``."""
        status = get_traffic_status(hour)
        for line_id in self.registry.lines:
            self.set_traffic_status(line_id, status)
        logger.info("Applied %s traffic to all lines for hour %d", status, hour)
        return status

    def set_speed_multiplier(self, multiplier: float) -> bool:
        if multiplier <= 0 or not math.isfinite(multiplier):
            return False
        self.speed_multiplier = multiplier
        return True

    def get_statistics(self) -> FleetStatistics:
        line_stats = {}
        for line_id, line in self.registry.lines.items():
            line_stats[line_id] = LineStatistics(
                line=line.name,
                color=line.color,
                trains=sum(1 for train in self.trains if train.line_id == line_id),
                traffic=self.traffic_status.get(line_id, NEUTRAL_TRAFFIC),
                visible=line_id in self.visible_lines,
                length_km=self.registry.line_length_km(line_id),
            )

        return FleetStatistics(
            total_trains=len(self.trains),
            active_trains=len(self.get_visible_trains()),
            visible_lines=len(self.visible_lines),
            speed_multiplier=self.speed_multiplier,
            line_stats=line_stats,
        )
