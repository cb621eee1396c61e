import logging
import math
from enum import Enum
from typing import Optional

from ..models.metro import Position, TrainInfo
from .registry import NetworkRegistry
from .timing import generate_id, interpolate_position

logger = logging.getLogger(__name__)

DEFAULT_TRAVEL_TIME = 60.0  # seconds per segment


class TrainStatus(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"


class Train:
    """A simulated train moving from station to station along one line.

    The train departs from ``current_segment_index`` and its ``progress`` is
    the traversed fraction of the segment towards the next station. Once the
    last station is reached the train is stopped for good.
    """

    def __init__(
        self,
        registry: NetworkRegistry,
        line_id: str,
        station_start: int,
        station_end: int,
        train_number: str,
        model: Optional[str],
        now: float,
        travel_time: float = DEFAULT_TRAVEL_TIME,
    ):
        self.id = generate_id()
        self.registry = registry
        self.line_id = line_id
        self.train_number = train_number
        self.model = model
        self.station_start = station_start
        self.station_end = station_end
        self.current_segment_index = station_start
        self.progress = 0.0
        self.status = TrainStatus.RUNNING
        self.created_at = now

        self.travel_time = travel_time
        self.segment_start_time = now
        self._traffic_multiplier = 1.0

    @property
    def segment_end_time(self) -> float:
        return self.segment_start_time + self.travel_time * self._traffic_multiplier

    @property
    def is_stopped(self) -> bool:
        return self.status == TrainStatus.STOPPED

    def update(self, now: float, traffic_multiplier: float = 1.0) -> None:
        """Advance the train to ``now``. A larger multiplier slows it down."""
        if self.is_stopped:
            return

        self._traffic_multiplier = traffic_multiplier
        elapsed = now - self.segment_start_time
        adjusted_travel_time = self.travel_time * traffic_multiplier

        if elapsed >= adjusted_travel_time:
            self.current_segment_index += 1
            line = self.registry.get_line(self.line_id)

            if line is None or self.current_segment_index >= len(line.stations) - 1:
                self.status = TrainStatus.STOPPED
                self.progress = 1.0
                logger.debug("Train %s reached the end of line %s", self.train_number, self.line_id)
                return

            self.segment_start_time = now
            self.progress = 0.0
        elif not math.isinf(adjusted_travel_time):
            # Progress never rewinds when traffic worsens mid-segment.
            self.progress = max(self.progress, elapsed / adjusted_travel_time)

    def get_current_position(self) -> Optional[Position]:
        current = self.registry.get_station(self.line_id, self.current_segment_index)
        if current is None:
            return None

        following = self.registry.get_station(self.line_id, self.current_segment_index + 1)
        if following is None:
            return Position(lat=current.lat, lng=current.lng)

        return interpolate_position(
            current.lat, current.lng, following.lat, following.lng, self.progress
        )

    def get_current_station_name(self) -> str:
        station = self.registry.get_station(self.line_id, self.current_segment_index)
        return station.name if station else "Unknown"

    def get_next_station_name(self) -> Optional[str]:
        station = self.registry.get_station(self.line_id, self.current_segment_index + 1)
        return station.name if station else None

    def get_info(self) -> TrainInfo:
        model = self.registry.train_models.get(self.model) if self.model else None
        line = self.registry.get_line(self.line_id)
        return TrainInfo(
            id=self.id,
            number=self.train_number,
            model=self.model or "",
            model_name=model.name if model else "Unknown",
            line=self.line_id,
            line_name=line.name if line else "Unknown line",
            current_station=self.get_current_station_name(),
            next_station=self.get_next_station_name(),
            progress=math.floor(self.progress * 100 + 0.5),
            position=self.get_current_position(),
            status=self.status.value,
        )

    def __repr__(self) -> str:
        return (
            f"Train(number={self.train_number!r}, line={self.line_id!r}, "
            f"segment={self.current_segment_index}, progress={self.progress:.2f}, "
            f"status={self.status.value})"
        )
