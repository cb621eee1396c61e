import math
import random
import uuid
from datetime import datetime
from typing import Optional

from ..models.metro import Position

EARTH_RADIUS_M = 6371e3

SERVICE_START_MINUTES = 5 * 60 + 30  # 05:30
SERVICE_END_MINUTES = 60  # 01:00 the next day


def get_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres between two points (haversine)."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (math.sin(d_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def interpolate_position(lat1: float, lng1: float, lat2: float, lng2: float, progress: float) -> Position:
    """Linear interpolation between two coordinates, each axis independently."""
    return Position(
        lat=lat1 + (lat2 - lat1) * progress,
        lng=lng1 + (lng2 - lng1) * progress,
    )


def format_time(moment: datetime) -> str:
    return moment.strftime("%H:%M")


def is_metro_running(hour: int, minute: int = 0) -> bool:
    """Whether the metro runs at the given local time (05:30 until 01:00)."""
    total_minutes = hour * 60 + minute
    return total_minutes >= SERVICE_START_MINUTES or total_minutes < SERVICE_END_MINUTES


def get_active_train_count(hour: int, minute: int = 0) -> int:
    """Target number of live trains for a time of day."""
    if not is_metro_running(hour, minute):
        return 0

    # Early morning and late evening
    if 5 <= hour < 7 or hour >= 22:
        return 3
    if 7 <= hour < 9 or 21 <= hour < 22:
        return 4
    if 9 <= hour < 17:
        return 5
    # Evening peak
    if 17 <= hour < 21:
        return 6
    return 3


def get_traffic_status(hour: int) -> str:
    """Traffic state label expected at a given hour."""
    if 9 <= hour < 18 or 19 <= hour < 20:
        return "normal"
    if 7 <= hour < 9 or 18 <= hour < 19 or 20 <= hour < 21:
        return "slowed"
    if 1 <= hour < 5:
        return "stopped"
    return "normal"


def generate_train_number(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return str(rng.randrange(10000)).zfill(5)


def generate_id() -> str:
    return uuid.uuid4().hex
