import random
from datetime import datetime

import pytest

from metropulse.services.registry import NetworkRegistry
from metropulse.services.tracker import FleetTracker

REGISTRY_DATA = {
    "lines": {
        "A": {
            "name": "Line A",
            "color": "#FF0000",
            "stations": [
                {"name": "Alpha", "lat": 48.80, "lng": 2.30},
                {"name": "Bravo", "lat": 48.90, "lng": 2.40},
            ],
        },
        "B": {
            "name": "Line B",
            "color": "#00FF00",
            "stations": [
                {"name": "Charlie", "lat": 48.00, "lng": 2.00},
                {"name": "Delta", "lat": 48.10, "lng": 2.10},
                {"name": "Echo", "lat": 48.20, "lng": 2.20},
                {"name": "Foxtrot", "lat": 48.30, "lng": 2.30},
            ],
        },
        "C": {
            "name": "Line C",
            "color": "#0000FF",
            "stations": [
                {"name": "Golf", "lat": 48.50, "lng": 2.50},
                {"name": "Hotel", "lat": 48.55, "lng": 2.55},
                {"name": "India", "lat": 48.60, "lng": 2.60},
                {"name": "Juliett", "lat": 48.65, "lng": 2.65},
                {"name": "Kilo", "lat": 48.70, "lng": 2.70},
            ],
        },
        "X": {
            "name": "Stub",
            "color": "#999999",
            "stations": [{"name": "Lonely", "lat": 48.0, "lng": 2.0}],
        },
    },
    "train_models": {
        "M1": {"name": "Model One", "lines": ["A", "B"]},
        "M2": {"name": "Model Two", "lines": ["B"]},
        "M3": {"name": "Model Three", "lines": ["Z"]},
    },
    "traffic_states": {
        "normal": {"name": "Normal", "speed_multiplier": 1.0},
        "slowed": {"name": "Slowed", "speed_multiplier": 2.0},
        "stopped": {"name": "Stopped", "speed_multiplier": None},
    },
}


def local_timestamp(hour: int, minute: int = 0) -> float:
    return datetime(2024, 3, 5, hour, minute).timestamp()


@pytest.fixture
def registry():
    return NetworkRegistry.from_dict(REGISTRY_DATA)


@pytest.fixture
def night():
    """A time when the service is closed, so updates never top up the fleet."""
    return local_timestamp(3)


@pytest.fixture
def tracker(registry):
    return FleetTracker(registry, rng=random.Random(42), cleanup_chance=0.0)


class FakeRedis:
    """In-memory stand-in for the parts of the redis client the service uses."""

    def __init__(self):
        self.store = {}
        self.expiries = {}

    def set(self, key, value, ex=None):
        self.store[key] = value
        self.expiries[key] = ex
        return True

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0
