import json
import logging
import math
import os
import random
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from ..models.metro import MetroLine, Station, TrafficState, TrainModel
from .timing import get_distance

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data", "paris.json")
NEUTRAL_TRAFFIC = "normal"


class RegistryError(Exception):
    """Raised when the network registry cannot be loaded."""


class NetworkRegistry:
    """Read-only tables of lines, train models and traffic states."""

    def __init__(
        self,
        lines: Dict[str, MetroLine],
        train_models: Optional[Dict[str, TrainModel]] = None,
        traffic_states: Optional[Dict[str, TrafficState]] = None,
    ):
        self.lines = dict(lines)
        self.train_models = dict(train_models or {})
        self.traffic_states = dict(traffic_states or {})
        if NEUTRAL_TRAFFIC not in self.traffic_states:
            self.traffic_states[NEUTRAL_TRAFFIC] = TrafficState(
                label=NEUTRAL_TRAFFIC, name="Normal", speed_multiplier=1.0
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetworkRegistry":
        """Build a registry from the raw JSON layout."""
        try:
            lines = {
                line_id: MetroLine(id=line_id, **line_data)
                for line_id, line_data in data.get("lines", {}).items()
            }
            models = {
                model_id: TrainModel(id=model_id, **model_data)
                for model_id, model_data in data.get("train_models", {}).items()
            }
            states = {
                label: TrafficState(label=label, **state_data)
                for label, state_data in data.get("traffic_states", {}).items()
            }
        except (ValidationError, TypeError) as e:
            raise RegistryError(f"Invalid registry data: {e}") from e

        return cls(lines, models, states)

    def get_line(self, line_id: str) -> Optional[MetroLine]:
        return self.lines.get(line_id)

    def get_station(self, line_id: str, index: int) -> Optional[Station]:
        line = self.lines.get(line_id)
        if line is None or index < 0 or index >= len(line.stations):
            return None
        return line.stations[index]

    def runnable_line_ids(self) -> List[str]:
        """Lines with enough stations for a train to run."""
        return [line_id for line_id, line in self.lines.items() if len(line.stations) >= 2]

    def model_for_line(self, line_id: str, rng: Optional[random.Random] = None) -> Optional[str]:
        """First model compatible with the line, otherwise any model at random."""
        for model_id, model in self.train_models.items():
            if line_id in model.lines:
                return model_id

        if not self.train_models:
            return None
        rng = rng or random
        return rng.choice(list(self.train_models))

    def is_traffic_state(self, label: str) -> bool:
        return label in self.traffic_states

    def traffic_multiplier(self, label: Optional[str]) -> float:
        state = self.traffic_states.get(label) if label else None
        if state is None:
            return 1.0
        if state.speed_multiplier is None:
            return math.inf
        return state.speed_multiplier

    def line_length_km(self, line_id: str) -> float:
        line = self.lines.get(line_id)
        if line is None:
            return 0.0
        total = 0.0
        for current, following in zip(line.stations, line.stations[1:]):
            total += get_distance(current.lat, current.lng, following.lat, following.lng)
        return round(total / 1000, 2)


def _fetch_registry_data(source: str) -> Dict[str, Any]:
    if source.startswith(("http://", "https://")):
        logger.info("Downloading network registry from %s", source)
        response = requests.get(source, timeout=10)
        response.raise_for_status()
        return response.json()

    logger.info("Reading network registry from %s", source)
    with open(source, "r", encoding="utf-8") as f:
        return json.load(f)


def load_registry(source: Optional[str] = None) -> NetworkRegistry:
    """Load the registry from a path or URL, defaulting to the bundled network."""
    source = source or DEFAULT_REGISTRY_PATH
    try:
        data = _fetch_registry_data(source)
    except (OSError, ValueError, requests.RequestException) as e:
        logger.error(f"Error loading network registry: {str(e)}")
        raise RegistryError(f"Could not load registry from {source}") from e

    registry = NetworkRegistry.from_dict(data)
    logger.info(
        "Loaded %d lines, %d train models, %d traffic states",
        len(registry.lines), len(registry.train_models), len(registry.traffic_states),
    )
    return registry
