from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Station(BaseModel):
    """Model for a metro station."""
    model_config = ConfigDict(frozen=True)

    name: str
    lat: float
    lng: float


class MetroLine(BaseModel):
    """Model for a metro line. Station order is the direction of travel."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    color: str
    stations: List[Station]


class TrainModel(BaseModel):
    """Model for a rolling stock type and the lines it can serve."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    lines: List[str] = Field(default_factory=list)


class TrafficState(BaseModel):
    """A named traffic level. Larger multipliers mean slower trains, None halts them."""
    model_config = ConfigDict(frozen=True)

    label: str
    name: str
    speed_multiplier: Optional[float] = Field(1.0, gt=0)


class Position(BaseModel):
    lat: float
    lng: float


class TrainInfo(BaseModel):
    """Read-only projection of a train for presentation."""
    id: str
    number: str
    model: str
    model_name: str
    line: str
    line_name: str
    current_station: str
    next_station: Optional[str] = None
    progress: int
    position: Optional[Position] = None
    status: str


class LineStatistics(BaseModel):
    line: str
    color: str
    trains: int
    traffic: str
    visible: bool
    length_km: float


class FleetStatistics(BaseModel):
    total_trains: int
    active_trains: int
    visible_lines: int
    speed_multiplier: float
    line_stats: Dict[str, LineStatistics]


class SimulationStatus(BaseModel):
    running: bool
    clock: str
    last_update_time: Optional[float] = None
    speed_multiplier: float
    train_count: int
