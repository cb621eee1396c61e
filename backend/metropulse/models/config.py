from pydantic import BaseModel, Field
from typing import List, Optional
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    """Runtime configuration for the simulation service."""
    registry_source: Optional[str] = Field(None, description="Path or URL of a registry JSON file")
    travel_time: float = Field(60.0, gt=0, description="Nominal seconds per segment")
    speed_multiplier: float = Field(1.0, gt=0)
    initial_trains: int = Field(8, ge=0)
    min_trains: int = Field(5, ge=0, description="Floor used when topping up the fleet")
    cleanup_chance: float = Field(0.1, ge=0, le=1, description="Chance per tick of sweeping stopped trains")
    min_update_interval: float = Field(0.1, gt=0, description="Minimum seconds between fleet updates")
    tick_interval: float = Field(0.02, gt=0)
    auto_traffic: bool = False
    autostart: bool = True
    seed: Optional[int] = None
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from METROPULSE_* and REDIS_* environment variables."""
        seed = os.getenv("METROPULSE_SEED")
        return cls(
            registry_source=os.getenv("METROPULSE_REGISTRY") or None,
            travel_time=float(os.getenv("METROPULSE_TRAVEL_TIME", "60")),
            speed_multiplier=float(os.getenv("METROPULSE_SPEED", "1")),
            initial_trains=int(os.getenv("METROPULSE_INITIAL_TRAINS", "8")),
            min_trains=int(os.getenv("METROPULSE_MIN_TRAINS", "5")),
            cleanup_chance=float(os.getenv("METROPULSE_CLEANUP_CHANCE", "0.1")),
            min_update_interval=float(os.getenv("METROPULSE_MIN_UPDATE_INTERVAL", "0.1")),
            tick_interval=float(os.getenv("METROPULSE_TICK_INTERVAL", "0.02")),
            auto_traffic=_env_bool("METROPULSE_AUTO_TRAFFIC", False),
            autostart=_env_bool("METROPULSE_AUTOSTART", True),
            seed=int(seed) if seed else None,
            redis_enabled=_env_bool("REDIS_ENABLED", True),
            redis_host=os.getenv("REDIS_HOST", "localhost"),
            redis_port=int(os.getenv("REDIS_PORT", "6379")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


class SpeedRequest(BaseModel):
    """Request model for the global speed multiplier."""
    multiplier: float = Field(..., gt=0, description="Scales segment travel time")


class VisibleLinesRequest(BaseModel):
    line_ids: List[str] = Field(default_factory=list)


class TrafficRequest(BaseModel):
    status: str = Field(..., min_length=1, description="Traffic state label")


class AddTrainRequest(BaseModel):
    """Request model for adding a train to a line."""
    line_id: str = Field(..., min_length=1)
    train_number: Optional[str] = None
    model: Optional[str] = None
