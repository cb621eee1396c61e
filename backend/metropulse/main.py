from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from typing import Callable, Optional
import logging
import random
import time

from .models.config import Settings
from .routers import controls, network, trains
from .services.redis_service import RedisService
from .services.registry import NetworkRegistry, load_registry
from .services.simulation import SimulationLoop
from .services.tracker import FleetTracker

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[NetworkRegistry] = None,
    clock: Callable[[], float] = time.time,
    rng: Optional[random.Random] = None,
    publisher: Optional[RedisService] = None,
) -> FastAPI:
    """Build the API around a single fleet tracker and its simulation loop."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        network_registry = registry or load_registry(settings.registry_source)
        tracker = FleetTracker(
            network_registry,
            rng=rng or random.Random(settings.seed),
            cleanup_chance=settings.cleanup_chance,
            min_trains=settings.min_trains,
            travel_time=settings.travel_time,
            speed_multiplier=settings.speed_multiplier,
            clock=clock,
        )
        snapshot_publisher = publisher
        if snapshot_publisher is None and settings.redis_enabled:
            snapshot_publisher = RedisService(settings.redis_host, settings.redis_port)
        simulation = SimulationLoop(
            tracker,
            clock=clock,
            min_update_interval=settings.min_update_interval,
            tick_interval=settings.tick_interval,
            publisher=snapshot_publisher,
            auto_traffic=settings.auto_traffic,
        )

        app.state.registry = network_registry
        app.state.tracker = tracker
        app.state.simulation = simulation
        app.state.publisher = snapshot_publisher

        simulation.start_simulation(settings.initial_trains)
        if settings.autostart:
            simulation.start()
        try:
            yield
        finally:
            await simulation.stop()
            if snapshot_publisher is not None:
                snapshot_publisher.clear_snapshot()

    app = FastAPI(title="MetroPulse Simulation API", lifespan=lifespan)

    # Disable CORS. Do not remove this for full-stack development.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Allows all origins
        allow_credentials=True,
        allow_methods=["*"],  # Allows all methods
        allow_headers=["*"],  # Allows all headers
    )

    app.include_router(network.router)
    app.include_router(trains.router)
    app.include_router(controls.router)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    @app.get("/")
    async def root():
        return {
            "message": "MetroPulse Simulation API",
            "docs": "/docs",
            "endpoints": [
                "/api/metro-lines",
                "/api/trains",
                "/api/train-positions",
                "/api/statistics",
                "/api/simulation"
            ]
        }

    return app


_settings = Settings.from_env()
configure_logging(_settings.log_level)
app = create_app(_settings)
