from fastapi import APIRouter, Depends, Request
from typing import List

from ..services.registry import NetworkRegistry
from ..models.metro import MetroLine, TrafficState, TrainModel

router = APIRouter(prefix="/api", tags=["network"])


def get_registry(request: Request) -> NetworkRegistry:
    return request.app.state.registry


@router.get("/metro-lines", response_model=List[MetroLine])
async def get_metro_lines(registry: NetworkRegistry = Depends(get_registry)):
    """Get all metro lines with their stations."""
    return list(registry.lines.values())


@router.get("/train-models", response_model=List[TrainModel])
async def get_train_models(registry: NetworkRegistry = Depends(get_registry)):
    return list(registry.train_models.values())


@router.get("/traffic-states", response_model=List[TrafficState])
async def get_traffic_states(registry: NetworkRegistry = Depends(get_registry)):
    """Get the traffic states that can be assigned to a line."""
    return list(registry.traffic_states.values())
