from fastapi import APIRouter, Depends, HTTPException, Request, Response
from typing import List

from ..services.tracker import FleetTracker
from ..models.config import AddTrainRequest
from ..models.metro import FleetStatistics, TrainInfo

router = APIRouter(prefix="/api", tags=["trains"])


def get_tracker(request: Request) -> FleetTracker:
    return request.app.state.tracker


@router.get("/trains", response_model=List[TrainInfo])
async def get_trains(tracker: FleetTracker = Depends(get_tracker)):
    """Get the running trains on visible lines."""
    return [train.get_info() for train in tracker.get_visible_trains()]


@router.get("/train-positions", response_model=List[TrainInfo])
async def get_train_positions(request: Request, tracker: FleetTracker = Depends(get_tracker)):
    """Get the last published snapshot, or a fresh one when none is cached."""
    publisher = request.app.state.publisher
    if publisher is not None:
        cached_positions = publisher.get_train_positions()
        if cached_positions:
            return cached_positions

    return [train.get_info() for train in tracker.get_visible_trains()]


@router.post("/trains", response_model=TrainInfo, status_code=201)
async def add_train(train_request: AddTrainRequest, tracker: FleetTracker = Depends(get_tracker)):
    """Add a train on a line."""
    train = tracker.add_train(train_request.line_id, train_request.train_number, train_request.model)
    if train is None:
        raise HTTPException(status_code=400, detail=f"Line {train_request.line_id} cannot run trains")
    return train.get_info()


@router.delete("/trains/stopped")
async def remove_stopped_trains(tracker: FleetTracker = Depends(get_tracker)):
    """Remove every train that reached the end of its line."""
    return {"removed": tracker.remove_stopped_trains()}


@router.get("/trains/{train_id}", response_model=TrainInfo)
async def get_train(train_id: str, tracker: FleetTracker = Depends(get_tracker)):
    train = tracker.get_train(train_id)
    if train is None:
        raise HTTPException(status_code=404, detail="Train not found")
    return train.get_info()


@router.delete("/trains/{train_id}", status_code=204)
async def remove_train(train_id: str, tracker: FleetTracker = Depends(get_tracker)):
    """Remove a train. Unknown ids are ignored."""
    tracker.remove_train(train_id)
    return Response(status_code=204)


@router.get("/statistics", response_model=FleetStatistics)
async def get_statistics(tracker: FleetTracker = Depends(get_tracker)):
    """Get fleet totals and a per-line breakdown."""
    return tracker.get_statistics()
