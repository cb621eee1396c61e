from fastapi import APIRouter, Depends, HTTPException, Request

from ..services.simulation import SimulationLoop
from ..services.tracker import FleetTracker
from ..models.config import SpeedRequest, TrafficRequest, VisibleLinesRequest
from ..models.metro import SimulationStatus
from .trains import get_tracker

router = APIRouter(prefix="/api", tags=["controls"])


def get_simulation(request: Request) -> SimulationLoop:
    return request.app.state.simulation


@router.get("/simulation", response_model=SimulationStatus)
async def get_simulation_status(simulation: SimulationLoop = Depends(get_simulation)):
    """Get the state of the simulation loop."""
    tracker = simulation.tracker
    return SimulationStatus(
        running=simulation.running,
        clock=simulation.clock_display(),
        last_update_time=tracker.last_update_time,
        speed_multiplier=tracker.speed_multiplier,
        train_count=len(tracker.trains),
    )


@router.put("/controls/speed")
async def set_speed(speed_request: SpeedRequest, tracker: FleetTracker = Depends(get_tracker)):
    """Set the global speed multiplier."""
    if not tracker.set_speed_multiplier(speed_request.multiplier):
        raise HTTPException(status_code=400, detail="Speed multiplier must be a positive number")
    return {"speed_multiplier": tracker.speed_multiplier}


@router.put("/controls/visible-lines")
async def set_visible_lines(
    lines_request: VisibleLinesRequest,
    tracker: FleetTracker = Depends(get_tracker)
):
    """Replace the set of visible lines."""
    tracker.set_visible_lines(lines_request.line_ids)
    return {"visible_lines": sorted(tracker.visible_lines)}


@router.post("/controls/lines/{line_id}/toggle")
async def toggle_line(line_id: str, tracker: FleetTracker = Depends(get_tracker)):
    visible = tracker.toggle_line(line_id)
    return {"line": line_id, "visible": visible}


@router.put("/controls/lines/{line_id}/traffic")
async def set_traffic(
    line_id: str,
    traffic_request: TrafficRequest,
    tracker: FleetTracker = Depends(get_tracker)
):
    """Assign a traffic state to a line."""
    if tracker.registry.get_line(line_id) is None:
        raise HTTPException(status_code=404, detail="Line not found")

    status = traffic_request.status.strip()
    if not tracker.set_traffic_status(line_id, status):
        raise HTTPException(status_code=400, detail=f"Unknown traffic state: {status}")

    return {"line": line_id, "traffic": tracker.traffic_status[line_id]}
