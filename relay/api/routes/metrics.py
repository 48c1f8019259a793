# relay/api/routes/metrics.py
from datetime import datetime, timezone

from fastapi import APIRouter

from relay.core import state

router = APIRouter()

@router.get("/metrics")
async def get_metrics():
    """
    Relay traffic and fault counters.

    Every fault the relay swallows (bad frame, failed delivery, lifecycle
    error) shows up here, so silent message loss can be spotted.

    Example Response:
        {
            "uptime_hours": 1.5,
            "frames_received": 120,
            "broadcasts": 118,
            "deliveries": 350,
            "delivery_failures": 2,
            "frame_faults": 0,
            "lifecycle_faults": 0,
            "concurrent_connections": 4,
            "rooms": {"lobby": 3, "r1": 1}
        }
    """
    uptime_seconds = (datetime.now(timezone.utc) - state.app_start_time).total_seconds()
    counters = state.stats.snapshot()
    frames = counters["frames_received"]

    return {
        "uptime_hours": round(uptime_seconds / 3600, 2) if uptime_seconds > 0 else 0,
        "frames_per_second": round(frames / uptime_seconds, 2) if uptime_seconds > 0 else 0,
        **counters,
        "concurrent_connections": state.stats.open_connections,
        "evict_empty_rooms": state.space.evict_empty,
        "rooms": state.space.rooms_info(),
    }
