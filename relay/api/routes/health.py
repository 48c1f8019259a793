# relay/api/routes/health.py

from fastapi import APIRouter

from relay.core import state

router = APIRouter()

@router.get("/health")
async def health():
    """
    Health check endpoint.

    Returns current status, open connection count and room counts.

    Returns:
        dict: Status, connection count, room count, active room count
    """
    rooms = state.space.rooms_info()
    return {
        "status": "healthy",
        "connections": state.stats.open_connections,
        "rooms": len(rooms),
        "active_rooms_with_members": sum(1 for count in rooms.values() if count),
    }
