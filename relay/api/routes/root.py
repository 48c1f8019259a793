# relay/api/routes/root.py

from fastapi import APIRouter

from relay import __version__
from relay.core.config import settings

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint - API information.

    Returns basic info about the relay and where to connect.
    """
    return {
        "message": "Room Relay",
        "version": __version__,
        "protocol": {"joinroom": {"request": "joinroom", "roomid": "<optional>"}},
        "endpoints": {
            "websocket": settings.WS_PATH,
            "health": "/health",
            "metrics": "/metrics",
        },
    }
