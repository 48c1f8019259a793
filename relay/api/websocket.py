# relay/api/websocket.py

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from relay.core import state
from relay.core.config import settings
from relay.services.connection_manager import ConnectionSession

logger = logging.getLogger(__name__)

router = APIRouter()

# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket(settings.WS_PATH)
async def websocket_endpoint(websocket: WebSocket):
    """
    Relay endpoint.

    Protocol:
    =========

    Join Room (leaves the current room first):
        {"request": "joinroom", "roomid": "lobby"}

    Leave Room:
        {"request": "joinroom"}

    Anything else, text or binary, is relayed verbatim to every other
    member of the sender's current room. Control messages are relayed too.

    The server never replies with errors. A bad frame is logged and the
    connection carries on.

    Lifecycle:
    ==========
    1. Connection accepted, client gets a fresh id, no room
    2. Client sends joinroom requests to move between rooms
    3. Client receives messages sent by others in its room
    4. On disconnect (clean or not), removed from its room
    """
    await websocket.accept()

    try:
        session = ConnectionSession(
            websocket, state.space, state.client_ids, stats=state.stats
        )
    except Exception:
        logger.exception("Connection setup error")
        state.stats.incr("lifecycle_faults")
        await websocket.close(code=1011)
        return

    state.stats.incr("connections_opened")
    logger.info("✓ Client %s connected. Open: %d", session.client.id, state.stats.open_connections)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            data = message.get("text")
            if data is None:
                data = message.get("bytes")
            if data is None:
                continue

            await session.process(data)

    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket error client=%s", session.client.id)
        state.stats.incr("lifecycle_faults")
    finally:
        try:
            session.close()
        except Exception:
            logger.exception("Disconnect cleanup error client=%s", session.client.id)
            state.stats.incr("lifecycle_faults")
        state.stats.incr("connections_closed")
        logger.info("✗ Client %s gone. Open: %d", session.client.id, state.stats.open_connections)
