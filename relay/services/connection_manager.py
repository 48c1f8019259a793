# relay/services/connection_manager.py

from __future__ import annotations

import enum
import itertools
import logging
import threading
from typing import Any, Iterable, List, Optional, Union

from relay.models.models import Client, JoinRoomRequest, decode_request
from relay.services.room_manager import Room, Space
from relay.services.stats import RelayStats

logger = logging.getLogger(__name__)

RawData = Union[str, bytes, bytearray, Iterable[Union[str, bytes, bytearray]]]

# ============================================================================
# CLIENT IDS
# ============================================================================

class ClientIdGenerator:
    """Process-wide monotonic client ids: "1", "2", ... never reused."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            return str(next(self._counter))


def decode_frames(data: RawData) -> List[str]:
    """
    Split an inbound unit into text frames.

    A transport may hand over a single frame or a batch of them. Binary
    frames are decoded as UTF-8 with invalid sequences replaced.
    """
    if isinstance(data, (str, bytes, bytearray)):
        data = [data]
    frames = []
    for item in data:
        if isinstance(item, (bytes, bytearray)):
            frames.append(bytes(item).decode("utf-8", errors="replace"))
        else:
            frames.append(str(item))
    return frames


# ============================================================================
# CONNECTION SESSION
# ============================================================================

class SessionState(enum.Enum):
    CONNECTED = "connected"
    IN_ROOM = "in_room"
    CLOSED = "closed"


class ConnectionSession:
    """
    Per-connection controller.

    Owns exactly one Client and a non-owning pointer to the room it is in.
    Every membership change goes through ``join_room`` or ``close``, and the
    client is always removed from its current room before the pointer is
    reassigned or cleared, so a client is never in two rooms at once.

    States:
        CONNECTED  accepted, not in a room
        IN_ROOM    member of ``current_room``
        CLOSED     terminal, after the transport closed

    Frame handling:
        Each frame is decoded as a control message. A join request moves the
        client between rooms. Then, whether or not it was a control message,
        the raw frame is relayed to everyone else in the current room.
    """

    def __init__(
        self,
        socket: Any,
        space: Space,
        client_ids: ClientIdGenerator,
        stats: Optional[RelayStats] = None,
    ) -> None:
        self.client = Client(id=client_ids(), socket=socket)
        self.space = space
        self.current_room: Optional[Room] = None
        self._closed = False
        self._stats = stats

    @property
    def state(self) -> SessionState:
        if self._closed:
            return SessionState.CLOSED
        if self.current_room is not None:
            return SessionState.IN_ROOM
        return SessionState.CONNECTED

    @property
    def room_id(self) -> Optional[str]:
        return self.current_room.id if self.current_room is not None else None

    def join_room(self, request: JoinRoomRequest) -> None:
        """
        Apply a join request.

        The current room is always left first. A request without ``roomid``
        is therefore a plain "leave".
        """
        if self._closed:
            return

        logger.info(
            "Process joinroom request - currentRoom.id: %s, client.id: %s, roomid: %s",
            self.room_id,
            self.client.id,
            request.roomid,
        )

        self._leave_current_room()

        if not request.roomid:
            return

        self.current_room = self.space.join(request.roomid, self.client)

    async def broadcast(self, payload: str) -> int:
        """Relay ``payload`` to every other member of the current room."""
        room = self.current_room
        if room is None:
            return 0
        return await room.broadcast(payload, lambda c: c.id != self.client.id)

    async def process(self, data: RawData) -> None:
        """
        Handle one inbound unit from the transport.

        Frames are processed in order. An exception in one frame is logged
        and counted, and the next frame is processed as usual.
        """
        for frame in decode_frames(data):
            if self._closed:
                logger.debug("Dropping frame for closed client.id: %s", self.client.id)
                return
            if self._stats is not None:
                self._stats.incr("frames_received")
            try:
                await self._process_frame(frame)
            except Exception:
                logger.exception(
                    "Frame processing error - client.id: %s, currentRoom.id: %s",
                    self.client.id,
                    self.room_id,
                )
                if self._stats is not None:
                    self._stats.incr("frame_faults")

    async def _process_frame(self, frame: str) -> None:
        logger.debug(
            "client.id: %s, currentRoom.id: %s, data: %s", self.client.id, self.room_id, frame
        )
        message = decode_request(frame)
        if isinstance(message, JoinRoomRequest):
            self.join_room(message)
        await self.broadcast(frame)

    def close(self) -> None:
        """Disconnect transition. Safe to call more than once."""
        if self._closed:
            return
        self._leave_current_room()
        self._closed = True
        logger.info("Client %s disconnected", self.client.id)

    def _leave_current_room(self) -> None:
        room = self.current_room
        if room is not None:
            self.space.leave(room, self.client)
            self.current_room = None
