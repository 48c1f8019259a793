# relay/services/room_manager.py

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from relay.models.models import Client
from relay.services.stats import RelayStats

logger = logging.getLogger(__name__)

# ============================================================================
# ROOM
# ============================================================================

class Room:
    """
    A named broadcast group.

    Members are keyed by client id, so re-adding a client overwrites the
    previous entry. The room lock only guards the member mapping; sends are
    always performed on a copy taken under the lock, so a slow peer never
    blocks joins or leaves.

    Attributes:
        id: Room id supplied by the first client that referenced it
    """

    def __init__(self, room_id: str, stats: Optional[RelayStats] = None) -> None:
        self.id = room_id
        self._members: Dict[str, Client] = {}
        self._lock = threading.Lock()
        self._stats = stats

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)

    def __contains__(self, client: Client) -> bool:
        with self._lock:
            return client.id in self._members

    def __repr__(self) -> str:
        return f"Room(id={self.id!r})"

    def add_client(self, client: Client) -> None:
        with self._lock:
            self._members[client.id] = client

    def remove_client(self, client: Client) -> None:
        """Remove a client; removing a client that is not a member is a no-op."""
        with self._lock:
            self._members.pop(client.id, None)

    def members(self) -> List[Client]:
        """Snapshot of the current members."""
        with self._lock:
            return list(self._members.values())

    async def broadcast(self, payload: str, predicate: Callable[[Client], bool]) -> int:
        """
        Send a payload to every member accepted by ``predicate``.

        Args:
            payload: Text frame to deliver verbatim
            predicate: Selects the members that receive this payload

        Returns:
            Number of members the payload was successfully delivered to

        Membership is copied at call time: clients joining or leaving while
        the sends are in flight do not change who receives this payload.
        A failed send is logged and skipped; the remaining members are
        still served and nothing is retried.
        """
        targets = [c for c in self.members() if predicate(c)]
        logger.debug("broadcast room=%s to %s", self.id, ", ".join(c.id for c in targets))

        delivered = 0
        for client in targets:
            try:
                await client.send(payload)
                delivered += 1
            except Exception as e:
                logger.warning("Send error room=%s client=%s: %r", self.id, client.id, e)
                if self._stats is not None:
                    self._stats.incr("delivery_failures")

        if self._stats is not None:
            self._stats.incr("broadcasts")
            self._stats.incr("deliveries", delivered)
        return delivered


# ============================================================================
# SPACE
# ============================================================================

class Space:
    """
    Registry of all rooms, keyed by room id.

    Rooms are created lazily on first reference. The space lock makes
    get-or-create atomic, so concurrent sessions asking for the same id
    always share one Room instance.

    Lock order is space lock, then room lock. ``Room.broadcast`` takes only
    the room lock, so a broadcast in one room never blocks joins elsewhere.

    Empty rooms are kept forever unless ``evict_empty`` is set, in which
    case ``leave`` unregisters a room as soon as its last member is gone.
    Membership changes that may evict therefore go through ``join`` and
    ``leave`` rather than the Room directly.

    Usage:
        space = Space()
        room = space.join("lobby", client)
        await room.broadcast("hi", lambda c: c.id != client.id)
        space.leave(room, client)
    """

    def __init__(self, evict_empty: bool = False, stats: Optional[RelayStats] = None) -> None:
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()
        self.evict_empty = evict_empty
        self._stats = stats

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, room_id: str) -> bool:
        with self._lock:
            return room_id in self._rooms

    def _get_or_create(self, room_id: str) -> Room:
        # caller holds self._lock
        room = self._rooms.get(room_id)
        if room is None:
            room = Room(room_id, stats=self._stats)
            self._rooms[room_id] = room
            logger.info("Created room %s (%d rooms)", room_id, len(self._rooms))
        return room

    def room(self, room_id: str) -> Room:
        """Return the room for ``room_id``, creating it if needed."""
        with self._lock:
            return self._get_or_create(room_id)

    def join(self, room_id: str, client: Client) -> Room:
        """Resolve ``room_id`` and add ``client`` to it in one step."""
        with self._lock:
            room = self._get_or_create(room_id)
            room.add_client(client)
        return room

    def leave(self, room: Room, client: Client) -> None:
        """Remove ``client`` from ``room``, evicting the room if policy says so."""
        with self._lock:
            room.remove_client(client)
            if self.evict_empty and len(room) == 0 and self._rooms.get(room.id) is room:
                del self._rooms[room.id]
                logger.info("Evicted empty room %s (%d rooms)", room.id, len(self._rooms))

    def rooms_info(self) -> Dict[str, int]:
        """Map each room id to its current member count."""
        with self._lock:
            rooms = list(self._rooms.values())
        return {room.id: len(room) for room in rooms}
