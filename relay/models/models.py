# relay/models/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ValidationError


@dataclass(frozen=True)
class Client:
    """
    One connected participant.

    ``id`` is the only identity: two Client values with the same id compare
    and hash equal. ``socket`` is the outbound handle and must provide an
    awaitable ``send_text(str)`` (a Starlette ``WebSocket`` does).
    """

    id: str
    socket: Any = field(compare=False, repr=False)

    async def send(self, payload: str) -> None:
        await self.socket.send_text(payload)


class JoinRoomRequest(BaseModel):
    """
    Control message: {"request": "joinroom", "roomid": "<optional>"}

    A missing, null or empty ``roomid`` means "leave the current room".
    Unknown keys are ignored.
    """

    request: Literal["joinroom"]
    roomid: Optional[str] = None


class Unrecognized(BaseModel):
    """Any frame that is not a control message. Relayed as opaque data."""

    raw: str


ControlMessage = Union[JoinRoomRequest, Unrecognized]


def decode_request(frame: str) -> ControlMessage:
    """Decode one text frame into a known request variant."""
    try:
        return JoinRoomRequest.model_validate_json(frame)
    except ValidationError:
        return Unrecognized(raw=frame)
