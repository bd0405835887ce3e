"""Interfaces consumed by the stream dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from schemas.streaming import OutgoingMessage


@dataclass(frozen=True)
class SendReceipt:
    """What the channel returned for a delivered message.

    The id of the first receipt becomes the stream id.
    """

    id: str


class TransportSender(Protocol):
    """Delivers one message to the conversation.

    Called sequentially by the drain loop, never concurrently. Any exception
    raised is treated as a delivery failure.
    """

    async def send(self, message: OutgoingMessage) -> SendReceipt:
        """Deliver `message` and return the channel's receipt."""
        ...
