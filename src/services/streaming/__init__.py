"""Streamed response delivery."""

from .connector import ConnectorTransport, ConversationReference
from .dispatcher import StreamDispatcher
from .exceptions import StreamClosedError, StreamingError, TransportError
from .interfaces import SendReceipt, TransportSender


__all__ = [
    "ConnectorTransport",
    "ConversationReference",
    "SendReceipt",
    "StreamClosedError",
    "StreamDispatcher",
    "StreamingError",
    "TransportError",
    "TransportSender",
]
