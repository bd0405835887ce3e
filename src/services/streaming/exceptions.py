"""Domain exceptions for streamed responses.

Each exception carries a stable `error_code` for log and metrics tagging.
`StreamClosedError` signals caller misuse and is raised synchronously;
`TransportError` comes out of the drain loop and always chains the failure
that caused it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class StreamingError(Exception):
    """Base class for streaming domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"


class StreamClosedError(StreamingError):
    def __init__(self, message: str = "The stream has already ended.") -> None:
        super().__init__(message=message, error_code="stream_closed")


class TransportError(StreamingError):
    def __init__(
        self,
        message: str = "Error occurred when sending activity while streaming",
    ) -> None:
        super().__init__(message=message, error_code="transport_failed")
