"""Streamed response dispatcher.

Sends a conversation turn's reply as a series of updates: informative notices,
growing partial text, then one final message. The expected call sequence is::

    dispatcher.queue_informative_update("Searching documents...")
    dispatcher.queue_text_chunk("Hello ")
    dispatcher.queue_text_chunk("world")
    await dispatcher.close()

Enqueue calls are synchronous and only record intent; a single background
drain task turns queued units into sends, one at a time, pausing between sends.
Chunk units are resolved when they are sent, not when they are queued, so any
number of `queue_text_chunk` calls made while a send is in flight collapse into
one update carrying the latest text.

Preconditions: calls must come from one coroutine flow at a time and from
inside a running event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass

from core.config import get_settings
from core.observability import get_tracer
from core.structured_logging import StructuredLogger
from schemas.citations import Citation
from schemas.streaming import OutgoingMessage, StreamConfiguration
from services.streaming.assembler import build_chunk, build_final, build_informative
from services.streaming.citations import format_citation_markers, register_citations
from services.streaming.exceptions import StreamClosedError, TransportError
from services.streaming.interfaces import SendReceipt, TransportSender


logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)
tracer = get_tracer(__name__)


@dataclass(frozen=True)
class InformativeUnit:
    text: str


@dataclass(frozen=True)
class ChunkUnit:
    """Placeholder for the next partial message; text is read at send time."""


@dataclass(frozen=True)
class FinalUnit:
    """Placeholder for the closing message."""


PendingUnit = InformativeUnit | ChunkUnit | FinalUnit


@dataclass
class StreamState:
    closed: bool = False
    next_sequence: int = 1
    message: str = ""
    stream_id: str | None = None


class StreamDispatcher:
    """Queues stream updates for one conversation turn and delivers them in order.

    Args:
        sender: Transport used to deliver each message.
        config: Attachments, feedback-loop and AI-label options. Can also be
            changed later through `config`; values are read when a message is
            built.
        pacing_delay: Seconds to wait after each send. Defaults to
            ``STREAM_PACING_DELAY_SECONDS``.
        abstract_length: Maximum citation abstract length. Defaults to
            ``CITATION_ABSTRACT_MAX_LENGTH``.
    """

    def __init__(
        self,
        sender: TransportSender,
        *,
        config: StreamConfiguration | None = None,
        pacing_delay: float | None = None,
        abstract_length: int | None = None,
    ) -> None:
        settings = get_settings()
        if pacing_delay is None:
            pacing_delay = settings.STREAM_PACING_DELAY_SECONDS
        if pacing_delay < 0:
            raise ValueError("pacing_delay must not be negative")
        if abstract_length is None:
            abstract_length = settings.CITATION_ABSTRACT_MAX_LENGTH
        if abstract_length < 1:
            raise ValueError("abstract_length must be positive")

        self._sender = sender
        self.config = config or StreamConfiguration()
        self.pacing_delay = pacing_delay
        self.abstract_length = abstract_length

        self._state = StreamState()
        self._queue: deque[PendingUnit] = deque()
        self._chunk_queued = False
        self._drain_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # State views
    # ------------------------------------------------------------------

    @property
    def stream_id(self) -> str | None:
        """Id assigned by the channel to the first delivered message."""
        return self._state.stream_id

    @property
    def message(self) -> str:
        """Text accumulated from all queued chunks."""
        return self._state.message

    @property
    def closed(self) -> bool:
        return self._state.closed

    @property
    def updates_sent(self) -> int:
        """Number of informative and partial updates delivered so far."""
        return self._state.next_sequence - 1

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    @property
    def is_draining(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    # ------------------------------------------------------------------
    # Producer API
    # ------------------------------------------------------------------

    def set_citations(self, citations: Iterable[Citation]) -> None:
        """Register citations the text may reference as ``[docN]``."""
        self.config.citations = register_citations(
            self.config.citations,
            citations,
            abstract_length=self.abstract_length,
        )

    def queue_informative_update(self, text: str) -> None:
        """Queue a progress notice such as "Searching documents...".

        Raises:
            StreamClosedError: The stream has already been closed.
        """
        self._ensure_open()
        self._queue_unit(InformativeUnit(text))

    def queue_text_chunk(
        self, text: str, citations: Iterable[Citation] | None = None
    ) -> None:
        """Append `text` to the message and schedule a partial update.

        Raises:
            StreamClosedError: The stream has already been closed.
        """
        self._ensure_open()
        if citations:
            self.set_citations(citations)

        # Markers are rewritten over the whole text because a ``[docN]`` marker
        # may be split across chunks.
        self._state.message = format_citation_markers(self._state.message + text)
        self._queue_next_chunk()

    def close(self) -> asyncio.Task[None]:
        """End the stream and queue the final message.

        Returns the drain task; awaiting it waits until everything queued has
        been delivered and raises `TransportError` if delivery failed.

        Raises:
            StreamClosedError: The stream has already been closed.
        """
        self._ensure_open()
        self._state.closed = True
        # Not subject to the chunk marker: the final unit is always queued.
        return self._queue_unit(FinalUnit())

    async def wait_for_idle(self) -> None:
        """Wait until no drain is running.

        Raises:
            TransportError: The last drain stopped on a failed send.
        """
        task = self._drain_task
        while task is not None:
            # Shielded so a cancelled waiter does not cancel delivery.
            await asyncio.shield(task)
            if task is self._drain_task:
                return
            task = self._drain_task

    async def resume(self) -> None:
        """Restart delivery after a failed send and wait for it to finish.

        Enqueue calls restart a stalled drain on their own; this is the way to
        retry once the stream is closed and enqueueing is no longer allowed.
        """
        self._ensure_draining()
        await self.wait_for_idle()

    # ------------------------------------------------------------------
    # Queue management
    # ------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._state.closed:
            raise StreamClosedError()

    def _queue_next_chunk(self) -> None:
        if self._chunk_queued:
            # The queued chunk will pick up the new text when it is sent.
            self._ensure_draining()
            return
        self._chunk_queued = True
        self._queue_unit(ChunkUnit())

    def _queue_unit(self, unit: PendingUnit) -> asyncio.Task[None]:
        self._queue.append(unit)
        return self._start_drain()

    def _ensure_draining(self) -> None:
        if self._queue:
            self._start_drain()

    def _start_drain(self) -> asyncio.Task[None]:
        task = self._drain_task
        if task is not None and not task.done():
            return task
        if task is not None and not task.cancelled() and task.exception() is not None:
            structured_logger.warning(
                "Restarting stalled stream drain",
                pending_units=len(self._queue),
                stream_id=self._state.stream_id,
            )
        task = asyncio.get_running_loop().create_task(
            self._drain_queue(), name="stream-drain"
        )
        self._drain_task = task
        return task

    # ------------------------------------------------------------------
    # Drain loop
    # ------------------------------------------------------------------

    def _materialize(self, unit: PendingUnit) -> OutgoingMessage:
        state = self._state
        if isinstance(unit, InformativeUnit):
            return build_informative(
                unit.text,
                sequence=state.next_sequence,
                stream_id=state.stream_id,
                message=state.message,
                citations=self.config.citations,
            )
        if isinstance(unit, ChunkUnit):
            # Text queued from here on needs a new chunk unit.
            self._chunk_queued = False
            return build_chunk(
                state.message,
                sequence=state.next_sequence,
                stream_id=state.stream_id,
                citations=self.config.citations,
            )
        return build_final(state.message, config=self.config, stream_id=state.stream_id)

    async def _drain_queue(self) -> None:
        while self._queue:
            unit = self._queue[0]
            message = self._materialize(unit)
            sent = False
            try:
                receipt = await self._send_message(message)
                sent = True
            finally:
                if not sent and isinstance(unit, ChunkUnit):
                    # Still queued; it will coalesce again on retry.
                    self._chunk_queued = True

            self._record_sent(message, receipt)
            self._queue.popleft()

            if self.pacing_delay:
                await asyncio.sleep(self.pacing_delay)

    async def _send_message(self, message: OutgoingMessage) -> SendReceipt:
        with tracer.start_as_current_span("stream.send") as span:
            span.set_attribute("stream.kind", message.kind.value)
            span.set_attribute("stream.message_length", len(message.text))
            if message.sequence is not None:
                span.set_attribute("stream.sequence", message.sequence)
            try:
                return await self._sender.send(message)
            except Exception as exc:
                structured_logger.warning(
                    "Stream send failed; delivery halted",
                    kind=message.kind.value,
                    sequence=message.sequence,
                    stream_id=self._state.stream_id,
                    pending_units=len(self._queue),
                    exception_type=type(exc).__name__,
                )
                if isinstance(exc, TransportError):
                    raise
                raise TransportError(
                    f"Error occurred when sending activity while streaming: {exc}"
                ) from exc

    def _record_sent(self, message: OutgoingMessage, receipt: SendReceipt) -> None:
        state = self._state
        if message.sequence is not None:
            state.next_sequence = message.sequence + 1
        if not state.stream_id and receipt.id:
            state.stream_id = receipt.id
        logger.debug(
            "Sent %s update (sequence=%s, stream_id=%s)",
            message.kind.value,
            message.sequence,
            state.stream_id,
        )
