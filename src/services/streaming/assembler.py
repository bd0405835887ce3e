"""Build outgoing stream messages.

Pure functions: everything a message needs is passed in, so the dispatcher
can call them at drain time with whatever state is current then.
"""

from __future__ import annotations

from collections.abc import Sequence

from schemas.citations import ClientCitation
from schemas.streaming import (
    AIEntity,
    MessageEntity,
    MessageKind,
    OutgoingMessage,
    StreamConfiguration,
    StreamInfoEntity,
    StreamMetadata,
    StreamType,
)
from services.streaming.citations import used_citations


def _stream_info(metadata: StreamMetadata) -> StreamInfoEntity:
    return StreamInfoEntity(
        stream_id=metadata.stream_id,
        stream_type=metadata.stream_type,
        stream_sequence=metadata.sequence,
    )


def _citation_entities(
    text: str, citations: Sequence[ClientCitation]
) -> list[MessageEntity]:
    used = used_citations(text, citations)
    if not used:
        return []
    return [AIEntity(citation=used)]


def build_informative(
    text: str,
    *,
    sequence: int,
    stream_id: str | None = None,
    message: str = "",
    citations: Sequence[ClientCitation] = (),
) -> OutgoingMessage:
    """Progress notice such as "Searching documents...".

    `message` is the reply accumulated so far; citations it references are
    attached just as on a partial update.
    """
    metadata = StreamMetadata(
        stream_type=StreamType.INFORMATIVE, sequence=sequence, stream_id=stream_id
    )
    entities: list[MessageEntity] = [_stream_info(metadata)]
    entities.extend(_citation_entities(message, citations))
    return OutgoingMessage(
        kind=MessageKind.INFORMATIVE,
        text=text,
        metadata=metadata,
        entities=entities,
    )


def build_chunk(
    text: str,
    *,
    sequence: int,
    stream_id: str | None = None,
    citations: Sequence[ClientCitation] = (),
) -> OutgoingMessage:
    """Partial message carrying the full text accumulated so far."""
    metadata = StreamMetadata(
        stream_type=StreamType.STREAMING, sequence=sequence, stream_id=stream_id
    )
    entities: list[MessageEntity] = [_stream_info(metadata)]
    entities.extend(_citation_entities(text, citations))
    return OutgoingMessage(
        kind=MessageKind.STREAMING_CHUNK,
        text=text,
        metadata=metadata,
        entities=entities,
    )


def build_final(
    text: str,
    *,
    config: StreamConfiguration,
    stream_id: str | None = None,
) -> OutgoingMessage:
    """Closing message of the stream.

    Feedback-loop flags, attachments and the AI label only ever appear here.
    """
    metadata = StreamMetadata(
        stream_type=StreamType.FINAL,
        stream_id=stream_id,
        feedback_loop_enabled=config.enable_feedback_loop,
        feedback_loop_type=(
            config.feedback_loop_type if config.enable_feedback_loop else None
        ),
    )
    entities: list[MessageEntity] = [_stream_info(metadata)]
    if config.enable_generated_by_ai_label:
        used = used_citations(text, config.citations)
        entities.append(
            AIEntity(citation=used or None, usage_info=config.sensitivity_label)
        )
    return OutgoingMessage(
        kind=MessageKind.FINAL,
        text=text,
        metadata=metadata,
        entities=entities,
        attachments=list(config.attachments) or None,
    )
