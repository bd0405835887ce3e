"""Schemas for streamed responses delivered to a conversation channel."""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from schemas.citations import ClientCitation, SensitivityUsageInfo


FeedbackLoopType = Literal["default", "custom"]


class StreamType(StrEnum):
    """Value of ``streamType`` in channel data."""

    INFORMATIVE = "informative"
    STREAMING = "streaming"
    FINAL = "final"


class MessageKind(StrEnum):
    INFORMATIVE = "informative"
    STREAMING_CHUNK = "streaming_chunk"
    FINAL = "final"


class Attachment(BaseModel):
    """Opaque attachment passed through on the final message."""

    content_type: str
    content: Any = None
    content_url: str | None = None
    name: str | None = None

    model_config = ConfigDict(extra="allow")

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"contentType": self.content_type}
        if self.content is not None:
            wire["content"] = self.content
        if self.content_url is not None:
            wire["contentUrl"] = self.content_url
        if self.name is not None:
            wire["name"] = self.name
        if self.model_extra:
            wire.update(self.model_extra)
        return wire


class StreamMetadata(BaseModel):
    """Channel data carried by every streamed message."""

    stream_type: StreamType
    sequence: int | None = Field(default=None, ge=1)
    stream_id: str | None = None
    feedback_loop_enabled: bool | None = None
    feedback_loop_type: FeedbackLoopType | None = None

    model_config = ConfigDict(extra="forbid")

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"streamType": self.stream_type.value}
        if self.sequence is not None:
            wire["streamSequence"] = self.sequence
        if self.stream_id is not None:
            wire["streamId"] = self.stream_id
        if self.feedback_loop_enabled is not None:
            wire["feedbackLoopEnabled"] = self.feedback_loop_enabled
        if self.feedback_loop_type is not None:
            wire["feedbackLoopType"] = self.feedback_loop_type
        return wire


class StreamInfoEntity(BaseModel):
    """Mirror of the stream metadata for consumers that only read entities."""

    type: Literal["streaminfo"] = "streaminfo"
    stream_id: str | None = None
    stream_type: StreamType
    stream_sequence: int | None = None

    model_config = ConfigDict(extra="forbid")

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "streamId": self.stream_id,
            "streamType": self.stream_type.value,
            "streamSequence": self.stream_sequence,
        }


class AIEntity(BaseModel):
    """Marks content as AI generated and carries its citations and label."""

    type: Literal["https://schema.org/Message"] = "https://schema.org/Message"
    citation: list[ClientCitation] | None = None
    usage_info: SensitivityUsageInfo | None = None

    model_config = ConfigDict(extra="forbid")

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {
            "type": self.type,
            "@type": "Message",
            "@context": "https://schema.org",
            "@id": "",
            "additionalType": ["AIGeneratedContent"],
        }
        if self.citation:
            wire["citation"] = [c.to_wire() for c in self.citation]
        if self.usage_info is not None:
            wire["usageInfo"] = self.usage_info.to_wire()
        return wire


MessageEntity = Annotated[
    StreamInfoEntity | AIEntity,
    Field(discriminator="type"),
]


class OutgoingMessage(BaseModel):
    """One message of a stream, ready for the transport."""

    kind: MessageKind
    text: str
    metadata: StreamMetadata
    entities: list[MessageEntity] = Field(default_factory=list)
    attachments: list[Attachment] | None = None

    model_config = ConfigDict(extra="forbid")

    @property
    def activity_type(self) -> str:
        """Typing indicators carry partial content; only the final is a message."""
        return "message" if self.kind is MessageKind.FINAL else "typing"

    @property
    def sequence(self) -> int | None:
        return self.metadata.sequence

    @property
    def stream_id(self) -> str | None:
        return self.metadata.stream_id

    @property
    def used_citations(self) -> list[ClientCitation]:
        for entity in self.entities:
            if isinstance(entity, AIEntity) and entity.citation:
                return list(entity.citation)
        return []

    def to_activity(self) -> dict[str, Any]:
        """Render the Bot Framework activity JSON for this message."""
        activity: dict[str, Any] = {
            "type": self.activity_type,
            "text": self.text,
            "channelData": self.metadata.to_wire(),
            "entities": [entity.to_wire() for entity in self.entities],
        }
        if self.attachments:
            activity["attachments"] = [a.to_wire() for a in self.attachments]
        return activity


class StreamConfiguration(BaseModel):
    """Caller-settable options applied when messages are built.

    Assignment is validated so a bad ``feedback_loop_type`` fails at the call
    site instead of inside the drain loop.
    """

    attachments: list[Attachment] = Field(default_factory=list)
    enable_feedback_loop: bool = False
    feedback_loop_type: FeedbackLoopType = "default"
    enable_generated_by_ai_label: bool = False
    sensitivity_label: SensitivityUsageInfo | None = None
    citations: list[ClientCitation] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
