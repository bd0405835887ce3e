"""Unit tests for outgoing message assembly and wire rendering."""

from __future__ import annotations

from schemas.citations import Citation, SensitivityUsageInfo
from schemas.streaming import (
    AIEntity,
    Attachment,
    MessageKind,
    StreamConfiguration,
    StreamInfoEntity,
    StreamType,
)
from services.streaming.assembler import build_chunk, build_final, build_informative
from services.streaming.citations import register_citations


CITATIONS = register_citations(
    [],
    [
        Citation(title="Handbook", url="https://example.com/h", content="Policy"),
        Citation(title="FAQ", url="https://example.com/f", content="Answers"),
    ],
)


def test_informative_message_shape() -> None:
    message = build_informative("Searching...", sequence=1)

    assert message.kind is MessageKind.INFORMATIVE
    assert message.activity_type == "typing"
    assert message.metadata.stream_type is StreamType.INFORMATIVE
    assert message.sequence == 1
    assert message.stream_id is None
    assert message.entities == [
        StreamInfoEntity(stream_type=StreamType.INFORMATIVE, stream_sequence=1)
    ]


def test_informative_lists_citations_used_by_accumulated_reply() -> None:
    message = build_informative(
        "Checking more sources", sequence=2, message="See [1].", citations=CITATIONS
    )

    assert message.text == "Checking more sources"
    ai = [e for e in message.entities if isinstance(e, AIEntity)]
    assert len(ai) == 1
    assert [c.name for c in ai[0].citation or []] == ["Handbook"]
    assert message.metadata.feedback_loop_enabled is None


def test_chunk_attaches_used_citations() -> None:
    message = build_chunk(
        "See [2].", sequence=3, stream_id="abc", citations=CITATIONS
    )

    assert message.kind is MessageKind.STREAMING_CHUNK
    assert message.metadata.stream_type is StreamType.STREAMING
    assert message.stream_id == "abc"
    ai = [e for e in message.entities if isinstance(e, AIEntity)]
    assert len(ai) == 1
    assert [c.name for c in ai[0].citation or []] == ["FAQ"]
    assert ai[0].usage_info is None


def test_chunk_without_used_citations_has_only_stream_info() -> None:
    message = build_chunk("No refs", sequence=1, citations=CITATIONS)
    assert len(message.entities) == 1
    assert isinstance(message.entities[0], StreamInfoEntity)


def test_final_defaults() -> None:
    message = build_final("Done", config=StreamConfiguration(), stream_id="abc")

    assert message.kind is MessageKind.FINAL
    assert message.activity_type == "message"
    assert message.sequence is None
    assert message.metadata.feedback_loop_enabled is False
    assert message.metadata.feedback_loop_type is None
    assert message.attachments is None
    assert [type(e) for e in message.entities] == [StreamInfoEntity]


def test_final_with_feedback_label_and_attachments() -> None:
    config = StreamConfiguration(
        enable_feedback_loop=True,
        enable_generated_by_ai_label=True,
        sensitivity_label=SensitivityUsageInfo(name="Confidential"),
        attachments=[Attachment(content_type="application/vnd.card", content={})],
        citations=CITATIONS,
    )
    message = build_final("Per [1].", config=config, stream_id="abc")

    assert message.metadata.feedback_loop_enabled is True
    assert message.metadata.feedback_loop_type == "default"
    assert message.attachments is not None
    assert len(message.attachments) == 1
    ai = [e for e in message.entities if isinstance(e, AIEntity)]
    assert [c.position for c in ai[0].citation or []] == [1]
    assert ai[0].usage_info == SensitivityUsageInfo(name="Confidential")


def test_final_label_without_citations() -> None:
    config = StreamConfiguration(enable_generated_by_ai_label=True)
    message = build_final("Plain", config=config)
    ai = [e for e in message.entities if isinstance(e, AIEntity)]
    assert ai[0].citation is None


def test_chunk_activity_wire_format() -> None:
    activity = build_chunk(
        "See [1].", sequence=2, stream_id="abc", citations=CITATIONS
    ).to_activity()

    assert activity["type"] == "typing"
    assert activity["text"] == "See [1]."
    assert activity["channelData"] == {
        "streamType": "streaming",
        "streamSequence": 2,
        "streamId": "abc",
    }
    stream_info, ai = activity["entities"]
    assert stream_info == {
        "type": "streaminfo",
        "streamId": "abc",
        "streamType": "streaming",
        "streamSequence": 2,
    }
    assert ai["additionalType"] == ["AIGeneratedContent"]
    assert ai["citation"][0]["position"] == 1
    assert ai["citation"][0]["appearance"]["name"] == "Handbook"
    assert "attachments" not in activity


def test_final_activity_wire_format() -> None:
    config = StreamConfiguration(
        enable_feedback_loop=True,
        feedback_loop_type="custom",
        enable_generated_by_ai_label=True,
        sensitivity_label=SensitivityUsageInfo(name="General", description="Public"),
        attachments=[
            Attachment(
                content_type="application/vnd.microsoft.card.adaptive",
                content={"type": "AdaptiveCard"},
            )
        ],
    )
    activity = build_final("Done", config=config).to_activity()

    assert activity["type"] == "message"
    assert activity["channelData"] == {
        "streamType": "final",
        "feedbackLoopEnabled": True,
        "feedbackLoopType": "custom",
    }
    assert activity["attachments"] == [
        {
            "contentType": "application/vnd.microsoft.card.adaptive",
            "content": {"type": "AdaptiveCard"},
        }
    ]
    usage = activity["entities"][1]["usageInfo"]
    assert usage["@type"] == "CreativeWork"
    assert usage["name"] == "General"
    assert usage["description"] == "Public"
