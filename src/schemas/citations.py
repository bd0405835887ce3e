"""Citation schemas.

``Citation`` is what retrieval hands to the stream; ``ClientCitation`` is the
numbered form the channel renders next to ``[n]`` markers in the text.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Citation(BaseModel):
    """Raw citation supplied by the caller."""

    title: str
    url: str | None = None
    content: str = ""

    model_config = ConfigDict(extra="forbid")


class ClientCitation(BaseModel):
    """Citation as rendered by the client.

    ``position`` is assigned once at registration and matches the ``[n]``
    marker in the message text.
    """

    position: int = Field(..., ge=1)
    name: str
    abstract: str = ""
    url: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def marker(self) -> str:
        return f"[{self.position}]"

    def to_wire(self) -> dict[str, object]:
        """Serialize to the schema.org Claim shape used by AI entities."""
        appearance: dict[str, object] = {
            "@type": "DigitalDocument",
            "name": self.name,
            "abstract": self.abstract,
        }
        if self.url:
            appearance["url"] = self.url
        return {
            "@type": "Claim",
            "position": self.position,
            "appearance": appearance,
        }


class SensitivityUsageInfo(BaseModel):
    """Sensitivity / usage label shown with AI generated content.

    Passed through untouched; extra fields are preserved for the channel.
    """

    name: str
    description: str | None = None
    position: int | None = None

    model_config = ConfigDict(extra="allow")

    def to_wire(self) -> dict[str, object]:
        return {
            "type": "https://schema.org/Message",
            "@type": "CreativeWork",
            **self.model_dump(exclude_none=True),
        }
