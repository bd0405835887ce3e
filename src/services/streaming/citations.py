"""Citation numbering and filtering for streamed text.

Retrieval results are cited in model output as ``[doc1]``, ``[doc2]``...; the
channel renders ``[1]``, ``[2]``... and expects the message entities to list
only the citations the text actually references. All helpers here are pure.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from schemas.citations import Citation, ClientCitation


DEFAULT_ABSTRACT_LENGTH = 480

_DOC_MARKER = re.compile(r"\[doc(\d+)\]")


def snippet(text: str, max_length: int = DEFAULT_ABSTRACT_LENGTH) -> str:
    """Shorten `text` to at most `max_length` characters plus an ellipsis.

    Cuts at the last space inside the limit so words are not split; falls back
    to a hard cut when the first word alone exceeds the limit.
    """
    if len(text) <= max_length:
        return text
    cut = text[:max_length]
    last_space = cut.rfind(" ")
    if last_space > 0:
        cut = cut[:last_space]
    return cut.rstrip() + "..."


def format_citation_markers(text: str) -> str:
    """Rewrite ``[docN]`` markers to the ``[N]`` form the client renders."""
    return _DOC_MARKER.sub(r"[\1]", text)


def register_citations(
    registered: Sequence[ClientCitation],
    citations: Iterable[Citation],
    *,
    abstract_length: int = DEFAULT_ABSTRACT_LENGTH,
) -> list[ClientCitation]:
    """Return `registered` extended with client citations for `citations`.

    New entries are numbered after the existing ones. Existing entries are
    never renumbered, and a citation identical to one already registered is
    skipped, so registering the same list twice is a no-op.
    """
    result = list(registered)
    seen = {(c.name, c.url, c.abstract) for c in result}
    for citation in citations:
        abstract = snippet(citation.content, abstract_length)
        key = (citation.title, citation.url, abstract)
        if key in seen:
            continue
        seen.add(key)
        result.append(
            ClientCitation(
                position=len(result) + 1,
                name=citation.title,
                abstract=abstract,
                url=citation.url,
            )
        )
    return result


def used_citations(
    text: str, registered: Sequence[ClientCitation]
) -> list[ClientCitation]:
    """Registered citations whose ``[n]`` marker appears in `text`.

    Keeps registration order; each citation appears at most once.
    """
    if not text or not registered:
        return []
    return [c for c in registered if c.marker in text]
