"""HTTP transport posting stream messages to a Bot Connector conversation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from core.config import get_settings
from schemas.streaming import OutgoingMessage
from services.streaming.exceptions import TransportError
from services.streaming.interfaces import SendReceipt


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationReference:
    """Where a turn's reply goes.

    `reply_to_id` is the id of the user activity being answered; when set,
    every message of the stream is threaded under it.
    """

    service_url: str
    conversation_id: str
    reply_to_id: str | None = None

    @property
    def activities_url(self) -> str:
        base = self.service_url.rstrip("/")
        conversation = quote(self.conversation_id, safe="")
        return f"{base}/v3/conversations/{conversation}/activities"


class ConnectorTransport:
    """`TransportSender` that posts activities with httpx.

    Pass `client` to share a connection pool (or to inject a mock transport
    in tests); otherwise a client is created and owned by this instance and
    released by `aclose()` or by using it as an async context manager.
    """

    def __init__(
        self,
        reference: ConversationReference,
        *,
        client: httpx.AsyncClient | None = None,
        auth_token: str | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self.reference = reference
        self._auth_token = auth_token or settings.CONNECTOR_AUTH_TOKEN
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout or settings.CONNECTOR_TIMEOUT_SECONDS
        )

    async def __aenter__(self) -> ConnectorTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        return headers

    def _payload(self, message: OutgoingMessage) -> dict[str, Any]:
        activity = message.to_activity()
        activity["conversation"] = {"id": self.reference.conversation_id}
        if self.reference.reply_to_id:
            activity["replyToId"] = self.reference.reply_to_id
        return activity

    async def send(self, message: OutgoingMessage) -> SendReceipt:
        """Post `message` and return the activity id assigned by the service."""
        try:
            response = await self._client.post(
                self.reference.activities_url,
                json=self._payload(message),
                headers=self._headers(),
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Connector rejected %s activity: HTTP %s",
                message.activity_type,
                exc.response.status_code,
            )
            raise TransportError(
                f"Connector returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "Connector request failed: %s - %s", type(exc).__name__, str(exc)
            )
            raise TransportError(f"Connector request failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError("Connector response was not valid JSON") from exc

        activity_id = payload.get("id") if isinstance(payload, dict) else None
        if not isinstance(activity_id, str) or not activity_id:
            raise TransportError("Connector response did not include an activity id")
        return SendReceipt(id=activity_id)
