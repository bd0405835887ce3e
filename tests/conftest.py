"""Shared test fixtures for pytest.

ENVIRONMENT is forced to "test" before anything reads settings so no .env
file is loaded.
"""

import asyncio
import os
from collections.abc import Generator

import pytest


os.environ["ENVIRONMENT"] = "test"

from core.config import get_settings
from schemas.streaming import OutgoingMessage
from services.streaming.dispatcher import StreamDispatcher
from services.streaming.interfaces import SendReceipt


class RecordingSender:
    """In-memory transport that records delivered messages.

    `fail_on` lists 1-based send attempts that raise. When `gate` is set,
    each send signals `started` and then blocks until the gate opens, which
    lets a test enqueue more work while a send is in flight.
    """

    def __init__(
        self,
        *,
        fail_on: set[int] | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.sent: list[OutgoingMessage] = []
        self.attempts = 0
        self.fail_on = fail_on or set()
        self.gate = gate
        self.started = asyncio.Event()

    async def send(self, message: OutgoingMessage) -> SendReceipt:
        self.attempts += 1
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.attempts in self.fail_on:
            raise ConnectionError("channel unavailable")
        self.sent.append(message)
        return SendReceipt(id=f"activity-{len(self.sent)}")

    @property
    def kinds(self) -> list[str]:
        return [m.kind.value for m in self.sent]

    @property
    def sequences(self) -> list[int | None]:
        return [m.sequence for m in self.sent]

    @property
    def texts(self) -> list[str]:
        return [m.text for m in self.sent]


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def dispatcher(sender: RecordingSender) -> StreamDispatcher:
    """Dispatcher without pacing so tests run instantly."""
    return StreamDispatcher(sender, pacing_delay=0)


@pytest.fixture
def sender_factory() -> type[RecordingSender]:
    """The recording transport class, for tests that need custom failures."""
    return RecordingSender
