"""Shared fixtures: in-memory transports standing in for TCP/UDP."""

from __future__ import annotations

import pytest

from netsdr_mcp.config import SessionConfig
from netsdr_mcp.models.sample_sink import MemorySampleSink
from netsdr_mcp.session import ClientSession


class FakeTransport:
    """Records sent frames and optionally answers each one."""

    def __init__(self, connected: bool = True, reply: bytes | None = None) -> None:
        self.on_message = None
        self.sent: list[bytes] = []
        self.reply = reply
        self.is_connected = connected
        self.connect_calls = 0
        self.close_calls = 0
        self.send_error: Exception | None = None

    @property
    def connected(self) -> bool:
        return self.is_connected

    async def connect(self) -> None:
        self.connect_calls += 1
        self.is_connected = True

    async def close(self) -> None:
        self.close_calls += 1
        self.is_connected = False

    async def send(self, data: bytes) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)
        if self.reply is not None and self.on_message is not None:
            self.on_message(self.reply)

    def receive(self, data: bytes) -> None:
        """Simulate an incoming message."""
        if self.on_message is not None:
            self.on_message(data)


@pytest.fixture
def control():
    return FakeTransport(connected=True, reply=bytes([0x01, 0x02]))


@pytest.fixture
def data():
    return FakeTransport(connected=False)


@pytest.fixture
def sink():
    return MemorySampleSink()


@pytest.fixture
def session(control, data, sink):
    return ClientSession(control, data, sink, SessionConfig())
