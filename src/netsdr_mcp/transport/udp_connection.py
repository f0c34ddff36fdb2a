"""UDP data connection: receives streamed data item datagrams."""

from __future__ import annotations

import asyncio
import logging

from .base import MessageHandler

logger = logging.getLogger(__name__)

DEFAULT_DATA_PORT = 60000


class _DatagramProtocol(asyncio.DatagramProtocol):
    def __init__(self, owner: UdpConnection) -> None:
        self._owner = owner

    def datagram_received(self, data: bytes, addr) -> None:
        handler = self._owner.on_message
        if handler is not None:
            handler(data)

    def error_received(self, exc: Exception) -> None:
        logger.warning("Data connection error: %s", exc)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            logger.warning("Data connection lost: %s", exc)
        self._owner._transport = None


class UdpConnection:
    """Listens for data item datagrams on a local port.

    ``remote_host``/``remote_port`` are only needed to send datagrams.
    """

    def __init__(
        self,
        local_port: int = DEFAULT_DATA_PORT,
        local_host: str = "0.0.0.0",
        remote_host: str | None = None,
        remote_port: int | None = None,
    ) -> None:
        self.local_host = local_host
        self.local_port = local_port
        self.remote_host = remote_host
        self.remote_port = remote_port
        self.on_message: MessageHandler | None = None
        self._transport: asyncio.DatagramTransport | None = None

    @property
    def connected(self) -> bool:
        return self._transport is not None

    @property
    def local_address(self) -> tuple[str, int] | None:
        if self._transport is None:
            return None
        return self._transport.get_extra_info("sockname")[:2]

    async def connect(self) -> None:
        """Bind the local port and start listening.

        Raises:
            ConnectionError: If the port cannot be bound.
        """
        if self.connected:
            return
        loop = asyncio.get_running_loop()
        try:
            self._transport, _ = await loop.create_datagram_endpoint(
                lambda: _DatagramProtocol(self),
                local_addr=(self.local_host, self.local_port),
            )
        except OSError as e:
            raise ConnectionError(
                f"Could not listen on {self.local_host}:{self.local_port}: {e}"
            ) from e
        logger.info("Listening for data on %s:%d", *self.local_address)

    async def close(self) -> None:
        transport, self._transport = self._transport, None
        if transport is not None:
            transport.close()
            logger.info("Stopped listening on port %d", self.local_port)

    async def send(self, data: bytes) -> None:
        """Send a datagram to the configured remote endpoint.

        Raises:
            ConnectionError: If not listening or no remote is configured.
        """
        if self._transport is None:
            raise ConnectionError("Data connection is not open")
        if self.remote_host is None or self.remote_port is None:
            raise ConnectionError("No remote endpoint configured for data connection")
        self._transport.sendto(data, (self.remote_host, self.remote_port))
