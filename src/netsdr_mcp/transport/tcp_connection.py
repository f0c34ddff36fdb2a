"""TCP control connection to the receiver.

The control channel is a byte stream, so incoming bytes are split into
frames using the length field of each header before being handed to
``on_message``. One call per frame.
"""

from __future__ import annotations

import asyncio
import logging

from ..protocol.framing import HEADER_SIZE, decode_header
from .base import MessageHandler

logger = logging.getLogger(__name__)

DEFAULT_CONTROL_PORT = 50000
CONNECT_TIMEOUT_S = 5.0


class TcpConnection:
    """Manages the TCP control connection.

    Usage::

        conn = TcpConnection("192.168.1.50")
        conn.on_message = handle_frame
        await conn.connect()
        await conn.send(frame_bytes)
        await conn.close()
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_CONTROL_PORT,
        connect_timeout: float = CONNECT_TIMEOUT_S,
    ) -> None:
        self.host = host
        self.port = port
        self.connect_timeout = connect_timeout
        self.on_message: MessageHandler | None = None
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._read_task: asyncio.Task | None = None

    @property
    def connected(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    async def connect(self) -> None:
        """Open the connection and start reading frames.

        Raises:
            ConnectionError: If the receiver cannot be reached.
        """
        if self.connected:
            return
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self.connect_timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            raise ConnectionError(
                f"Could not connect to {self.host}:{self.port}: {e}"
            ) from e

        self._read_task = asyncio.create_task(self._read_loop())
        logger.info("Connected to %s:%d", self.host, self.port)

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        task, self._read_task = self._read_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        writer, self._writer = self._writer, None
        self._reader = None
        if writer is None:
            return
        try:
            writer.close()
            await writer.wait_closed()
        except OSError as e:
            logger.warning("Error closing connection: %s", e)
        finally:
            logger.info("Disconnected from %s:%d", self.host, self.port)

    async def send(self, data: bytes) -> None:
        """Write a frame to the receiver.

        Raises:
            ConnectionError: If not connected.
        """
        if not self.connected:
            raise ConnectionError("Not connected to receiver")
        self._writer.write(data)
        await self._writer.drain()

    async def read_frame(self) -> bytes:
        """Read exactly one frame from the stream.

        Raises:
            asyncio.IncompleteReadError: If the peer closes mid-frame.
            ValueError: If the header declares a length shorter than itself.
        """
        header_bytes = await self._reader.readexactly(HEADER_SIZE)
        header = decode_header(header_bytes)
        if header.length < HEADER_SIZE:
            raise ValueError(f"Invalid frame length {header.length}")
        rest = await self._reader.readexactly(header.length - HEADER_SIZE)
        return header_bytes + rest

    async def _read_loop(self) -> None:
        try:
            while True:
                frame = await self.read_frame()
                if self.on_message is not None:
                    self.on_message(frame)
        except asyncio.IncompleteReadError:
            logger.info("Connection closed by %s:%d", self.host, self.port)
        except (ConnectionError, OSError, ValueError) as e:
            logger.error("Control connection failed: %s", e)
        await self.close()
