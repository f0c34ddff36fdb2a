"""Client session driving one control connection and one data connection.

Control commands are request/response: a command is sent and the caller
waits for the next control message. Only one command is in flight at a
time. Data frames arrive independently on the data connection, are
decoded into samples and queued for a writer task that appends them to
the sample sink on a worker thread, so disk writes never hold up the
event loop or the control path.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass

from .config import SessionConfig
from .models.receiver import ReceiverStatus
from .models.sample_sink import FileSampleSink, SampleSink
from .protocol.codes import ControlItemCode, MessageType
from .protocol.commands import (
    build_request_frequency,
    build_set_frequency,
    build_set_sample_rate,
    build_start_iq,
    build_stop_iq,
)
from .protocol.framing import (
    MAX_SEQUENCE,
    Message,
    decode,
    encode_control_item,
    encode_data_item,
)
from .protocol.parser import FrequencyResponse, parse_frequency
from .protocol.samples import MAX_BIT_DEPTH, extract_samples
from .transport.base import Transport
from .transport.tcp_connection import TcpConnection
from .transport.udp_connection import UdpConnection

logger = logging.getLogger(__name__)

NO_CONNECTION_MESSAGE = "No active connection."


@dataclass
class ControlResponse:
    """A control message received in reply to a command.

    ``message`` is ``None`` when the reply could not be decoded.
    """

    raw: bytes
    message: Message | None

    @property
    def ok(self) -> bool:
        return self.message is not None


class ClientSession:
    """Receiver client session.

    Usage::

        session = ClientSession.create(SessionConfig(host="192.168.1.50"))
        await session.connect()
        await session.change_frequency(14_074_000, channel=0)
        await session.start_iq()
        ...
        await session.close()
    """

    def __init__(
        self,
        control: Transport,
        data: Transport,
        sink: SampleSink,
        config: SessionConfig | None = None,
    ) -> None:
        self.config = config or SessionConfig()
        if not 1 <= self.config.bit_depth <= MAX_BIT_DEPTH:
            raise ValueError(
                f"Bit depth out of range: {self.config.bit_depth} "
                f"(supported: 1-{MAX_BIT_DEPTH})"
            )
        self._control = control
        self._data = data
        self._sink = sink
        self._command_lock = asyncio.Lock()
        self._pending: asyncio.Future | None = None
        self._pending_code: ControlItemCode | None = None
        self._write_queue: asyncio.Queue = asyncio.Queue()
        self._writer_task: asyncio.Task | None = None
        self._tx_sequence = 0
        self._closed = False
        self._status = ReceiverStatus(bit_depth=self.config.bit_depth)
        self._attach()

    @classmethod
    def create(cls, config: SessionConfig | None = None) -> ClientSession:
        """Build a session over TCP/UDP with a file sample sink."""
        config = config or SessionConfig()
        return cls(
            control=TcpConnection(config.host, config.control_port),
            data=UdpConnection(
                config.data_port,
                remote_host=config.host,
                remote_port=config.data_port,
            ),
            sink=FileSampleSink(
                config.sample_path,
                sample_size=config.sample_size,
                signed=config.signed_samples,
            ),
            config=config,
        )

    def _attach(self) -> None:
        self._control.on_message = self._on_control_message
        self._data.on_message = self._on_data_message

    # ─── CONNECTION ───────────────────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self._control.connected

    @property
    def iq_started(self) -> bool:
        return self._status.iq_started

    async def connect(self) -> None:
        """Open the control connection.

        Raises:
            ConnectionError: If the receiver cannot be reached.
        """
        if self._closed:
            self._closed = False
            self._attach()
        await self._control.connect()

    async def close(self) -> None:
        """Stop handling transport events and release both connections."""
        self._closed = True
        self._control.on_message = None
        self._data.on_message = None

        pending = self._pending
        if pending is not None and not pending.done():
            pending.set_exception(ConnectionError("Session closed"))

        self._status.iq_started = False
        await self._control.close()
        await self._data.close()

        # A batch already handed to the sink thread finishes; queued ones are dropped.
        task, self._writer_task = self._writer_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._write_queue = asyncio.Queue()

    def status(self) -> ReceiverStatus:
        """Return a snapshot of the session state."""
        return dataclasses.replace(self._status, connected=self.connected)

    # ─── CONTROL CHANNEL ──────────────────────────────────────────────

    async def send_command(
        self,
        message_type: MessageType,
        code: ControlItemCode,
        parameters: bytes = b"",
    ) -> ControlResponse | None:
        """Encode and send a control item, then wait for the reply.

        Returns:
            The reply, or ``None`` if there is no connection, the send
            failed, or no reply arrived within ``response_timeout``.

        Raises:
            ValueError: If the control item cannot be encoded.
        """
        frame = encode_control_item(message_type, code, parameters)
        return await self.send_frame(frame)

    async def send_frame(self, frame: bytes) -> ControlResponse | None:
        """Send a pre-built control frame and wait for the reply.

        The reply is the next control message carrying the same control
        item code, or the next message that does not decode (a NAK is a
        bare header). Other control messages are logged as unsolicited.
        """
        if not self.connected:
            logger.warning(NO_CONNECTION_MESSAGE)
            return None

        request = decode(frame)
        async with self._command_lock:
            self._pending = asyncio.get_running_loop().create_future()
            self._pending_code = request.code if request is not None else None
            try:
                await self._control.send(frame)
                if self.config.response_timeout is None:
                    return await self._pending
                return await asyncio.wait_for(
                    self._pending, self.config.response_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "No response within %gs", self.config.response_timeout
                )
                return None
            except (ConnectionError, OSError) as e:
                logger.error("Command failed: %s", e)
                return None
            finally:
                self._pending = None
                self._pending_code = None

    def _on_control_message(self, data: bytes) -> None:
        if self._closed:
            return
        logger.info("Response received: %s", data.hex(" "))

        message = decode(data)
        if message is None:
            logger.warning("Could not decode control message: %s", data.hex(" "))

        pending = self._pending
        if pending is not None and not pending.done() and self._is_reply(message):
            pending.set_result(ControlResponse(raw=bytes(data), message=message))
        elif message is not None:
            logger.info("Unsolicited %r", message)

    def _is_reply(self, message: Message | None) -> bool:
        if message is None or self._pending_code is None:
            return True
        return not message.message_type.is_data_item and (
            message.code == self._pending_code
        )

    # ─── COMMANDS ─────────────────────────────────────────────────────

    async def change_frequency(
        self, frequency: int, channel: int = 0
    ) -> ControlResponse | None:
        """Tune a receiver channel. The value is sent without range checks."""
        frame = build_set_frequency(frequency, channel, self.config.frequency_layout)
        return await self.send_frame(frame)

    async def request_frequency(self, channel: int = 0) -> FrequencyResponse | None:
        """Ask the receiver for the current frequency of a channel."""
        response = await self.send_frame(build_request_frequency(channel))
        if response is None or response.message is None:
            return None
        return parse_frequency(response.message, self.config.frequency_layout)

    async def set_sample_rate(
        self, rate: int, channel: int = 0
    ) -> ControlResponse | None:
        """Set the I/Q output sample rate in Hz."""
        return await self.send_frame(build_set_sample_rate(rate, channel))

    async def start_iq(self) -> ControlResponse | None:
        """Start I/Q streaming and begin listening on the data connection."""
        if not self.connected:
            logger.warning(NO_CONNECTION_MESSAGE)
            return None

        response = await self.send_frame(build_start_iq())
        if response is None:
            logger.warning("Receiver did not answer the start command")
            return None
        try:
            await self._data.connect()
        except ConnectionError as e:
            logger.error("Could not open data connection: %s", e)
            return response

        self._status.iq_started = True
        self._status.last_sequence = None
        logger.info("IQ started")
        return response

    async def stop_iq(self) -> ControlResponse | None:
        """Stop I/Q streaming and close the data connection."""
        if not self.connected:
            logger.warning(NO_CONNECTION_MESSAGE)
            return None

        response = await self.send_frame(build_stop_iq())
        await self._data.close()
        self._status.iq_started = False
        logger.info("IQ stopped")
        return response

    # ─── DATA CHANNEL ─────────────────────────────────────────────────

    def _on_data_message(self, data: bytes) -> None:
        if self._closed:
            return

        message = decode(data)
        if message is None or not message.message_type.is_data_item:
            self._status.frames_dropped += 1
            logger.warning("Dropping malformed data frame (%d bytes)", len(data))
            return

        self._track_sequence(message.sequence)
        samples = extract_samples(
            self.config.bit_depth, message.body, signed=self.config.signed_samples
        )
        self._write_queue.put_nowait((message.sequence, samples))
        if self._writer_task is None or self._writer_task.done():
            self._writer_task = asyncio.get_running_loop().create_task(
                self._write_samples()
            )

    async def _write_samples(self) -> None:
        """Drain queued batches into the sink from a worker thread, in order."""
        while True:
            sequence, samples = await self._write_queue.get()
            try:
                await asyncio.to_thread(self._sink.append, samples)
            except OSError as e:
                logger.error("Could not write samples: %s", e)
            else:
                self._status.frames_received += 1
                self._status.samples_received += len(samples)
                logger.debug(
                    "Samples received: %d (sequence %d)", len(samples), sequence
                )
            finally:
                self._write_queue.task_done()

    async def drain(self) -> None:
        """Wait until every received batch has been written to the sink."""
        await self._write_queue.join()

    def _track_sequence(self, sequence: int) -> None:
        last = self._status.last_sequence
        if last is not None:
            expected = (last + 1) & MAX_SEQUENCE
            # the receiver skips 0 when the counter wraps
            if sequence != expected and not (expected == 0 and sequence == 1):
                self._status.sequence_gaps += 1
                logger.debug("Sequence gap: expected %d, got %d", expected, sequence)
        self._status.last_sequence = sequence

    def next_data_frame(
        self,
        body: bytes,
        message_type: MessageType = MessageType.DATA_ITEM_0,
    ) -> bytes:
        """Encode an outgoing data item with the next sequence number."""
        self._tx_sequence = (self._tx_sequence + 1) & MAX_SEQUENCE
        return encode_data_item(message_type, self._tx_sequence, body)

    async def send_data_item(
        self,
        body: bytes,
        message_type: MessageType = MessageType.DATA_ITEM_0,
    ) -> bool:
        """Send a data item on the data connection.

        Returns:
            ``True`` if the datagram was handed to the transport.
        """
        frame = self.next_data_frame(body, message_type)
        try:
            await self._data.send(frame)
        except (ConnectionError, OSError) as e:
            logger.error("Could not send data item: %s", e)
            return False
        return True
