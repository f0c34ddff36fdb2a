"""High-level control item builders.

Each builder returns a complete control item frame ready to send on the
control connection.
"""

from __future__ import annotations

from dataclasses import dataclass

from .codes import ControlItemCode, MessageType
from .framing import encode_control_item

# Receiver state parameter bytes
IQ_DATA_MODE = 0x80
RUN = 0x02
STOP = 0x01
FIFO_16BIT_CAPTURE_MODE = 0x01
FIFO_SAMPLE_COUNT = 1


@dataclass(frozen=True)
class FrequencyLayout:
    """Byte layout of frequency parameters: channel, then frequency.

    The frequency is written as little-endian two's complement truncated
    to ``frequency_width`` bytes.
    """

    channel_width: int = 1
    frequency_width: int = 5

    @property
    def size(self) -> int:
        return self.channel_width + self.frequency_width

    def pack(self, frequency: int, channel: int) -> bytes:
        return _truncate(channel, self.channel_width) + _truncate(
            frequency, self.frequency_width
        )

    def unpack(self, data: bytes) -> tuple[int, int]:
        """Return ``(frequency, channel)`` from a parameter block."""
        if len(data) < self.size:
            raise ValueError(
                f"Frequency parameters need {self.size} bytes, got {len(data)}"
            )
        channel = int.from_bytes(data[: self.channel_width], "little")
        frequency = int.from_bytes(data[self.channel_width : self.size], "little")
        return frequency, channel


DEFAULT_FREQUENCY_LAYOUT = FrequencyLayout()


def _truncate(value: int, width: int) -> bytes:
    """Low ``width`` bytes of ``value`` in two's complement, little-endian."""
    return (value & ((1 << (8 * width)) - 1)).to_bytes(width, "little")


def build_command(
    message_type: MessageType,
    code: ControlItemCode,
    parameters: bytes = b"",
) -> bytes:
    """Build a single control item frame."""
    return encode_control_item(message_type, code, parameters)


def build_request(code: ControlItemCode, parameters: bytes = b"") -> bytes:
    """Build a request for the current value of a control item."""
    return build_command(MessageType.REQUEST_CONTROL_ITEM, code, parameters)


def build_set_frequency(
    frequency: int,
    channel: int = 0,
    layout: FrequencyLayout = DEFAULT_FREQUENCY_LAYOUT,
) -> bytes:
    """Build a ReceiverFrequency set command.

    No range check is applied; the receiver validates the value.

    Args:
        frequency: Frequency in Hz.
        channel: Receiver channel ID.
        layout: Parameter byte layout.
    """
    return build_command(
        MessageType.SET_CONTROL_ITEM,
        ControlItemCode.RECEIVER_FREQUENCY,
        layout.pack(frequency, channel),
    )


def build_request_frequency(channel: int = 0) -> bytes:
    """Build a request for the current frequency of a channel."""
    return build_request(ControlItemCode.RECEIVER_FREQUENCY, bytes([channel & 0xFF]))


def build_start_iq(
    capture_mode: int = FIFO_16BIT_CAPTURE_MODE,
    sample_count: int = FIFO_SAMPLE_COUNT,
) -> bytes:
    """Build a ReceiverState command that starts I/Q streaming."""
    return build_command(
        MessageType.SET_CONTROL_ITEM,
        ControlItemCode.RECEIVER_STATE,
        bytes([IQ_DATA_MODE, RUN, capture_mode & 0xFF, sample_count & 0xFF]),
    )


def build_stop_iq() -> bytes:
    """Build a ReceiverState command that stops I/Q streaming."""
    return build_command(
        MessageType.SET_CONTROL_ITEM,
        ControlItemCode.RECEIVER_STATE,
        bytes([0x00, STOP, 0x00, 0x00]),
    )


def build_set_sample_rate(rate: int, channel: int = 0) -> bytes:
    """Build an IQOutputSampleRate set command.

    Args:
        rate: Output sample rate in Hz, 32-bit unsigned.
        channel: Data channel ID.
    """
    if not 0 <= rate <= 0xFFFFFFFF:
        raise ValueError(f"Sample rate must fit 32 bits, got {rate}")
    return build_command(
        MessageType.SET_CONTROL_ITEM,
        ControlItemCode.IQ_OUTPUT_SAMPLE_RATE,
        bytes([channel & 0xFF]) + rate.to_bytes(4, "little"),
    )


def build_set_rf_filter(mode: int, channel: int = 0) -> bytes:
    """Build an RFFilter set command (0 = auto, 11 = bypass)."""
    return build_command(
        MessageType.SET_CONTROL_ITEM,
        ControlItemCode.RF_FILTER,
        bytes([channel & 0xFF, mode & 0xFF]),
    )


def build_set_ad_modes(mode: int, channel: int = 0) -> bytes:
    """Build an ADModes set command (bit 0 = dither, bit 1 = PGA)."""
    return build_command(
        MessageType.SET_CONTROL_ITEM,
        ControlItemCode.AD_MODES,
        bytes([channel & 0xFF, mode & 0xFF]),
    )
