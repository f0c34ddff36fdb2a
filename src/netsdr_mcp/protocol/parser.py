"""Response parsing for control item messages."""

from __future__ import annotations

from dataclasses import dataclass

from .codes import ControlItemCode
from .commands import DEFAULT_FREQUENCY_LAYOUT, RUN, FrequencyLayout
from .framing import Message


@dataclass
class FrequencyResponse:
    """Parsed ReceiverFrequency response."""

    channel: int
    frequency: int


@dataclass
class ReceiverStateResponse:
    """Parsed ReceiverState response."""

    data_mode: int
    running: bool
    capture_mode: int
    sample_count: int


@dataclass
class SampleRateResponse:
    """Parsed IQOutputSampleRate response."""

    channel: int
    rate: int


@dataclass
class RawResponse:
    """Any control item without a dedicated parser."""

    code: ControlItemCode
    data: bytes

    def __repr__(self) -> str:
        return f"RawResponse(code={self.code.name}, data={self.data.hex(' ')})"


def parse_frequency(
    message: Message,
    layout: FrequencyLayout = DEFAULT_FREQUENCY_LAYOUT,
) -> FrequencyResponse | None:
    """Parse a ReceiverFrequency response."""
    if message.code != ControlItemCode.RECEIVER_FREQUENCY:
        return None
    if len(message.body) < layout.size:
        return None
    frequency, channel = layout.unpack(message.body)
    return FrequencyResponse(channel=channel, frequency=frequency)


def parse_receiver_state(message: Message) -> ReceiverStateResponse | None:
    """Parse a ReceiverState response."""
    if message.code != ControlItemCode.RECEIVER_STATE:
        return None
    if len(message.body) < 4:
        return None
    body = message.body
    return ReceiverStateResponse(
        data_mode=body[0],
        running=body[1] == RUN,
        capture_mode=body[2],
        sample_count=body[3],
    )


def parse_sample_rate(message: Message) -> SampleRateResponse | None:
    """Parse an IQOutputSampleRate response."""
    if message.code != ControlItemCode.IQ_OUTPUT_SAMPLE_RATE:
        return None
    if len(message.body) < 5:
        return None
    return SampleRateResponse(
        channel=message.body[0],
        rate=int.from_bytes(message.body[1:5], "little"),
    )


_PARSERS = {
    ControlItemCode.RECEIVER_FREQUENCY: parse_frequency,
    ControlItemCode.RECEIVER_STATE: parse_receiver_state,
    ControlItemCode.IQ_OUTPUT_SAMPLE_RATE: parse_sample_rate,
}


def parse_response(
    message: Message,
) -> FrequencyResponse | ReceiverStateResponse | SampleRateResponse | RawResponse:
    """Parse a control item message into the matching response type.

    Falls back to ``RawResponse`` when no parser exists for the code or
    the payload is too short for it.
    """
    parser = _PARSERS.get(message.code)
    if parser is not None:
        parsed = parser(message)
        if parsed is not None:
            return parsed
    return RawResponse(code=message.code, data=message.body)
