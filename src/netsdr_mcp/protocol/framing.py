"""Message frame builder and parser.

Frame layout (all integers little-endian)::

    +-----------------------------+--------------------+------------------+
    |           Header            |   Code / Sequence  |  Parameters/Body |
    | 2 bytes: type(3) length(13) |      2 bytes       | variable length  |
    +-----------------------------+--------------------+------------------+

- Header: ``(type << 13) | length`` where length is the total frame size
  in bytes, header included. 13 bits limits a frame to 8191 bytes.
- Control item frames (types 0-3) carry a 16-bit control item code.
- Data item frames (types 4-7) carry a 16-bit sequence number.
"""

from __future__ import annotations

from dataclasses import dataclass

from .codes import ControlItemCode, MessageType

HEADER_SIZE = 2
CONTROL_HEADER_SIZE = 4  # header(2) + code(2)
DATA_HEADER_SIZE = 4  # header(2) + sequence(2)
MAX_MESSAGE_LENGTH = 0x1FFF
MAX_SEQUENCE = 0xFFFF

_TYPE_SHIFT = 13
_LENGTH_MASK = 0x1FFF


@dataclass(frozen=True)
class Header:
    """The 16-bit header word.

    Bits 15-13 hold the message type, bits 12-0 the total frame length.
    """

    message_type: MessageType
    length: int

    def __post_init__(self) -> None:
        if self.length < 0:
            raise ValueError(f"Message length must not be negative, got {self.length}")
        if self.length > MAX_MESSAGE_LENGTH:
            raise ValueError(
                f"Message length exceeds allowed value "
                f"({self.length} > {MAX_MESSAGE_LENGTH})"
            )

    def to_bytes(self) -> bytes:
        word = (int(self.message_type) << _TYPE_SHIFT) | self.length
        return word.to_bytes(2, "little")

    @classmethod
    def from_bytes(cls, data: bytes) -> Header:
        if len(data) < HEADER_SIZE:
            raise ValueError(f"Header needs {HEADER_SIZE} bytes, got {len(data)}")
        word = int.from_bytes(data[:HEADER_SIZE], "little")
        return cls(
            message_type=MessageType(word >> _TYPE_SHIFT),
            length=word & _LENGTH_MASK,
        )


@dataclass
class Message:
    """A decoded protocol frame."""

    message_type: MessageType
    code: ControlItemCode
    sequence: int | None
    body: bytes
    declared_length: int

    def __repr__(self) -> str:
        field = (
            f"sequence={self.sequence}"
            if self.message_type.is_data_item
            else f"code={self.code.name}"
        )
        return (
            f"Message(type={self.message_type.name}, {field}, "
            f"body={self.body.hex(' ') if self.body else '(empty)'})"
        )


def encode_header(message_type: MessageType, length: int) -> bytes:
    """Encode a header word for a frame of ``length`` total bytes."""
    return Header(MessageType(message_type), length).to_bytes()


def decode_header(data: bytes) -> Header:
    """Decode the first two bytes of ``data`` into a :class:`Header`."""
    return Header.from_bytes(data)


def encode_control_item(
    message_type: MessageType,
    code: ControlItemCode,
    parameters: bytes = b"",
) -> bytes:
    """Build a control item frame.

    Args:
        message_type: One of the control item types (0-3).
        code: Control item code addressed by the message.
        parameters: Opaque parameter bytes, appended verbatim.

    Returns:
        The encoded frame, ``4 + len(parameters)`` bytes long.

    Raises:
        ValueError: If the frame would exceed 8191 bytes, the type is a
            data item type, or the code is unknown.
    """
    message_type = MessageType(message_type)
    if message_type.is_data_item:
        raise ValueError(f"{message_type.name} is not a control item type")
    code = ControlItemCode(code)
    header = encode_header(message_type, CONTROL_HEADER_SIZE + len(parameters))
    return header + int(code).to_bytes(2, "little") + bytes(parameters)


def encode_data_item(
    message_type: MessageType,
    sequence: int,
    body: bytes = b"",
) -> bytes:
    """Build a data item frame.

    Args:
        message_type: One of the data item types (4-7).
        sequence: 16-bit frame sequence number.
        body: Sample bytes, appended verbatim.

    Raises:
        ValueError: If the frame would exceed 8191 bytes, the type is not a
            data item type, or the sequence does not fit 16 bits.
    """
    message_type = MessageType(message_type)
    if not message_type.is_data_item:
        raise ValueError(f"{message_type.name} is not a data item type")
    if not 0 <= sequence <= MAX_SEQUENCE:
        raise ValueError(f"Sequence number must be 0-{MAX_SEQUENCE}, got {sequence}")
    header = encode_header(message_type, DATA_HEADER_SIZE + len(body))
    return header + sequence.to_bytes(2, "little") + bytes(body)


def decode(frame: bytes) -> Message | None:
    """Decode a single frame.

    The body is everything after the fixed fields; the declared length is
    reported but not used to slice the buffer.

    Returns:
        A ``Message``, or ``None`` if the frame is too short or a control
        item frame carries an unknown code.
    """
    if len(frame) < CONTROL_HEADER_SIZE:
        return None

    header = decode_header(frame)
    field = int.from_bytes(frame[HEADER_SIZE:CONTROL_HEADER_SIZE], "little")
    body = bytes(frame[CONTROL_HEADER_SIZE:])

    if header.message_type.is_data_item:
        return Message(
            message_type=header.message_type,
            code=ControlItemCode.NONE,
            sequence=field,
            body=body,
            declared_length=header.length,
        )

    try:
        code = ControlItemCode(field)
    except ValueError:
        return None

    return Message(
        message_type=header.message_type,
        code=code,
        sequence=None,
        body=body,
        declared_length=header.length,
    )
