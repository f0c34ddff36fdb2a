"""Tests for header encoding and message frame building and parsing."""

import pytest

from netsdr_mcp.protocol.codes import ControlItemCode, MessageType
from netsdr_mcp.protocol.framing import (
    MAX_MESSAGE_LENGTH,
    Header,
    Message,
    decode,
    decode_header,
    encode_control_item,
    encode_data_item,
    encode_header,
)


def _header_fields(frame: bytes) -> tuple[MessageType, int]:
    word = int.from_bytes(frame[:2], "little")
    return MessageType(word >> 13), word & 0x1FFF


def test_encode_header_bit_layout():
    """Type sits in bits 15-13, length in bits 12-0, little-endian."""
    header = encode_header(MessageType.DATA_ITEM_0, 1028)
    assert header == bytes([0x04, 0x84])


def test_decode_header_roundtrip():
    """Header fields survive encode and decode."""
    header = decode_header(encode_header(MessageType.ACK, 7504))
    assert header == Header(MessageType.ACK, 7504)


def test_header_zero_length():
    """A zero length field is a valid header."""
    header = decode_header(encode_header(MessageType.DATA_ITEM_1, 0))
    assert header.message_type == MessageType.DATA_ITEM_1
    assert header.length == 0


def test_header_max_length():
    """8191 is the largest representable length."""
    header = Header(MessageType.DATA_ITEM_0, MAX_MESSAGE_LENGTH)
    assert decode_header(header.to_bytes()).length == 8191


def test_header_rejects_length_overflow():
    """Lengths beyond 13 bits must raise, not wrap into the type bits."""
    with pytest.raises(ValueError, match="exceeds allowed value"):
        encode_header(MessageType.DATA_ITEM_0, 8192)


def test_header_too_short():
    """A single byte cannot hold a header."""
    with pytest.raises(ValueError):
        decode_header(b"\x01")


def test_control_item_ack_receiver_state_7500():
    """Ack/ReceiverState with 7500 parameter bytes gives a 7504-byte frame."""
    msg = encode_control_item(
        MessageType.ACK, ControlItemCode.RECEIVER_STATE, bytes(7500)
    )
    actual_type, actual_length = _header_fields(msg)

    assert len(msg) == 7504
    assert actual_length == len(msg)
    assert actual_type == MessageType.ACK
    assert int.from_bytes(msg[2:4], "little") == ControlItemCode.RECEIVER_STATE
    assert len(msg[4:]) == 7500


def test_control_item_frequency_length():
    """header(2) + code(2) + 5 parameter bytes = 9."""
    msg = encode_control_item(
        MessageType.ACK, ControlItemCode.RECEIVER_FREQUENCY, bytes(5)
    )
    assert len(msg) == 9


def test_control_item_too_long():
    """9000 parameter bytes exceed the 13-bit length field."""
    with pytest.raises(ValueError, match="Message length exceeds allowed value"):
        encode_control_item(
            MessageType.ACK, ControlItemCode.RECEIVER_FREQUENCY, bytes(9000)
        )


def test_control_item_length_boundary():
    """8187 parameter bytes is exactly the maximum; one more is rejected."""
    msg = encode_control_item(
        MessageType.SET_CONTROL_ITEM, ControlItemCode.RF_FILTER, bytes(8187)
    )
    assert len(msg) == 8191
    with pytest.raises(ValueError):
        encode_control_item(
            MessageType.SET_CONTROL_ITEM, ControlItemCode.RF_FILTER, bytes(8188)
        )


def test_control_item_rejects_data_type():
    """Data item types cannot carry a control code."""
    with pytest.raises(ValueError):
        encode_control_item(MessageType.DATA_ITEM_0, ControlItemCode.RF_FILTER)


def test_control_item_rejects_unknown_code():
    """Codes outside the known set cannot be encoded."""
    with pytest.raises(ValueError):
        encode_control_item(MessageType.SET_CONTROL_ITEM, 9999)


def test_data_item_7500():
    """DataItem2 with a 7500-byte body gives a 7504-byte frame."""
    msg = encode_data_item(MessageType.DATA_ITEM_2, 0, bytes(7500))
    actual_type, actual_length = _header_fields(msg)

    assert len(msg) == actual_length == 7504
    assert actual_type == MessageType.DATA_ITEM_2
    assert len(msg[4:]) == 7500


def test_data_item_length():
    """header(2) + sequence(2) + 10 body bytes = 14."""
    msg = encode_data_item(MessageType.DATA_ITEM_0, 1, bytes(10))
    assert len(msg) == 14


def test_data_item_too_long():
    with pytest.raises(ValueError, match="exceeds allowed value"):
        encode_data_item(MessageType.DATA_ITEM_0, 1, bytes(8188))


def test_data_item_rejects_control_type():
    with pytest.raises(ValueError):
        encode_data_item(MessageType.ACK, 1, b"\x00")


def test_data_item_sequence_bounds():
    """Sequence numbers are 16-bit."""
    with pytest.raises(ValueError):
        encode_data_item(MessageType.DATA_ITEM_0, 0x10000)
    with pytest.raises(ValueError):
        encode_data_item(MessageType.DATA_ITEM_0, -1)


def test_decode_control_item():
    """A CurrentControlItem/RFFilter frame decodes to its fields."""
    data = bytes([1, 2, 3])
    msg = encode_control_item(
        MessageType.CURRENT_CONTROL_ITEM, ControlItemCode.RF_FILTER, data
    )
    parsed = decode(msg)

    assert parsed is not None
    assert parsed.message_type == MessageType.CURRENT_CONTROL_ITEM
    assert parsed.code == ControlItemCode.RF_FILTER
    assert parsed.sequence is None
    assert parsed.body == data
    assert parsed.declared_length == len(msg)


def test_decode_data_item():
    """A DataItem3 frame decodes sequence and body, with code NONE."""
    seq = (42).to_bytes(2, "little")
    data = bytes([10, 20, 30, 40])
    msg = encode_header(MessageType.DATA_ITEM_3, 2 + len(seq) + len(data)) + seq + data

    parsed = decode(msg)

    assert parsed is not None
    assert parsed.message_type == MessageType.DATA_ITEM_3
    assert parsed.sequence == 42
    assert parsed.code == ControlItemCode.NONE
    assert parsed.body == data


def test_decode_unknown_code():
    """A control frame with code 9999 is a decode failure."""
    header = (((MessageType.CURRENT_CONTROL_ITEM << 13) + 6)).to_bytes(2, "little")
    msg = header + (9999).to_bytes(2, "little") + bytes([1, 2])
    assert decode(msg) is None


def test_decode_too_short():
    """Frames without room for the code or sequence field are rejected."""
    assert decode(b"") is None
    assert decode(bytes([0x02, 0x00])) is None
    assert decode(bytes([0x04, 0x80, 0x01])) is None


def test_decode_ignores_declared_length():
    """The body runs to the end of the buffer regardless of the header."""
    msg = encode_header(MessageType.DATA_ITEM_0, 6) + b"\x01\x00" + bytes(10)
    parsed = decode(msg)
    assert parsed is not None
    assert parsed.declared_length == 6
    assert len(parsed.body) == 10


def test_roundtrip_control_items():
    """Every control type and code round-trips with its parameters."""
    for message_type in (
        MessageType.SET_CONTROL_ITEM,
        MessageType.REQUEST_CONTROL_ITEM,
        MessageType.CONTROL_ITEM_RANGE,
        MessageType.ACK,
    ):
        for code in ControlItemCode:
            params = bytes(range(code % 17))
            parsed = decode(encode_control_item(message_type, code, params))
            assert parsed is not None
            assert parsed.message_type == message_type
            assert parsed.code == code
            assert parsed.body == params


def test_roundtrip_empty_data_item():
    """A data item with no samples still round-trips."""
    parsed = decode(encode_data_item(MessageType.DATA_ITEM_1, 0xFFFF))
    assert parsed is not None
    assert parsed.sequence == 0xFFFF
    assert parsed.body == b""


def test_message_repr():
    """Message repr names the type and code or sequence."""
    r = repr(Message(MessageType.ACK, ControlItemCode.RF_FILTER, None, b"\x01", 5))
    assert "ACK" in r
    assert "RF_FILTER" in r
    r = repr(Message(MessageType.DATA_ITEM_0, ControlItemCode.NONE, 7, b"", 4))
    assert "sequence=7" in r
