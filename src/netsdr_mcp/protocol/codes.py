"""Message type and control item code constants.

The message type occupies the top 3 bits of the header word, so host and
target meanings share ordinals: a host sends ``REQUEST_CONTROL_ITEM`` (1)
and the receiver answers unsolicited updates with ``CURRENT_CONTROL_ITEM``
(also 1).
"""

from __future__ import annotations

from enum import IntEnum


class MessageType(IntEnum):
    """3-bit message type carried in the header."""

    SET_CONTROL_ITEM = 0
    CURRENT_CONTROL_ITEM = 1
    CONTROL_ITEM_RANGE = 2
    ACK = 3
    DATA_ITEM_0 = 4
    DATA_ITEM_1 = 5
    DATA_ITEM_2 = 6
    DATA_ITEM_3 = 7

    # Host-to-target aliases
    REQUEST_CONTROL_ITEM = 1
    REQUEST_CONTROL_ITEM_RANGE = 2

    @property
    def is_data_item(self) -> bool:
        return self >= MessageType.DATA_ITEM_0


class ControlItemCode(IntEnum):
    """Known control item codes. Anything else is rejected at decode."""

    NONE = 0x0000
    RECEIVER_STATE = 0x0018
    RECEIVER_FREQUENCY = 0x0020
    RF_FILTER = 0x0044
    AD_MODES = 0x008A
    IQ_OUTPUT_SAMPLE_RATE = 0x00B8
