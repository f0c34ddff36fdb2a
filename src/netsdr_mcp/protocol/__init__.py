"""Protocol layer: header framing, control item builders, sample extraction, and response parsing."""

from .codes import ControlItemCode, MessageType
from .framing import Message, decode, encode_control_item, encode_data_item
from .samples import extract_samples
