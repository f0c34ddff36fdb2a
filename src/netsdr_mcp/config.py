"""Session configuration and defaults."""

from __future__ import annotations

from dataclasses import dataclass, field

from .protocol.commands import FrequencyLayout
from .transport.tcp_connection import DEFAULT_CONTROL_PORT
from .transport.udp_connection import DEFAULT_DATA_PORT

DEFAULT_HOST = "127.0.0.1"
DEFAULT_BIT_DEPTH = 16
DEFAULT_SAMPLE_PATH = "samples.bin"


@dataclass
class SessionConfig:
    """Settings for a client session.

    ``response_timeout`` of ``None`` waits for a control response
    indefinitely.
    """

    host: str = DEFAULT_HOST
    control_port: int = DEFAULT_CONTROL_PORT
    data_port: int = DEFAULT_DATA_PORT
    bit_depth: int = DEFAULT_BIT_DEPTH
    signed_samples: bool = False
    sample_path: str = DEFAULT_SAMPLE_PATH
    response_timeout: float | None = None
    frequency_layout: FrequencyLayout = field(default_factory=FrequencyLayout)

    @property
    def sample_size(self) -> int:
        return (self.bit_depth + 7) // 8
