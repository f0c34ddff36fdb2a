"""Receiver status model."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class ReceiverStatus:
    """Snapshot of a client session."""

    connected: bool = False
    iq_started: bool = False
    bit_depth: int = 16
    frames_received: int = 0
    frames_dropped: int = 0
    samples_received: int = 0
    last_sequence: int | None = None
    sequence_gaps: int = 0

    def to_dict(self) -> dict:
        return asdict(self)
