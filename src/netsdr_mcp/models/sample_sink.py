"""Sample sinks: where decoded sample batches end up.

The file sink writes raw samples back to back:

.bin — one little-endian integer of ``sample_size`` bytes per sample
       (2 bytes for the default 16-bit capture mode)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 2


class SampleSink(Protocol):
    """Anything that accepts batches of decoded samples."""

    def append(self, samples: Iterable[int]) -> int:
        ...


class FileSampleSink:
    """Append-only binary sample file.

    Writers are serialized with a lock, and each batch is encoded in full
    before the file is opened, so an abandoned batch never leaves a
    partial sample behind.
    """

    def __init__(
        self,
        path: str | Path,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        signed: bool = False,
    ) -> None:
        if not 1 <= sample_size <= 4:
            raise ValueError(f"Sample size must be 1-4 bytes, got {sample_size}")
        self.path = Path(path)
        self.sample_size = sample_size
        self.signed = signed
        self._mask = (1 << (8 * sample_size)) - 1
        self._lock = threading.Lock()

    def encode(self, samples: Iterable[int]) -> bytes:
        """Pack samples into the file representation, truncating to width."""
        size = self.sample_size
        return b"".join((s & self._mask).to_bytes(size, "little") for s in samples)

    def append(self, samples: Iterable[int]) -> int:
        """Append a batch of samples.

        Returns:
            Number of samples written.
        """
        data = self.encode(samples)
        with self._lock:
            with self.path.open("ab") as f:
                f.write(data)
        count = len(data) // self.sample_size
        logger.debug("Appended %d samples to %s", count, self.path)
        return count

    def read(self) -> list[int]:
        """Read every sample written so far."""
        if not self.path.exists():
            return []
        data = self.path.read_bytes()
        size = self.sample_size
        return [
            int.from_bytes(data[i : i + size], "little", signed=self.signed)
            for i in range(0, len(data) - size + 1, size)
        ]


class MemorySampleSink:
    """In-memory sink that keeps each batch as a list."""

    def __init__(self) -> None:
        self.batches: list[list[int]] = []
        self._lock = threading.Lock()

    def append(self, samples: Iterable[int]) -> int:
        batch = list(samples)
        with self._lock:
            self.batches.append(batch)
        return len(batch)

    @property
    def samples(self) -> list[int]:
        return [s for batch in self.batches for s in batch]
