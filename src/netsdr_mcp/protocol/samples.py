"""Sample extraction from data item bodies."""

from __future__ import annotations

from collections.abc import Iterator

MAX_BIT_DEPTH = 32


class Samples:
    """Lazy view over the samples packed in a data item body.

    Iterating decodes consecutive little-endian groups of
    ``ceil(bit_depth / 8)`` bytes. A trailing group shorter than the
    sample width is decoded from the bytes available. The view can be
    iterated any number of times.
    """

    def __init__(self, bit_depth: int, body: bytes, signed: bool = False) -> None:
        self.bit_depth = bit_depth
        self.sample_size = (bit_depth + 7) // 8
        self.signed = signed
        self._body = bytes(body)

    def __iter__(self) -> Iterator[int]:
        size = self.sample_size
        for offset in range(0, len(self._body), size):
            chunk = self._body[offset : offset + size]
            yield int.from_bytes(chunk, "little", signed=self.signed)

    def __len__(self) -> int:
        return -(-len(self._body) // self.sample_size)

    def __repr__(self) -> str:
        return (
            f"Samples(bit_depth={self.bit_depth}, count={len(self)}, "
            f"signed={self.signed})"
        )


def extract_samples(bit_depth: int, body: bytes, signed: bool = False) -> Samples:
    """Split ``body`` into integer samples of ``bit_depth`` bits.

    Args:
        bit_depth: Bits per sample, 1-32 (8, 16, 24 and 32 in practice).
        body: Data item body.
        signed: Decode each group as two's complement.

    Raises:
        ValueError: If ``bit_depth`` is out of range. Raised here, before
            any sample is produced.
    """
    if not 1 <= bit_depth <= MAX_BIT_DEPTH:
        raise ValueError(
            f"Bit depth out of range: {bit_depth} (supported: 1-{MAX_BIT_DEPTH})"
        )
    return Samples(bit_depth, body, signed=signed)
