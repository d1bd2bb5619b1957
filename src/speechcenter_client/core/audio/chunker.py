from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

PCM_SAMPLE_WIDTH_BYTES = 2  # 16-bit mono
CHUNK_SIZE_BYTES = 20000


def bytes_per_second(sample_rate_hz: int) -> int:
    if sample_rate_hz <= 0:
        raise ValueError("sample_rate_hz must be > 0")
    return sample_rate_hz * PCM_SAMPLE_WIDTH_BYTES


@dataclass(frozen=True, slots=True)
class AudioChunker:
    """Frames raw PCM16LE mono audio for the recognition stream.

    `chunk_size` is fixed by the wire protocol; sessions always use the default.
    """

    sample_rate_hz: int
    chunk_size: int = CHUNK_SIZE_BYTES

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        bytes_per_second(self.sample_rate_hz)

    def chunks(self, pcm: bytes) -> Iterator[bytes]:
        """Yield consecutive `chunk_size` slices; only the last may be shorter.

        The returned generator is single-use.
        """
        view = memoryview(pcm)
        for offset in range(0, len(view), self.chunk_size):
            yield bytes(view[offset : offset + self.chunk_size])

    def duration_s(self, chunk: bytes) -> float:
        return len(chunk) / bytes_per_second(self.sample_rate_hz)
