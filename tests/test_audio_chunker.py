from __future__ import annotations

import math

import pytest

from speechcenter_client.core.audio.chunker import CHUNK_SIZE_BYTES, AudioChunker, bytes_per_second


@pytest.mark.parametrize(
    ("length", "chunk_size"),
    [(0, 4), (1, 4), (4, 4), (5, 4), (39999, 20000), (40000, 20000), (40001, 20000)],
)
def test_chunks_cover_input_exactly(length: int, chunk_size: int):
    data = bytes(i % 251 for i in range(length))
    chunker = AudioChunker(sample_rate_hz=8000, chunk_size=chunk_size)

    chunks = list(chunker.chunks(data))

    assert len(chunks) == math.ceil(length / chunk_size)
    assert b"".join(chunks) == data
    assert all(len(c) == chunk_size for c in chunks[:-1])
    if chunks:
        assert 0 < len(chunks[-1]) <= chunk_size


def test_empty_input_yields_nothing():
    chunker = AudioChunker(sample_rate_hz=8000)
    assert list(chunker.chunks(b"")) == []


def test_chunks_are_lazy_and_single_use():
    chunker = AudioChunker(sample_rate_hz=8000, chunk_size=2)
    chunks = chunker.chunks(b"abcdef")

    assert next(chunks) == b"ab"
    assert list(chunks) == [b"cd", b"ef"]
    assert list(chunks) == []


def test_default_chunk_size_is_protocol_constant():
    assert AudioChunker(sample_rate_hz=16000).chunk_size == CHUNK_SIZE_BYTES


def test_duration_uses_16bit_mono_byte_rate():
    chunker = AudioChunker(sample_rate_hz=8000)
    assert bytes_per_second(8000) == 16000
    assert chunker.duration_s(b"\x00" * 16000) == pytest.approx(1.0)
    assert chunker.duration_s(b"\x00" * 20000) == pytest.approx(1.25)
    assert AudioChunker(sample_rate_hz=16000).duration_s(b"\x00" * 3200) == pytest.approx(0.1)


def test_rejects_invalid_parameters():
    with pytest.raises(ValueError):
        AudioChunker(sample_rate_hz=0)
    with pytest.raises(ValueError):
        AudioChunker(sample_rate_hz=8000, chunk_size=0)
