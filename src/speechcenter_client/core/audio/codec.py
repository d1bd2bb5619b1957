from __future__ import annotations

import io
import struct
import wave
from dataclasses import dataclass

import numpy as np

from speechcenter_client.core.audio.chunker import PCM_SAMPLE_WIDTH_BYTES
from speechcenter_client.domain.errors import MalformedPCM
from speechcenter_client.domain.models import AudioFormat

WAV_CHANNELS = 1


@dataclass(frozen=True, slots=True)
class WavAudio:
    pcm: bytes
    sample_rate_hz: int
    channels: int
    sample_width_bytes: int


def pcm16le_samples(pcm: bytes) -> np.ndarray:
    if len(pcm) % PCM_SAMPLE_WIDTH_BYTES != 0:
        raise MalformedPCM(
            f"PCM payload has odd length ({len(pcm)} bytes); expected 16-bit samples",
            stage="encode",
        )
    return np.frombuffer(pcm, dtype="<i2")


def encode(pcm: bytes, *, sample_rate_hz: int, audio_format: AudioFormat) -> bytes:
    if audio_format == AudioFormat.RAW:
        return bytes(pcm)
    if audio_format == AudioFormat.WAV:
        return encode_wav(pcm, sample_rate_hz=sample_rate_hz)
    raise ValueError(f"Unsupported audio format: {audio_format}")


def encode_wav(pcm: bytes, *, sample_rate_hz: int) -> bytes:
    """Wrap PCM16LE mono samples in a RIFF/WAVE container (format tag 1)."""
    if sample_rate_hz <= 0:
        raise ValueError("sample_rate_hz must be > 0")
    samples = pcm16le_samples(pcm)

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(WAV_CHANNELS)
        wav_file.setsampwidth(PCM_SAMPLE_WIDTH_BYTES)
        wav_file.setframerate(sample_rate_hz)
        wav_file.writeframes(samples.astype("<i2", copy=False).tobytes())
    return buffer.getvalue()


def is_wav(data: bytes) -> bool:
    return len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WAVE"


def decode_wav(data: bytes) -> WavAudio:
    try:
        with wave.open(io.BytesIO(data), "rb") as wav_file:
            return WavAudio(
                pcm=wav_file.readframes(wav_file.getnframes()),
                sample_rate_hz=wav_file.getframerate(),
                channels=wav_file.getnchannels(),
                sample_width_bytes=wav_file.getsampwidth(),
            )
    except (wave.Error, EOFError, struct.error) as exc:
        raise ValueError(f"not a valid PCM WAV file: {exc}") from exc
