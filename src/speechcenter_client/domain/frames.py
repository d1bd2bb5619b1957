from __future__ import annotations

from dataclasses import dataclass

from .models import SessionConfig

# Outbound: exactly one ConfigFrame, any number of payload frames, one EndOfStreamFrame.


@dataclass(frozen=True, slots=True)
class ConfigFrame:
    config: SessionConfig


@dataclass(frozen=True, slots=True)
class AudioChunkFrame:
    data: bytes


@dataclass(frozen=True, slots=True)
class TextFrame:
    text: str


@dataclass(frozen=True, slots=True)
class EndOfStreamFrame:
    pass


OutboundFrame = ConfigFrame | AudioChunkFrame | TextFrame | EndOfStreamFrame


@dataclass(frozen=True, slots=True)
class TranscriptFragment:
    text: str
    is_final: bool
    duration_s: float = 0.0


@dataclass(frozen=True, slots=True)
class RemoteErrorMessage:
    domain: str
    reason: str


@dataclass(frozen=True, slots=True)
class AudioFragment:
    samples: bytes


@dataclass(frozen=True, slots=True)
class EndOfUtterance:
    pass


InboundMessage = TranscriptFragment | RemoteErrorMessage | AudioFragment | EndOfUtterance
