from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidConfig

SUPPORTED_SAMPLE_RATES_HZ = (8000, 16000)

_SAMPLE_RATE_ALIASES = {
    "8khz": 8000,
    "8": 8000,
    "8000": 8000,
    "16khz": 16000,
    "16": 16000,
    "16000": 16000,
}


class Topic(str, Enum):
    GENERIC = "generic"
    BANKING = "banking"
    TELCO = "telco"

    @classmethod
    def parse(cls, name: str | Topic) -> Topic:
        if isinstance(name, Topic):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise InvalidConfig(f"unrecognized topic: {name!r}", stage="config") from None


class AudioFormat(str, Enum):
    WAV = "wav"
    RAW = "raw"

    @classmethod
    def parse(cls, name: str | AudioFormat) -> AudioFormat:
        if isinstance(name, AudioFormat):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise InvalidConfig(
                f"invalid format: {name!r} (must be wav or raw)", stage="config"
            ) from None


def parse_sample_rate(value: str | int) -> int:
    """Accept `8khz`, `16kHz`, `8`, `16000` and friends."""
    if isinstance(value, int):
        rate = value
    else:
        rate = _SAMPLE_RATE_ALIASES.get(str(value).strip().lower(), 0)
    if rate not in SUPPORTED_SAMPLE_RATES_HZ:
        raise InvalidConfig(
            f"invalid sampling rate: {value!r} (must be 8khz or 16khz)", stage="config"
        )
    return rate


@dataclass(frozen=True, slots=True)
class RecognitionConfig:
    language: str
    sample_rate_hz: int = 8000
    grammar: str | None = None
    topic: Topic | str | None = None

    @classmethod
    def for_grammar(
        cls, grammar: str, *, language: str = "en-US", sample_rate_hz: int = 8000
    ) -> RecognitionConfig:
        return cls(language=language, sample_rate_hz=sample_rate_hz, grammar=grammar)

    @classmethod
    def for_topic(
        cls, topic: Topic | str, *, language: str = "en-US", sample_rate_hz: int = 8000
    ) -> RecognitionConfig:
        return cls(language=language, sample_rate_hz=sample_rate_hz, topic=Topic.parse(topic))

    @property
    def resolved_topic(self) -> Topic | None:
        if self.topic is None:
            return None
        return Topic.parse(self.topic)

    def validate(self) -> None:
        has_grammar = self.grammar is not None
        has_topic = self.topic is not None
        if has_grammar == has_topic:
            raise InvalidConfig("exactly one of grammar or topic must be set", stage="config")
        if has_grammar and not self.grammar.strip():  # type: ignore[union-attr]
            raise InvalidConfig("grammar must be non-empty", stage="config")
        if has_topic:
            _ = self.resolved_topic
        if not self.language or not self.language.strip():
            raise InvalidConfig("language must be non-empty", stage="config")
        if self.sample_rate_hz not in SUPPORTED_SAMPLE_RATES_HZ:
            raise InvalidConfig("sample_rate_hz must be 8000 or 16000", stage="config")


@dataclass(frozen=True, slots=True)
class SynthesisConfig:
    voice: str
    sample_rate_hz: int = 16000
    audio_format: AudioFormat = AudioFormat.WAV

    def validate(self) -> None:
        if not self.voice or not self.voice.strip():
            raise InvalidConfig("voice cannot be empty", stage="config")
        if not self.sample_rate_hz:
            raise InvalidConfig("sample_rate_hz must be set", stage="config")
        if self.sample_rate_hz not in SUPPORTED_SAMPLE_RATES_HZ:
            raise InvalidConfig("sample_rate_hz must be 8000 or 16000", stage="config")
        if not isinstance(self.audio_format, AudioFormat):
            raise InvalidConfig("invalid audio format", stage="config")


SessionConfig = RecognitionConfig | SynthesisConfig
