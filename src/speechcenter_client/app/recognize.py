from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from speechcenter_client.app.wiring import create_speech_channel
from speechcenter_client.config.settings import AppSettings
from speechcenter_client.core.audio.codec import decode_wav, is_wav
from speechcenter_client.core.clock import Clock, SystemClock
from speechcenter_client.core.stream.backend import SpeechChannel
from speechcenter_client.core.stream.session import StreamSession
from speechcenter_client.domain.errors import InvalidConfig
from speechcenter_client.domain.models import RecognitionConfig, Topic

logger = logging.getLogger(__name__)

ChannelFactory = Callable[..., SpeechChannel]


def load_audio(path: Path, *, sample_rate_hz: int) -> bytes:
    """Read raw PCM16LE mono audio. WAV input is unwrapped to its PCM payload."""
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise InvalidConfig(f"error reading audio file: {exc}", stage="load audio") from exc
    if not is_wav(data):
        return data

    try:
        wav = decode_wav(data)
    except ValueError as exc:
        raise InvalidConfig(str(exc), stage="load audio") from exc
    if wav.channels != 1 or wav.sample_width_bytes != 2:
        raise InvalidConfig(
            f"WAV input must be mono 16-bit PCM (got {wav.channels} channels, "
            f"{wav.sample_width_bytes * 8}-bit)",
            stage="load audio",
        )
    if wav.sample_rate_hz != sample_rate_hz:
        raise InvalidConfig(
            f"WAV sample rate {wav.sample_rate_hz} Hz does not match {sample_rate_hz} Hz",
            stage="load audio",
        )
    return wav.pcm


def load_grammar(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidConfig(f"error reading grammar file: {exc}", stage="load grammar") from exc


@dataclass(slots=True)
class RecognizeRunner:
    settings: AppSettings
    token: str
    audio_path: Path
    grammar_path: Path | None = None
    topic: str | None = None
    channel_factory: ChannelFactory = create_speech_channel
    clock: Clock = field(default_factory=SystemClock)

    async def run(self) -> int:
        config = self.build_config()
        audio = load_audio(self.audio_path, sample_rate_hz=config.sample_rate_hz)

        channel = self.channel_factory(self.settings.connection, token=self.token)
        try:
            session = StreamSession(
                channel=channel,
                clock=self.clock,
                timeout_s=self.settings.session.timeout_or_none,
            )
            transcript = await session.run_recognition(audio, config)
        finally:
            await channel.close()

        logger.info("Result: %s", transcript)
        print(transcript, file=sys.stdout, flush=True)
        return 0

    def build_config(self) -> RecognitionConfig:
        recognition = self.settings.recognition
        if self.grammar_path is not None and self.topic:
            raise InvalidConfig("use either a grammar or a topic, not both", stage="config")
        if self.grammar_path is not None:
            return RecognitionConfig.for_grammar(
                load_grammar(self.grammar_path),
                language=recognition.language,
                sample_rate_hz=recognition.sample_rate_hz,
            )
        if self.topic:
            return RecognitionConfig.for_topic(
                Topic.parse(self.topic),
                language=recognition.language,
                sample_rate_hz=recognition.sample_rate_hz,
            )
        raise InvalidConfig(
            "Either a grammar or a topic must be specified for recognition", stage="config"
        )
