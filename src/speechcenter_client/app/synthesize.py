from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from speechcenter_client.app.wiring import create_speech_channel
from speechcenter_client.config.settings import AppSettings
from speechcenter_client.core.clock import Clock, SystemClock
from speechcenter_client.core.stream.backend import SpeechChannel
from speechcenter_client.core.stream.session import StreamSession
from speechcenter_client.domain.models import AudioFormat, SynthesisConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SynthesizeRunner:
    settings: AppSettings
    token: str
    text: str
    output_path: Path
    voice: str | None = None
    sample_rate_hz: int | None = None
    audio_format: AudioFormat | None = None
    channel_factory: Callable[..., SpeechChannel] = create_speech_channel
    clock: Clock = field(default_factory=SystemClock)

    async def run(self) -> int:
        config = self.build_config()

        channel = self.channel_factory(self.settings.connection, token=self.token)
        try:
            session = StreamSession(
                channel=channel,
                clock=self.clock,
                timeout_s=self.settings.session.timeout_or_none,
            )
            audio = await session.run_synthesis(self.text, config)
        finally:
            await channel.close()

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_bytes(audio)
        logger.info("Successfully saved %d bytes of audio to %s", len(audio), self.output_path)
        return 0

    def build_config(self) -> SynthesisConfig:
        synthesis = self.settings.synthesis
        return SynthesisConfig(
            voice=self.voice or synthesis.voice,
            sample_rate_hz=self.sample_rate_hz or synthesis.sample_rate_hz,
            audio_format=self.audio_format or synthesis.audio_format,
        )
