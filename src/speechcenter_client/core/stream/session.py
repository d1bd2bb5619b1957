from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Iterable, TypeVar

from speechcenter_client.core.audio import codec
from speechcenter_client.core.audio.chunker import AudioChunker
from speechcenter_client.core.clock import Clock, SystemClock
from speechcenter_client.core.stream.backend import SpeechChannel, SpeechStream
from speechcenter_client.core.stream.collector import MessageObserver, ResponseCollector
from speechcenter_client.core.stream.sender import PacedFrame, PacedSender
from speechcenter_client.domain.errors import InvalidConfig, SendFailed, SessionTimeout, SpeechCenterError
from speechcenter_client.domain.frames import AudioChunkFrame, TextFrame
from speechcenter_client.domain.models import RecognitionConfig, SessionConfig, SynthesisConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class StreamSession:
    """Drives one bidirectional stream per call, recognition or synthesis.

    The collector runs as its own task, started before the first write; the
    sender runs on the caller's task. The collector task is the only channel
    between them: it resolves exactly once with the aggregate or the error.
    """

    channel: SpeechChannel
    clock: Clock = field(default_factory=SystemClock)
    timeout_s: float | None = None
    logger: logging.Logger = logger
    on_message: MessageObserver | None = None

    def __post_init__(self) -> None:
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0 or None")

    async def run_recognition(self, audio: bytes, config: RecognitionConfig) -> str:
        if not isinstance(config, RecognitionConfig):
            raise InvalidConfig("recognition requires a RecognitionConfig", stage="config")
        config.validate()

        if config.grammar is not None:
            self.logger.info(
                "Performing grammar recognition [bytes=%d] [language=%s]", len(audio), config.language
            )
        else:
            self.logger.info(
                "Performing topic recognition [bytes=%d] [topic=%s] [language=%s]",
                len(audio),
                config.resolved_topic.value,  # type: ignore[union-attr]
                config.language,
            )

        chunker = AudioChunker(sample_rate_hz=config.sample_rate_hz)
        payload = (
            PacedFrame(AudioChunkFrame(chunk), chunker.duration_s(chunk))
            for chunk in chunker.chunks(audio)
        )
        collector = ResponseCollector(logger=self.logger, on_message=self.on_message)
        transcript = await self._run(
            "recognition",
            self.channel.open_recognition_stream,
            config,
            payload,
            collector.collect_transcript,
        )
        self.logger.info("Recognition finished: %r", transcript)
        return transcript

    async def run_synthesis(self, text: str, config: SynthesisConfig) -> bytes:
        """Return the synthesized audio encoded as `config.audio_format`."""
        if not text or not text.strip():
            raise InvalidConfig("text cannot be empty", stage="config")
        if not isinstance(config, SynthesisConfig):
            raise InvalidConfig("synthesis requires a SynthesisConfig", stage="config")
        config.validate()

        self.logger.info(
            "Streaming synthesis [voice=%s] [sample_rate=%d] [format=%s]",
            config.voice,
            config.sample_rate_hz,
            config.audio_format.value,
        )
        collector = ResponseCollector(logger=self.logger, on_message=self.on_message)
        pcm = await self._run(
            "synthesis",
            self.channel.open_synthesis_stream,
            config,
            [PacedFrame(TextFrame(text))],
            collector.collect_audio,
        )
        return codec.encode(pcm, sample_rate_hz=config.sample_rate_hz, audio_format=config.audio_format)

    async def _run(
        self,
        direction: str,
        open_stream: Callable[[], Awaitable[SpeechStream]],
        config: SessionConfig,
        payload: Iterable[PacedFrame],
        collect: Callable[[SpeechStream], Awaitable[T]],
    ) -> T:
        exchange = self._exchange(direction, open_stream, config, payload, collect)
        if self.timeout_s is None:
            return await exchange
        try:
            return await asyncio.wait_for(exchange, timeout=self.timeout_s)
        except asyncio.TimeoutError:
            raise SessionTimeout(
                f"{direction} did not finish within {self.timeout_s}s", stage=direction
            ) from None

    async def _exchange(
        self,
        direction: str,
        open_stream: Callable[[], Awaitable[SpeechStream]],
        config: SessionConfig,
        payload: Iterable[PacedFrame],
        collect: Callable[[SpeechStream], Awaitable[T]],
    ) -> T:
        async with self._open(direction, open_stream) as stream:
            collector = asyncio.create_task(collect(stream), name=f"{direction}-collector")
            try:
                sender = PacedSender(clock=self.clock, logger=self.logger)
                try:
                    await sender.send(stream, config, payload, interrupt=collector)
                except SendFailed:
                    earlier = _failure(collector)
                    if earlier is not None:
                        # The receive side failed first; report that.
                        raise earlier from None
                    raise
                self.logger.info("Waiting for %s result", direction)
                return await collector
            finally:
                if not collector.done():
                    collector.cancel()
                    await asyncio.gather(collector, return_exceptions=True)

    @contextlib.asynccontextmanager
    async def _open(
        self, direction: str, open_stream: Callable[[], Awaitable[SpeechStream]]
    ) -> AsyncIterator[SpeechStream]:
        try:
            stream = await open_stream()
        except SpeechCenterError:
            raise
        except Exception as exc:
            raise SendFailed(
                f"error obtaining {direction} stream", stage="open stream", cause=exc
            ) from exc
        self.logger.debug("Opened %s stream", direction)
        try:
            yield stream
        finally:
            try:
                await stream.close()
            except Exception:
                self.logger.warning("Failed to close %s stream", direction, exc_info=True)
            else:
                self.logger.debug("Closed %s stream", direction)


def _failure(task: asyncio.Task[object]) -> BaseException | None:
    if not task.done() or task.cancelled():
        return None
    return task.exception()
