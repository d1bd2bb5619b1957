from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from speechcenter_client.core.clock import Clock, SystemClock
from speechcenter_client.core.stream.backend import SpeechStream
from speechcenter_client.domain.errors import SendFailed
from speechcenter_client.domain.frames import (
    AudioChunkFrame,
    ConfigFrame,
    EndOfStreamFrame,
    OutboundFrame,
    TextFrame,
)
from speechcenter_client.domain.models import SessionConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PacedFrame:
    frame: OutboundFrame
    duration_s: float = 0.0


@dataclass(slots=True)
class PacedSender:
    """Writes config, payload and end marker, holding audio back to real-time speed.

    Recognition audio is paced so the service's voice activity detection sees the
    stream the way it would see a live microphone. Text is never paced.
    """

    clock: Clock = field(default_factory=SystemClock)
    logger: logging.Logger = logger

    async def send(
        self,
        stream: SpeechStream,
        config: SessionConfig,
        payload: Iterable[PacedFrame],
        *,
        interrupt: asyncio.Future[Any] | None = None,
    ) -> bool:
        """Return True once the stream is half-closed, False if `interrupt` stopped it early."""
        await self._write(stream, ConfigFrame(config), stage="send config")
        self.logger.debug("Sent config")

        sent = 0
        for item in payload:
            if item.duration_s > 0:
                deadline = self.clock.now() + item.duration_s
                await self._pause_until(deadline, interrupt)
            if _is_done(interrupt):
                self.logger.info("Receiver finished early; stopping after %d payload frames", sent)
                return False
            await self._write(stream, item.frame, stage=_payload_stage(item.frame))
            sent += 1
            if sent == 1 or sent % 50 == 0:
                self.logger.debug("Sent %d payload frames", sent)

        if _is_done(interrupt):
            self.logger.info("Receiver finished early; not sending end of stream")
            return False

        await self._write(stream, EndOfStreamFrame(), stage="send end of stream")
        try:
            await stream.done_writing()
        except Exception as exc:
            raise SendFailed("error closing send", stage="half-close", cause=exc) from exc
        self.logger.debug("Half-closed stream after %d payload frames", sent)
        return True

    async def _write(self, stream: SpeechStream, frame: OutboundFrame, *, stage: str) -> None:
        try:
            await stream.write(frame)
        except Exception as exc:
            raise SendFailed(f"error during {stage}", stage=stage, cause=exc) from exc

    async def _pause_until(self, deadline: float, interrupt: asyncio.Future[Any] | None) -> None:
        remaining = deadline - self.clock.now()
        if remaining <= 0:
            return
        if interrupt is None:
            await self.clock.sleep(remaining)
            return

        sleeper = asyncio.ensure_future(self.clock.sleep(remaining))
        try:
            await asyncio.wait({sleeper, interrupt}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not sleeper.done():
                sleeper.cancel()
                await asyncio.gather(sleeper, return_exceptions=True)


def _is_done(interrupt: asyncio.Future[Any] | None) -> bool:
    return interrupt is not None and interrupt.done()


def _payload_stage(frame: OutboundFrame) -> str:
    if isinstance(frame, AudioChunkFrame):
        return "send audio"
    if isinstance(frame, TextFrame):
        return "send text"
    return "send payload"
