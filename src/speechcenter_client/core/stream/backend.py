from __future__ import annotations

from typing import AsyncIterator, Protocol

from speechcenter_client.domain.frames import InboundMessage, OutboundFrame


class SpeechStream(Protocol):
    """One bidirectional call. Safe for one concurrent writer and one concurrent reader."""

    async def write(self, frame: OutboundFrame) -> None: ...
    async def done_writing(self) -> None: ...
    def messages(self) -> AsyncIterator[InboundMessage]: ...
    async def close(self) -> None: ...


class SpeechChannel(Protocol):
    async def open_recognition_stream(self) -> SpeechStream: ...
    async def open_synthesis_stream(self) -> SpeechStream: ...
    async def close(self) -> None: ...
