from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Callable

from speechcenter_client.core.stream.backend import SpeechStream
from speechcenter_client.domain.errors import NoAudioProduced, ReceiveFailed, RemoteError
from speechcenter_client.domain.frames import (
    AudioFragment,
    EndOfUtterance,
    InboundMessage,
    RemoteErrorMessage,
    TranscriptFragment,
)

logger = logging.getLogger(__name__)

MessageObserver = Callable[[InboundMessage], None]


@dataclass(slots=True)
class ResponseCollector:
    """Drains inbound messages of one stream into a single aggregate.

    Stops on end of input, on a transport error (`ReceiveFailed`), on an in-band
    service error (`RemoteError`, accumulated data is dropped) and, for synthesis,
    on an end-of-utterance marker.
    """

    logger: logging.Logger = logger
    on_message: MessageObserver | None = None

    async def collect_transcript(self, stream: SpeechStream) -> str:
        """Join the non-empty final fragments with single spaces.

        Final fragments with empty text are skipped, and the wire decoder strips
        surrounding whitespace from each transcript, so the result never holds
        doubled or edge spaces.
        """
        finals: list[str] = []
        async with contextlib.aclosing(stream.messages()) as messages:
            while True:
                message = await self._receive(messages)
                if message is None:
                    self.logger.debug("Got end of input")
                    break
                if isinstance(message, TranscriptFragment):
                    if message.is_final:
                        self.logger.debug(
                            "Got final recog: %s (duration=%.2fs)", message.text, message.duration_s
                        )
                        if message.text:
                            finals.append(message.text)
                    else:
                        self.logger.debug("Got partial recog: %s", message.text)
                elif isinstance(message, RemoteErrorMessage):
                    raise RemoteError(message.domain, message.reason)
                elif isinstance(message, (AudioFragment, EndOfUtterance)):
                    self.logger.warning("Ignoring %s on recognition stream", type(message).__name__)
                else:
                    raise TypeError(f"Unknown InboundMessage: {type(message)}")
        return " ".join(finals)

    async def collect_audio(self, stream: SpeechStream) -> bytes:
        audio = bytearray()
        fragments = 0
        async with contextlib.aclosing(stream.messages()) as messages:
            while True:
                message = await self._receive(messages)
                if message is None:
                    self.logger.debug("Received EOF")
                    break
                if isinstance(message, AudioFragment):
                    audio += message.samples
                    fragments += 1
                    self.logger.debug("Received audio chunk: %d bytes", len(message.samples))
                elif isinstance(message, EndOfUtterance):
                    self.logger.debug("Received end of utterance")
                    break
                elif isinstance(message, RemoteErrorMessage):
                    raise RemoteError(message.domain, message.reason)
                elif isinstance(message, TranscriptFragment):
                    self.logger.warning("Ignoring transcript fragment on synthesis stream")
                else:
                    raise TypeError(f"Unknown InboundMessage: {type(message)}")

        if fragments == 0:
            raise NoAudioProduced("received no audio data", stage="receive")
        self.logger.info("Received %d bytes of audio in %d fragments", len(audio), fragments)
        return bytes(audio)

    async def _receive(self, messages: AsyncIterator[InboundMessage]) -> InboundMessage | None:
        try:
            message = await messages.__anext__()
        except StopAsyncIteration:
            return None
        except Exception as exc:
            raise ReceiveFailed("error receiving response", stage="receive", cause=exc) from exc
        if self.on_message is not None:
            self.on_message(message)
        return message
