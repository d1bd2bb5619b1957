from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable

import grpc
from grpc import aio

from speechcenter_client.core.stream.backend import SpeechChannel, SpeechStream
from speechcenter_client.domain.frames import InboundMessage, OutboundFrame
from speechcenter_client.providers.grpc.protocol import (
    RECOGNIZE_METHOD,
    SYNTHESIZE_METHOD,
    RecognitionStreamingRequest,
    RecognitionStreamingResponse,
    StreamingSynthesisRequest,
    StreamingSynthesisResponse,
    decode_recognition_response,
    decode_synthesis_response,
    encode_recognition_frame,
    encode_synthesis_frame,
)

logger = logging.getLogger(__name__)


def channel_credentials(token: str, *, root_certificates: bytes | None = None) -> grpc.ChannelCredentials:
    """TLS transport credentials with the token attached to every call as a bearer token."""
    return grpc.composite_channel_credentials(
        grpc.ssl_channel_credentials(root_certificates=root_certificates),
        grpc.access_token_call_credentials(token),
    )


@dataclass(slots=True)
class GrpcSpeechChannel(SpeechChannel):
    target: str
    token: str
    wait_for_ready: bool = True
    root_certificates: bytes | None = None

    _channel: aio.Channel | None = field(init=False, default=None, repr=False)

    async def open_recognition_stream(self) -> SpeechStream:
        call = self._require_channel().stream_stream(
            RECOGNIZE_METHOD,
            request_serializer=RecognitionStreamingRequest.SerializeToString,
            response_deserializer=RecognitionStreamingResponse.FromString,
        )(wait_for_ready=self.wait_for_ready)
        return _GrpcSpeechStream(
            call=call, encode=encode_recognition_frame, decode=decode_recognition_response
        )

    async def open_synthesis_stream(self) -> SpeechStream:
        call = self._require_channel().stream_stream(
            SYNTHESIZE_METHOD,
            request_serializer=StreamingSynthesisRequest.SerializeToString,
            response_deserializer=StreamingSynthesisResponse.FromString,
        )(wait_for_ready=self.wait_for_ready)
        return _GrpcSpeechStream(
            call=call, encode=encode_synthesis_frame, decode=decode_synthesis_response
        )

    async def close(self) -> None:
        if self._channel is None:
            return
        channel, self._channel = self._channel, None
        await channel.close()
        logger.debug("Closed channel to %s", self.target)

    def _require_channel(self) -> aio.Channel:
        if self._channel is None:
            if not self.target:
                raise ValueError("target must be non-empty")
            if not self.token:
                raise ValueError("token must be non-empty")
            self._channel = aio.secure_channel(
                self.target,
                channel_credentials(self.token, root_certificates=self.root_certificates),
            )
            logger.info("Established channel to [%s]", self.target)
        return self._channel


@dataclass(slots=True)
class _GrpcSpeechStream(SpeechStream):
    call: Any
    encode: Callable[[OutboundFrame], Any]
    decode: Callable[[Any], InboundMessage | None]

    _closed: bool = field(init=False, default=False)

    async def write(self, frame: OutboundFrame) -> None:
        await self.call.write(self.encode(frame))

    async def done_writing(self) -> None:
        await self.call.done_writing()

    async def messages(self) -> AsyncIterator[InboundMessage]:
        while True:
            response = await self.call.read()
            if response is aio.EOF:
                return
            message = self.decode(response)
            if message is not None:
                yield message

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if not self.call.done():
            self.call.cancel()
