from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest
from grpc import aio

from speechcenter_client.domain.frames import (
    AudioChunkFrame,
    AudioFragment,
    ConfigFrame,
    EndOfStreamFrame,
    EndOfUtterance,
    RemoteErrorMessage,
    TextFrame,
    TranscriptFragment,
)
from speechcenter_client.domain.models import RecognitionConfig, SynthesisConfig
from speechcenter_client.providers.grpc import protocol
from speechcenter_client.providers.grpc.channel import GrpcSpeechChannel, _GrpcSpeechStream


def test_topic_config_is_encoded_with_language_and_rate():
    config = RecognitionConfig.for_topic("banking", language="es-ES", sample_rate_hz=16000)

    request = protocol.encode_recognition_frame(ConfigFrame(config))

    assert request.WhichOneof("recognition_request") == "config"
    assert request.config.parameters.language == "es-ES"
    assert request.config.parameters.pcm.sample_rate_hz == 16000
    assert request.config.resource.WhichOneof("resource") == "topic"
    assert request.config.resource.topic == protocol.topic_number("BANKING")


def test_grammar_config_is_sent_inline():
    config = RecognitionConfig.for_grammar("<grammar/>", language="en-US")

    request = protocol.encode_recognition_frame(ConfigFrame(config))

    assert request.config.resource.WhichOneof("resource") == "grammar"
    assert request.config.resource.grammar.inline_grammar == "<grammar/>"


def test_audio_and_end_of_stream_frames():
    audio = protocol.encode_recognition_frame(AudioChunkFrame(b"\x00\x01"))
    end = protocol.encode_recognition_frame(EndOfStreamFrame())

    assert audio.audio == b"\x00\x01"
    assert end.WhichOneof("recognition_request") == "event_message"
    assert end.event_message.event == 1


def test_recognition_stream_rejects_text_and_synthesis_config():
    with pytest.raises(TypeError):
        protocol.encode_recognition_frame(TextFrame("hello"))
    with pytest.raises(TypeError):
        protocol.encode_recognition_frame(ConfigFrame(SynthesisConfig(voice="tommy_en_us")))


def test_recognition_request_survives_serialization():
    config = RecognitionConfig.for_topic("telco")
    data = protocol.encode_recognition_frame(ConfigFrame(config)).SerializeToString()

    parsed = protocol.RecognitionStreamingRequest.FromString(data)

    assert parsed.config.resource.topic == protocol.topic_number("telco")


def test_recognition_result_decodes_first_alternative():
    response = protocol.RecognitionStreamingResponse()
    response.result.is_final = True
    response.result.duration = 1.5
    response.result.alternatives.add(transcript=" hello world ", confidence=0.9)
    response.result.alternatives.add(transcript="jello world", confidence=0.1)

    message = protocol.decode_recognition_response(response)

    assert message == TranscriptFragment("hello world", True, duration_s=1.5)


def test_recognition_result_without_alternatives_is_empty_text():
    response = protocol.RecognitionStreamingResponse()
    response.result.is_final = False

    assert protocol.decode_recognition_response(response) == TranscriptFragment("", False)


def test_recognition_error_decodes_to_remote_error_message():
    response = protocol.RecognitionStreamingResponse()
    response.error.domain = "grammar"
    response.error.reason = "syntax error at line 1"

    assert protocol.decode_recognition_response(response) == RemoteErrorMessage(
        domain="grammar", reason="syntax error at line 1"
    )


def test_empty_responses_are_skipped():
    assert protocol.decode_recognition_response(protocol.RecognitionStreamingResponse()) is None
    assert protocol.decode_synthesis_response(protocol.StreamingSynthesisResponse()) is None


def test_synthesis_frames():
    config = SynthesisConfig(voice="tommy_en_us", sample_rate_hz=8000)

    cfg = protocol.encode_synthesis_frame(ConfigFrame(config))
    text = protocol.encode_synthesis_frame(TextFrame("Hello"))
    end = protocol.encode_synthesis_frame(EndOfStreamFrame())

    assert cfg.config.voice == "tommy_en_us"
    assert cfg.config.sampling_rate == 0
    assert protocol.encode_synthesis_frame(
        ConfigFrame(SynthesisConfig(voice="tommy_en_us", sample_rate_hz=16000))
    ).config.sampling_rate == 1
    assert text.text == "Hello"
    assert end.WhichOneof("synthesis_request") == "end_of_utterance"
    with pytest.raises(TypeError):
        protocol.encode_synthesis_frame(AudioChunkFrame(b"\x00\x00"))


def test_synthesis_responses_decode():
    audio = protocol.StreamingSynthesisResponse()
    audio.streaming_audio.audio_samples = b"\x01\x02"
    end = protocol.StreamingSynthesisResponse()
    end.end_of_utterance.SetInParent()

    assert protocol.decode_synthesis_response(audio) == AudioFragment(b"\x01\x02")
    assert protocol.decode_synthesis_response(end) == EndOfUtterance()


@dataclass(slots=True)
class FakeCall:
    responses: list[object]
    writes: list[object] = field(default_factory=list)
    half_closed: bool = False
    cancelled: int = 0

    async def write(self, request) -> None:
        self.writes.append(request)

    async def done_writing(self) -> None:
        self.half_closed = True

    async def read(self):
        if self.responses:
            return self.responses.pop(0)
        return aio.EOF

    def done(self) -> bool:
        return False

    def cancel(self) -> bool:
        self.cancelled += 1
        return True


def test_grpc_stream_encodes_writes_and_decodes_until_eof():
    async def run() -> None:
        result = protocol.RecognitionStreamingResponse()
        result.result.is_final = True
        result.result.alternatives.add(transcript="hi")
        call = FakeCall(responses=[protocol.RecognitionStreamingResponse(), result])
        stream = _GrpcSpeechStream(
            call=call,
            encode=protocol.encode_recognition_frame,
            decode=protocol.decode_recognition_response,
        )

        await stream.write(AudioChunkFrame(b"ab"))
        await stream.done_writing()
        messages = [m async for m in stream.messages()]
        await stream.close()
        await stream.close()

        assert call.writes[0].audio == b"ab"
        assert call.half_closed
        assert messages == [TranscriptFragment("hi", True)]
        assert call.cancelled == 1

    asyncio.run(run())


def test_channel_requires_target_and_token():
    async def run() -> None:
        with pytest.raises(ValueError):
            await GrpcSpeechChannel(target="", token="t").open_recognition_stream()
        with pytest.raises(ValueError):
            await GrpcSpeechChannel(target="localhost:1", token="").open_synthesis_stream()
        await GrpcSpeechChannel(target="localhost:1", token="t").close()

    asyncio.run(run())
