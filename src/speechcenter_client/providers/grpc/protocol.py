"""Speech Center wire messages.

Descriptors for the recognizer and text-to-speech streaming services are built
in code and registered in a private descriptor pool, so no generated `_pb2`
modules are needed. Field names and numbers mirror the service's interface
description; keep them in sync when the service revises its protos.
"""

from __future__ import annotations

import logging
from typing import Any

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

from speechcenter_client.domain.frames import (
    AudioChunkFrame,
    AudioFragment,
    ConfigFrame,
    EndOfStreamFrame,
    EndOfUtterance,
    InboundMessage,
    OutboundFrame,
    RemoteErrorMessage,
    TextFrame,
    TranscriptFragment,
)
from speechcenter_client.domain.models import RecognitionConfig, SynthesisConfig

logger = logging.getLogger(__name__)

RECOGNIZER_PACKAGE = "speechcenter.recognizer.v1"
TTS_PACKAGE = "speechcenter.tts.v1"

RECOGNIZE_METHOD = f"/{RECOGNIZER_PACKAGE}.Recognizer/StreamingRecognize"
SYNTHESIZE_METHOD = f"/{TTS_PACKAGE}.TextToSpeech/StreamingSynthesizeSpeech"

_F = descriptor_pb2.FieldDescriptorProto

_STRING = _F.TYPE_STRING
_BYTES = _F.TYPE_BYTES
_BOOL = _F.TYPE_BOOL
_FLOAT = _F.TYPE_FLOAT
_UINT32 = _F.TYPE_UINT32
_ENUM = _F.TYPE_ENUM
_MESSAGE = _F.TYPE_MESSAGE


def _field(
    name: str,
    number: int,
    kind: int,
    *,
    type_name: str = "",
    repeated: bool = False,
    oneof: int | None = None,
) -> descriptor_pb2.FieldDescriptorProto:
    field = _F(
        name=name,
        number=number,
        type=kind,
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
    )
    if type_name:
        field.type_name = type_name
    if oneof is not None:
        field.oneof_index = oneof
    return field


def _enum(name: str, *values: str) -> descriptor_pb2.EnumDescriptorProto:
    enum = descriptor_pb2.EnumDescriptorProto(name=name)
    for number, value in enumerate(values):
        enum.value.add(name=value, number=number)
    return enum


def _message(
    name: str,
    *fields: descriptor_pb2.FieldDescriptorProto,
    oneofs: tuple[str, ...] = (),
    enums: tuple[descriptor_pb2.EnumDescriptorProto, ...] = (),
) -> descriptor_pb2.DescriptorProto:
    message = descriptor_pb2.DescriptorProto(name=name)
    for oneof in oneofs:
        message.oneof_decl.add(name=oneof)
    message.enum_type.extend(enums)
    message.field.extend(fields)
    return message


def _recognizer_file() -> descriptor_pb2.FileDescriptorProto:
    pkg = f".{RECOGNIZER_PACKAGE}"
    proto = descriptor_pb2.FileDescriptorProto(
        name="speechcenter/recognizer/v1/recognition_streaming.proto",
        package=RECOGNIZER_PACKAGE,
        syntax="proto3",
    )
    proto.message_type.extend(
        [
            _message(
                "RecognitionStreamingRequest",
                _field("config", 1, _MESSAGE, type_name=f"{pkg}.RecognitionConfig", oneof=0),
                _field("audio", 2, _BYTES, oneof=0),
                _field("event_message", 3, _MESSAGE, type_name=f"{pkg}.EventMessage", oneof=0),
                oneofs=("recognition_request",),
            ),
            _message(
                "RecognitionConfig",
                _field("parameters", 1, _MESSAGE, type_name=f"{pkg}.RecognitionParameters"),
                _field("resource", 2, _MESSAGE, type_name=f"{pkg}.RecognitionResource"),
                _field("label", 3, _STRING, repeated=True),
            ),
            _message(
                "RecognitionParameters",
                _field("language", 1, _STRING),
                _field("pcm", 2, _MESSAGE, type_name=f"{pkg}.PCM"),
            ),
            _message("PCM", _field("sample_rate_hz", 1, _UINT32)),
            _message(
                "RecognitionResource",
                _field("topic", 1, _ENUM, type_name=f"{pkg}.RecognitionResource.Topic", oneof=0),
                _field("grammar", 2, _MESSAGE, type_name=f"{pkg}.GrammarResource", oneof=0),
                oneofs=("resource",),
                enums=(_enum("Topic", "GENERIC", "BANKING", "TELCO"),),
            ),
            _message(
                "GrammarResource",
                _field("inline_grammar", 1, _STRING, oneof=0),
                _field("grammar_uri", 2, _STRING, oneof=0),
                oneofs=("grammar",),
            ),
            _message(
                "EventMessage",
                _field("event", 1, _ENUM, type_name=f"{pkg}.EventMessage.Event"),
                enums=(_enum("Event", "EVENT_UNSPECIFIED", "END_OF_STREAM"),),
            ),
            _message(
                "RecognitionStreamingResponse",
                _field("result", 1, _MESSAGE, type_name=f"{pkg}.RecognitionResult", oneof=0),
                _field("error", 2, _MESSAGE, type_name=f"{pkg}.RecognitionError", oneof=0),
                oneofs=("response",),
            ),
            _message(
                "RecognitionResult",
                _field("alternatives", 1, _MESSAGE, type_name=f"{pkg}.RecognitionAlternative", repeated=True),
                _field("duration", 2, _FLOAT),
                _field("is_final", 3, _BOOL),
            ),
            _message(
                "RecognitionAlternative",
                _field("transcript", 1, _STRING),
                _field("confidence", 2, _FLOAT),
            ),
            _message(
                "RecognitionError",
                _field("domain", 1, _STRING),
                _field("reason", 2, _STRING),
            ),
        ]
    )
    return proto


def _tts_file() -> descriptor_pb2.FileDescriptorProto:
    pkg = f".{TTS_PACKAGE}"
    proto = descriptor_pb2.FileDescriptorProto(
        name="speechcenter/tts/v1/text_to_speech.proto",
        package=TTS_PACKAGE,
        syntax="proto3",
    )
    proto.enum_type.extend(
        [
            _enum("VoiceSamplingRate", "VOICE_SAMPLING_RATE_8KHZ", "VOICE_SAMPLING_RATE_16KHZ"),
            _enum("AudioFormat", "AUDIO_FORMAT_WAV_LPCM_S16LE", "AUDIO_FORMAT_RAW_LPCM_S16LE"),
        ]
    )
    proto.message_type.extend(
        [
            _message(
                "StreamingSynthesisRequest",
                _field("config", 1, _MESSAGE, type_name=f"{pkg}.SynthesisConfig", oneof=0),
                _field("text", 2, _STRING, oneof=0),
                _field("end_of_utterance", 3, _MESSAGE, type_name=f"{pkg}.EndOfUtterance", oneof=0),
                oneofs=("synthesis_request",),
            ),
            _message(
                "SynthesisConfig",
                _field("voice", 1, _STRING),
                _field("sampling_rate", 2, _ENUM, type_name=f"{pkg}.VoiceSamplingRate"),
            ),
            _message("EndOfUtterance"),
            _message(
                "StreamingSynthesisResponse",
                _field("streaming_audio", 1, _MESSAGE, type_name=f"{pkg}.StreamingAudio", oneof=0),
                _field("end_of_utterance", 2, _MESSAGE, type_name=f"{pkg}.EndOfUtterance", oneof=0),
                oneofs=("synthesis_response",),
            ),
            _message("StreamingAudio", _field("audio_samples", 1, _BYTES)),
        ]
    )
    return proto


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_recognizer_file().SerializeToString())
_POOL.AddSerializedFile(_tts_file().SerializeToString())


def _message_class(full_name: str) -> Any:
    return message_factory.GetMessageClass(_POOL.FindMessageTypeByName(full_name))


def _enum_number(full_name: str, value: str) -> int:
    return _POOL.FindEnumTypeByName(full_name).values_by_name[value].number


RecognitionStreamingRequest = _message_class(f"{RECOGNIZER_PACKAGE}.RecognitionStreamingRequest")
RecognitionStreamingResponse = _message_class(f"{RECOGNIZER_PACKAGE}.RecognitionStreamingResponse")
StreamingSynthesisRequest = _message_class(f"{TTS_PACKAGE}.StreamingSynthesisRequest")
StreamingSynthesisResponse = _message_class(f"{TTS_PACKAGE}.StreamingSynthesisResponse")

_END_OF_STREAM = _enum_number(f"{RECOGNIZER_PACKAGE}.EventMessage.Event", "END_OF_STREAM")
_SAMPLING_RATES = {
    8000: _enum_number(f"{TTS_PACKAGE}.VoiceSamplingRate", "VOICE_SAMPLING_RATE_8KHZ"),
    16000: _enum_number(f"{TTS_PACKAGE}.VoiceSamplingRate", "VOICE_SAMPLING_RATE_16KHZ"),
}


def topic_number(name: str) -> int:
    return _enum_number(f"{RECOGNIZER_PACKAGE}.RecognitionResource.Topic", name.upper())


def encode_recognition_frame(frame: OutboundFrame) -> Any:
    if isinstance(frame, ConfigFrame):
        config = frame.config
        if not isinstance(config, RecognitionConfig):
            raise TypeError(f"recognition stream cannot carry {type(config).__name__}")
        request = RecognitionStreamingRequest()
        request.config.parameters.language = config.language
        request.config.parameters.pcm.sample_rate_hz = config.sample_rate_hz
        topic = config.resolved_topic
        if topic is not None:
            request.config.resource.topic = topic_number(topic.value)
        else:
            request.config.resource.grammar.inline_grammar = config.grammar or ""
        return request
    if isinstance(frame, AudioChunkFrame):
        return RecognitionStreamingRequest(audio=frame.data)
    if isinstance(frame, EndOfStreamFrame):
        request = RecognitionStreamingRequest()
        request.event_message.event = _END_OF_STREAM
        return request
    if isinstance(frame, TextFrame):
        raise TypeError("recognition stream cannot carry text frames")
    raise TypeError(f"Unknown OutboundFrame: {type(frame)}")


def decode_recognition_response(response: Any) -> InboundMessage | None:
    kind = response.WhichOneof("response")
    if kind == "result":
        result = response.result
        text = result.alternatives[0].transcript.strip() if result.alternatives else ""
        return TranscriptFragment(text=text, is_final=bool(result.is_final), duration_s=float(result.duration))
    if kind == "error":
        return RemoteErrorMessage(domain=response.error.domain, reason=response.error.reason)
    logger.debug("Skipping recognition response without payload")
    return None


def encode_synthesis_frame(frame: OutboundFrame) -> Any:
    if isinstance(frame, ConfigFrame):
        config = frame.config
        if not isinstance(config, SynthesisConfig):
            raise TypeError(f"synthesis stream cannot carry {type(config).__name__}")
        request = StreamingSynthesisRequest()
        request.config.voice = config.voice
        request.config.sampling_rate = _SAMPLING_RATES[config.sample_rate_hz]
        return request
    if isinstance(frame, TextFrame):
        return StreamingSynthesisRequest(text=frame.text)
    if isinstance(frame, EndOfStreamFrame):
        request = StreamingSynthesisRequest()
        request.end_of_utterance.SetInParent()
        return request
    if isinstance(frame, AudioChunkFrame):
        raise TypeError("synthesis stream cannot carry audio frames")
    raise TypeError(f"Unknown OutboundFrame: {type(frame)}")


def decode_synthesis_response(response: Any) -> InboundMessage | None:
    kind = response.WhichOneof("synthesis_response")
    if kind == "streaming_audio":
        return AudioFragment(samples=bytes(response.streaming_audio.audio_samples))
    if kind == "end_of_utterance":
        return EndOfUtterance()
    logger.debug("Skipping synthesis response without payload")
    return None
