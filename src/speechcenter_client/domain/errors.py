from __future__ import annotations


class SpeechCenterError(Exception):
    """Base class for every error a streaming session reports to its caller."""

    def __init__(self, message: str, *, stage: str = "", cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.stage = stage
        self.cause = cause

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage:
            message = f"[{self.stage}] {message}"
        if self.cause is not None:
            message = f"{message}: {self.cause!r}"
        return message


class InvalidConfig(SpeechCenterError, ValueError):
    """Missing or malformed session parameters. Never retried."""


class SendFailed(SpeechCenterError):
    """Transport failure while writing to the stream. The stream is unusable afterwards."""


class ReceiveFailed(SpeechCenterError):
    """Transport failure while reading from the stream."""


class RemoteError(SpeechCenterError):
    """Error reported in-band by the remote service."""

    def __init__(self, domain: str, reason: str, *, stage: str = "receive") -> None:
        super().__init__(f"remote error (domain={domain!r}, reason={reason!r})", stage=stage)
        self.domain = domain
        self.reason = reason


class NoAudioProduced(SpeechCenterError):
    """Synthesis finished without a single audio fragment."""


class MalformedPCM(SpeechCenterError, ValueError):
    """PCM payload is not a whole number of 16-bit samples."""


class SessionTimeout(SpeechCenterError, TimeoutError):
    """Session exceeded the caller-supplied deadline."""
