from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from speechcenter_client.domain.models import SUPPORTED_SAMPLE_RATES_HZ, AudioFormat

DEFAULT_URL = "us.speechcenter.verbio.com"
LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "WARN", "WARNING", "ERROR", "CRITICAL")


def validate_url(url: str) -> None:
    """Accept `host` or `host:port`; both parts non-empty."""
    if not url:
        raise ValueError("URL cannot be empty")
    parts = url.split(":")
    if len(parts) > 2:
        raise ValueError(f"URL must be in format host:port [{url}]")
    if not parts[0]:
        raise ValueError(f"host cannot be empty [{url}]")
    if len(parts) == 2 and not parts[1]:
        raise ValueError(f"port cannot be empty [{url}]")


@dataclass(slots=True)
class ConnectionSettings:
    url: str = DEFAULT_URL
    token_file: str = ""
    wait_for_ready: bool = True

    def validate(self) -> None:
        validate_url(self.url)
        if self.token_file is None:
            raise ValueError("token_file must be a string")


@dataclass(slots=True)
class RecognitionSettings:
    language: str = "en-US"
    sample_rate_hz: int = 8000

    def validate(self) -> None:
        if not self.language:
            raise ValueError("language must be non-empty")
        if self.sample_rate_hz not in SUPPORTED_SAMPLE_RATES_HZ:
            raise ValueError("sample_rate_hz must be 8000 or 16000")


@dataclass(slots=True)
class SynthesisSettings:
    voice: str = ""
    sample_rate_hz: int = 16000
    audio_format: AudioFormat = AudioFormat.WAV

    def validate(self) -> None:
        if self.voice is None:
            raise ValueError("voice must be a string")
        if self.sample_rate_hz not in SUPPORTED_SAMPLE_RATES_HZ:
            raise ValueError("sample_rate_hz must be 8000 or 16000")
        if not isinstance(self.audio_format, AudioFormat):
            raise ValueError("invalid audio_format")


@dataclass(slots=True)
class SessionSettings:
    timeout_s: float = 0.0  # 0 disables the deadline

    def validate(self) -> None:
        if self.timeout_s < 0:
            raise ValueError("timeout_s must be >= 0")

    @property
    def timeout_or_none(self) -> float | None:
        return self.timeout_s or None


@dataclass(slots=True)
class LoggingSettings:
    level: str = "INFO"

    def validate(self) -> None:
        if self.level.upper() not in LOG_LEVELS:
            raise ValueError(f"level must be one of {' '.join(LOG_LEVELS)}")


@dataclass(slots=True)
class AppSettings:
    connection: ConnectionSettings = field(default_factory=ConnectionSettings)
    recognition: RecognitionSettings = field(default_factory=RecognitionSettings)
    synthesis: SynthesisSettings = field(default_factory=SynthesisSettings)
    session: SessionSettings = field(default_factory=SessionSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def validate(self) -> None:
        self.connection.validate()
        self.recognition.validate()
        self.synthesis.validate()
        self.session.validate()
        self.logging.validate()


def log_level(name: str) -> int:
    """Map a level name (including TRACE and WARN) onto a `logging` level."""
    name = name.upper()
    if name == "TRACE":
        return logging.DEBUG
    if name == "WARN":
        return logging.WARNING
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Not a valid log level [{name}]")
    return level


def to_dict(settings: AppSettings) -> dict[str, Any]:
    return {
        "connection": {
            "url": settings.connection.url,
            "token_file": settings.connection.token_file,
            "wait_for_ready": settings.connection.wait_for_ready,
        },
        "recognition": {
            "language": settings.recognition.language,
            "sample_rate_hz": settings.recognition.sample_rate_hz,
        },
        "synthesis": {
            "voice": settings.synthesis.voice,
            "sample_rate_hz": settings.synthesis.sample_rate_hz,
            "audio_format": settings.synthesis.audio_format.value,
        },
        "session": {"timeout_s": settings.session.timeout_s},
        "logging": {"level": settings.logging.level},
    }


def from_dict(data: dict[str, Any]) -> AppSettings:
    connection_data = _section(data, "connection")
    recognition_data = _section(data, "recognition")
    synthesis_data = _section(data, "synthesis")
    session_data = _section(data, "session")
    logging_data = _section(data, "logging")

    settings = AppSettings(
        connection=ConnectionSettings(
            url=str(connection_data.get("url", DEFAULT_URL)),
            token_file=str(connection_data.get("token_file") or ""),
            wait_for_ready=bool(connection_data.get("wait_for_ready", True)),
        ),
        recognition=RecognitionSettings(
            language=str(recognition_data.get("language", "en-US")),
            sample_rate_hz=int(recognition_data.get("sample_rate_hz", 8000)),
        ),
        synthesis=SynthesisSettings(
            voice=str(synthesis_data.get("voice") or ""),
            sample_rate_hz=int(synthesis_data.get("sample_rate_hz", 16000)),
            audio_format=AudioFormat(synthesis_data.get("audio_format", AudioFormat.WAV.value)),
        ),
        session=SessionSettings(timeout_s=float(session_data.get("timeout_s", 0.0))),
        logging=LoggingSettings(level=str(logging_data.get("level", "INFO"))),
    )
    settings.validate()
    return settings


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"settings section [{name}] must be a JSON object")
    return section


def load_settings(path: Path) -> AppSettings:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("settings file must contain a JSON object")
    return from_dict(raw)


def save_settings(path: Path, settings: AppSettings) -> None:
    settings.validate()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(to_dict(settings), ensure_ascii=False, indent=2), encoding="utf-8")
