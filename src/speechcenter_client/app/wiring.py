from __future__ import annotations

import logging
import os
from pathlib import Path

from speechcenter_client.config.paths import default_token_path
from speechcenter_client.config.settings import AppSettings, ConnectionSettings, validate_url
from speechcenter_client.core.stream.backend import SpeechChannel
from speechcenter_client.providers.grpc.channel import GrpcSpeechChannel

logger = logging.getLogger(__name__)

TOKEN_ENV = "SPEECH_CENTER_TOKEN"


def load_token(path: Path) -> str:
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"error reading token file: {exc}") from exc
    token = contents.strip()
    if not token:
        raise ValueError(f"token file is empty: {path}")
    logger.info("Loaded token from file: [%s]", path)
    return token


def resolve_token(
    settings: AppSettings, *, token_file: Path | None = None, fallback_path: Path | None = None
) -> str:
    """Token file from the command line, then the settings file, then $SPEECH_CENTER_TOKEN,
    then `token.txt` in the user config dir."""
    path = token_file or (Path(settings.connection.token_file) if settings.connection.token_file else None)
    if path is not None:
        return load_token(path)
    env = os.getenv(TOKEN_ENV, "").strip()
    if env:
        return env
    fallback = fallback_path or default_token_path()
    if fallback.exists():
        return load_token(fallback)
    raise ValueError(f"Token file is required. Use -t or --token-file (or set {TOKEN_ENV})")


def create_speech_channel(settings: ConnectionSettings, *, token: str) -> SpeechChannel:
    validate_url(settings.url)
    logger.info("Using the URL: [%s]", settings.url)
    return GrpcSpeechChannel(
        target=settings.url,
        token=token,
        wait_for_ready=settings.wait_for_ready,
    )
