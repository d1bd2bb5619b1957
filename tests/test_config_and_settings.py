from __future__ import annotations

import json
import logging

import pytest

from speechcenter_client.config.paths import default_settings_path, default_token_path, user_config_dir
from speechcenter_client.config.settings import (
    AppSettings,
    ConnectionSettings,
    LoggingSettings,
    RecognitionSettings,
    SessionSettings,
    SynthesisSettings,
    from_dict,
    load_settings,
    log_level,
    save_settings,
    validate_url,
)
from speechcenter_client.domain.errors import InvalidConfig
from speechcenter_client.domain.models import AudioFormat, Topic, parse_sample_rate


def test_settings_roundtrip(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    settings = AppSettings(
        connection=ConnectionSettings(url="eu.speechcenter.example", token_file="/tmp/token"),
        synthesis=SynthesisSettings(voice="tommy_en_us", audio_format=AudioFormat.RAW),
        session=SessionSettings(timeout_s=30.0),
    )
    save_settings(path, settings)

    loaded = load_settings(path)
    assert loaded == settings


def test_defaults_match_command_line_defaults():
    settings = from_dict({})

    assert settings.connection.url == "us.speechcenter.verbio.com"
    assert settings.recognition.language == "en-US"
    assert settings.synthesis.sample_rate_hz == 16000
    assert settings.synthesis.audio_format is AudioFormat.WAV
    assert settings.session.timeout_or_none is None


def test_load_settings_rejects_non_object(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(["not", "an", "object"]), encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(path)


@pytest.mark.parametrize(
    "settings",
    [
        AppSettings(connection=ConnectionSettings(url="")),
        AppSettings(recognition=RecognitionSettings(sample_rate_hz=44100)),
        AppSettings(recognition=RecognitionSettings(language="")),
        AppSettings(synthesis=SynthesisSettings(sample_rate_hz=22050)),
        AppSettings(session=SessionSettings(timeout_s=-1)),
        AppSettings(logging=LoggingSettings(level="LOUD")),
    ],
)
def test_settings_validation_rejects_invalid_values(settings):
    with pytest.raises(ValueError):
        settings.validate()


def test_from_dict_rejects_unknown_audio_format():
    with pytest.raises(ValueError):
        from_dict({"synthesis": {"audio_format": "mp3"}})


@pytest.mark.parametrize(
    ("name", "level"),
    [("trace", logging.DEBUG), ("DEBUG", logging.DEBUG), ("info", logging.INFO), ("WARN", logging.WARNING), ("error", logging.ERROR)],
)
def test_log_level_names(name, level):
    assert log_level(name) == level


def test_log_level_rejects_unknown_name():
    with pytest.raises(ValueError):
        log_level("LOUD")


def test_topic_parse_is_case_insensitive():
    assert Topic.parse("GENERIC") is Topic.GENERIC
    assert Topic.parse(" Banking ") is Topic.BANKING
    with pytest.raises(InvalidConfig):
        Topic.parse("weather")


@pytest.mark.parametrize(("value", "rate"), [("8khz", 8000), ("16kHz", 16000), ("16", 16000), (8000, 8000)])
def test_parse_sample_rate_aliases(value, rate):
    assert parse_sample_rate(value) == rate


@pytest.mark.parametrize("value", ["44khz", "", 22050])
def test_parse_sample_rate_rejects_unsupported(value):
    with pytest.raises(InvalidConfig):
        parse_sample_rate(value)


def test_audio_format_parse():
    assert AudioFormat.parse("WAV") is AudioFormat.WAV
    with pytest.raises(InvalidConfig):
        AudioFormat.parse("mp3")


def test_user_config_dir_honours_xdg(monkeypatch, tmp_path):
    monkeypatch.setattr("sys.platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert user_config_dir() == tmp_path / "speechcenter-client"
    assert default_settings_path() == tmp_path / "speechcenter-client" / "settings.json"


@pytest.mark.parametrize("section", ["connection", "recognition", "synthesis", "session", "logging"])
def test_null_sections_fall_back_to_defaults(tmp_path, section):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({section: None}), encoding="utf-8")

    assert load_settings(path) == AppSettings()


@pytest.mark.parametrize("section", ["session", "logging", "connection"])
def test_non_object_sections_are_rejected(section):
    with pytest.raises(ValueError):
        from_dict({section: ["not", "an", "object"]})


@pytest.mark.parametrize("url", ["host:8080", "host", "us.speechcenter.verbio.com"])
def test_validate_url_accepts_host_and_host_port(url):
    validate_url(url)


@pytest.mark.parametrize(
    ("url", "message"),
    [
        ("", "URL cannot be empty"),
        ("host:port:extra", "URL must be in format host:port"),
        (":8080", "host cannot be empty"),
        ("host:", "port cannot be empty"),
    ],
)
def test_validate_url_rejects_malformed_targets(url, message):
    with pytest.raises(ValueError, match=message):
        validate_url(url)
    with pytest.raises(ValueError, match=message):
        ConnectionSettings(url=url).validate()


def test_default_token_path_lives_in_config_dir(monkeypatch, tmp_path):
    monkeypatch.setattr("sys.platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert default_token_path() == tmp_path / "speechcenter-client" / "token.txt"


def test_user_config_dir_defaults_to_dot_config(monkeypatch, tmp_path):
    monkeypatch.setattr("sys.platform", "linux")
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path)

    assert user_config_dir() == tmp_path / ".config" / "speechcenter-client"
