from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from speechcenter_client import __version__
from speechcenter_client.app.recognize import RecognizeRunner
from speechcenter_client.app.synthesize import SynthesizeRunner
from speechcenter_client.app.wiring import resolve_token
from speechcenter_client.config.paths import default_settings_path
from speechcenter_client.config.settings import AppSettings, load_settings, log_level
from speechcenter_client.domain.errors import InvalidConfig, SpeechCenterError
from speechcenter_client.domain.models import AudioFormat, parse_sample_rate

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _sample_rate(value: str) -> int:
    try:
        return parse_sample_rate(value)
    except InvalidConfig as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="speechcenter")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument(
        "--config",
        type=Path,
        default=default_settings_path(),
        help="Path to settings JSON (default: user config dir)",
    )
    parser.add_argument(
        "-l",
        "--log-level",
        help="Log level (one of TRACE DEBUG INFO WARN ERROR; default from settings, INFO)",
    )
    parser.add_argument("-t", "--token-file", type=Path, help="Path to the token file")
    parser.add_argument("-u", "--url", help="URL of the service")
    parser.add_argument(
        "--timeout",
        type=float,
        help="Abort a session that has not finished after this many seconds",
    )

    sub = parser.add_subparsers(dest="command")

    recognize = sub.add_parser("recognize", help="Recognize speech from an audio file")
    recognize.add_argument("-a", "--audio", type=Path, required=True, help="Audio file to be sent")
    resource = recognize.add_mutually_exclusive_group()
    resource.add_argument("-g", "--grammar", type=Path, help="Path to the grammar to be used")
    resource.add_argument("-T", "--topic", help="Topic to be used (generic, banking, telco)")
    recognize.add_argument("-L", "--language", help="Language to be used (default en-US)")
    recognize.add_argument(
        "--sample-rate",
        type=_sample_rate,
        help="Sample rate of the input audio (8khz or 16khz; default 8khz)",
    )

    synthesize = sub.add_parser("synthesize", help="Synthesize speech from text")
    synthesize.add_argument("-s", "--text", required=True, help="Text to synthesize")
    synthesize.add_argument("-v", "--voice", help="Voice code to use for synthesis")
    synthesize.add_argument(
        "--sampling-rate",
        type=_sample_rate,
        help="Sampling rate for synthesis (8khz or 16khz; default 16khz)",
    )
    synthesize.add_argument(
        "--format",
        choices=[f.value for f in AudioFormat],
        help="Audio format for synthesis (wav or raw; default wav)",
    )
    synthesize.add_argument(
        "-o", "--output", type=Path, required=True, help="Output file for synthesized audio"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    if args.command is None:
        parser.print_help()
        print("No command specified. Use 'recognize' or 'synthesize'", flush=True)
        return 2

    try:
        settings = _load_settings_or_default(args.config)
        _apply_overrides(settings, args)
        settings.validate()
    except (OSError, ValueError) as exc:
        print(f"Error: invalid configuration: {exc}", flush=True)
        return 2

    logging.basicConfig(level=log_level(settings.logging.level), format=LOG_FORMAT, force=True)
    logger.info("Starting speechcenter-client (%s)", __version__)

    try:
        token = resolve_token(settings, token_file=args.token_file)
    except ValueError as exc:
        print(f"Error: {exc}", flush=True)
        return 2

    if args.command == "recognize":
        runner = RecognizeRunner(
            settings=settings,
            token=token,
            audio_path=args.audio,
            grammar_path=args.grammar,
            topic=args.topic,
        )
    elif args.command == "synthesize":
        runner = SynthesizeRunner(
            settings=settings,
            token=token,
            text=args.text,
            output_path=args.output,
            voice=args.voice,
            sample_rate_hz=args.sampling_rate,
            audio_format=AudioFormat.parse(args.format) if args.format else None,
        )
    else:
        parser.print_help()
        return 2

    return _run(args.command, runner)


def _run(command: str, runner: RecognizeRunner | SynthesizeRunner) -> int:
    try:
        return asyncio.run(runner.run())
    except InvalidConfig as exc:
        logger.error("Invalid %s request: %s", command, exc)
        print(f"Error: {exc}", flush=True)
        return 2
    except SpeechCenterError as exc:
        logger.error("Error in %s: %s", command, exc)
        print(f"Error: {exc}", flush=True)
        return 1
    except OSError as exc:
        logger.error("I/O error in %s: %s", command, exc)
        print(f"Error: {exc}", flush=True)
        return 1
    except KeyboardInterrupt:
        return 130


def _apply_overrides(settings: AppSettings, args: argparse.Namespace) -> None:
    if args.url:
        settings.connection.url = args.url
    if args.timeout is not None:
        settings.session.timeout_s = args.timeout
    if args.log_level:
        settings.logging.level = args.log_level
    if args.command == "recognize":
        if args.language:
            settings.recognition.language = args.language
        if args.sample_rate:
            settings.recognition.sample_rate_hz = args.sample_rate


def _load_settings_or_default(path: Path) -> AppSettings:
    if path.exists():
        return load_settings(path)
    return AppSettings()


if __name__ == "__main__":
    raise SystemExit(main())
