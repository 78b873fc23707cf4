"""Command-line entry point: ``audio-debugger <command>``."""

import argparse
import asyncio
from pathlib import Path

from dotenv import load_dotenv

from audio_debugger import __version__
from audio_debugger.config import Settings
from audio_debugger.credentials import KeyringSecretStore
from audio_debugger.extension import (
    AI_DEBUGGING,
    AI_EXPLANATION,
    READ_ALOUD,
    SET_API_KEY,
    activate,
    deactivate,
)
from audio_debugger.host import Host
from audio_debugger.logging import configure_logging
from audio_debugger.presenter import CHOICES
from audio_debugger.terminal import TerminalEditor, TerminalNotifier, TerminalPrompter, parse_line_range

COMMANDS = {
    "read-aloud": READ_ALOUD,
    "explain": AI_EXPLANATION,
    "debug": AI_DEBUGGING,
    "set-key": SET_API_KEY,
}


def _line_range(value: str) -> tuple[int, int]:
    try:
        return parse_line_range(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected START-END or N, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="audio-debugger",
        description="Read code aloud, or ask an AI model to explain or debug it.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("command", choices=sorted(COMMANDS), help="Action to run")
    parser.add_argument("-f", "--file", type=Path, help="File holding the selection")
    parser.add_argument("-l", "--lines", type=_line_range, help="Line range of --file, e.g. 10-24")
    parser.add_argument("-t", "--text", help="Use this text as the selection")
    parser.add_argument("-q", "--query", help="Question for the debug command")
    parser.add_argument(
        "-c", "--choice",
        type=str.capitalize,
        choices=CHOICES,
        help="How to present the answer, skipping the prompt",
    )
    parser.add_argument("--voice", help="Speech voice (default: backend default)")
    parser.add_argument("--rate", type=float, help="Speech rate multiplier")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARN or ERROR")
    return parser


async def run(command_id: str, host: Host, settings: Settings) -> None:
    extension = activate(host, settings)
    try:
        await extension.execute(command_id)
        await extension.speaker.drain()
    finally:
        deactivate(extension)


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    settings = Settings()
    if args.voice:
        settings.speech.voice = args.voice
    if args.rate:
        settings.speech.rate = args.rate
    if args.log_level:
        settings.log.level = args.log_level.upper()
    configure_logging(settings.log.level, settings.log.json_format)

    host = Host(
        editor=TerminalEditor(path=args.file, line_range=args.lines, text=args.text),
        secrets=KeyringSecretStore(settings.secrets.service, settings.secrets.env_var),
        prompter=TerminalPrompter(query=args.query, choice=args.choice),
        notifier=TerminalNotifier(),
    )
    try:
        asyncio.run(run(COMMANDS[args.command], host, settings))
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
