"""Host implementation for running the commands from a terminal."""

import asyncio
import getpass
import sys
from pathlib import Path
from typing import Sequence, TextIO

from audio_debugger.logging import get_logger

logger = get_logger("terminal")


def parse_line_range(value: str) -> tuple[int, int]:
    """
    Parse "START-END" or "N" into a 1-based inclusive line range.

    Raises:
        ValueError: If the range is malformed or empty.
    """
    start_str, sep, end_str = value.partition("-")
    start = int(start_str)
    end = int(end_str) if sep else start
    if start < 1 or end < start:
        raise ValueError(f"Invalid line range: {value!r}")
    return start, end


class TerminalEditor:
    """
    Treats a file, a literal string, or piped stdin as the active selection.

    Args:
        path: File to read the selection from.
        line_range: 1-based inclusive lines of ``path`` to select.
        text: Literal selection; wins over ``path``.
        stdin: Stream read when neither text nor path is given and it is not a TTY.
    """

    def __init__(
        self,
        path: Path | None = None,
        line_range: tuple[int, int] | None = None,
        text: str | None = None,
        stdin: TextIO | None = None,
    ):
        self.path = path
        self.line_range = line_range
        self.text = text
        self.stdin = stdin if stdin is not None else sys.stdin
        self._stdin_text: str | None = None

    def get_active_selection(self) -> str | None:
        if self.text is not None:
            return self.text
        if self.path is not None:
            return self._read_file()
        if not self.stdin.isatty():
            if self._stdin_text is None:
                self._stdin_text = self.stdin.read()
            return self._stdin_text
        return None

    def _read_file(self) -> str | None:
        try:
            content = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Cannot read file", path=str(self.path), error=str(e))
            return None
        if self.line_range is None:
            return content
        start, end = self.line_range
        lines = content.splitlines(keepends=True)
        return "".join(lines[start - 1:end])


class TerminalPrompter:
    """
    Prompts on the terminal. End of input counts as dismissing the prompt.

    Preset answers skip the matching prompt, for non-interactive use.
    """

    def __init__(self, query: str | None = None, choice: str | None = None):
        self.query = query
        self.choice = choice

    async def prompt_text(self, prompt: str, password: bool = False) -> str | None:
        if not password and self.query is not None:
            return self.query
        reader = getpass.getpass if password else input
        try:
            return await asyncio.to_thread(reader, f"{prompt}: ")
        except EOFError:
            return None

    async def prompt_choice(self, options: Sequence[str], placeholder: str) -> str | None:
        if self.choice is not None:
            return self._match(options, self.choice)

        print(placeholder, file=sys.stderr)
        for number, option in enumerate(options, 1):
            print(f"  {number}) {option}", file=sys.stderr)
        try:
            answer = await asyncio.to_thread(input, f"Choice [1-{len(options)}]: ")
        except EOFError:
            return None
        return self._match(options, answer)

    @staticmethod
    def _match(options: Sequence[str], answer: str) -> str | None:
        """Accept an option number or a case-insensitive option name."""
        answer = answer.strip()
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        for option in options:
            if option.lower() == answer.lower():
                return option
        return None


class TerminalNotifier:
    """Writes messages to stderr and presented text to stdout."""

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None):
        self.out = out
        self.err = err

    def show_info(self, message: str) -> None:
        print(message, file=self.err or sys.stderr)

    def show_text(self, text: str) -> None:
        print(text, file=self.out or sys.stdout)
