"""
Text-to-speech for Audio Debugger.

``Speaker.speak`` starts speech as an asyncio task and hands back a
``SpeechJob`` right away. The job can be awaited for completion, and any
backend failure is kept on the job instead of being raised to the caller.

Backends:
- SystemSpeechBackend: the platform speech command (say / espeak / SAPI)
- OpenAISpeechBackend: OpenAI audio speech API, played with a local player
"""

import asyncio
import math
import os
import shutil
import sys
import tempfile
from dataclasses import dataclass
from typing import Awaitable, Callable, Protocol

from openai import AsyncOpenAI, OpenAIError

from audio_debugger.exceptions import SpeechError
from audio_debugger.logging import get_logger

logger = get_logger("speech")

# Words per minute at rate 1.0, same baseline as macOS `say`.
BASE_WORDS_PER_MINUTE = 175

_WINDOWS_SCRIPT = (
    "Add-Type -AssemblyName System.Speech; "
    "$speak = New-Object System.Speech.Synthesis.SpeechSynthesizer; "
    "{voice}"
    "$speak.Rate = {rate}; "
    "$speak.Speak([Console]::In.ReadToEnd())"
)


class SpeechBackend(Protocol):
    async def speak(self, text: str, voice: str | None, rate: float) -> None:
        """Speak text and return once playback finished. Raises SpeechError."""
        ...


async def _run_command(command: list[str], stdin_data: bytes | None = None) -> None:
    """Run a command to completion, raising SpeechError on failure."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.PIPE if stdin_data is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise SpeechError("Speech command could not be started", command=command[0], error=str(e)) from e

    try:
        _, stderr = await proc.communicate(stdin_data)
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.terminate()
        raise

    if proc.returncode != 0:
        raise SpeechError(
            "Speech command failed",
            command=command[0],
            returncode=proc.returncode,
            stderr=stderr.decode(errors="replace").strip()[:300],
        )


class SystemSpeechBackend:
    """
    Speaks through the operating system's speech command.

    Text is fed on stdin so it never needs shell quoting.

    Args:
        platform: Override for sys.platform (used by tests).
    """

    def __init__(self, platform: str | None = None):
        self.platform = platform or sys.platform

    def build_command(self, voice: str | None, rate: float) -> list[str]:
        words_per_minute = str(round(BASE_WORDS_PER_MINUTE * rate))

        if self.platform == "darwin":
            command = ["say", "-r", words_per_minute]
            if voice:
                command += ["-v", voice]
            return command + ["-f", "-"]

        if self.platform.startswith("win"):
            # SAPI rate runs from -10 to 10; 3x speed maps to roughly +10.
            sapi_rate = max(-10, min(10, round(9.96 * math.log(rate) / math.log(3)))) if rate > 0 else 0
            # Single-quoted PowerShell strings escape ' by doubling it.
            quoted = voice.replace("'", "''") if voice else ""
            select_voice = f"$speak.SelectVoice('{quoted}'); " if voice else ""
            script = _WINDOWS_SCRIPT.format(voice=select_voice, rate=sapi_rate)
            return ["powershell", "-NoProfile", "-Command", script]

        command = ["espeak", "-s", words_per_minute]
        if voice:
            command += ["-v", voice]
        return command + ["--stdin"]

    async def speak(self, text: str, voice: str | None, rate: float) -> None:
        await _run_command(self.build_command(voice, rate), text.encode("utf-8"))


class OpenAISpeechBackend:
    """
    Speaks through the OpenAI audio speech endpoint.

    The audio is written to a temporary MP3 and played with the first
    player found on PATH.

    Args:
        api_key_provider: Coroutine returning the API key, or None.
        model: Speech model name.
        default_voice: Voice used when none is selected.
        base_url: Optional OpenAI-compatible base URL.
    """

    PLAYERS = (
        ["ffplay", "-nodisp", "-autoexit", "-loglevel", "quiet"],
        ["afplay"],
        ["mpg123", "-q"],
    )

    def __init__(
        self,
        api_key_provider: Callable[[], Awaitable[str | None]],
        model: str = "gpt-4o-mini-tts",
        default_voice: str = "alloy",
        base_url: str | None = None,
    ):
        self.api_key_provider = api_key_provider
        self.model = model
        self.default_voice = default_voice
        self.base_url = base_url

    def _player_command(self, path: str) -> list[str]:
        for player in self.PLAYERS:
            if shutil.which(player[0]):
                return player + [path]
        raise SpeechError("No audio player found", tried=[p[0] for p in self.PLAYERS])

    async def synthesize(self, text: str, voice: str | None, rate: float, output_path: str) -> None:
        api_key = await self.api_key_provider()
        if not api_key:
            raise SpeechError("No API key stored for OpenAI speech")

        client = AsyncOpenAI(api_key=api_key, base_url=self.base_url)
        try:
            async with client.audio.speech.with_streaming_response.create(
                model=self.model,
                voice=voice or self.default_voice,
                input=text,
                speed=max(0.25, min(4.0, rate)),
            ) as response:
                await response.stream_to_file(output_path)
        except OpenAIError as e:
            raise SpeechError("OpenAI speech request failed", error=str(e)) from e
        finally:
            await client.close()

    async def speak(self, text: str, voice: str | None, rate: float) -> None:
        fd, path = tempfile.mkstemp(prefix="audio_debugger_", suffix=".mp3")
        os.close(fd)
        try:
            await self.synthesize(text, voice, rate, path)
            await _run_command(self._player_command(path))
        finally:
            os.remove(path)


@dataclass(eq=False)
class SpeechJob:
    """Handle on one running utterance."""

    text: str
    task: "asyncio.Task[SpeechError | None]"

    @property
    def done(self) -> bool:
        return self.task.done()

    @property
    def error(self) -> SpeechError | None:
        """The backend failure, once the job has finished."""
        if not self.task.done() or self.task.cancelled():
            return None
        return self.task.result()

    async def wait(self) -> SpeechError | None:
        """Wait for the utterance to finish and return its error, if any."""
        await asyncio.wait({self.task})
        return self.error


class Speaker:
    """
    Starts speech jobs without making the caller wait for them.

    Args:
        backend: Speech backend to use.
        voice: Voice name; None means the backend default.
        rate: Speed multiplier, 1.0 is normal.
    """

    def __init__(self, backend: SpeechBackend, voice: str | None = None, rate: float = 1.0):
        self.backend = backend
        self.voice = voice
        self.rate = rate
        self._jobs: set[SpeechJob] = set()

    @property
    def pending(self) -> int:
        return len(self._jobs)

    def speak(self, text: str) -> SpeechJob:
        """Start speaking text and return immediately. Must run inside an event loop."""
        task = asyncio.create_task(self._run(text))
        job = SpeechJob(text=text, task=task)
        self._jobs.add(job)
        task.add_done_callback(lambda _: self._jobs.discard(job))
        return job

    async def _run(self, text: str) -> SpeechError | None:
        try:
            await self.backend.speak(text, self.voice, self.rate)
        except SpeechError as e:
            logger.error("Speech failed", error=str(e))
            return e
        except asyncio.CancelledError:
            logger.speech("Speech stopped")
            raise
        except Exception as e:
            logger.error("Speech failed", error=repr(e))
            return SpeechError("Speech backend error", error=repr(e))
        logger.speech("Text has been spoken.", chars=len(text))
        return None

    async def drain(self) -> None:
        """Wait for every pending job to finish."""
        if self._jobs:
            await asyncio.wait({job.task for job in self._jobs})

    def stop(self) -> None:
        """Cancel every pending job."""
        for job in list(self._jobs):
            job.task.cancel()
