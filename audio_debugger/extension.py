"""Command registration and the three user actions."""

from dataclasses import dataclass, field
from typing import Awaitable, Callable

from audio_debugger.config import CompletionMode, Settings, build_user_content, get_settings, get_system_prompt
from audio_debugger.credentials import CredentialAccessor
from audio_debugger.exceptions import (
    AudioDebuggerError,
    EmptySelectionError,
    NoActiveEditorError,
    get_user_message,
)
from audio_debugger.host import Host
from audio_debugger.logging import get_logger
from audio_debugger.model import AsyncCompletionClient
from audio_debugger.presenter import ResponsePresenter
from audio_debugger.speech import OpenAISpeechBackend, Speaker, SpeechBackend, SystemSpeechBackend

logger = get_logger("extension")

READ_ALOUD = "audio-debugger.readAloud"
AI_EXPLANATION = "audio-debugger.aiExplanation"
AI_DEBUGGING = "audio-debugger.aiDebugging"
SET_API_KEY = "audio-debugger.setApiKey"

DEBUG_QUERY_PROMPT = "What would you like to know about this code?"
NO_QUERY_MESSAGE = "No question entered"
KEY_SAVED_MESSAGE = "API key saved"
KEY_NOT_SAVED_MESSAGE = "API key not saved"

Command = Callable[[], Awaitable[None]]


@dataclass
class Extension:
    """
    The activated extension: host capabilities wired to the commands.

    Invocations share no mutable state apart from the speaker's set of
    pending jobs, so commands can run concurrently.
    """

    host: Host
    credentials: CredentialAccessor
    completion_client: AsyncCompletionClient
    speaker: Speaker
    presenter: ResponsePresenter
    commands: dict[str, Command] = field(default_factory=dict)

    def __post_init__(self):
        self.commands.update({
            READ_ALOUD: self.read_aloud,
            AI_EXPLANATION: self.explain,
            AI_DEBUGGING: self.debug,
            SET_API_KEY: self.set_api_key,
        })

    async def execute(self, command_id: str) -> None:
        """
        Run a registered command.

        Failures become an informational message for the user; unexpected
        ones are logged as errors first.

        Raises:
            KeyError: If no command is registered under command_id.
        """
        command = self.commands[command_id]
        logger.debug("Executing command", command=command_id)
        try:
            await command()
        except AudioDebuggerError as e:
            logger.info("Command aborted", command=command_id, reason=str(e))
            self.host.notifier.show_info(get_user_message(e))
        except Exception as e:
            logger.error("Command failed", command=command_id, error=repr(e))
            self.host.notifier.show_info(get_user_message(e))

    def _require_selection(self) -> str:
        selection = self.host.editor.get_active_selection()
        if selection is None:
            raise NoActiveEditorError()
        if not selection.strip():
            raise EmptySelectionError()
        return selection

    async def read_aloud(self) -> None:
        text = self._require_selection()
        self.speaker.speak(text)

    async def explain(self) -> None:
        code = self._require_selection()
        content = build_user_content(CompletionMode.EXPLAIN, code)
        answer = await self.completion_client.complete(get_system_prompt(), content)
        await self.presenter.present(answer)

    async def debug(self) -> None:
        code = self._require_selection()
        query = await self.host.prompter.prompt_text(DEBUG_QUERY_PROMPT)
        if query is None or not query.strip():
            self.host.notifier.show_info(NO_QUERY_MESSAGE)
            return
        content = build_user_content(CompletionMode.DEBUG, code, query.strip())
        answer = await self.completion_client.complete(get_system_prompt(), content)
        await self.presenter.present(answer)

    async def set_api_key(self) -> None:
        """Replace the stored API key."""
        stored = await self.credentials.prompt_and_store()
        self.host.notifier.show_info(KEY_SAVED_MESSAGE if stored else KEY_NOT_SAVED_MESSAGE)


def create_speech_backend(settings: Settings, credentials: CredentialAccessor) -> SpeechBackend:
    """Pick the speech backend named in the settings."""
    backend = settings.speech.backend
    if backend == "system":
        return SystemSpeechBackend()
    if backend == "openai":
        return OpenAISpeechBackend(
            credentials.get_key,
            model=settings.speech.openai_model,
            default_voice=settings.speech.openai_voice,
            base_url=settings.model.base_url,
        )
    raise ValueError(f"Unknown speech backend: {backend!r}")


def activate(
    host: Host,
    settings: Settings | None = None,
    speech_backend: SpeechBackend | None = None,
) -> Extension:
    """
    Wire the host to the commands and return the active extension.

    Args:
        host: Host capabilities.
        settings: Configuration; defaults to the global settings.
        speech_backend: Overrides the backend chosen by the settings.
    """
    settings = settings or get_settings()
    credentials = CredentialAccessor(host.secrets, host.prompter, settings.secrets.key_name)
    speaker = Speaker(
        speech_backend or create_speech_backend(settings, credentials),
        voice=settings.speech.voice,
        rate=settings.speech.rate,
    )
    extension = Extension(
        host=host,
        credentials=credentials,
        completion_client=AsyncCompletionClient(settings.model, credentials),
        speaker=speaker,
        presenter=ResponsePresenter(host.prompter, host.notifier, speaker),
    )
    logger.info("Audio Debugger is now active!", commands=len(extension.commands))
    return extension


def deactivate(extension: Extension) -> None:
    """Stop any speech still playing."""
    extension.speaker.stop()
