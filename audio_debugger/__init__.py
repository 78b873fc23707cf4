"""
Audio Debugger - read code aloud and ask an AI model about it.

The package wires three editor commands (read aloud, explain, debug) to a
chat-completion client and a text-to-speech backend. Host capabilities are
injected, so the commands run in a terminal or behind any editor bridge.
"""

__version__ = "0.1.0"

from audio_debugger.exceptions import (
    AudioDebuggerError,
    CompletionError,
    CompletionRateLimitError,
    EmptySelectionError,
    MissingCredentialError,
    NoActiveEditorError,
    SpeechError,
    get_user_message,
)
from audio_debugger.extension import (
    AI_DEBUGGING,
    AI_EXPLANATION,
    READ_ALOUD,
    SET_API_KEY,
    Extension,
    activate,
    deactivate,
)
from audio_debugger.host import Host
from audio_debugger.logging import LogLevel, StructuredLogger, configure_logging, get_logger
from audio_debugger.model import FALLBACK_MESSAGE, AsyncCompletionClient
from audio_debugger.speech import Speaker, SpeechJob

__all__ = [
    # Extension
    "Extension",
    "activate",
    "deactivate",
    "Host",
    "READ_ALOUD",
    "AI_EXPLANATION",
    "AI_DEBUGGING",
    "SET_API_KEY",
    # Completion & speech
    "AsyncCompletionClient",
    "FALLBACK_MESSAGE",
    "Speaker",
    "SpeechJob",
    # Logging
    "get_logger",
    "configure_logging",
    "StructuredLogger",
    "LogLevel",
    # Exceptions
    "AudioDebuggerError",
    "NoActiveEditorError",
    "EmptySelectionError",
    "MissingCredentialError",
    "CompletionError",
    "CompletionRateLimitError",
    "SpeechError",
    "get_user_message",
]
