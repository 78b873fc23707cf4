"""Completion client module for the AI-backed commands."""

from audio_debugger.model.client import (
    FALLBACK_MESSAGE,
    MISSING_KEY_MESSAGE,
    AsyncCompletionClient,
    CompletionRequest,
    MessageBuilder,
)

__all__ = [
    "FALLBACK_MESSAGE",
    "MISSING_KEY_MESSAGE",
    "AsyncCompletionClient",
    "CompletionRequest",
    "MessageBuilder",
]
