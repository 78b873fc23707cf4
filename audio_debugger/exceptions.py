"""
Exception hierarchy for Audio Debugger.

Every error carries a user-facing message and optional keyword context for
logging. Commands convert these into informational messages at the command
boundary; the completion client converts its own errors into the fixed
fallback string, so none of them ever reach the host.

Usage:
    from audio_debugger.exceptions import CompletionRateLimitError

    raise CompletionRateLimitError(
        "HTTP 429 from completion endpoint",
        status_code=429,
        model="gpt-4o-mini"
    )
"""

from typing import Any


class AudioDebuggerError(Exception):
    """
    Base exception for all Audio Debugger errors.

    Attributes:
        user_message: User-friendly error description
        context: Additional context for debugging
    """

    user_message: str = "An error occurred"

    def __init__(self, message: str | None = None, **context: Any):
        super().__init__(message or self.user_message)
        self.context = context

    def __str__(self) -> str:
        base = super().__str__()
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base} ({ctx_str})"
        return base


# ============================================================================
# Selection Errors
# ============================================================================

class SelectionError(AudioDebuggerError):
    """Base class for selection-related errors."""
    user_message = "Could not read the selection"


class NoActiveEditorError(SelectionError):
    """No editor is open, so there is nothing to read from."""
    user_message = "No editor is active"


class EmptySelectionError(SelectionError):
    """The selection is empty or whitespace only."""
    user_message = "No text selected"


# ============================================================================
# Credential Errors
# ============================================================================

class CredentialError(AudioDebuggerError):
    """Base class for credential errors."""
    user_message = "API key error"


class MissingCredentialError(CredentialError):
    """No API key is stored and the user did not provide one."""
    user_message = "Please enter your API key to use the AI features."


# ============================================================================
# Completion Errors
# ============================================================================

class CompletionError(AudioDebuggerError):
    """Base class for completion service errors."""
    user_message = "AI service error"


class CompletionConnectionError(CompletionError):
    """The completion service could not be reached."""
    user_message = "Cannot connect to the AI service. Please check your network."


class CompletionStatusError(CompletionError):
    """The completion service answered with a non-2xx status."""
    user_message = "The AI service returned an error."

    @property
    def status_code(self) -> int | None:
        """HTTP status code of the failed response."""
        return self.context.get("status_code")


class CompletionRateLimitError(CompletionStatusError):
    """
    The completion service rejected the request with HTTP 429.

    Not retried: each request is a single user-initiated action.
    """
    user_message = "AI service rate limit exceeded. Please wait and try again."


class CompletionInvalidResponseError(CompletionError):
    """The response body could not be read as a chat completion."""
    user_message = "The AI service returned an invalid response."


# ============================================================================
# Speech Errors
# ============================================================================

class SpeechError(AudioDebuggerError):
    """Text-to-speech backend failed."""
    user_message = "Failed to read the text aloud"


# ============================================================================
# Utility Functions
# ============================================================================

def get_user_message(error: Exception) -> str:
    """
    Get a user-friendly error message.

    Args:
        error: The exception

    Returns:
        User-friendly message string
    """
    if isinstance(error, AudioDebuggerError):
        return error.user_message
    # Unexpected errors may carry paths or secrets; keep them in the log.
    return AudioDebuggerError.user_message
