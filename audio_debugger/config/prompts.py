"""Prompt text for the AI-backed commands."""

from enum import Enum


class CompletionMode(Enum):
    """What the user asked the model to do with the selection."""
    EXPLAIN = "explain"
    DEBUG = "debug"


SYSTEM_PROMPT = (
    "You are a helpful programming assistant inside a code editor. "
    "Your answers may be read aloud, so keep them short, use plain "
    "sentences and avoid markdown formatting."
)

EXPLAIN_INSTRUCTION = "Explain what the following code does:\n\n"

DEBUG_INSTRUCTION = (
    "Help me debug the following code.\n\n"
    "My question: {query}\n\n"
    "Code:\n\n"
)


def get_system_prompt() -> str:
    """Get the system message shared by every AI command."""
    return SYSTEM_PROMPT


def build_user_content(mode: CompletionMode, code: str, query: str | None = None) -> str:
    """
    Build the user message for a completion request.

    The mode instruction comes first, then the selected code verbatim.

    Args:
        mode: Explanation or debugging.
        code: The selected code.
        query: The user's question; required for debugging.

    Raises:
        ValueError: If debugging without a query.
    """
    if mode is CompletionMode.EXPLAIN:
        return EXPLAIN_INSTRUCTION + code
    if not query:
        raise ValueError("A query is required in debug mode")
    return DEBUG_INSTRUCTION.format(query=query) + code
