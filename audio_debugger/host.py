"""
Capabilities the extension needs from whatever editor hosts it.

The command layer only talks to these interfaces, so the same commands run
under the terminal host, a real editor bridge, or test fakes.
"""

from dataclasses import dataclass
from typing import Protocol, Sequence


class Editor(Protocol):
    """Access to the active document."""

    def get_active_selection(self) -> str | None:
        """Return the selected text, or None when no editor is active."""
        ...


class SecretStore(Protocol):
    """Persistent key-value storage for secrets."""

    async def get_secret(self, name: str) -> str | None:
        ...

    async def set_secret(self, name: str, value: str) -> bool:
        """Persist a secret. Returns False if the backend refused it."""
        ...


class Prompter(Protocol):
    """Interactive prompts. A dismissed prompt returns None."""

    async def prompt_text(self, prompt: str, password: bool = False) -> str | None:
        ...

    async def prompt_choice(self, options: Sequence[str], placeholder: str) -> str | None:
        ...


class Notifier(Protocol):
    """User-visible output."""

    def show_info(self, message: str) -> None:
        ...

    def show_text(self, text: str) -> None:
        ...


@dataclass
class Host:
    """Bundle of host capabilities handed to activate()."""

    editor: Editor
    secrets: SecretStore
    prompter: Prompter
    notifier: Notifier
