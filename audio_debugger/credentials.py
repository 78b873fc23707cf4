"""API key lookup, prompting and storage."""

import asyncio
import os

import keyring

from audio_debugger.exceptions import MissingCredentialError
from audio_debugger.host import Prompter, SecretStore
from audio_debugger.logging import get_logger

logger = get_logger("credentials")

API_KEY_PROMPT = "Enter your API key for the AI service"


class KeyringSecretStore:
    """
    Secret store backed by the system keychain.

    Read priority:
    1) the environment variable named by ``env_var`` (for CI and containers)
    2) the system keychain, under ``service``

    Keys are never written to config files or logs.
    """

    def __init__(self, service: str, env_var: str | None = None):
        self.service = service
        self.env_var = env_var

    async def get_secret(self, name: str) -> str | None:
        if self.env_var and (env_value := os.environ.get(self.env_var)):
            return env_value
        try:
            return await asyncio.to_thread(keyring.get_password, self.service, name)
        except Exception as e:
            logger.error("Failed to read from system keychain", service=self.service, error=str(e))
            return None

    async def set_secret(self, name: str, value: str) -> bool:
        """
        Write a secret to the system keychain.

        - macOS: Keychain
        - Windows: Credential Manager
        - Linux: Secret Service (needs a desktop session)

        Returns False when no usable keyring backend is available.
        """
        try:
            await asyncio.to_thread(keyring.set_password, self.service, name, value)
            return True
        except Exception as e:
            logger.error("Failed to save to system keychain", service=self.service, error=str(e))
            return False


class MemorySecretStore:
    """Process-local secret store. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})

    async def get_secret(self, name: str) -> str | None:
        return self._values.get(name)

    async def set_secret(self, name: str, value: str) -> bool:
        self._values[name] = value
        return True


class CredentialAccessor:
    """
    Looks up the stored API key and asks for one when it is missing.

    Args:
        store: Where the key is persisted.
        prompter: Used to ask the user for a key.
        key_name: Fixed name the key is stored under.
    """

    def __init__(self, store: SecretStore, prompter: Prompter, key_name: str):
        self.store = store
        self.prompter = prompter
        self.key_name = key_name

    async def get_key(self) -> str | None:
        """Return the stored key, or None if there is none."""
        key = await self.store.get_secret(self.key_name)
        return key or None

    async def require_key(self) -> str:
        """
        Return the stored key, prompting once when there is none.

        A key entered at the prompt is stored for the next call, but this
        call still fails so nothing is sent without the user's go-ahead.

        Raises:
            MissingCredentialError: If no key was stored before the call.
        """
        key = await self.get_key()
        if key:
            return key
        await self.prompt_and_store()
        raise MissingCredentialError("No API key stored", key_name=self.key_name)

    async def prompt_and_store(self) -> str | None:
        """
        Prompt for a key and persist it.

        Blank or dismissed input leaves the store untouched. The key format
        is not validated; a bad key fails at the remote service.

        Returns:
            The stored key, or None if nothing was stored.
        """
        entered = await self.prompter.prompt_text(API_KEY_PROMPT, password=True)
        if entered is None or not entered.strip():
            logger.info("No API key entered")
            return None

        key = entered.strip()
        if not await self.store.set_secret(self.key_name, key):
            return None
        logger.info("API key stored", key_name=self.key_name)
        return key
