"""Chat-completion client for the AI-backed commands."""

from dataclasses import dataclass
from typing import Any

import httpx

from audio_debugger.config.settings import ModelSettings
from audio_debugger.credentials import CredentialAccessor
from audio_debugger.exceptions import (
    CompletionConnectionError,
    CompletionError,
    CompletionInvalidResponseError,
    CompletionRateLimitError,
    CompletionStatusError,
    MissingCredentialError,
)
from audio_debugger.logging import get_logger

logger = get_logger("completion")

FALLBACK_MESSAGE = "Sorry, I couldn't get an answer from the AI service. Please try again later."
MISSING_KEY_MESSAGE = MissingCredentialError.user_message


@dataclass(frozen=True)
class CompletionRequest:
    """A chat request: one system message followed by one user message."""

    model: str
    messages: tuple[dict[str, str], ...]

    def to_payload(self) -> dict[str, Any]:
        return {"model": self.model, "messages": [dict(m) for m in self.messages]}


class MessageBuilder:
    """Helper class for building conversation messages."""

    @staticmethod
    def create_system_message(content: str) -> dict[str, str]:
        """Create a system message."""
        return {"role": "system", "content": content}

    @staticmethod
    def create_user_message(content: str) -> dict[str, str]:
        """Create a user message."""
        return {"role": "user", "content": content}

    @classmethod
    def build_request(cls, model: str, system_prompt: str, user_content: str) -> CompletionRequest:
        return CompletionRequest(
            model=model,
            messages=(
                cls.create_system_message(system_prompt),
                cls.create_user_message(user_content),
            ),
        )


class AsyncCompletionClient:
    """
    Client for an OpenAI-compatible chat-completion endpoint.

    Every call is a single attempt. Failures are logged and turned into
    FALLBACK_MESSAGE; callers never see an exception.

    Args:
        config: Endpoint, model and timeout settings.
        credentials: Source of the bearer token.
    """

    def __init__(self, config: ModelSettings | None, credentials: CredentialAccessor):
        self.config = config or ModelSettings()
        self.credentials = credentials

    @property
    def endpoint(self) -> str:
        return self.config.base_url.rstrip("/") + "/chat/completions"

    async def complete(self, system_prompt: str, user_content: str) -> str:
        """
        Ask the model and return its answer text.

        Args:
            system_prompt: Content of the system message.
            user_content: Content of the user message.

        Returns:
            The first choice's message content, MISSING_KEY_MESSAGE when no
            key is stored, or FALLBACK_MESSAGE on any failure.
        """
        try:
            api_key = await self.credentials.require_key()
        except MissingCredentialError as e:
            logger.warn("Request not sent", reason=str(e))
            return e.user_message

        request = MessageBuilder.build_request(self.config.model_name, system_prompt, user_content)
        try:
            return await self.request(request, api_key)
        except CompletionError as e:
            logger.error(
                "Completion request failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            return FALLBACK_MESSAGE

    async def request(self, request: CompletionRequest, api_key: str) -> str:
        """
        Send one completion request.

        Raises:
            CompletionConnectionError: If the service cannot be reached.
            CompletionRateLimitError: On HTTP 429.
            CompletionStatusError: On any other non-2xx status.
            CompletionInvalidResponseError: If the body is not a chat completion.
        """
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        logger.request("POST chat/completions", model=request.model, endpoint=self.endpoint)

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                response = await client.post(
                    self.endpoint,
                    json=request.to_payload(),
                    headers=headers,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            body = e.response.text[:500]
            if status == 429:
                raise CompletionRateLimitError(
                    "Rate limited by completion service", status_code=status, body=body
                ) from e
            raise CompletionStatusError(
                "Completion service returned an error status", status_code=status, body=body
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise CompletionConnectionError(
                "Completion request failed", endpoint=self.endpoint, error=repr(e)
            ) from e
        except Exception as e:
            # Bad header values (e.g. a non-ASCII key) fail while httpx builds the request.
            raise CompletionConnectionError(
                "Completion request could not be sent", endpoint=self.endpoint, error=repr(e)
            ) from e

        logger.response("Completion received", status_code=response.status_code)
        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> str:
        """Extract choices[0].message.content from the body."""
        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise CompletionInvalidResponseError(
                "Malformed completion response", error=repr(e), body=response.text[:500]
            ) from e

        if not isinstance(content, str):
            raise CompletionInvalidResponseError(
                "Completion content is not text", content_type=type(content).__name__
            )
        return content
