"""
Pytest configuration, shared fixtures and host fakes.
"""
import pytest
import sys
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


TEST_BASE_URL = "http://localhost:8000/v1"
TEST_ENDPOINT = TEST_BASE_URL + "/chat/completions"
TEST_KEY_NAME = "audio-debugger.apiKey"


# =============================================================================
# Host fakes
# =============================================================================

class FakeEditor:
    """Editor whose selection is fixed; None means no active editor."""

    def __init__(self, selection):
        self.selection = selection

    def get_active_selection(self):
        return self.selection


class FakePrompter:
    """Answers prompts from queues and records what was asked."""

    def __init__(self, texts=None, choice=None):
        self.texts = list(texts or [])
        self.choice = choice
        self.text_prompts = []
        self.choice_prompts = []

    async def prompt_text(self, prompt, password=False):
        self.text_prompts.append((prompt, password))
        return self.texts.pop(0) if self.texts else None

    async def prompt_choice(self, options, placeholder):
        self.choice_prompts.append(tuple(options))
        return self.choice


class FakeNotifier:
    """Collects everything shown to the user."""

    def __init__(self):
        self.infos = []
        self.texts = []

    def show_info(self, message):
        self.infos.append(message)

    def show_text(self, text):
        self.texts.append(text)


class FakeSpeechBackend:
    """Records utterances; optionally fails with a given error."""

    def __init__(self, error=None):
        self.error = error
        self.spoken = []

    async def speak(self, text, voice, rate):
        self.spoken.append((text, voice, rate))
        if self.error is not None:
            raise self.error


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def test_settings():
    """Provide settings pointing at a local test endpoint."""
    from audio_debugger.config import Settings

    settings = Settings()
    settings.model.base_url = TEST_BASE_URL
    settings.model.model_name = "test-model"
    settings.model.timeout = None
    settings.secrets.key_name = TEST_KEY_NAME
    settings.speech.voice = None
    settings.speech.rate = 1.0
    return settings


@pytest.fixture
def speech_backend():
    return FakeSpeechBackend()


@pytest.fixture
def failing_speech_backend():
    from audio_debugger.exceptions import SpeechError
    return FakeSpeechBackend(error=SpeechError("no speech engine"))


@pytest.fixture
def make_host():
    """Build a Host from fakes. Pass api_key=None for an empty secret store."""
    from audio_debugger.credentials import MemorySecretStore
    from audio_debugger.host import Host

    def _make(selection="print('hi')", api_key="test-key-12345", texts=None, choice="Text"):
        initial = {TEST_KEY_NAME: api_key} if api_key is not None else {}
        return Host(
            editor=FakeEditor(selection),
            secrets=MemorySecretStore(initial),
            prompter=FakePrompter(texts=texts, choice=choice),
            notifier=FakeNotifier(),
        )

    return _make


@pytest.fixture
def completion_body():
    """Provide a well-formed chat completion body."""
    return {
        "choices": [{
            "message": {
                "role": "assistant",
                "content": "Prints hi to stdout."
            }
        }]
    }


@pytest.fixture
def mock_http():
    """
    Patch httpx.AsyncClient so post() returns the given status/body or raises.

    Yields the mocked client; its ``post`` is an AsyncMock to assert on.
    """

    @contextmanager
    def _mock(status_code=200, json_body=None, content=None, error=None):
        with patch('httpx.AsyncClient') as mock_client_class:
            mock_client = AsyncMock()
            if error is not None:
                mock_client.post = AsyncMock(side_effect=error)
            else:
                request = httpx.Request("POST", TEST_ENDPOINT)
                if json_body is not None:
                    response = httpx.Response(status_code, json=json_body, request=request)
                else:
                    response = httpx.Response(status_code, content=content or b"", request=request)
                mock_client.post = AsyncMock(return_value=response)
            mock_client.__aenter__ = AsyncMock(return_value=mock_client)
            mock_client.__aexit__ = AsyncMock(return_value=None)
            mock_client_class.return_value = mock_client
            yield mock_client

    return _mock
