"""Configuration and prompt text."""

from audio_debugger.config.prompts import (
    CompletionMode,
    build_user_content,
    get_system_prompt,
)
from audio_debugger.config.settings import (
    LogSettings,
    ModelSettings,
    SecretSettings,
    Settings,
    SpeechSettings,
    configure,
    get_settings,
    settings,
)

__all__ = [
    "CompletionMode",
    "build_user_content",
    "get_system_prompt",
    "LogSettings",
    "ModelSettings",
    "SecretSettings",
    "Settings",
    "SpeechSettings",
    "configure",
    "get_settings",
    "settings",
]
