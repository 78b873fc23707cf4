"""
Unified configuration management for Audio Debugger.

Supports loading from:
- Environment variables (a .env file is loaded by the CLI)
- YAML config files (config.yaml)
- Programmatic overrides

Priority (highest to lowest):
1. Programmatic overrides
2. Environment variables
3. YAML config files
4. Default values

Usage:
    from audio_debugger.config import settings

    settings.model.model_name
    settings.speech.rate = 1.25
    settings.reload()
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from audio_debugger.logging import get_logger

logger = get_logger("config")


# =============================================================================
# Configuration Dataclasses
# =============================================================================

@dataclass
class ModelSettings:
    """Chat-completion service configuration."""
    base_url: str = "https://api.openai.com/v1"
    model_name: str = "gpt-4o-mini"
    # None leaves the request unbounded.
    timeout: Optional[float] = None


@dataclass
class SpeechSettings:
    """Text-to-speech configuration."""
    backend: str = "system"   # "system" or "openai"
    voice: Optional[str] = None
    rate: float = 1.0
    openai_model: str = "gpt-4o-mini-tts"
    openai_voice: str = "alloy"


@dataclass
class SecretSettings:
    """Secret storage configuration."""
    service: str = "audio-debugger"
    key_name: str = "audio-debugger.apiKey"
    env_var: str = "AUDIO_DEBUGGER_API_KEY"


@dataclass
class LogSettings:
    """Logging configuration."""
    level: str = "WARN"
    json_format: bool = False


@dataclass
class Settings:
    """
    Main settings container.

    Provides unified access to all configuration.
    """
    model: ModelSettings = field(default_factory=ModelSettings)
    speech: SpeechSettings = field(default_factory=SpeechSettings)
    secrets: SecretSettings = field(default_factory=SecretSettings)
    log: LogSettings = field(default_factory=LogSettings)

    # Internal state
    _config_file: Optional[Path] = None
    _env_prefix: str = "AUDIO_DEBUGGER_"

    def __post_init__(self):
        """Load configuration after initialization."""
        self._load_from_yaml()
        self._load_from_env()

    def _load_from_env(self):
        """Load settings from environment variables."""
        prefix = self._env_prefix

        # Model settings
        if val := os.getenv(f"{prefix}BASE_URL"):
            self.model.base_url = val
        if val := os.getenv(f"{prefix}MODEL"):
            self.model.model_name = val
        if val := os.getenv(f"{prefix}TIMEOUT"):
            self.model.timeout = float(val)

        # Speech settings
        if val := os.getenv(f"{prefix}SPEECH_BACKEND"):
            self.speech.backend = val.lower()
        if val := os.getenv(f"{prefix}VOICE"):
            self.speech.voice = val
        if val := os.getenv(f"{prefix}RATE"):
            self.speech.rate = float(val)

        # Log settings
        if val := os.getenv(f"{prefix}LOG_LEVEL"):
            self.log.level = val.upper()
        if val := os.getenv(f"{prefix}LOG_JSON"):
            self.log.json_format = val.lower() in ("true", "1", "yes")

    def _load_from_yaml(self):
        """Load settings from the first YAML config file found."""
        search_paths = [
            Path.cwd() / "config.yaml",
            Path.cwd() / "config.yml",
            Path.home() / ".audio-debugger" / "config.yaml",
        ]

        for config_path in search_paths:
            if config_path.exists():
                self._config_file = config_path
                self._apply_yaml_config(config_path)
                break

    def _apply_yaml_config(self, path: Path):
        """Apply config from YAML file."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warn("Failed to load config", path=str(path), error=str(e))
            return

        for section in ("model", "speech", "secrets", "log"):
            values = data.get(section)
            if not isinstance(values, dict):
                continue
            section_obj = getattr(self, section)
            for key, val in values.items():
                if hasattr(section_obj, key):
                    setattr(section_obj, key, val)
                else:
                    logger.warn("Unknown config key", section=section, key=key)

    def reload(self):
        """Reload configuration from all sources."""
        self.model = ModelSettings()
        self.speech = SpeechSettings()
        self.secrets = SecretSettings()
        self.log = LogSettings()
        self._config_file = None

        self._load_from_yaml()
        self._load_from_env()

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary. Secrets are never included."""
        return {
            "model": {
                "base_url": self.model.base_url,
                "model_name": self.model.model_name,
                "timeout": self.model.timeout,
            },
            "speech": {
                "backend": self.speech.backend,
                "voice": self.speech.voice,
                "rate": self.speech.rate,
                "openai_model": self.speech.openai_model,
                "openai_voice": self.speech.openai_voice,
            },
            "secrets": {
                "service": self.secrets.service,
                "key_name": self.secrets.key_name,
            },
            "log": {
                "level": self.log.level,
                "json_format": self.log.json_format,
            },
        }

    def __repr__(self) -> str:
        return f"Settings(config_file={self._config_file})"


# =============================================================================
# Global Settings Instance
# =============================================================================

settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings


def configure(**kwargs):
    """
    Configure settings programmatically.

    Args:
        **kwargs: Settings to override in format "section_key=value"

    Example:
        configure(model_model_name="gpt-4o", speech_rate=1.5)
    """
    for key, value in kwargs.items():
        parts = key.split("_", 1)
        if len(parts) == 2:
            section, attr = parts
            if hasattr(settings, section):
                section_obj = getattr(settings, section)
                if hasattr(section_obj, attr):
                    setattr(section_obj, attr, value)
