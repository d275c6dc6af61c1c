"""Environment-driven configuration for the cinebot services."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Optional

from loguru import logger

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"

# OpenAI's upload ceiling for audio transcription.
DEFAULT_MAX_AUDIO_FILE_SIZE = 25 * 1_000_000

# Same as the URL loading default of the desktop app.
DEFAULT_REQUEST_TIMEOUT = 60.0

MAX_CONCURRENT_TASKS = int(os.getenv("MAX_CONCURRENT_TASKS", "4"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEFAULT_SYSTEM_PROMPT = (
    "You are a smart and creative assistant who helps create quality content. "
    "You answer the user's requests concisely and precisely."
)


def mask_sensitive_string(value: Optional[str], visible_chars: int = 4) -> str:
    """Mask all but the first ``visible_chars`` characters of a secret."""
    if not value:
        return ""
    if len(value) <= visible_chars:
        return value
    return value[:visible_chars] + "*" * (len(value) - visible_chars)


def validate_required_config(name: str, value: Optional[str], provider: str) -> None:
    if not value:
        raise ValueError(f"Missing required configuration '{name}' for {provider}")


def configure_logging(level: Optional[str] = None) -> None:
    """Replace loguru's default sink with a stderr sink at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=(level or LOG_LEVEL).upper())


def _env_api_key() -> str:
    return os.getenv("OPENAI_API_KEY", "")


def _env_base_url() -> str:
    return os.getenv("OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL)


@dataclass
class OpenAIServiceConfig:
    """Settings shared by every OpenAI-backed service."""

    model: str
    api_key: Optional[str] = None
    api_base: Optional[str] = None

    def validate(self, provider: str) -> None:
        validate_required_config("model", self.model, provider)
        validate_required_config("api_key", self.api_key, provider)
        validate_required_config("api_base", self.api_base, provider)


@dataclass
class TranscriptionConfig(OpenAIServiceConfig):
    """Settings for the speech-to-text endpoint.

    The API key is not validated here: ``WhisperTranscriber`` also accepts
    one directly.
    """

    model: str = field(default_factory=lambda: os.getenv("OPENAI_TRANSCRIPTION_MODEL", "whisper-1"))
    api_key: Optional[str] = field(default_factory=_env_api_key)
    api_base: Optional[str] = field(default_factory=_env_base_url)
    max_file_size: int = field(
        default_factory=lambda: int(os.getenv("MAX_AUDIO_FILE_SIZE", str(DEFAULT_MAX_AUDIO_FILE_SIZE)))
    )
    timeout: float = field(default_factory=lambda: float(os.getenv("OPENAI_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))))
    max_workers: int = MAX_CONCURRENT_TASKS

    @property
    def endpoint(self) -> str:
        return f"{(self.api_base or DEFAULT_OPENAI_BASE_URL).rstrip('/')}/audio/transcriptions"


@dataclass
class ChatConfig(OpenAIServiceConfig):
    model: str = field(default_factory=lambda: os.getenv("OPENAI_CHAT_MODEL", "gpt-4o"))
    api_key: Optional[str] = field(default_factory=_env_api_key)
    api_base: Optional[str] = field(default_factory=_env_base_url)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    timeout: float = field(default_factory=lambda: float(os.getenv("OPENAI_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))))

    def __post_init__(self) -> None:
        self.validate("OpenAI chat")


@dataclass
class ImageGenerationConfig(OpenAIServiceConfig):
    model: str = field(default_factory=lambda: os.getenv("OPENAI_IMAGE_MODEL", "dall-e-3"))
    api_key: Optional[str] = field(default_factory=_env_api_key)
    api_base: Optional[str] = field(default_factory=_env_base_url)
    size: str = field(default_factory=lambda: os.getenv("OPENAI_IMAGE_SIZE", "1024x1024"))
    quality: str = field(default_factory=lambda: os.getenv("OPENAI_IMAGE_QUALITY", "standard"))
    timeout: float = field(default_factory=lambda: float(os.getenv("OPENAI_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))))

    def __post_init__(self) -> None:
        self.validate("OpenAI images")
