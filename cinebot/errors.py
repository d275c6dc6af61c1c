"""Error taxonomy shared by the transcription, chat and image services."""

from __future__ import annotations

from typing import Optional

import openai


class CineBotError(Exception):
    """Base class for every failure surfaced by cinebot."""


class InvalidAPIKeyError(CineBotError):
    """The API key is missing or was rejected."""

    def __init__(self, message: str = "OpenAI API key is invalid or missing") -> None:
        super().__init__(message)


class FileTooLargeError(CineBotError):
    """The audio file exceeds the upload ceiling. No request was made."""

    def __init__(self, actual_size: int, max_size: int) -> None:
        self.actual_size = actual_size
        self.max_size = max_size
        super().__init__(
            f"Audio file too large: {actual_size / 1_000_000:.1f} MB " f"(maximum: {max_size / 1_000_000:.1f} MB)"
        )


class AudioExtractionError(CineBotError):
    """The audio track could not be extracted from the source media."""


class InvalidResponseError(CineBotError):
    """The server answered, but with nothing usable."""


class NetworkError(CineBotError):
    """Transport-level failure: DNS, TLS, connection reset, timeout."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Network error: {cause}")


class ServerError(CineBotError):
    """Non-2xx HTTP status, with the server's message when one was sent."""

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Server error ({status_code}): {message or 'no details'}")


class DecodingError(CineBotError):
    """2xx status, but the payload does not have the expected shape."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Decoding error: {cause}")


def from_openai_error(exc: openai.OpenAIError) -> CineBotError:
    """Map an ``openai`` SDK exception onto the cinebot taxonomy."""
    if isinstance(exc, openai.APIConnectionError):
        return NetworkError(exc)
    if isinstance(exc, openai.APIStatusError):
        body = exc.body
        message = body.get("message") if isinstance(body, dict) else None
        return ServerError(exc.status_code, message if isinstance(message, str) else None)
    if isinstance(exc, openai.APIResponseValidationError):
        return DecodingError(exc)
    return InvalidResponseError(str(exc))
