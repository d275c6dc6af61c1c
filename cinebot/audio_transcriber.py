"""
Audio transcription through the OpenAI speech-to-text endpoint.

The transcriber uploads an audio file as a multipart/form-data request and
returns the transcript as a string. Video files are handled by extracting
their audio track to a temporary file first; that file is always deleted
once the request finishes.

Each operation has three calling conventions built on one core:

- ``submit_audio`` / ``submit_video`` run on a thread pool and call a
  completion handler with a ``Result``; they return a ``CallHandle``.
- ``transcribe_audio`` / ``transcribe_video`` block and return the text or
  raise.
- ``transcribe_audio_async`` / ``transcribe_video_async`` are awaitable.
"""

from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

import httpx
from loguru import logger

from cinebot.audio_extractor import discard_audio, extract_audio
from cinebot.errors import (
    AudioExtractionError,
    CineBotError,
    DecodingError,
    FileTooLargeError,
    InvalidResponseError,
    NetworkError,
    ServerError,
)
from cinebot.multipart import AudioPayload, build_multipart_body, generate_boundary
from cinebot.relay import (
    AsyncCompletionRelay,
    CallHandle,
    CompletionHandler,
    CompletionRelay,
    Result,
    dispatch,
)
from cinebot.settings import TranscriptionConfig, mask_sensitive_string


class ResponseFormat(str, Enum):
    JSON = "json"
    TEXT = "text"
    SRT = "srt"
    VERBOSE_JSON = "verbose_json"
    VTT = "vtt"


@dataclass(frozen=True)
class TranscriptionOptions:
    """Per-request transcription options.

    Attributes:
        language: ISO 639-1 language of the audio. None lets the model detect it.
        temperature: Sampling temperature in [0, 1]. 0 is never sent on the
            wire, so it behaves exactly like "unset".
        response_format: Format requested from the endpoint. Only ``text``
            and the ``text`` field of JSON bodies are read back.
        timestamp: Ask the endpoint for timestamps.
    """

    language: Optional[str] = None
    temperature: float = 0.0
    response_format: ResponseFormat = ResponseFormat.JSON
    timestamp: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError(f"temperature must be within [0, 1], got {self.temperature}")
        # Accept plain strings such as "text" for the format.
        object.__setattr__(self, "response_format", ResponseFormat(self.response_format))


class AudioTranscriber(ABC):
    """Base class for transcription backends.

    Subclasses implement ``_transcribe_core``; the callback, blocking and
    async entry points here all go through it.
    """

    model: str

    def __init__(self, max_workers: int) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="cinebot-transcribe")

    @abstractmethod
    def _transcribe_core(self, audio_path: str, options: TranscriptionOptions) -> Result[str]:
        """Transcribe one audio file. Never raises for expected failures."""
        ...

    def _transcribe_video_core(self, video_path: str, options: TranscriptionOptions) -> Result[str]:
        try:
            audio_path = extract_audio(video_path)
        except AudioExtractionError as e:
            logger.error(f"Audio extraction failed: {e}")
            return Result.failure(e)
        try:
            return self._transcribe_core(audio_path, options)
        finally:
            discard_audio(audio_path)

    # Callback form

    def submit_audio(
        self,
        audio_path: Union[str, Path],
        on_complete: CompletionHandler[str],
        options: Optional[TranscriptionOptions] = None,
    ) -> CallHandle[str]:
        """Transcribe an audio file in the background.

        ``on_complete`` is called exactly once, on a worker thread, with
        the ``Result``.
        """
        return dispatch(
            self._executor, self._transcribe_core, on_complete, str(audio_path), options or TranscriptionOptions()
        )

    def submit_video(
        self,
        video_path: Union[str, Path],
        on_complete: CompletionHandler[str],
        options: Optional[TranscriptionOptions] = None,
    ) -> CallHandle[str]:
        """Extract the audio of a video and transcribe it in the background."""
        return dispatch(
            self._executor, self._transcribe_video_core, on_complete, str(video_path), options or TranscriptionOptions()
        )

    # Direct form

    def transcribe_audio(self, audio_path: Union[str, Path], options: Optional[TranscriptionOptions] = None) -> str:
        """Transcribe an audio file and return the transcript.

        Must not be called from one of this transcriber's own worker threads.

        Raises:
            CineBotError: One of the taxonomy errors.
            OSError: If the audio file cannot be read.
        """
        relay: CompletionRelay[str] = CompletionRelay()
        self.submit_audio(audio_path, relay, options)
        return relay.wait()

    def transcribe_video(self, video_path: Union[str, Path], options: Optional[TranscriptionOptions] = None) -> str:
        """Extract audio from a video, transcribe it and delete the extracted file."""
        relay: CompletionRelay[str] = CompletionRelay()
        self.submit_video(video_path, relay, options)
        return relay.wait()

    # Async form

    async def transcribe_audio_async(
        self, audio_path: Union[str, Path], options: Optional[TranscriptionOptions] = None
    ) -> str:
        relay: AsyncCompletionRelay[str] = AsyncCompletionRelay()
        self.submit_audio(audio_path, relay, options)
        return await relay.wait()

    async def transcribe_video_async(
        self, video_path: Union[str, Path], options: Optional[TranscriptionOptions] = None
    ) -> str:
        relay: AsyncCompletionRelay[str] = AsyncCompletionRelay()
        self.submit_video(video_path, relay, options)
        return await relay.wait()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "AudioTranscriber":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class WhisperTranscriber(AudioTranscriber):
    """Transcriber for the OpenAI ``/audio/transcriptions`` endpoint.

    Sends exactly one request per call: no retries, no backoff.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[TranscriptionConfig] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """Initialize the transcriber.

        Args:
            api_key: OpenAI API key. Falls back to ``config.api_key`` (OPENAI_API_KEY).
            config: Endpoint, model, size ceiling and pool settings.
            http_client: Client used for the upload. Created on first use if None.
        """
        self._config = config or TranscriptionConfig()
        super().__init__(max_workers=self._config.max_workers)
        self.model = self._config.model
        self._api_key = api_key if api_key is not None else (self._config.api_key or "")
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._client_lock = threading.Lock()

        logger.debug(
            f"Using {self.__class__.__name__}\n"
            f"API Key: {mask_sensitive_string(self._api_key)}\n"
            f"Endpoint: {self.endpoint}\n"
            f"Model: {self.model}\n"
        )
        if not self._api_key:
            logger.warning("No OpenAI API key configured; requests will be rejected")

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def endpoint(self) -> str:
        return self._config.endpoint

    @property
    def max_file_size(self) -> int:
        return self._config.max_file_size

    @property
    def http_client(self) -> httpx.Client:
        if self._http_client is None:
            with self._client_lock:
                if self._http_client is None:
                    self._http_client = httpx.Client(timeout=self._config.timeout)
        return self._http_client

    def _transcribe_core(self, audio_path: str, options: TranscriptionOptions) -> Result[str]:
        try:
            return Result.success(self._request_transcription(audio_path, options))
        except CineBotError as e:
            logger.error(f"Transcription failed for {audio_path}: {e}")
            return Result.failure(e)
        except OSError as e:
            logger.error(f"Could not read audio file {audio_path}: {e}")
            return Result.failure(e)

    def _request_transcription(self, audio_path: str, options: TranscriptionOptions) -> str:
        size = Path(audio_path).stat().st_size
        if size > self.max_file_size:
            raise FileTooLargeError(size, self.max_file_size)

        boundary = generate_boundary()
        body = build_multipart_body(AudioPayload.from_file(audio_path), options, boundary, model=self.model)
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": f"multipart/form-data; boundary={boundary}",
        }

        logger.info(f"Transcribing audio with OpenAI Whisper: {audio_path} ({size} bytes)")
        try:
            response = self.http_client.post(self.endpoint, content=body, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(e) from e

        return self._decode_response(response, options)

    @staticmethod
    def _decode_response(response: httpx.Response, options: TranscriptionOptions) -> str:
        if not response.is_success:
            raise ServerError(response.status_code, _extract_error_message(response.content))

        if options.response_format is ResponseFormat.TEXT:
            try:
                return response.content.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidResponseError(f"Transcript is not valid UTF-8: {e}") from e

        if not response.content:
            raise InvalidResponseError("Empty response body from transcription endpoint")
        try:
            payload = json.loads(response.content)
            text = payload["text"]
        except (ValueError, KeyError, TypeError) as e:
            raise DecodingError(e) from e
        if not isinstance(text, str):
            raise DecodingError(TypeError(f"'text' must be a string, got {type(text).__name__}"))
        return text

    def close(self) -> None:
        super().close()
        if self._owns_http_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None


def _extract_error_message(content: bytes) -> Optional[str]:
    """``error.message`` from a JSON error envelope, if there is one."""
    try:
        envelope = json.loads(content)
    except ValueError:
        return None
    if not isinstance(envelope, dict):
        return None
    error = envelope.get("error")
    if not isinstance(error, dict):
        return None
    message = error.get("message")
    return message if isinstance(message, str) else None
