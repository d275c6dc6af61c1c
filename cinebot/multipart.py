"""multipart/form-data body for the transcription endpoint."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Union

if TYPE_CHECKING:
    from cinebot.audio_transcriber import TranscriptionOptions

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES = {
    "m4a": "audio/m4a",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "mp4": "audio/mp4",
}

CRLF = "\r\n"


def mime_type_for(path: Union[str, Path]) -> str:
    """MIME type of an audio file, from its extension."""
    return MIME_TYPES.get(Path(path).suffix.lstrip(".").lower(), DEFAULT_MIME_TYPE)


def generate_boundary() -> str:
    return str(uuid.uuid4()).upper()


@dataclass(frozen=True)
class AudioPayload:
    """Audio bytes plus the file name they are uploaded under."""

    data: bytes
    filename: str

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "AudioPayload":
        path = Path(path)
        return cls(data=path.read_bytes(), filename=path.name)

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lstrip(".").lower()

    @property
    def mime_type(self) -> str:
        return mime_type_for(self.filename)


def _field(boundary: str, name: str, value: str) -> bytes:
    return (
        f"--{boundary}{CRLF}" f'Content-Disposition: form-data; name="{name}"{CRLF}{CRLF}' f"{value}{CRLF}"
    ).encode("utf-8")


def build_multipart_body(
    payload: AudioPayload,
    options: "TranscriptionOptions",
    boundary: str,
    model: str = "whisper-1",
) -> bytes:
    """Serialize one transcription request body.

    Fields are written in a fixed order: model, language (if set),
    temperature (if non-zero), response_format, timestamp (if true), then
    the file part. A temperature of exactly 0 is therefore never sent, the
    same as leaving it unset. Values are interpolated as-is.
    """
    parts: List[bytes] = [_field(boundary, "model", model)]

    if options.language is not None:
        parts.append(_field(boundary, "language", options.language))

    if options.temperature != 0:
        parts.append(_field(boundary, "temperature", str(options.temperature)))

    parts.append(_field(boundary, "response_format", options.response_format.value))

    if options.timestamp:
        parts.append(_field(boundary, "timestamp", "true"))

    parts.append(
        (
            f"--{boundary}{CRLF}"
            f'Content-Disposition: form-data; name="file"; filename="{payload.filename}"{CRLF}'
            f"Content-Type: {payload.mime_type}{CRLF}{CRLF}"
        ).encode("utf-8")
    )
    parts.append(payload.data)
    parts.append(CRLF.encode("utf-8"))
    parts.append(f"--{boundary}--{CRLF}".encode("utf-8"))

    return b"".join(parts)
