"""
Audio extraction from video files.

Uses moviepy to write the audio stream of a video to a compact AAC file in
an ``.m4a`` container, the upload format sent to the transcription
endpoint.
"""

from __future__ import annotations

import tempfile
import uuid
from pathlib import Path
from typing import Optional

from loguru import logger
from moviepy import VideoFileClip  # type: ignore[import-untyped]

from cinebot.errors import AudioExtractionError

EXTRACTED_AUDIO_EXTENSION = "m4a"
EXTRACTED_AUDIO_CODEC = "aac"
EXTRACTED_AUDIO_BITRATE = "128k"


def extract_audio(video_path: str, output_dir: Optional[str] = None) -> str:
    """Extract the audio track of a media file.

    Each call writes to a fresh ``<uuid>.m4a`` path, so concurrent calls
    never collide. The caller owns the returned file and must delete it.

    Args:
        video_path: Path to the source media file.
        output_dir: Directory for the output file. Uses the system temp dir if None.

    Returns:
        Path to the extracted audio file.

    Raises:
        AudioExtractionError: For any failure. Partial output is removed first.
    """
    source = Path(video_path)
    output_path = Path(output_dir or tempfile.gettempdir()) / f"{uuid.uuid4()}.{EXTRACTED_AUDIO_EXTENSION}"

    logger.info(f"Extracting audio from {video_path} to {output_path}")

    completed = False
    try:
        if not source.is_file():
            raise AudioExtractionError(f"Media file not found: {video_path}")
        with VideoFileClip(str(source)) as clip:
            if clip.audio is None:
                raise AudioExtractionError(f"No audio track found in: {video_path}")
            clip.audio.write_audiofile(
                str(output_path),
                codec=EXTRACTED_AUDIO_CODEC,
                bitrate=EXTRACTED_AUDIO_BITRATE,
                logger=None,
            )
        completed = True
    except AudioExtractionError:
        raise
    except Exception as e:
        raise AudioExtractionError(f"Failed to extract audio from {video_path}: {e}") from e
    finally:
        if not completed:
            output_path.unlink(missing_ok=True)

    return str(output_path)


def discard_audio(audio_path: str) -> None:
    """Delete an extracted audio file. Failures are logged, never raised."""
    try:
        Path(audio_path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not delete temporary audio file {audio_path}: {e}")
