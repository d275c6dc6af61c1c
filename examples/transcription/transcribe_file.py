#!/usr/bin/env python
"""
Transcribe an audio or video file with OpenAI Whisper.

Usage:
    python examples/transcription/transcribe_file.py path/to/file [language]

The API key is read from OPENAI_API_KEY.
"""

import sys
from pathlib import Path
from typing import Optional

from cinebot import ResponseFormat, TranscriptionOptions, WhisperTranscriber
from cinebot.errors import CineBotError
from cinebot.settings import configure_logging

VIDEO_EXTENSIONS = {".mp4", ".mov", ".m4v", ".mkv", ".avi"}


def run_example(path: str, language: Optional[str] = None):
    configure_logging()
    options = TranscriptionOptions(language=language, response_format=ResponseFormat.TEXT)

    with WhisperTranscriber() as transcriber:
        try:
            if Path(path).suffix.lower() in VIDEO_EXTENSIONS:
                transcript = transcriber.transcribe_video(path, options)
            else:
                transcript = transcriber.transcribe_audio(path, options)
        except CineBotError as e:
            print(f"Error: {e}")
            return

    print("=" * 80)
    print(transcript)
    print("=" * 80)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    run_example(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)
