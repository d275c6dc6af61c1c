"""
Video content assistant: transcript first, then publishing material drafted from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from loguru import logger

from cinebot.audio_transcriber import AudioTranscriber, TranscriptionOptions, WhisperTranscriber
from cinebot.chat import ChatAssistant, VideoMetadata
from cinebot.errors import CineBotError
from cinebot.image_generator import GeneratedImage, ImageGenerator, build_thumbnail_prompt


@dataclass
class VideoAssistantConfig:
    """Configuration for video processing."""

    transcription_options: TranscriptionOptions = field(default_factory=TranscriptionOptions)
    generate_metadata: bool = True
    generate_thumbnail: bool = False


@dataclass
class VideoReport:
    transcript: str
    metadata: Optional[VideoMetadata] = None
    thumbnail: Optional[GeneratedImage] = None


class VideoAssistant:
    """
    Transcribes a video and drafts a title, description, hashtags and
    thumbnail for it.
    """

    def __init__(
        self,
        config: Optional[VideoAssistantConfig] = None,
        transcriber: Optional[AudioTranscriber] = None,
        chat: Optional[ChatAssistant] = None,
        images: Optional[ImageGenerator] = None,
    ):
        """
        Initialize VideoAssistant with configuration.

        Args:
            config: Which steps to run and the transcription options
            transcriber: Speech-to-text backend (created if None)
            chat: Chat assistant for metadata (created on first use if None)
            images: Image generator for thumbnails (created on first use if None)
        """
        self.config = config or VideoAssistantConfig()
        self.transcriber = transcriber or WhisperTranscriber()
        self._chat = chat
        self._images = images

    @property
    def chat(self) -> ChatAssistant:
        if self._chat is None:
            self._chat = ChatAssistant()
        return self._chat

    @property
    def images(self) -> ImageGenerator:
        if self._images is None:
            self._images = ImageGenerator()
        return self._images

    def _draft_metadata(self, transcript: str) -> Optional[VideoMetadata]:
        if not self.config.generate_metadata or not transcript.strip():
            return None
        try:
            return self.chat.generate_video_metadata(transcript)
        except (CineBotError, ValueError) as e:
            logger.warning(f"Metadata generation failed, continuing without it: {e}")
            return None

    def _draft_thumbnail(self, metadata: Optional[VideoMetadata]) -> Optional[GeneratedImage]:
        if not self.config.generate_thumbnail or metadata is None:
            return None
        try:
            return self.images.generate(build_thumbnail_prompt(metadata))
        except (CineBotError, ValueError) as e:
            logger.warning(f"Thumbnail generation failed, continuing without it: {e}")
            return None

    def process_video(self, video_path: Union[str, Path]) -> VideoReport:
        """
        Transcribe a video and draft its publishing material.

        Args:
            video_path: Path to the video file

        Returns:
            VideoReport with the transcript and whatever optional material succeeded

        Raises:
            CineBotError: If the transcription itself fails
        """
        transcript = self.transcriber.transcribe_video(video_path, self.config.transcription_options)
        logger.info(f"Transcribed {video_path}: {len(transcript)} characters")

        metadata = self._draft_metadata(transcript)
        return VideoReport(transcript=transcript, metadata=metadata, thumbnail=self._draft_thumbnail(metadata))

    async def process_video_async(self, video_path: Union[str, Path]) -> VideoReport:
        """
        Asynchronous version of process_video.
        """
        transcript = await self.transcriber.transcribe_video_async(video_path, self.config.transcription_options)
        logger.info(f"Transcribed {video_path}: {len(transcript)} characters")

        metadata: Optional[VideoMetadata] = None
        if self.config.generate_metadata and transcript.strip():
            try:
                metadata = await self.chat.generate_video_metadata_async(transcript)
            except (CineBotError, ValueError) as e:
                logger.warning(f"Metadata generation failed, continuing without it: {e}")

        thumbnail: Optional[GeneratedImage] = None
        if self.config.generate_thumbnail and metadata is not None:
            try:
                thumbnail = await self.images.generate_async(build_thumbnail_prompt(metadata))
            except (CineBotError, ValueError) as e:
                logger.warning(f"Thumbnail generation failed, continuing without it: {e}")

        return VideoReport(transcript=transcript, metadata=metadata, thumbnail=thumbnail)

    def close(self) -> None:
        self.transcriber.close()
        if self._chat is not None:
            self._chat.close()
        if self._images is not None:
            self._images.close()

    def __enter__(self) -> "VideoAssistant":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
