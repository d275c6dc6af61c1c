"""
Tests for the VideoAssistant workflow.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from cinebot.audio_transcriber import AudioTranscriber, ResponseFormat, TranscriptionOptions
from cinebot.chat import ChatAssistant, VideoMetadata
from cinebot.errors import AudioExtractionError, NetworkError, ServerError
from cinebot.image_generator import GeneratedImage, ImageGenerator
from cinebot.video_assistant import VideoAssistant, VideoAssistantConfig, VideoReport

VIDEO_PATH = "/videos/harbour.mov"
METADATA = VideoMetadata(title="Dawn Sail", description="Leaving port at sunrise.", hashtags="#sail")


@pytest.fixture
def transcriber():
    mock = MagicMock(spec=AudioTranscriber)
    mock.transcribe_video.return_value = "we sail at dawn"
    mock.transcribe_video_async = AsyncMock(return_value="we sail at dawn")
    return mock


@pytest.fixture
def chat():
    mock = MagicMock(spec=ChatAssistant)
    mock.generate_video_metadata.return_value = METADATA
    mock.generate_video_metadata_async = AsyncMock(return_value=METADATA)
    return mock


@pytest.fixture
def images():
    mock = MagicMock(spec=ImageGenerator)
    mock.generate.return_value = GeneratedImage(url="https://images.test/thumb.png")
    mock.generate_async = AsyncMock(return_value=GeneratedImage(url="https://images.test/thumb.png"))
    return mock


class TestVideoAssistantConfig:
    def test_defaults(self):
        config = VideoAssistantConfig()
        assert config.transcription_options == TranscriptionOptions()
        assert config.generate_metadata is True
        assert config.generate_thumbnail is False


class TestProcessVideo:
    """Tests for process_video."""

    def test_transcript_and_metadata(self, transcriber, chat, images):
        options = TranscriptionOptions(language="en", response_format=ResponseFormat.TEXT)
        assistant = VideoAssistant(
            VideoAssistantConfig(transcription_options=options), transcriber=transcriber, chat=chat, images=images
        )

        report = assistant.process_video(VIDEO_PATH)

        assert report == VideoReport(transcript="we sail at dawn", metadata=METADATA, thumbnail=None)
        transcriber.transcribe_video.assert_called_once_with(VIDEO_PATH, options)
        chat.generate_video_metadata.assert_called_once_with("we sail at dawn")
        images.generate.assert_not_called()

    def test_thumbnail_when_enabled(self, transcriber, chat, images):
        assistant = VideoAssistant(
            VideoAssistantConfig(generate_thumbnail=True), transcriber=transcriber, chat=chat, images=images
        )

        report = assistant.process_video(VIDEO_PATH)

        assert report.thumbnail == GeneratedImage(url="https://images.test/thumb.png")
        assert "Dawn Sail" in images.generate.call_args.args[0]

    def test_metadata_disabled(self, transcriber, chat, images):
        assistant = VideoAssistant(
            VideoAssistantConfig(generate_metadata=False, generate_thumbnail=True),
            transcriber=transcriber,
            chat=chat,
            images=images,
        )

        report = assistant.process_video(VIDEO_PATH)

        assert report.metadata is None
        assert report.thumbnail is None
        chat.generate_video_metadata.assert_not_called()

    def test_empty_transcript_skips_metadata(self, transcriber, chat, images):
        transcriber.transcribe_video.return_value = ""
        assistant = VideoAssistant(transcriber=transcriber, chat=chat, images=images)

        assert assistant.process_video(VIDEO_PATH).metadata is None
        chat.generate_video_metadata.assert_not_called()

    def test_metadata_failure_is_graceful(self, transcriber, chat, images):
        """Test that a chat failure leaves metadata empty instead of failing the run."""
        chat.generate_video_metadata.side_effect = ServerError(503, "overloaded")
        assistant = VideoAssistant(
            VideoAssistantConfig(generate_thumbnail=True), transcriber=transcriber, chat=chat, images=images
        )

        report = assistant.process_video(VIDEO_PATH)

        assert report.transcript == "we sail at dawn"
        assert report.metadata is None
        assert report.thumbnail is None

    def test_thumbnail_failure_is_graceful(self, transcriber, chat, images):
        images.generate.side_effect = NetworkError(OSError("reset"))
        assistant = VideoAssistant(
            VideoAssistantConfig(generate_thumbnail=True), transcriber=transcriber, chat=chat, images=images
        )

        report = assistant.process_video(VIDEO_PATH)

        assert report.metadata == METADATA
        assert report.thumbnail is None

    def test_transcription_failure_propagates(self, transcriber, chat, images):
        transcriber.transcribe_video.side_effect = AudioExtractionError("No audio track found")
        assistant = VideoAssistant(transcriber=transcriber, chat=chat, images=images)

        with pytest.raises(AudioExtractionError):
            assistant.process_video(VIDEO_PATH)
        chat.generate_video_metadata.assert_not_called()

    @pytest.mark.asyncio
    async def test_process_video_async(self, transcriber, chat, images):
        assistant = VideoAssistant(
            VideoAssistantConfig(generate_thumbnail=True), transcriber=transcriber, chat=chat, images=images
        )

        report = await assistant.process_video_async(VIDEO_PATH)

        assert report.transcript == "we sail at dawn"
        assert report.metadata == METADATA
        assert report.thumbnail.url == "https://images.test/thumb.png"
        transcriber.transcribe_video_async.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_process_video_async_metadata_failure(self, transcriber, chat, images):
        chat.generate_video_metadata_async.side_effect = ServerError(500)
        assistant = VideoAssistant(transcriber=transcriber, chat=chat, images=images)

        report = await assistant.process_video_async(VIDEO_PATH)

        assert report.metadata is None

    def test_close_closes_services(self, transcriber, chat, images):
        with VideoAssistant(transcriber=transcriber, chat=chat, images=images):
            pass

        transcriber.close.assert_called_once()
        chat.close.assert_called_once()
        images.close.assert_called_once()
