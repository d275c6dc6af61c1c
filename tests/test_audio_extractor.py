"""
Tests for audio extraction from video files.

moviepy is mocked: these tests cover naming, error collapsing and cleanup
of partial output, not the encoder itself.
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from cinebot.audio_extractor import discard_audio, extract_audio
from cinebot.errors import AudioExtractionError


@pytest.fixture
def video_file(tmp_path: Path) -> Path:
    video = tmp_path / "input" / "talk.mp4"
    video.parent.mkdir()
    video.write_bytes(b"fake video")
    return video


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    out = tmp_path / "out"
    out.mkdir()
    return out


@pytest.fixture
def mock_clip():
    """Patch VideoFileClip; the yielded mock is the clip inside the ``with`` block."""
    with patch("cinebot.audio_extractor.VideoFileClip") as mock_cls:
        clip = MagicMock()
        clip.audio.write_audiofile.side_effect = lambda path, **kwargs: Path(path).write_bytes(b"aac data")
        mock_cls.return_value.__enter__.return_value = clip
        clip.video_file_clip_cls = mock_cls
        yield clip


class TestExtractAudio:
    """Tests for extract_audio."""

    def test_extracts_to_unique_m4a(self, video_file, output_dir, mock_clip):
        """Test that audio is written as AAC to a fresh .m4a path."""
        audio_path = extract_audio(str(video_file), output_dir=str(output_dir))

        assert Path(audio_path).parent == output_dir
        assert audio_path.endswith(".m4a")
        assert Path(audio_path).read_bytes() == b"aac data"
        kwargs = mock_clip.audio.write_audiofile.call_args.kwargs
        assert kwargs["codec"] == "aac"

    def test_concurrent_calls_do_not_collide(self, video_file, output_dir, mock_clip):
        """Test that two extractions of the same file get different paths."""
        first = extract_audio(str(video_file), output_dir=str(output_dir))
        second = extract_audio(str(video_file), output_dir=str(output_dir))

        assert first != second
        assert len(list(output_dir.iterdir())) == 2

    def test_defaults_to_system_temp_dir(self, video_file, mock_clip, tmp_path):
        """Test that the system temp directory is used without an output dir."""
        with patch("cinebot.audio_extractor.tempfile.gettempdir", return_value=str(tmp_path)):
            audio_path = extract_audio(str(video_file))

        assert Path(audio_path).parent == tmp_path

    def test_missing_source(self, output_dir, mock_clip):
        """Test that a missing source file is an extraction failure."""
        with pytest.raises(AudioExtractionError, match="not found"):
            extract_audio("/nonexistent/video.mp4", output_dir=str(output_dir))

        mock_clip.video_file_clip_cls.assert_not_called()

    def test_no_audio_track(self, video_file, output_dir, mock_clip):
        """Test that a video without audio fails and leaves nothing behind."""
        mock_clip.audio = None

        with pytest.raises(AudioExtractionError, match="No audio track"):
            extract_audio(str(video_file), output_dir=str(output_dir))

        assert list(output_dir.iterdir()) == []

    def test_partial_output_removed_on_encoder_failure(self, video_file, output_dir, mock_clip):
        """Test that a half-written file is deleted when encoding fails."""

        def write_then_fail(path, **kwargs):
            Path(path).write_bytes(b"partial")
            raise RuntimeError("ffmpeg exited with code 1")

        mock_clip.audio.write_audiofile.side_effect = write_then_fail

        with pytest.raises(AudioExtractionError) as exc_info:
            extract_audio(str(video_file), output_dir=str(output_dir))

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert list(output_dir.iterdir()) == []

    def test_unreadable_container(self, video_file, output_dir, mock_clip):
        """Test that moviepy failing to open the file collapses to one error kind."""
        mock_clip.video_file_clip_cls.side_effect = OSError("MoviePy error: failed to read the duration")

        with pytest.raises(AudioExtractionError, match="Failed to extract audio"):
            extract_audio(str(video_file), output_dir=str(output_dir))

        assert list(output_dir.iterdir()) == []


class TestDiscardAudio:
    """Tests for best-effort deletion."""

    def test_deletes_file(self, tmp_path):
        audio = tmp_path / "a.m4a"
        audio.write_bytes(b"x")
        discard_audio(str(audio))
        assert not audio.exists()

    def test_missing_file_is_ignored(self, tmp_path):
        discard_audio(str(tmp_path / "gone.m4a"))

    def test_os_error_is_swallowed(self, tmp_path):
        """Test that a failed deletion is logged, not raised."""
        audio = tmp_path / "locked.m4a"
        audio.write_bytes(b"x")

        with patch("cinebot.audio_extractor.Path.unlink", side_effect=PermissionError("locked")):
            discard_audio(str(audio))

        assert audio.exists()
