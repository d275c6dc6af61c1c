from cinebot.audio_extractor import extract_audio
from cinebot.audio_transcriber import (
    AudioTranscriber,
    ResponseFormat,
    TranscriptionOptions,
    WhisperTranscriber,
)
from cinebot.chat import ChatAssistant, VideoMetadata
from cinebot.errors import (
    AudioExtractionError,
    CineBotError,
    DecodingError,
    FileTooLargeError,
    InvalidAPIKeyError,
    InvalidResponseError,
    NetworkError,
    ServerError,
)
from cinebot.image_generator import GeneratedImage, ImageGenerator
from cinebot.relay import CallHandle, CallStatus, CompletionRelay, Result
from cinebot.video_assistant import VideoAssistant, VideoAssistantConfig, VideoReport

__all__ = [
    "AudioExtractionError",
    "AudioTranscriber",
    "CallHandle",
    "CallStatus",
    "ChatAssistant",
    "CineBotError",
    "CompletionRelay",
    "DecodingError",
    "FileTooLargeError",
    "GeneratedImage",
    "ImageGenerator",
    "InvalidAPIKeyError",
    "InvalidResponseError",
    "NetworkError",
    "ResponseFormat",
    "Result",
    "ServerError",
    "TranscriptionOptions",
    "VideoAssistant",
    "VideoAssistantConfig",
    "VideoMetadata",
    "VideoReport",
    "WhisperTranscriber",
    "extract_audio",
]
