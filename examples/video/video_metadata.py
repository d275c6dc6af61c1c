#!/usr/bin/env python
"""
Transcribe a video, then draft a title, description, hashtags and thumbnail.

This example demonstrates how to:
1. Extract and transcribe the audio track of a video
2. Ask the chat model for publishing metadata
3. Generate a thumbnail from that metadata
"""

import asyncio
import sys
from pathlib import Path

from cinebot import VideoAssistant, VideoAssistantConfig
from cinebot.settings import configure_logging


async def run_example(video_path: str):
    if not Path(video_path).exists():
        print(f"Error: Video file not found at {video_path}")
        return

    configure_logging()
    config = VideoAssistantConfig(generate_metadata=True, generate_thumbnail=True)

    with VideoAssistant(config) as assistant:
        report = await assistant.process_video_async(video_path)

    print("=" * 80)
    print("TRANSCRIPT")
    print("=" * 80)
    print(report.transcript)

    if report.metadata:
        print("\n" + "=" * 80)
        print("METADATA")
        print("=" * 80)
        print(report.metadata.to_clipboard_text())

    if report.thumbnail:
        print(f"\nThumbnail: {report.thumbnail.url}")


if __name__ == "__main__":
    asyncio.run(run_example(sys.argv[1] if len(sys.argv) > 1 else "video.mp4"))
