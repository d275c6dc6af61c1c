"""Thumbnail generation through the OpenAI images API."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional, cast

import openai
from loguru import logger
from openai import OpenAI

from cinebot.chat import VideoMetadata
from cinebot.errors import DecodingError, from_openai_error
from cinebot.relay import (
    AsyncCompletionRelay,
    CallHandle,
    CompletionHandler,
    CompletionRelay,
    Result,
    dispatch,
)
from cinebot.settings import MAX_CONCURRENT_TASKS, ImageGenerationConfig, mask_sensitive_string


@dataclass
class GeneratedImage:
    url: Optional[str] = None
    b64_json: Optional[str] = None
    revised_prompt: Optional[str] = None


def build_thumbnail_prompt(metadata: VideoMetadata) -> str:
    """Image prompt for a video thumbnail, from its drafted metadata."""
    if not (metadata.title or metadata.description):
        raise ValueError("Metadata needs a title or a description to build a thumbnail prompt")
    prompt = f"Eye-catching video thumbnail for a video titled \"{metadata.title}\"."
    if metadata.description:
        prompt += f" The video is about: {metadata.description}"
    return prompt + " No text in the image."


class ImageGenerator:
    """Image generation over the OpenAI images API, one image per call."""

    def __init__(
        self,
        config: Optional[ImageGenerationConfig] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.config = config or ImageGenerationConfig()
        self.model = self.config.model
        self._client: Optional[OpenAI] = None
        self._client_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or MAX_CONCURRENT_TASKS, thread_name_prefix="cinebot-images"
        )

        logger.debug(
            f"Using {self.__class__.__name__}\n"
            f"API Key: {mask_sensitive_string(self.config.api_key)}\n"
            f"Model: {self.model} ({self.config.size}, {self.config.quality})\n"
        )

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = OpenAI(
                        api_key=self.config.api_key,
                        base_url=self.config.api_base,
                        timeout=self.config.timeout,
                        max_retries=0,
                    )
        return cast(OpenAI, self._client)

    def _generate(self, prompt: str) -> Result[GeneratedImage]:
        logger.info(f"Generating image with {self.model}")
        try:
            response = self.client.images.generate(
                model=self.model,
                prompt=prompt,
                size=self.config.size,  # type: ignore[arg-type]
                quality=self.config.quality,  # type: ignore[arg-type]
                n=1,
            )
        except openai.OpenAIError as e:
            logger.error(f"Image generation failed: {e}")
            return Result.failure(from_openai_error(e))

        if not response.data:
            error = DecodingError(ValueError("Image generation returned no images"))
            logger.error(str(error))
            return Result.failure(error)

        image = response.data[0]
        return Result.success(
            GeneratedImage(url=image.url, b64_json=image.b64_json, revised_prompt=image.revised_prompt)
        )

    def submit(self, prompt: str, on_complete: CompletionHandler[GeneratedImage]) -> CallHandle[GeneratedImage]:
        """Generate an image in the background; the handle tracks its status."""
        if not prompt.strip():
            raise ValueError("Image prompt must not be empty")
        return dispatch(self._executor, self._generate, on_complete, prompt)

    def generate(self, prompt: str) -> GeneratedImage:
        relay: CompletionRelay[GeneratedImage] = CompletionRelay()
        self.submit(prompt, relay)
        return relay.wait()

    async def generate_async(self, prompt: str) -> GeneratedImage:
        relay: AsyncCompletionRelay[GeneratedImage] = AsyncCompletionRelay()
        self.submit(prompt, relay)
        return await relay.wait()

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ImageGenerator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
