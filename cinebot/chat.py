"""Chat-completion assistant for drafting video titles, descriptions and hashtags."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, cast

import openai
from loguru import logger
from openai import OpenAI

from cinebot.errors import DecodingError, from_openai_error
from cinebot.relay import (
    AsyncCompletionRelay,
    CallHandle,
    CompletionHandler,
    CompletionRelay,
    Result,
    dispatch,
)
from cinebot.settings import MAX_CONCURRENT_TASKS, ChatConfig, mask_sensitive_string

METADATA_PROMPT_TEMPLATE = """Here is the transcript of a video:

{transcript}

Generate a catchy title, an engaging description and relevant hashtags for this video.
Format:
TITLE: [catchy title]
DESCRIPTION: [engaging 2-3 sentence description]
HASHTAGS: [5-7 relevant hashtags]
"""

TITLE_LABEL = "TITLE:"
DESCRIPTION_LABEL = "DESCRIPTION:"
HASHTAGS_LABEL = "HASHTAGS:"


@dataclass
class VideoMetadata:
    """Publishing metadata drafted for a video.

    Attributes:
        title: Catchy title.
        description: Two to three sentence description.
        hashtags: Hashtags, space separated as returned by the model.
    """

    title: str = ""
    description: str = ""
    hashtags: str = ""

    @classmethod
    def from_response(cls, response: str) -> "VideoMetadata":
        """Parse the ``TITLE:`` / ``DESCRIPTION:`` / ``HASHTAGS:`` lines of a reply.

        Lines without one of the labels are ignored; a missing label leaves
        its field empty.
        """
        metadata = cls()
        for line in response.splitlines():
            if line.startswith(TITLE_LABEL):
                metadata.title = line[len(TITLE_LABEL) :].strip()
            elif line.startswith(DESCRIPTION_LABEL):
                metadata.description = line[len(DESCRIPTION_LABEL) :].strip()
            elif line.startswith(HASHTAGS_LABEL):
                metadata.hashtags = line[len(HASHTAGS_LABEL) :].strip()
        return metadata

    @property
    def is_empty(self) -> bool:
        return not (self.title or self.description or self.hashtags)

    def to_clipboard_text(self) -> str:
        return f"{self.title}\n{self.description}\n{self.hashtags}"


def build_metadata_prompt(transcript: str) -> str:
    if not transcript.strip():
        raise ValueError("Cannot generate metadata from an empty transcript")
    return METADATA_PROMPT_TEMPLATE.format(transcript=transcript)


class ChatAssistant:
    """Content-creation assistant over the OpenAI chat completions API."""

    def __init__(
        self,
        config: Optional[ChatConfig] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.config = config or ChatConfig()
        self.model = self.config.model
        self._client: Optional[OpenAI] = None
        self._client_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or MAX_CONCURRENT_TASKS, thread_name_prefix="cinebot-chat"
        )

        logger.debug(
            f"Using {self.__class__.__name__}\n"
            f"API Key: {mask_sensitive_string(self.config.api_key)}\n"
            f"API Base: {self.config.api_base}\n"
            f"Model: {self.model}\n"
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

    def _build_messages(self, prompt: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.config.system_prompt},
            {"role": "user", "content": prompt},
        ]

    def _complete(self, prompt: str) -> Result[str]:
        logger.info(f"Requesting chat completion from {self.model}")
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(prompt),  # type: ignore[arg-type]
            )
        except openai.OpenAIError as e:
            logger.error(f"Chat completion failed: {e}")
            return Result.failure(from_openai_error(e))

        if response.usage is not None:
            logger.info(
                f"Token usage: prompt={response.usage.prompt_tokens} "
                f"completion={response.usage.completion_tokens} total={response.usage.total_tokens}"
            )

        if not response.choices or response.choices[0].message.content is None:
            error = DecodingError(ValueError("Chat completion returned no message content"))
            logger.error(str(error))
            return Result.failure(error)
        return Result.success(response.choices[0].message.content)

    def submit(self, prompt: str, on_complete: CompletionHandler[str]) -> CallHandle[str]:
        """Request a completion in the background; the handle tracks its status."""
        return dispatch(self._executor, self._complete, on_complete, prompt)

    def get_response(self, prompt: str) -> str:
        relay: CompletionRelay[str] = CompletionRelay()
        self.submit(prompt, relay)
        return relay.wait()

    async def get_response_async(self, prompt: str) -> str:
        relay: AsyncCompletionRelay[str] = AsyncCompletionRelay()
        self.submit(prompt, relay)
        return await relay.wait()

    def generate_video_metadata(self, transcript: str) -> VideoMetadata:
        """Draft a title, description and hashtags for a transcribed video."""
        return VideoMetadata.from_response(self.get_response(build_metadata_prompt(transcript)))

    async def generate_video_metadata_async(self, transcript: str) -> VideoMetadata:
        response = await self.get_response_async(build_metadata_prompt(transcript))
        return VideoMetadata.from_response(response)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "ChatAssistant":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
