"""Image synthesis through the OpenAI Images API.

:class:`ImageGenerator` asks the synthesis service for exactly one image
rendered from a fixed prompt and returns the URL the service hosts it at.
Nothing is written locally; the caller downloads the image separately with
:class:`~avatarpin.core.fetcher.ImageFetcher`.

Timeouts and retries are delegated to the OpenAI SDK, which is configured
from ``request_timeout`` and ``max_retries``.
"""

from __future__ import annotations

import logging

import httpx
from openai import AsyncOpenAI, OpenAIError

from avatarpin.core.config import AvatarPinConfig
from avatarpin.core.errors import GenerationError

logger = logging.getLogger(__name__)


class ImageGenerator:
    """Generate a single avatar image and return its remote URL.

    Attributes:
        _client (AsyncOpenAI | None):
            SDK client, or ``None`` when no API key is configured.
        model (str):
            Synthesis model identifier.
        prompt (str):
            Prompt sent with every request.
    """

    def __init__(self, client: AsyncOpenAI | None, model: str, prompt: str) -> None:
        self._client = client
        self.model = model
        self.prompt = prompt

    @classmethod
    def from_config(
        cls,
        config: AvatarPinConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> ImageGenerator:
        """Build a generator from application configuration.

        Args:
            config: Application configuration.
            http_client: Optional transport-level client handed to the SDK.

        Returns:
            A generator.  Without an API key the generator is still created,
            but every call to :meth:`generate` fails with
            :class:`GenerationError`.
        """
        client = None
        if config.openai_api_key is not None:
            client = AsyncOpenAI(
                api_key=config.openai_api_key.get_secret_value(),
                base_url=config.openai_base_url,
                timeout=config.request_timeout,
                max_retries=config.max_retries,
                http_client=http_client,
            )
        return cls(client, model=config.image_model, prompt=config.image_prompt)

    async def generate(self) -> str:
        """Request one image and return its URL.

        Returns:
            URL of the generated image on the synthesis service's host.

        Raises:
            GenerationError: If no API key is configured, the service call
                fails, or the response carries no image URL.
        """
        if self._client is None:
            raise GenerationError("OpenAI API key is not configured.")

        logger.debug(f"Requesting one image from {self.model}")
        try:
            response = await self._client.images.generate(
                model=self.model,
                prompt=self.prompt,
                n=1,
                response_format="url",
            )
        except OpenAIError as exc:
            raise GenerationError(f"Image generation failed: {exc}") from exc

        if not response.data or not response.data[0].url:
            raise GenerationError("Image generation returned no image URL.")

        return response.data[0].url

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
