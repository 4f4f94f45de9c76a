"""
Replicate adapter for image generation and image transformation.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Any

import replicate

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "https://picsum.photos/{width}/{height}"


@dataclass
class GeneratedImage:
    """Generated or transformed image result."""

    url: str
    prompt: str
    model: str
    width: int | None = None
    height: int | None = None


def _output_url(output: Any) -> str:
    """Normalize Replicate output (URL string, list of URLs, or FileOutput) to a URL."""
    if isinstance(output, (list, tuple)):
        if not output:
            return ""
        output = output[0]
    url = getattr(output, "url", None)
    if url is not None:
        return str(url() if callable(url) else url)
    return str(output) if output is not None else ""


class ReplicateImageService:
    """Image generation and editing via Replicate hosted models.

    The Replicate client is synchronous, so every call runs in a worker
    thread. Without an API token the service returns placeholder images.
    """

    def __init__(self):
        self._model = settings.replicate_model
        self._background_model = settings.replicate_background_removal_model
        self._object_model = settings.replicate_object_removal_model
        if not settings.replicate_api_token:
            logger.warning("REPLICATE_API_TOKEN not set, image tools will use mock mode")
            self._client = None
        else:
            self._client = replicate.Client(api_token=settings.replicate_api_token)
            logger.info("Replicate client initialized with model: %s", self._model)

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str = "1:1",
    ) -> GeneratedImage:
        """
        Generate an image from a text prompt.

        Args:
            prompt: Text description of the image to generate
            aspect_ratio: Model aspect ratio (default: 1:1)

        Returns:
            GeneratedImage with the provider URL
        """
        if not self._client:
            return self._mock_image(prompt, self._model)

        output = await asyncio.to_thread(
            self._run_model,
            self._model,
            {"prompt": prompt, "aspect_ratio": aspect_ratio},
        )
        image_url = _output_url(output)
        logger.info("Generated image URL: %s", image_url)
        return GeneratedImage(url=image_url, prompt=prompt, model=self._model)

    async def remove_background(self, image: bytes) -> GeneratedImage:
        if not self._client:
            return self._mock_image("background removal", self._background_model)

        output = await asyncio.to_thread(
            self._run_model,
            self._background_model,
            {"image": io.BytesIO(image)},
        )
        return GeneratedImage(
            url=_output_url(output),
            prompt="background removal",
            model=self._background_model,
        )

    async def remove_object(self, image: bytes, object_name: str) -> GeneratedImage:
        if not self._client:
            return self._mock_image(f"remove {object_name}", self._object_model)

        output = await asyncio.to_thread(
            self._run_model,
            self._object_model,
            {"image": io.BytesIO(image), "object": object_name},
        )
        return GeneratedImage(
            url=_output_url(output),
            prompt=f"remove {object_name}",
            model=self._object_model,
        )

    def _run_model(self, model: str, input_params: dict):
        """Run a Replicate model synchronously. Called in a worker thread."""
        logger.info("Calling Replicate model %s", model)
        output = self._client.run(model, input=input_params)
        logger.debug("Replicate output type: %s", type(output))
        return output

    def _mock_image(self, prompt: str, model: str, width: int = 1024, height: int = 1024) -> GeneratedImage:
        return GeneratedImage(
            url=PLACEHOLDER_URL.format(width=width, height=height),
            prompt=prompt,
            model=model,
            width=width,
            height=height,
        )


# Singleton instance
image_ai_service = ReplicateImageService()
