"""
Anthropic Claude adapter for text generation.
"""

import logging

import anthropic

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

MOCK_RESPONSE = "This is a mock response for development. Configure ANTHROPIC_API_KEY to use real AI."


class AnthropicContentService:
    """Text generation service using Anthropic Claude.

    Runs in mock mode when no API key is configured. Calls are never
    retried; the caller bounds them with a timeout.
    """

    def __init__(self):
        if settings.anthropic_api_key:
            self._client = anthropic.AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                max_retries=0,
            )
        else:
            self._client = None
        self._model = settings.anthropic_model

    @property
    def model(self) -> str:
        return self._model

    async def generate_text(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> str:
        """
        Generate a text response from a prompt.

        Args:
            prompt: User prompt
            max_tokens: Maximum tokens to generate
            temperature: Temperature for generation (0.0-1.0)

        Returns:
            Generated text, possibly empty
        """
        if not self._client:
            return MOCK_RESPONSE

        try:
            message = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error("Anthropic text generation failed: %s", e)
            raise

        text = "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )
        logger.debug("Generated text response (%d chars)", len(text))
        return text


# Singleton instance
content_ai_service = AnthropicContentService()
