# AI Adapters
# Anthropic, Replicate integrations

from .anthropic_adapter import AnthropicContentService, content_ai_service
from .replicate_adapter import (
    GeneratedImage,
    ReplicateImageService,
    image_ai_service,
)

__all__ = [
    "AnthropicContentService",
    "content_ai_service",
    "ReplicateImageService",
    "image_ai_service",
    "GeneratedImage",
]
