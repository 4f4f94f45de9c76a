"""
API request and response schemas.
"""

from .creation import (
    ArticleGenerateRequest,
    CreationListResponse,
    CreationResponse,
    ErrorResponse,
    GenerationResponse,
    ImageGenerateRequest,
    MessageResponse,
    TitleGenerateRequest,
    ToggleLikeRequest,
    ToggleLikeResponse,
    UsageResponse,
)

__all__ = [
    "ArticleGenerateRequest",
    "TitleGenerateRequest",
    "ImageGenerateRequest",
    "ToggleLikeRequest",
    "CreationResponse",
    "CreationListResponse",
    "GenerationResponse",
    "ToggleLikeResponse",
    "MessageResponse",
    "UsageResponse",
    "ErrorResponse",
]
