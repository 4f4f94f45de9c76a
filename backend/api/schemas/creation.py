"""
Schemas for AI tools, creations and the community feed.

Successful and failed responses are separate models tagged by ``success``.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Tool Requests
# ============================================================================


class ArticleGenerateRequest(BaseModel):
    """Request to generate an article."""

    prompt: str
    length: int = Field(..., description="Maximum tokens for the article (1-4000)")


class TitleGenerateRequest(BaseModel):
    """Request to generate blog titles for a keyword."""

    prompt: str


class ImageGenerateRequest(BaseModel):
    """Request to generate an image."""

    prompt: str
    publish: bool = False


# ============================================================================
# Creation Schemas
# ============================================================================


class CreationResponse(BaseModel):
    """A stored creation."""

    id: int
    user_id: str
    prompt: str
    content: str
    type: str
    publish: bool
    likes: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ToggleLikeRequest(BaseModel):
    # strict: JSON booleans are not creation ids
    id: int = Field(strict=True, gt=0)


# ============================================================================
# Responses
# ============================================================================


class GenerationResponse(BaseModel):
    """Tool output. ``usage`` is present only for free users on usage-gated tools."""

    success: Literal[True] = True
    content: str
    usage: int | None = None


class CreationListResponse(BaseModel):
    success: Literal[True] = True
    creations: list[CreationResponse]


class ToggleLikeResponse(BaseModel):
    success: Literal[True] = True
    message: str
    liked: bool
    creations: list[CreationResponse]


class MessageResponse(BaseModel):
    success: Literal[True] = True
    message: str


class UsageResponse(BaseModel):
    """Current plan and free usage counter."""

    success: Literal[True] = True
    plan: Literal["free", "premium"]
    free_usage: int
    limit: int | None = None
    remaining: int | None = None


class ErrorResponse(BaseModel):
    """Uniform error body."""

    success: Literal[False] = False
    message: str
    code: str
