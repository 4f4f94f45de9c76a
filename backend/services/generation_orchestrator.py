"""
Generation orchestration.

Each tool call moves through the same stages: validate input, check the
plan or usage gate, call the external generator under a timeout, persist
the creation, then bump the free usage counter. A failure at any stage
ends the request; nothing is written unless generation succeeded.
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Awaitable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from adapters.ai.anthropic_adapter import AnthropicContentService, content_ai_service
from adapters.ai.replicate_adapter import GeneratedImage, ReplicateImageService, image_ai_service
from adapters.documents import PdfExtractionError, extract_pdf_text
from adapters.storage.image_storage import StorageAdapter, download_image, storage_adapter
from core.domain.entitlement import RequestContext
from core.exceptions import (
    AppError,
    GenerationFailed,
    GenerationTimeout,
    InvalidInput,
    PlanRestriction,
    UsageLimitExceeded,
)
from core.plans import USAGE_GATED_TOOLS, allow_plan, allow_usage, next_usage
from infrastructure.config.settings import settings
from infrastructure.database.models.creation import CreationType
from services.creation_store import CreationStore
from services.entitlements import EntitlementResolver

logger = logging.getLogger(__name__)

MIN_ARTICLE_LENGTH = 1
MAX_ARTICLE_LENGTH = 4000

IMAGE_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})
PDF_CONTENT_TYPES = frozenset({"application/pdf"})

IMAGE_PROMPT_SUFFIX = ", high quality, detailed, professional photography"
TITLE_PROMPT = "Create an attractive blog title for the keyword: {keyword}"
RESUME_PROMPT = (
    "Review the following resume and provide constructive feedback on its "
    "strengths, weaknesses, and areas for improvement.\n\n"
    "Resume Content:\n\n{text}"
)

# Prompts stored for file-based tools, where the user supplies no text
BACKGROUND_REMOVAL_PROMPT = "Remove image background"
OBJECT_REMOVAL_PROMPT = "Remove {object} from image"
RESUME_REVIEW_PROMPT = "Review uploaded resume"

_ANGLE_BRACKETS = re.compile(r"[<>]")


def sanitize_input(value: str) -> str:
    """Strip surrounding whitespace and angle brackets from user text."""
    return _ANGLE_BRACKETS.sub("", value).strip()


def validate_prompt(
    value: Optional[str],
    min_length: int = 1,
    max_length: Optional[int] = None,
    field: str = "Prompt",
) -> str:
    """Sanitize ``value`` and enforce its length bounds. Returns the sanitized text."""
    if max_length is None:
        max_length = settings.max_prompt_length
    if not isinstance(value, str):
        raise InvalidInput(f"{field} is required")
    cleaned = sanitize_input(value)
    if not cleaned:
        raise InvalidInput(f"{field} is required")
    if len(cleaned) < min_length:
        raise InvalidInput(f"{field} must be at least {min_length} characters")
    if len(cleaned) > max_length:
        raise InvalidInput(f"{field} must be at most {max_length} characters")
    return cleaned


def validate_length(length) -> int:
    if isinstance(length, bool) or not isinstance(length, int):
        raise InvalidInput("Length must be an integer")
    if not MIN_ARTICLE_LENGTH <= length <= MAX_ARTICLE_LENGTH:
        raise InvalidInput(
            f"Length must be between {MIN_ARTICLE_LENGTH} and {MAX_ARTICLE_LENGTH}"
        )
    return length


@dataclass
class UploadedFile:
    """An uploaded file read fully into memory."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def validate_upload(
    upload: Optional[UploadedFile],
    allowed_types: frozenset,
    max_bytes: int,
    label: str,
) -> UploadedFile:
    if upload is None or not upload.data:
        raise InvalidInput(f"{label} file is required")
    if (upload.content_type or "").lower() not in allowed_types:
        raise InvalidInput(f"Unsupported {label.lower()} file type: {upload.content_type}")
    if upload.size > max_bytes:
        max_mb = max_bytes // (1024 * 1024)
        raise InvalidInput(f"{label} file must be {max_mb}MB or smaller")
    return upload


@dataclass
class GenerationResult:
    """Successful tool output."""

    content: str
    creation_id: int
    usage: Optional[int] = None


class GenerationOrchestrator:
    """Runs one generation tool call for an already-resolved user."""

    def __init__(
        self,
        db: AsyncSession,
        text_service: Optional[AnthropicContentService] = None,
        image_service: Optional[ReplicateImageService] = None,
        storage: Optional[StorageAdapter] = None,
    ):
        self.db = db
        self.text_service = text_service or content_ai_service
        self.image_service = image_service or image_ai_service
        self.storage = storage or storage_adapter
        self.store = CreationStore(db)
        self.entitlements = EntitlementResolver(db)

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def _check_usage(self, ctx: RequestContext) -> None:
        if not allow_usage(ctx.plan, ctx.free_usage_count, settings.free_usage_limit):
            logger.info(
                "Usage limit reached for user %s (%d)",
                ctx.user_id,
                ctx.free_usage_count,
                extra={"user_id": ctx.user_id},
            )
            raise UsageLimitExceeded()

    def _check_plan(self, ctx: RequestContext, tool: CreationType) -> None:
        if not allow_plan(ctx.plan, tool.value):
            raise PlanRestriction()

    # ------------------------------------------------------------------
    # Generation and persistence
    # ------------------------------------------------------------------

    async def _run(
        self,
        ctx: RequestContext,
        tool: CreationType,
        call: Awaitable[str],
        timeout: float,
    ) -> str:
        """Await an external call under ``timeout``; blank output counts as failure."""
        started = time.monotonic()
        log_extra = {"user_id": ctx.user_id, "tool": tool.value}
        try:
            content = await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.warning("%s generation timed out after %.0fs", tool.value, timeout, extra=log_extra)
            raise GenerationTimeout() from e
        except AppError:
            raise
        except Exception as e:
            logger.error("%s generation failed: %s", tool.value, e, exc_info=True, extra=log_extra)
            raise GenerationFailed() from e

        if not content or not content.strip():
            logger.warning("%s generation returned empty content", tool.value, extra=log_extra)
            raise GenerationFailed("The generator returned an empty result. Please try again")

        logger.info(
            "%s generated in %dms",
            tool.value,
            int((time.monotonic() - started) * 1000),
            extra=log_extra,
        )
        return content

    async def _complete(
        self,
        ctx: RequestContext,
        tool: CreationType,
        prompt: str,
        content: str,
        publish: bool = False,
    ) -> GenerationResult:
        creation = await self.store.insert(ctx.user_id, prompt, content, tool, publish=publish)

        usage = None
        if tool.value in USAGE_GATED_TOOLS and not ctx.is_premium:
            await self.entitlements.increment(ctx.user_id, ctx.free_usage_count)
            usage = next_usage(ctx.plan, ctx.free_usage_count)

        return GenerationResult(content=content, creation_id=creation.id, usage=usage)

    async def _store_image(self, image: Awaitable[GeneratedImage], filename: str) -> str:
        generated = await image
        if not generated.url:
            return ""
        data = await download_image(generated.url)
        return await self.storage.store(data, filename)

    # ------------------------------------------------------------------
    # Usage-gated tools
    # ------------------------------------------------------------------

    async def generate_article(self, ctx: RequestContext, prompt: str, length: int) -> GenerationResult:
        prompt = validate_prompt(prompt)
        length = validate_length(length)
        self._check_usage(ctx)

        content = await self._run(
            ctx,
            CreationType.ARTICLE,
            self.text_service.generate_text(prompt, max_tokens=length, temperature=0.7),
            settings.text_generation_timeout,
        )
        return await self._complete(ctx, CreationType.ARTICLE, prompt, content)

    async def generate_blog_title(self, ctx: RequestContext, prompt: str) -> GenerationResult:
        prompt = validate_prompt(prompt)
        self._check_usage(ctx)

        content = await self._run(
            ctx,
            CreationType.BLOG_TITLE,
            self.text_service.generate_text(
                TITLE_PROMPT.format(keyword=prompt), max_tokens=100, temperature=0.8
            ),
            settings.text_generation_timeout,
        )
        return await self._complete(ctx, CreationType.BLOG_TITLE, prompt, content)

    # ------------------------------------------------------------------
    # Premium-only tools
    # ------------------------------------------------------------------

    async def generate_image(
        self, ctx: RequestContext, prompt: str, publish: bool = False
    ) -> GenerationResult:
        prompt = validate_prompt(prompt)
        self._check_plan(ctx, CreationType.IMAGE)

        url = await self._run(
            ctx,
            CreationType.IMAGE,
            self._store_image(
                self.image_service.generate_image(f"{prompt}{IMAGE_PROMPT_SUFFIX}"),
                "generated.png",
            ),
            settings.image_generation_timeout,
        )
        return await self._complete(ctx, CreationType.IMAGE, prompt, url, publish=bool(publish))

    async def remove_background(self, ctx: RequestContext, image: Optional[UploadedFile]) -> GenerationResult:
        image = validate_upload(
            image, IMAGE_CONTENT_TYPES, settings.max_image_upload_bytes, "Image"
        )
        self._check_plan(ctx, CreationType.BACKGROUND_REMOVAL)

        url = await self._run(
            ctx,
            CreationType.BACKGROUND_REMOVAL,
            self._store_image(self.image_service.remove_background(image.data), "background_removed.png"),
            settings.image_generation_timeout,
        )
        return await self._complete(
            ctx, CreationType.BACKGROUND_REMOVAL, BACKGROUND_REMOVAL_PROMPT, url
        )

    async def remove_object(
        self, ctx: RequestContext, image: Optional[UploadedFile], object_name: str
    ) -> GenerationResult:
        image = validate_upload(
            image, IMAGE_CONTENT_TYPES, settings.max_image_upload_bytes, "Image"
        )
        object_name = validate_prompt(object_name, min_length=2, max_length=20, field="Object name")
        self._check_plan(ctx, CreationType.OBJECT_REMOVAL)

        url = await self._run(
            ctx,
            CreationType.OBJECT_REMOVAL,
            self._store_image(
                self.image_service.remove_object(image.data, object_name), "object_removed.png"
            ),
            settings.image_generation_timeout,
        )
        return await self._complete(
            ctx,
            CreationType.OBJECT_REMOVAL,
            OBJECT_REMOVAL_PROMPT.format(object=object_name),
            url,
        )

    async def review_resume(self, ctx: RequestContext, resume: Optional[UploadedFile]) -> GenerationResult:
        resume = validate_upload(
            resume, PDF_CONTENT_TYPES, settings.max_resume_upload_bytes, "Resume"
        )
        self._check_plan(ctx, CreationType.RESUME_REVIEW)

        try:
            text = await extract_pdf_text(resume.data)
        except PdfExtractionError as e:
            raise InvalidInput("The resume PDF could not be read") from e
        text = sanitize_input(text)
        if not text:
            raise InvalidInput("No text could be extracted from the resume")

        content = await self._run(
            ctx,
            CreationType.RESUME_REVIEW,
            self.text_service.generate_text(
                RESUME_PROMPT.format(text=text), max_tokens=1000, temperature=0.7
            ),
            settings.text_generation_timeout,
        )
        return await self._complete(ctx, CreationType.RESUME_REVIEW, RESUME_REVIEW_PROMPT, content)
