"""
AI tool API routes.

Article and title generation count against the free usage counter; the
image and document tools require a premium plan.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_request_context
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.creation import (
    ArticleGenerateRequest,
    ErrorResponse,
    GenerationResponse,
    ImageGenerateRequest,
    TitleGenerateRequest,
)
from core.domain.entitlement import RequestContext
from infrastructure.database.connection import get_db
from services.generation_orchestrator import (
    GenerationOrchestrator,
    GenerationResult,
    UploadedFile,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/ai",
    tags=["ai"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)


async def _read_upload(upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    if upload is None:
        return None
    data = await upload.read()
    return UploadedFile(
        filename=upload.filename or "",
        content_type=upload.content_type or "",
        data=data,
    )


def _to_response(result: GenerationResult) -> GenerationResponse:
    return GenerationResponse(content=result.content, usage=result.usage)


@router.post("/article", response_model=GenerationResponse, response_model_exclude_none=True)
@limiter.limit(get_rate_limit("text_generation"))
async def generate_article(
    request: Request,
    body: ArticleGenerateRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Generate an article of at most ``length`` tokens."""
    result = await GenerationOrchestrator(db).generate_article(ctx, body.prompt, body.length)
    return _to_response(result)


@router.post("/title", response_model=GenerationResponse, response_model_exclude_none=True)
@limiter.limit(get_rate_limit("text_generation"))
async def generate_blog_title(
    request: Request,
    body: TitleGenerateRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Generate blog titles for a keyword."""
    result = await GenerationOrchestrator(db).generate_blog_title(ctx, body.prompt)
    return _to_response(result)


@router.post("/images", response_model=GenerationResponse, response_model_exclude_none=True)
@limiter.limit(get_rate_limit("image_generation"))
async def generate_image(
    request: Request,
    body: ImageGenerateRequest,
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Generate an image and return its stored URL. Premium only."""
    result = await GenerationOrchestrator(db).generate_image(ctx, body.prompt, body.publish)
    return _to_response(result)


@router.post("/background", response_model=GenerationResponse, response_model_exclude_none=True)
@limiter.limit(get_rate_limit("image_generation"))
async def remove_background(
    request: Request,
    image: Optional[UploadFile] = File(None),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Remove the background from an uploaded image. Premium only."""
    upload = await _read_upload(image)
    result = await GenerationOrchestrator(db).remove_background(ctx, upload)
    return _to_response(result)


@router.post("/object", response_model=GenerationResponse, response_model_exclude_none=True)
@limiter.limit(get_rate_limit("image_generation"))
async def remove_object(
    request: Request,
    image: Optional[UploadFile] = File(None),
    object_name: Optional[str] = Form(None, alias="object"),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Remove a named object from an uploaded image. Premium only."""
    upload = await _read_upload(image)
    result = await GenerationOrchestrator(db).remove_object(ctx, upload, object_name)
    return _to_response(result)


@router.post("/resumes", response_model=GenerationResponse, response_model_exclude_none=True)
@limiter.limit(get_rate_limit("text_generation"))
async def review_resume(
    request: Request,
    resume: Optional[UploadFile] = File(None),
    ctx: RequestContext = Depends(get_request_context),
    db: AsyncSession = Depends(get_db),
):
    """Review an uploaded PDF resume. Premium only."""
    upload = await _read_upload(resume)
    result = await GenerationOrchestrator(db).review_resume(ctx, upload)
    return _to_response(result)
