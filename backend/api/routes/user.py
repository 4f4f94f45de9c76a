"""
User creations and community feed API routes.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.creation import (
    CreationListResponse,
    CreationResponse,
    ErrorResponse,
    MessageResponse,
    ToggleLikeRequest,
    ToggleLikeResponse,
    UsageResponse,
)
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User
from services import like_toggle
from services.creation_store import CreationStore
from services.entitlements import EntitlementResolver

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/user",
    tags=["user"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


@router.get("/getUserCreations", response_model=CreationListResponse)
async def get_user_creations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's creations, newest first."""
    creations = await CreationStore(db).list_by_owner(current_user.id)
    return CreationListResponse(
        creations=[CreationResponse.model_validate(c) for c in creations]
    )


@router.get("/getPublishedCreations", response_model=CreationListResponse)
async def get_published_creations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List published creations from all users, newest first."""
    creations = await CreationStore(db).list_published()
    return CreationListResponse(
        creations=[CreationResponse.model_validate(c) for c in creations]
    )


@router.post("/toggleLikeCreation", response_model=ToggleLikeResponse)
@limiter.limit(get_rate_limit("like"))
async def toggle_like_creation(
    request: Request,
    body: ToggleLikeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Like or unlike a published creation."""
    result = await like_toggle.toggle_like(db, body.id, current_user.id)
    return ToggleLikeResponse(
        message=result.message,
        liked=result.liked,
        creations=[CreationResponse.model_validate(c) for c in result.creations],
    )


@router.delete("/deleteCreation/{creation_id}", response_model=MessageResponse)
async def delete_creation(
    creation_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete one of the caller's creations."""
    message = await like_toggle.delete_creation(db, creation_id, current_user.id)
    logger.info(
        "Creation %s deleted by %s",
        creation_id,
        current_user.id,
        extra={"creation_id": creation_id, "user_id": current_user.id},
    )
    return MessageResponse(message=message)


@router.get("/usage", response_model=UsageResponse)
async def get_usage(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current plan and free usage counter."""
    summary = await EntitlementResolver(db).get_usage(current_user)
    return UsageResponse(
        plan=summary.plan,
        free_usage=summary.free_usage,
        limit=summary.limit,
        remaining=summary.remaining,
    )
