"""
API dependencies for authentication and entitlement resolution.
"""

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.entitlement import RequestContext
from core.exceptions import Forbidden, Unauthorized
from core.security.tokens import TokenService
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User
from services.entitlements import EntitlementResolver

token_service = TokenService(
    secret_key=settings.jwt_secret_key,
    algorithm=settings.jwt_algorithm,
    access_token_expire_minutes=settings.jwt_access_token_expire_minutes,
)


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user.

    Checks the Authorization header first (Bearer token) and falls back
    to the ``access_token`` cookie for browser requests.
    """
    token = None
    if authorization and authorization.startswith("Bearer "):
        parts = authorization.split(" ", 1)
        token = parts[1] if len(parts) > 1 and parts[1] else None

    if not token:
        token = request.cookies.get("access_token")

    if not token:
        raise Unauthorized("Not authenticated")

    payload = token_service.verify_access_token(token)
    if not payload:
        raise Unauthorized("Invalid or expired token")

    result = await db.execute(select(User).where(User.id == payload.sub))
    user = result.scalar_one_or_none()
    if not user:
        raise Unauthorized("User not found")

    if not user.is_active:
        raise Forbidden("User account is not active")

    # Read by the unhandled-error logger
    request.state.user_id = user.id
    return user


async def get_request_context(
    current_user: Annotated[User, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> RequestContext:
    """Resolve the caller's plan and usage into an immutable context."""
    return await EntitlementResolver(db).resolve(current_user)
