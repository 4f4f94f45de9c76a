"""
Entitlement resolution.

Reads a user's plan and free usage counter and writes counter updates back
into the user's private metadata.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.entitlement import RequestContext, UsageSummary
from core.exceptions import PersistenceFailed, Unauthorized
from core.plans import FREE, PREMIUM, remaining_usage
from infrastructure.config.settings import settings
from infrastructure.database.models.user import User

logger = logging.getLogger(__name__)

USAGE_KEY = "free_usage"


def _stored_usage(user: User) -> int | None:
    metadata = user.private_metadata or {}
    value = metadata.get(USAGE_KEY)
    # bool is an int subclass but never a valid counter
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return None


class EntitlementResolver:
    """Resolves plan and usage for an authenticated user."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve(self, user: User) -> RequestContext:
        """Build the request context for ``user``.

        A non-premium user seen for the first time gets ``free_usage = 0``
        written to their metadata.
        """
        if user is None or not user.id:
            raise Unauthorized()

        plan = PREMIUM if user.has_premium else FREE
        usage = _stored_usage(user)

        if usage is None:
            usage = 0
            if plan == FREE:
                user.private_metadata = {**(user.private_metadata or {}), USAGE_KEY: 0}
                try:
                    await self.db.commit()
                except SQLAlchemyError as e:
                    await self.db.rollback()
                    logger.error(
                        "Failed to initialize usage counter for user %s: %s", user.id, e
                    )
                    raise PersistenceFailed() from e

        return RequestContext(user_id=user.id, plan=plan, free_usage_count=usage)

    async def increment(self, user_id: str, current_count: int) -> None:
        """Best-effort write of ``current_count + 1``.

        Failures are logged and swallowed: the generation has already
        succeeded and must not be reported as failed.
        """
        try:
            result = await self.db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
            if user is None:
                logger.warning("Usage increment skipped, user %s not found", user_id)
                return
            user.private_metadata = {
                **(user.private_metadata or {}),
                USAGE_KEY: current_count + 1,
            }
            await self.db.commit()
        except Exception as e:
            logger.warning(
                "Failed to update usage counter for user %s: %s",
                user_id,
                e,
                extra={"user_id": user_id, "operation": "usage_increment"},
            )
            try:
                await self.db.rollback()
            except SQLAlchemyError:
                logger.exception("Rollback after failed usage increment also failed")

    async def get_usage(self, user: User) -> UsageSummary:
        ctx = await self.resolve(user)
        limit = None if ctx.is_premium else settings.free_usage_limit
        return UsageSummary(
            plan=ctx.plan,
            free_usage=ctx.free_usage_count,
            limit=limit,
            remaining=remaining_usage(ctx.plan, ctx.free_usage_count, settings.free_usage_limit),
        )
