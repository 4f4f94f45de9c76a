"""
Creation persistence.

Each operation is a single statement against the ``creations`` table.
Like toggling is a plain read-modify-write on the ``likes`` column: two
concurrent toggles from different users may read the same snapshot, in
which case the later write wins and one toggle effect is lost.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import Forbidden, NotFound, PersistenceFailed
from infrastructure.database.models.creation import Creation, CreationType

logger = logging.getLogger(__name__)

LIKED_MESSAGE = "Creation liked"
UNLIKED_MESSAGE = "Like removed"


@dataclass
class ToggleLikeResult:
    """Outcome of a like toggle plus the freshly read published feed."""

    liked: bool
    message: str
    creations: list[Creation] = field(default_factory=list)


class CreationStore:
    """Reads and writes Creation rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fail(self, operation: str, error: SQLAlchemyError) -> PersistenceFailed:
        logger.error("Creation store %s failed: %s", operation, error, extra={"operation": operation})
        await self.db.rollback()
        return PersistenceFailed()

    async def insert(
        self,
        user_id: str,
        prompt: str,
        content: str,
        type: CreationType | str,
        publish: bool = False,
    ) -> Creation:
        creation = Creation(
            user_id=user_id,
            prompt=prompt,
            content=content,
            type=CreationType(type).value,
            publish=publish,
            likes=[],
        )
        try:
            self.db.add(creation)
            await self.db.commit()
            await self.db.refresh(creation)
        except SQLAlchemyError as e:
            raise await self._fail("insert", e) from e
        return creation

    async def list_by_owner(self, user_id: str) -> list[Creation]:
        """Creations owned by ``user_id``, newest first."""
        query = (
            select(Creation)
            .where(Creation.user_id == user_id)
            .order_by(Creation.created_at.desc(), Creation.id.desc())
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise await self._fail("list_by_owner", e) from e
        return list(result.scalars().all())

    async def list_published(self) -> list[Creation]:
        """Published creations, newest first."""
        query = (
            select(Creation)
            .where(Creation.publish.is_(True))
            .order_by(Creation.created_at.desc(), Creation.id.desc())
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise await self._fail("list_published", e) from e
        return list(result.scalars().all())

    async def toggle_like(self, creation_id: int, user_id: str) -> ToggleLikeResult:
        """Add or remove ``user_id`` from a published creation's likes.

        Raises:
            NotFound: no creation with ``creation_id``
            Forbidden: the creation is not published; its likes are left as is
        """
        try:
            result = await self.db.execute(
                select(Creation.likes, Creation.publish).where(Creation.id == creation_id)
            )
            row = result.one_or_none()
        except SQLAlchemyError as e:
            raise await self._fail("toggle_like", e) from e

        if row is None:
            raise NotFound("Creation not found")
        likes, publish = row
        if not publish:
            raise Forbidden("Only published creations can be liked")

        current = [str(uid) for uid in (likes or [])]
        if user_id in current:
            new_likes = [uid for uid in current if uid != user_id]
            liked, message = False, UNLIKED_MESSAGE
        else:
            new_likes = current + [user_id]
            liked, message = True, LIKED_MESSAGE
        # Collapse duplicates that may already be stored, keeping first-seen order
        new_likes = list(dict.fromkeys(new_likes))

        try:
            await self.db.execute(
                update(Creation)
                .where(Creation.id == creation_id)
                .values(likes=new_likes, updated_at=datetime.now(UTC))
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("toggle_like", e) from e

        logger.info(
            "Like toggled on creation %s by %s (liked=%s)",
            creation_id,
            user_id,
            liked,
            extra={"creation_id": creation_id, "user_id": user_id},
        )
        return ToggleLikeResult(
            liked=liked,
            message=message,
            creations=await self.list_published(),
        )

    async def delete_by_owner(self, creation_id: int, user_id: str) -> bool:
        """Delete a creation only if ``user_id`` owns it. Returns True if a row was removed."""
        try:
            result = await self.db.execute(
                delete(Creation)
                .where(Creation.id == creation_id, Creation.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail("delete_by_owner", e) from e
        return result.rowcount > 0
