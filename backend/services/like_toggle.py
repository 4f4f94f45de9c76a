"""
Community feed writes: like toggling and owner deletion.

These are the write paths reachable by many users against the same
published row, so input checks happen here before the store is touched.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import InvalidInput, NotFound, Unauthorized
from services.creation_store import CreationStore, ToggleLikeResult

DELETED_MESSAGE = "Creation deleted"


def _require_creation_id(creation_id) -> int:
    # bool passes isinstance(int) but is never a valid id
    if isinstance(creation_id, bool) or not isinstance(creation_id, int) or creation_id <= 0:
        raise InvalidInput("Creation id must be a positive integer")
    return creation_id


def _require_user(user_id: str | None) -> str:
    if not user_id:
        raise Unauthorized()
    return user_id


async def toggle_like(db: AsyncSession, creation_id: int, user_id: str) -> ToggleLikeResult:
    user_id = _require_user(user_id)
    creation_id = _require_creation_id(creation_id)
    return await CreationStore(db).toggle_like(creation_id, user_id)


async def delete_creation(db: AsyncSession, creation_id: int, user_id: str) -> str:
    """Delete an owned creation, returning the confirmation message.

    A missing row and a row owned by someone else are indistinguishable
    to the caller; both raise NotFound.
    """
    user_id = _require_user(user_id)
    creation_id = _require_creation_id(creation_id)
    deleted = await CreationStore(db).delete_by_owner(creation_id, user_id)
    if not deleted:
        raise NotFound("Creation not found or you do not have permission to delete it")
    return DELETED_MESSAGE
