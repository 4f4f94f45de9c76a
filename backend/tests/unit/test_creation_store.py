"""
Unit tests for CreationStore against an in-memory SQLite database.
"""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from core.exceptions import Forbidden, NotFound, PersistenceFailed
from infrastructure.database.models import Base, Creation, User
from services.creation_store import LIKED_MESSAGE, UNLIKED_MESSAGE, CreationStore

pytestmark = pytest.mark.asyncio


class TestInsert:
    async def test_insert_assigns_id_and_defaults(self, db_session: AsyncSession, test_user: User):
        store = CreationStore(db_session)

        creation = await store.insert(test_user.id, "a prompt", "some content", "article")

        assert creation.id is not None
        assert creation.user_id == test_user.id
        assert creation.type == "article"
        assert creation.publish is False
        assert creation.likes == []
        assert creation.created_at is not None
        assert creation.updated_at is not None

    async def test_insert_never_reuses_ids(self, db_session: AsyncSession, test_user: User):
        store = CreationStore(db_session)
        first = await store.insert(test_user.id, "p1", "c1", "article")
        second = await store.insert(test_user.id, "p2", "c2", "blog-title")

        assert second.id > first.id

    async def test_insert_rejects_unknown_type(self, db_session: AsyncSession, test_user: User):
        with pytest.raises(ValueError):
            await CreationStore(db_session).insert(test_user.id, "p", "c", "poem")

    async def test_insert_failure_is_persistence_error(self):
        session = AsyncMock()
        session.add = MagicMock()
        session.commit = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk full")))

        with pytest.raises(PersistenceFailed):
            await CreationStore(session).insert("user-1", "p", "c", "article")

        session.rollback.assert_awaited_once()


class TestListing:
    async def test_list_by_owner_newest_first(self, db_session: AsyncSession, test_user: User, make_user, make_creation):
        other = await make_user("other@example.com")
        now = datetime.now(UTC)
        old = await make_creation(test_user.id, created_at=now - timedelta(hours=2))
        new = await make_creation(test_user.id, created_at=now)
        await make_creation(other.id, created_at=now - timedelta(hours=1))

        creations = await CreationStore(db_session).list_by_owner(test_user.id)

        assert [c.id for c in creations] == [new.id, old.id]

    async def test_list_published_returns_only_published(self, db_session: AsyncSession, test_user: User, make_creation):
        now = datetime.now(UTC)
        p1 = await make_creation(test_user.id, publish=True, created_at=now - timedelta(minutes=3))
        await make_creation(test_user.id, publish=False, likes=["fan-1", "fan-2"], created_at=now - timedelta(minutes=2))
        p2 = await make_creation(test_user.id, publish=True, created_at=now - timedelta(minutes=1))
        await make_creation(test_user.id, publish=False, created_at=now)

        creations = await CreationStore(db_session).list_published()

        assert [c.id for c in creations] == [p2.id, p1.id]
        assert all(c.publish for c in creations)

    async def test_list_published_empty(self, db_session: AsyncSession, test_user: User, make_creation):
        await make_creation(test_user.id, publish=False)

        assert await CreationStore(db_session).list_published() == []


class TestToggleLike:
    async def test_like_then_unlike(self, db_session: AsyncSession, test_user: User, make_creation):
        creation = await make_creation(test_user.id, publish=True, likes=[])
        store = CreationStore(db_session)

        first = await store.toggle_like(creation.id, "userX")
        assert first.liked is True
        assert first.message == LIKED_MESSAGE
        assert first.creations[0].likes == ["userX"]

        second = await store.toggle_like(creation.id, "userX")
        assert second.liked is False
        assert second.message == UNLIKED_MESSAGE
        assert second.creations[0].likes == []

    async def test_toggle_twice_restores_membership(self, db_session: AsyncSession, test_user: User, make_creation):
        creation = await make_creation(test_user.id, publish=True, likes=["a", "b"])
        store = CreationStore(db_session)

        await store.toggle_like(creation.id, "c")
        await store.toggle_like(creation.id, "c")
        await store.toggle_like(creation.id, "a")
        result = await store.toggle_like(creation.id, "a")

        assert sorted(result.creations[0].likes) == ["a", "b"]

    async def test_like_appends_to_existing_likes(self, db_session: AsyncSession, test_user: User, make_creation):
        creation = await make_creation(test_user.id, publish=True, likes=["first"])

        result = await CreationStore(db_session).toggle_like(creation.id, "second")

        assert result.creations[0].likes == ["first", "second"]

    async def test_unpublished_rejected_and_likes_preserved(self, db_session: AsyncSession, test_user: User, make_creation):
        creation = await make_creation(test_user.id, publish=False, likes=["legacy-fan"])

        with pytest.raises(Forbidden):
            await CreationStore(db_session).toggle_like(creation.id, "userX")

        row = await db_session.execute(select(Creation.likes).where(Creation.id == creation.id))
        assert row.scalar_one() == ["legacy-fan"]

    async def test_missing_creation_not_found(self, db_session: AsyncSession):
        with pytest.raises(NotFound):
            await CreationStore(db_session).toggle_like(9999, "userX")

    async def test_stored_duplicates_are_collapsed(self, db_session: AsyncSession, test_user: User, make_creation):
        creation = await make_creation(test_user.id, publish=True, likes=["dup", "dup"])

        result = await CreationStore(db_session).toggle_like(creation.id, "new")

        assert result.creations[0].likes == ["dup", "new"]

    async def test_toggle_bumps_updated_at(self, db_session: AsyncSession, test_user: User, make_creation):
        creation = await make_creation(test_user.id, publish=True)
        before = creation.updated_at

        await asyncio.sleep(0.01)
        result = await CreationStore(db_session).toggle_like(creation.id, "userX")

        assert result.creations[0].updated_at > before

    async def test_returns_full_published_feed(self, db_session: AsyncSession, test_user: User, make_creation):
        target = await make_creation(test_user.id, publish=True)
        other = await make_creation(test_user.id, publish=True)
        await make_creation(test_user.id, publish=False)

        result = await CreationStore(db_session).toggle_like(target.id, "userX")

        assert {c.id for c in result.creations} == {target.id, other.id}


class TestDeleteByOwner:
    async def test_non_owner_deletes_nothing(self, db_session: AsyncSession, test_user: User, make_user, make_creation):
        intruder = await make_user("intruder@example.com")
        creation = await make_creation(test_user.id)
        store = CreationStore(db_session)

        assert await store.delete_by_owner(creation.id, intruder.id) is False
        assert [c.id for c in await store.list_by_owner(test_user.id)] == [creation.id]

    async def test_owner_deletes(self, db_session: AsyncSession, test_user: User, make_creation):
        creation = await make_creation(test_user.id)
        store = CreationStore(db_session)

        assert await store.delete_by_owner(creation.id, test_user.id) is True
        assert await store.list_by_owner(test_user.id) == []

    async def test_missing_id(self, db_session: AsyncSession, test_user: User):
        assert await CreationStore(db_session).delete_by_owner(12345, test_user.id) is False


class TestConcurrentToggles:
    """Concurrent likes race on a plain read-modify-write of the likes column."""

    async def test_concurrent_likes_end_between_one_and_n(self, tmp_path):
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'likes.db'}",
            poolclass=NullPool,
            connect_args={"timeout": 30},
        )
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

        async with session_maker() as session:
            owner = User(id="owner-1", email="owner@example.com", name="Owner")
            session.add(owner)
            creation = Creation(
                user_id=owner.id, prompt="p", content="c", type="image", publish=True, likes=[]
            )
            session.add(creation)
            await session.commit()
            creation_id = creation.id

        likers = [f"user-{i}" for i in range(8)]

        async def like(user_id: str) -> None:
            async with session_maker() as session:
                await CreationStore(session).toggle_like(creation_id, user_id)

        await asyncio.gather(*(like(u) for u in likers))

        async with session_maker() as session:
            result = await session.execute(select(Creation.likes).where(Creation.id == creation_id))
            likes = result.scalar_one()

        await engine.dispose()

        assert 1 <= len(likes) <= len(likers)
        assert len(likes) == len(set(likes))
        assert set(likes) <= set(likers)
