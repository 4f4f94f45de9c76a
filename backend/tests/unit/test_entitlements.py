"""
Unit tests for EntitlementResolver.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import Unauthorized
from infrastructure.database.models import User
from services.entitlements import EntitlementResolver

pytestmark = pytest.mark.asyncio


class TestResolve:
    async def test_first_observation_initializes_counter(self, db_session: AsyncSession, test_user: User):
        assert test_user.private_metadata is None

        ctx = await EntitlementResolver(db_session).resolve(test_user)

        assert ctx.user_id == test_user.id
        assert ctx.plan == "free"
        assert ctx.free_usage_count == 0
        await db_session.refresh(test_user)
        assert test_user.private_metadata == {"free_usage": 0}

    async def test_existing_counter_is_read(self, db_session: AsyncSession, make_user):
        user = await make_user("counted@example.com", free_usage=7)

        ctx = await EntitlementResolver(db_session).resolve(user)

        assert ctx.plan == "free"
        assert ctx.free_usage_count == 7

    async def test_premium_counter_is_not_written(self, db_session: AsyncSession, premium_user: User):
        ctx = await EntitlementResolver(db_session).resolve(premium_user)

        assert ctx.plan == "premium"
        assert ctx.is_premium
        await db_session.refresh(premium_user)
        assert premium_user.private_metadata is None

    async def test_premium_existing_counter_left_untouched(self, db_session: AsyncSession, make_user):
        user = await make_user("prem@example.com", tier="premium", free_usage=4)

        ctx = await EntitlementResolver(db_session).resolve(user)

        assert ctx.plan == "premium"
        assert ctx.free_usage_count == 4
        assert user.private_metadata == {"free_usage": 4}

    async def test_expired_premium_resolves_to_free(self, db_session: AsyncSession, make_user):
        user = await make_user("lapsed@example.com", tier="premium")
        user.subscription_expires = datetime.now(UTC) - timedelta(days=1)
        await db_session.commit()

        ctx = await EntitlementResolver(db_session).resolve(user)

        assert ctx.plan == "free"
        assert user.private_metadata == {"free_usage": 0}

    async def test_cancelled_premium_resolves_to_free(self, db_session: AsyncSession, make_user):
        user = await make_user("cancelled@example.com", tier="premium")
        user.subscription_status = "cancelled"
        await db_session.commit()

        ctx = await EntitlementResolver(db_session).resolve(user)

        assert ctx.plan == "free"

    async def test_non_integer_counter_treated_as_absent(self, db_session: AsyncSession, test_user: User):
        test_user.private_metadata = {"free_usage": "nine", "other": "kept"}
        await db_session.commit()

        ctx = await EntitlementResolver(db_session).resolve(test_user)

        assert ctx.free_usage_count == 0
        assert test_user.private_metadata == {"free_usage": 0, "other": "kept"}

    async def test_missing_user_id_is_unauthorized(self, db_session: AsyncSession):
        with pytest.raises(Unauthorized):
            await EntitlementResolver(db_session).resolve(User(id="", email="x@example.com", name="X"))

    async def test_context_is_immutable(self, db_session: AsyncSession, test_user: User):
        ctx = await EntitlementResolver(db_session).resolve(test_user)

        with pytest.raises(AttributeError):
            ctx.free_usage_count = 99


class TestIncrement:
    async def test_increment_writes_next_value(self, db_session: AsyncSession, make_user):
        user = await make_user("inc@example.com", free_usage=3)

        await EntitlementResolver(db_session).increment(user.id, 3)

        await db_session.refresh(user)
        assert user.private_metadata["free_usage"] == 4

    async def test_increment_preserves_other_metadata(self, db_session: AsyncSession, test_user: User):
        test_user.private_metadata = {"free_usage": 1, "theme": "dark"}
        await db_session.commit()

        await EntitlementResolver(db_session).increment(test_user.id, 1)

        await db_session.refresh(test_user)
        assert test_user.private_metadata == {"free_usage": 2, "theme": "dark"}

    async def test_increment_unknown_user_is_noop(self, db_session: AsyncSession):
        await EntitlementResolver(db_session).increment("does-not-exist", 0)

    async def test_increment_failure_is_swallowed(self):
        session = AsyncMock()
        session.execute = AsyncMock(side_effect=OperationalError("UPDATE", {}, Exception("db down")))
        session.rollback = AsyncMock()

        await EntitlementResolver(session).increment("user-1", 5)

        session.rollback.assert_awaited_once()

    async def test_commit_failure_is_swallowed(self):
        user = MagicMock()
        user.private_metadata = {"free_usage": 2}
        result = MagicMock()
        result.scalar_one_or_none.return_value = user
        session = AsyncMock()
        session.execute = AsyncMock(return_value=result)
        session.commit = AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("lost")))
        session.rollback = AsyncMock()

        await EntitlementResolver(session).increment("user-1", 2)

        session.rollback.assert_awaited_once()


class TestGetUsage:
    async def test_free_usage_summary(self, db_session: AsyncSession, make_user):
        user = await make_user("summary@example.com", free_usage=6)

        summary = await EntitlementResolver(db_session).get_usage(user)

        assert summary.plan == "free"
        assert summary.free_usage == 6
        assert summary.limit == 10
        assert summary.remaining == 4

    async def test_premium_usage_summary(self, db_session: AsyncSession, premium_user: User):
        summary = await EntitlementResolver(db_session).get_usage(premium_user)

        assert summary.plan == "premium"
        assert summary.limit is None
        assert summary.remaining is None
