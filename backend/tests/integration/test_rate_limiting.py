"""Integration tests for per-route rate limits."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

from adapters.ai.replicate_adapter import GeneratedImage
from api.middleware.rate_limit import RATE_LIMITS, get_rate_limit, rate_limit_key

pytestmark = pytest.mark.asyncio


class TestImageToolRateLimit:
    """Image tools allow 10 requests per minute per client."""

    async def test_image_rate_limit_exceeded(self, async_client: AsyncClient, auth_headers: dict):
        # Free user: every request is refused by the plan gate, but still counted
        for _ in range(10):
            response = await async_client.post(
                "/api/ai/images", json={"prompt": "a sunset"}, headers=auth_headers
            )
            assert response.status_code == 403

        response = await async_client.post(
            "/api/ai/images", json={"prompt": "a sunset"}, headers=auth_headers
        )
        assert response.status_code == 429
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "RATE_LIMITED"
        assert "10 per 1 minute" in body["message"]
        assert response.headers["Retry-After"] == "60"

    async def test_rate_limit_distinct_from_usage_limit(
        self, async_client: AsyncClient, make_user, user_headers
    ):
        user = await make_user("quota@example.com", free_usage=10)
        headers = user_headers(user)

        codes = []
        for _ in range(21):
            response = await async_client.post(
                "/api/ai/title", json={"prompt": "python"}, headers=headers
            )
            assert response.status_code == 429
            codes.append(response.json()["code"])

        assert codes[:20] == ["USAGE_LIMIT_EXCEEDED"] * 20
        assert codes[20] == "RATE_LIMITED"

    async def test_limits_are_per_route(self, async_client: AsyncClient, auth_headers: dict):
        for _ in range(10):
            await async_client.post("/api/ai/images", json={"prompt": "a sunset"}, headers=auth_headers)

        response = await async_client.get("/api/user/getUserCreations", headers=auth_headers)
        assert response.status_code == 200


class TestRateLimitConfig:
    async def test_known_groups(self):
        assert get_rate_limit("text_generation") == RATE_LIMITS["text_generation"]
        assert get_rate_limit("image_generation") == "10/minute"
        assert get_rate_limit("like") == "60/minute"

    async def test_unknown_group_uses_default(self):
        assert get_rate_limit("unknown") == RATE_LIMITS["default"]


class TestRateLimitKey:
    async def test_users_have_separate_buckets(
        self,
        async_client: AsyncClient,
        auth_headers: dict,
        premium_headers: dict,
    ):
        for _ in range(10):
            await async_client.post("/api/ai/images", json={"prompt": "a sunset"}, headers=auth_headers)

        with (
            patch(
                "services.generation_orchestrator.image_ai_service.generate_image",
                new_callable=AsyncMock,
                return_value=GeneratedImage(url="https://replicate.delivery/x.png", prompt="p", model="m"),
            ),
            patch("services.generation_orchestrator.download_image", new_callable=AsyncMock, return_value=b"png"),
            patch(
                "services.generation_orchestrator.storage_adapter.store",
                new_callable=AsyncMock,
                return_value="http://localhost:8000/uploads/x.png",
            ),
        ):
            response = await async_client.post(
                "/api/ai/images", json={"prompt": "a sunset"}, headers=premium_headers
            )
        assert response.status_code == 200

    async def test_key_prefers_user_id(self):
        request = SimpleNamespace(state=SimpleNamespace(user_id="user-1"), headers={})
        assert rate_limit_key(request) == "user:user-1"
