"""
Tests for per-user rate limiting (100 requests per 10 minutes)
"""

import pytest
from fastapi import HTTPException

from conftest import auth_headers
from powdercoat.core.config import settings
from powdercoat.core.rate_limit import check_rate_limit


class TestRateLimiting:

    def test_rate_limit_config(self):
        assert settings.RATE_LIMIT == 100
        assert settings.RATE_LIMIT_WINDOW == 600  # 10 minutes

    async def test_first_request_opens_window(self, fake_redis):
        await check_rate_limit(1)
        assert fake_redis.store["rl:1"] == b"1"

    async def test_limit_is_per_user(self, fake_redis, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT", 2)

        await check_rate_limit(1)
        await check_rate_limit(1)
        with pytest.raises(HTTPException) as exc:
            await check_rate_limit(1)
        assert exc.value.status_code == 429

        await check_rate_limit(2)

    @pytest.mark.api
    async def test_endpoint_returns_429(self, test_client, order, admin, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT", 1)
        headers = auth_headers(admin)

        first = await test_client.post(f"/orders/{order.id}/status", json={"status": "queued"}, headers=headers)
        second = await test_client.post(f"/orders/{order.id}/status", json={"status": "coating"}, headers=headers)

        assert first.status_code == 200
        assert second.status_code == 429
