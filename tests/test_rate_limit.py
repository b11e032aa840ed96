"""
Grammable — Rate Limit Middleware Tests
=========================================

What:  Per-IP limit on credential submissions.
How:   A throwaway FastAPI app wrapped in RateLimitMiddleware(max_requests=2),
       so the real application's settings are irrelevant.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from grammable.middleware.rate_limit import RateLimitMiddleware


def build_app() -> FastAPI:
    app = FastAPI()

    @app.post("/users/sign_in")
    async def sign_in():
        return {"ok": True}

    @app.post("/users")
    async def sign_up():
        return {"ok": True}

    @app.post("/grams")
    async def create_gram():
        return {"ok": True}

    app.add_middleware(RateLimitMiddleware, max_requests=2, window=60)
    return app


@pytest.fixture
def limited_client():
    transport = ASGITransport(app=build_app())
    return AsyncClient(transport=transport, base_url="http://test")


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_blocks_after_limit(self, limited_client):
        async with limited_client as client:
            assert (await client.post("/users/sign_in")).status_code == 200
            assert (await client.post("/users/sign_in")).status_code == 200

            response = await client.post("/users/sign_in")

        assert response.status_code == 429
        body = response.json()
        assert body["error"] == "rate_limit_exceeded"
        assert 1 <= int(response.headers["Retry-After"]) <= 61

    @pytest.mark.asyncio
    async def test_sign_up_shares_the_budget(self, limited_client):
        async with limited_client as client:
            await client.post("/users/sign_in")
            await client.post("/users")

            assert (await client.post("/users")).status_code == 429

    @pytest.mark.asyncio
    async def test_other_routes_are_not_limited(self, limited_client):
        async with limited_client as client:
            for _ in range(5):
                assert (await client.post("/grams")).status_code == 200
