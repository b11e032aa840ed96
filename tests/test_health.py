"""
Grammable — Health Endpoint & Error Envelope Tests
====================================================
"""

import pytest

from grammable import __version__


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["storage"] == "writable"
        assert body["version"] == __version__

    @pytest.mark.asyncio
    async def test_request_id_header(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"


class TestErrorEnvelope:

    @pytest.mark.asyncio
    async def test_not_found_body(self, test_client):
        response = await test_client.get("/grams/TACOCAT")

        body = response.json()
        assert set(body) >= {"error", "message", "request_id"}
        assert body["error"] == "not_found"
        assert response.headers["X-Request-ID"] == body["request_id"]
