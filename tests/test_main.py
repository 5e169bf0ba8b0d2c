"""Test the FastAPI application shell."""

import pytest


@pytest.mark.integration
class TestApplication:

    @pytest.mark.asyncio
    async def test_health_without_database_engine(self, async_client):
        """The lifespan does not run under the test transport, so the store reports disabled."""
        response = await async_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "ParrotFlow"
        assert body["databases"]["database"]["status"] == "disabled"

    @pytest.mark.asyncio
    async def test_metrics_endpoint(self, async_client):
        await async_client.get("/health")

        response = await async_client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    @pytest.mark.asyncio
    async def test_docs_disabled_outside_development(self, async_client):
        response = await async_client.get("/docs")

        assert response.status_code == 404
