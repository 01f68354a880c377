"""
Health and metrics endpoint tests.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "app": "Lendoo API"}


@pytest.mark.asyncio
async def test_ready_checks_database(client: AsyncClient):
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_metrics_exposes_lifecycle_counters(client: AsyncClient):
    response = await client.get("/metrics/")
    assert response.status_code == 200
    assert "lendoo_loan_transitions_total" in response.text
    assert "lendoo_checkout_failures_total" in response.text
