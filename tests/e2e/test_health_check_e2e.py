"""E2E smoke test for the health endpoint using Playwright.

Run with:
    pytest -m e2e --base-url http://localhost:8000
"""

import json

import pytest

pytestmark = [pytest.mark.e2e]


def test_health_check_reports_every_service(page):
    page.goto("/health")

    data = json.loads(page.text_content("body") or "{}")

    assert data["status"] == "healthy"
    assert set(data["services"]) == {"database", "cache", "outbox"}
    assert "pending_events" in data["services"]["outbox"]


def test_health_check_echoes_request_id(api_request_context):
    response = api_request_context.get(
        "/health", headers={"X-Request-ID": "e2e-health-probe"}
    )

    assert response.headers["x-request-id"] == "e2e-health-probe"
