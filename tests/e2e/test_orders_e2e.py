"""E2E smoke tests for the order and review APIs using Playwright."""

from __future__ import annotations

from uuid import uuid4

import pytest

pytestmark = [pytest.mark.e2e]


def test_orders_require_authentication(api_request_context):
    response = api_request_context.get("/api/v1/orders/")

    assert response.status == 401
    assert response.json()["type"] == "client_error"


def test_new_user_has_no_orders(api_request_context, auth_headers):
    response = api_request_context.get("/api/v1/orders/", headers=auth_headers)

    assert response.status == 200
    data = response.json()
    assert data["count"] == 0
    assert data["results"] == []


def test_order_stats_default_window(api_request_context, auth_headers):
    response = api_request_context.get("/api/v1/orders/stats/", headers=auth_headers)

    assert response.status == 200
    assert response.json()["totalOrders"] == 0


def test_unknown_restaurant_reviews_are_not_found(api_request_context):
    response = api_request_context.get(f"/api/v1/reviews/restaurant/{uuid4()}/")

    assert response.status == 404
    assert response.json()["errors"][0]["code"] == "restaurant_not_found"
