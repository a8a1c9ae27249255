"""Integration tests for JWT authentication."""

import pytest

pytestmark = pytest.mark.integration

TOKEN_URL = "/api/v1/auth/token/"


@pytest.fixture()
def access_token(api_client, customer_user):
    response = api_client.post(
        TOKEN_URL, {"username": "customer", "password": "testpass123"}, format="json"
    )
    assert response.status_code == 200
    return response.json()["access"]


class TestPublicEndpoints:
    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200

    def test_restaurant_reviews_are_public(self, api_client, restaurant):
        response = api_client.get(f"/api/v1/reviews/restaurant/{restaurant.id}/")
        assert response.status_code == 200


class TestTokenFlow:
    def test_bearer_token_opens_order_list(self, api_client, access_token, pending_order):
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {access_token}")

        response = api_client.get("/api/v1/orders/")

        assert response.status_code == 200
        assert response.json()["count"] == 1

    def test_refresh_returns_new_access_token(self, api_client, customer_user):
        tokens = api_client.post(
            TOKEN_URL, {"username": "customer", "password": "testpass123"}, format="json"
        ).json()

        response = api_client.post(
            f"{TOKEN_URL}refresh/", {"refresh": tokens["refresh"]}, format="json"
        )

        assert response.status_code == 200
        assert "access" in response.json()

    def test_wrong_password_is_rejected(self, api_client, customer_user):
        response = api_client.post(
            TOKEN_URL, {"username": "customer", "password": "nope"}, format="json"
        )
        assert response.status_code == 401


class TestProtectedEndpoints:
    @pytest.mark.parametrize(
        "path",
        ["/api/v1/me", "/api/v1/orders/", "/api/v1/delivery-partners/stats/", "/api/v1/reviews/mine/"],
    )
    def test_no_token_returns_401(self, api_client, path):
        assert api_client.get(path).status_code == 401

    @pytest.mark.parametrize(
        "header",
        ["Bearer invalid.token.here", "Token some-token", "Bearer "],
    )
    def test_bad_authorization_header_returns_401(self, api_client, header):
        api_client.credentials(HTTP_AUTHORIZATION=header)
        assert api_client.get("/api/v1/orders/").status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get("/api/v1/orders/")
        assert response.status_code == 401
        assert "Bearer" in response.get("WWW-Authenticate", "")
