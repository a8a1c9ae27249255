"""Integration tests for /api/v1/reviews/."""

from uuid import uuid4

import pytest

from modules.catalog.models import Restaurant
from modules.reviews.models import Review

pytestmark = pytest.mark.integration

URL = "/api/v1/reviews/"


@pytest.fixture()
def customer_client(client_for, customer_user):
    return client_for(customer_user)


@pytest.fixture()
def owner_client(client_for, owner_user):
    return client_for(owner_user)


@pytest.fixture()
def review(delivered_order, write_review):
    return write_review(delivered_order, comment="Lovely thali", tags=["great_food"])


class TestCreateReview:
    def test_customer_reviews_delivered_order(
        self, customer_client, delivered_order, thali
    ):
        body = {
            "order": str(delivered_order.id),
            "food": 4,
            "delivery": 5,
            "service": 5,
            "comment": "Hot and on time",
            "tags": ["hot_food", "fast_delivery"],
            "item_ratings": [{"menu_item": str(thali.id), "rating": 5}],
        }

        response = customer_client.post(URL, body, format="json")

        assert response.status_code == 201
        data = response.json()
        assert data["overall"] == "4.7"
        assert data["restaurant_id"] == str(delivered_order.restaurant_id)
        assert data["delivery_partner_id"] == str(delivered_order.delivery_partner_id)
        assert data["item_ratings"][0]["menu_item_name"] == "Veg Thali"
        assert data["response"] is None

        order = customer_client.get(f"/api/v1/orders/{delivered_order.id}/").json()
        assert order["rating"]["overall"] == "4.7"

    def test_undelivered_order_rejected(self, customer_client, pending_order):
        body = {"order": str(pending_order.id), "food": 4, "delivery": 4, "service": 4}

        response = customer_client.post(URL, body, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "order_not_delivered"

    def test_second_review_rejected(self, customer_client, review, delivered_order):
        body = {"order": str(delivered_order.id), "food": 3, "delivery": 3, "service": 3}

        response = customer_client.post(URL, body, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["code"] == "duplicate_review"

    def test_rating_out_of_range_is_validation_error(
        self, customer_client, delivered_order
    ):
        body = {"order": str(delivered_order.id), "food": 6, "delivery": 4, "service": 4}

        response = customer_client.post(URL, body, format="json")

        assert response.status_code == 400
        assert response.json()["errors"][0]["attr"] == "food"

    def test_unknown_tag_is_validation_error(self, customer_client, delivered_order):
        body = {
            "order": str(delivered_order.id),
            "food": 4,
            "delivery": 4,
            "service": 4,
            "tags": ["tasty"],
        }

        response = customer_client.post(URL, body, format="json")

        assert response.status_code == 400
        assert response.json()["type"] == "validation_error"

    def test_anonymous_cannot_review(self, api_client, delivered_order):
        body = {"order": str(delivered_order.id), "food": 4, "delivery": 4, "service": 4}

        assert api_client.post(URL, body, format="json").status_code == 401


class TestReadReviews:
    def test_retrieve_is_public(self, api_client, review):
        response = api_client.get(f"{URL}{review.id}/")

        assert response.status_code == 200
        assert response.json()["customer_name"] == "customer"

    def test_unknown_review_not_found(self, api_client):
        response = api_client.get(f"{URL}{uuid4()}/")

        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "review_not_found"

    def test_restaurant_listing_is_public(self, api_client, review, restaurant):
        response = api_client.get(f"{URL}restaurant/{restaurant.id}/")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["results"][0]["id"] == str(review.id)
        assert data["rating_distribution"] == [{"rating": "4.7", "count": 1}]

    def test_listing_filters_by_tag(self, api_client, review, restaurant):
        matching = api_client.get(
            f"{URL}restaurant/{restaurant.id}/", {"tags": "great_food,hot_food"}
        )
        other = api_client.get(f"{URL}restaurant/{restaurant.id}/", {"tags": "hot_food"})

        assert matching.json()["count"] == 1
        assert other.json()["count"] == 0

    def test_listing_filters_by_min_rating(self, api_client, review, restaurant):
        response = api_client.get(f"{URL}restaurant/{restaurant.id}/", {"min_rating": 5})

        assert response.json()["count"] == 0

    def test_listing_unknown_restaurant(self, api_client):
        response = api_client.get(f"{URL}restaurant/{uuid4()}/")

        assert response.status_code == 404
        assert response.json()["errors"][0]["code"] == "restaurant_not_found"

    def test_mine_lists_own_reviews(self, customer_client, client_for, stranger_user, review):
        mine = customer_client.get(f"{URL}mine/").json()
        theirs = client_for(stranger_user).get(f"{URL}mine/").json()

        assert [row["id"] for row in mine["results"]] == [str(review.id)]
        assert theirs["count"] == 0


class TestEditReview:
    def test_partial_update_recomputes_overall(self, customer_client, review):
        response = customer_client.put(f"{URL}{review.id}/", {"food": 1}, format="json")

        assert response.status_code == 200
        data = response.json()
        assert data["food"] == 1
        assert data["delivery"] == 5
        assert data["overall"] == "3.7"

    def test_other_user_cannot_update(self, client_for, stranger_user, review):
        response = client_for(stranger_user).put(
            f"{URL}{review.id}/", {"food": 1}, format="json"
        )

        assert response.status_code == 403
        assert response.json()["errors"][0]["code"] == "review_access_denied"

    def test_delete_soft_deletes(self, customer_client, api_client, review):
        response = customer_client.delete(f"{URL}{review.id}/")

        assert response.status_code == 204
        assert Review.objects.dead().filter(pk=review.pk).exists()
        assert api_client.get(f"{URL}{review.id}/").status_code == 404


class TestInteractions:
    def test_owner_responds_once(self, owner_client, review):
        first = owner_client.post(
            f"{URL}{review.id}/response/", {"message": "Thank you!"}, format="json"
        )
        second = owner_client.post(
            f"{URL}{review.id}/response/", {"message": "Again"}, format="json"
        )

        assert first.status_code == 200
        assert first.json()["response"]["message"] == "Thank you!"
        assert second.status_code == 400
        assert second.json()["errors"][0]["code"] == "review_already_answered"

    def test_customer_cannot_respond(self, customer_client, review):
        response = customer_client.post(
            f"{URL}{review.id}/response/", {"message": "Me too"}, format="json"
        )

        assert response.status_code == 403

    def test_helpful_votes(self, client_for, stranger_user, review):
        client = client_for(stranger_user)

        client.put(f"{URL}{review.id}/helpful/", {"is_helpful": True}, format="json")
        response = client.put(
            f"{URL}{review.id}/helpful/", {"is_helpful": False}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["helpful_count"] == 1
        assert response.json()["not_helpful_count"] == 1

    def test_report(self, client_for, stranger_user, review):
        response = client_for(stranger_user).post(
            f"{URL}{review.id}/report/", {"reason": "Spam"}, format="json"
        )

        assert response.status_code == 200
        assert response.json() == {"detail": "Review reported successfully"}
        review.refresh_from_db()
        assert review.is_reported is True
        assert review.report_reason == "Spam"

    def test_admin_hides_review(self, client_for, admin_user, api_client, review, restaurant):
        response = client_for(admin_user).put(
            f"{URL}{review.id}/moderate/", {"is_hidden": True}, format="json"
        )

        assert response.status_code == 200
        assert api_client.get(f"{URL}{review.id}/").status_code == 404
        listing = api_client.get(f"{URL}restaurant/{restaurant.id}/").json()
        assert listing["count"] == 0
        restaurant.refresh_from_db()
        assert restaurant.rating_count == 0

    def test_owner_cannot_moderate(self, owner_client, review):
        response = owner_client.put(
            f"{URL}{review.id}/moderate/", {"is_hidden": True}, format="json"
        )

        assert response.status_code == 403


class TestRestaurantStats:
    def test_owner_sees_stats_and_recent_reviews(self, owner_client, review, restaurant):
        response = owner_client.get(f"{URL}restaurant/{restaurant.id}/stats/")

        assert response.status_code == 200
        data = response.json()
        assert data["totalReviews"] == 1
        assert data["averageFood"] == "4.0"
        assert data["averageOverall"] == "4.7"
        assert data["ratingDistribution"] == [{"rating": "4.7", "count": 1}]
        assert [row["id"] for row in data["recentReviews"]] == [str(review.id)]

    def test_customer_cannot_see_stats(self, customer_client, review, restaurant):
        response = customer_client.get(f"{URL}restaurant/{restaurant.id}/stats/")

        assert response.status_code == 403

    def test_restaurant_rating_updated(self, review, restaurant):
        restaurant = Restaurant.objects.get(pk=restaurant.pk)

        assert restaurant.rating_count == 1
        assert str(restaurant.rating_average) == "4.7"
