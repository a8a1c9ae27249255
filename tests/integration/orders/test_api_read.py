"""Integration tests for order listing and retrieval."""

from uuid import uuid4

import pytest

from django.contrib.auth import get_user_model

from modules.core.roles import actor_for
from modules.customers.models import Address
from modules.orders.constants import OrderStatus

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


@pytest.fixture()
def orders(place_order, stranger_user):
    """Two orders for the customer and one for the stranger, same restaurant."""
    stranger_address = Address.objects.create(
        user=stranger_user,
        address_line1="1 Park Street",
        city="Kolkata",
        state="West Bengal",
        postal_code="700016",
    )
    return {
        "mine": [place_order(), place_order()],
        "theirs": place_order(customer=stranger_user, delivery_address=stranger_address),
    }


class TestListScoping:
    def _ids(self, response):
        assert response.status_code == 200
        return {row["id"] for row in response.json()["results"]}

    def test_customer_sees_own_orders(self, client_for, customer_user, orders):
        ids = self._ids(client_for(customer_user).get(URL))

        assert ids == {str(order.id) for order in orders["mine"]}

    def test_owner_sees_restaurant_orders(self, client_for, owner_user, orders):
        ids = self._ids(client_for(owner_user).get(URL))

        assert len(ids) == 3

    def test_admin_sees_everything(self, client_for, admin_user, orders):
        assert len(self._ids(client_for(admin_user).get(URL))) == 3

    def test_rider_sees_only_assigned_orders(
        self, client_for, rider_user, orders, advance, order_service, delivery_partner
    ):
        order = advance(orders["mine"][0], OrderStatus.READY_FOR_PICKUP)
        order_service.accept_order(actor_for(rider_user), order.id)

        ids = self._ids(client_for(rider_user).get(URL))

        assert ids == {str(order.id)}

    def test_unrelated_user_sees_nothing(self, client_for, orders):
        nobody = get_user_model().objects.create_user(username="nobody", password="x")

        assert self._ids(client_for(nobody).get(URL)) == set()


class TestListFilters:
    def test_filter_by_status(self, client_for, customer_user, orders, advance):
        advance(orders["mine"][0], OrderStatus.CONFIRMED)

        response = client_for(customer_user).get(URL, {"status": "confirmed"})

        results = response.json()["results"]
        assert [row["id"] for row in results] == [str(orders["mine"][0].id)]
        assert results[0]["order_status"] == "confirmed"

    def test_search_by_order_number(self, client_for, admin_user, orders):
        number = orders["theirs"].order_number

        response = client_for(admin_user).get(URL, {"search": number})

        assert [row["order_number"] for row in response.json()["results"]] == [number]

    def test_min_total_filter(self, client_for, admin_user, orders):
        response = client_for(admin_user).get(URL, {"min_total": "1000"})

        assert response.json()["count"] == 0

    def test_newest_first(self, client_for, customer_user, orders):
        response = client_for(customer_user).get(URL)

        ids = [row["id"] for row in response.json()["results"]]
        assert ids == [str(orders["mine"][1].id), str(orders["mine"][0].id)]


class TestPagination:
    def test_limit_and_metadata(self, client_for, admin_user, orders):
        response = client_for(admin_user).get(URL, {"limit": 2})

        data = response.json()
        assert set(data) == {"count", "page", "total_pages", "next", "previous", "results"}
        assert data["count"] == 3
        assert data["page"] == 1
        assert data["total_pages"] == 2
        assert len(data["results"]) == 2
        assert data["next"] is not None
        assert data["previous"] is None


class TestRetrieve:
    def test_customer_gets_full_detail(self, client_for, customer_user, pending_order):
        response = client_for(customer_user).get(f"{URL}{pending_order.id}/")

        assert response.status_code == 200
        data = response.json()
        assert data["order_number"] == pending_order.order_number
        assert len(data["items"]) == 1
        assert data["otp"]["code"] == pending_order.otp_code
        assert data["cancellation"] is None
        assert data["rating"] is None

    @pytest.mark.parametrize("user_fixture", ["owner_user", "admin_user"])
    def test_otp_hidden_from_staff(self, request, client_for, pending_order, user_fixture):
        user = request.getfixturevalue(user_fixture)

        response = client_for(user).get(f"{URL}{pending_order.id}/")

        assert response.status_code == 200
        assert response.json()["otp"] is None

    def test_stranger_is_denied(self, client_for, stranger_user, pending_order):
        response = client_for(stranger_user).get(f"{URL}{pending_order.id}/")

        assert response.status_code == 403
        assert response.json()["errors"][0]["code"] == "order_access_denied"

    def test_unknown_order_is_not_found(self, client_for, customer_user):
        response = client_for(customer_user).get(f"{URL}{uuid4()}/")

        assert response.status_code == 404
