from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from rest_framework.test import APIClient

from modules.catalog.models import MenuItem, Restaurant
from modules.core.roles import actor_for
from modules.customers.models import Address
from modules.delivery.models import DeliveryPartner
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.dtos import CartLineDTO, ChangeStatusDTO, CreateOrderDTO
from modules.reviews.dtos import CreateReviewDTO

User = get_user_model()

# Path from ``pending`` to each non-terminal status.
PROGRESSION = [
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY_FOR_PICKUP,
]


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users and clients
# ---------------------------------------------------------------------------


@pytest.fixture()
def customer_user():
    return User.objects.create_user(username="customer", password="testpass123")


@pytest.fixture()
def owner_user():
    return User.objects.create_user(username="owner", password="testpass123")


@pytest.fixture()
def admin_user():
    return User.objects.create_user(
        username="admin", password="testpass123", is_staff=True
    )


@pytest.fixture()
def rider_user():
    return User.objects.create_user(username="rider", password="testpass123")


@pytest.fixture()
def stranger_user():
    return User.objects.create_user(username="stranger", password="testpass123")


@pytest.fixture()
def client_for():
    """Build an APIClient force-authenticated as the given user."""

    def _client(user) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


# ---------------------------------------------------------------------------
# Catalog, address and delivery partner
# ---------------------------------------------------------------------------


@pytest.fixture()
def restaurant(owner_user):
    return Restaurant.objects.create(
        owner=owner_user,
        name="Spice Route",
        minimum_order=Decimal("50.00"),
        delivery_fee=Decimal("30.00"),
        delivery_time_min=30,
        delivery_time_max=40,
    )


@pytest.fixture()
def thali(restaurant):
    """Priced 100 with one available add-on priced 20."""
    return MenuItem.objects.create(
        restaurant=restaurant,
        name="Veg Thali",
        price=Decimal("100.00"),
        add_ons=[
            {"name": "Extra Roti", "price": "20", "is_available": True},
            {"name": "Sweet", "price": "40", "is_available": False},
        ],
    )


@pytest.fixture()
def biryani(restaurant):
    return MenuItem.objects.create(
        restaurant=restaurant,
        name="Chicken Biryani",
        price=Decimal("280.00"),
        variants=[
            {"name": "Half", "price": "180", "is_available": True},
            {"name": "Full", "price": "280", "is_available": True},
        ],
        customizations=[
            {
                "name": "Spice Level",
                "options": [
                    {"name": "Mild", "price_modifier": "0"},
                    {"name": "Extra Hot", "price_modifier": "15"},
                ],
                "is_required": True,
                "max_selections": 1,
            }
        ],
    )


@pytest.fixture()
def address(customer_user):
    return Address.objects.create(
        user=customer_user,
        label="Home",
        address_line1="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        postal_code="560001",
    )


@pytest.fixture()
def delivery_partner(rider_user):
    return DeliveryPartner.objects.create(
        user=rider_user, is_approved=True, is_online=True
    )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    from modules.orders.views import build_order_service

    return build_order_service()


@pytest.fixture()
def place_order(order_service, customer_user, restaurant, address, thali):
    """Place an order for ``customer_user`` (two Veg Thali by default)."""

    def _place(items=None, customer=None, delivery_address=None):
        dto = CreateOrderDTO(
            customer_id=(customer or customer_user).pk,
            restaurant_id=restaurant.id,
            delivery_address_id=(delivery_address or address).id,
            payment_method=PaymentMethod.UPI,
            items=items or [CartLineDTO(menu_item_id=thali.id, quantity=2)],
        )
        return order_service.create_order(dto)

    return _place


@pytest.fixture()
def advance(order_service, admin_user):
    """Move an order forward through ``PROGRESSION`` up to ``target``."""

    def _advance(order, target):
        admin = actor_for(admin_user)
        for status in PROGRESSION:
            order = order_service.change_status(
                admin, order.id, ChangeStatusDTO(status=status)
            )
            if status == target:
                break
        return order

    return _advance


@pytest.fixture()
def pending_order(place_order):
    return place_order()


@pytest.fixture()
def ready_order(place_order, advance):
    return advance(place_order(), OrderStatus.READY_FOR_PICKUP)


@pytest.fixture()
def out_for_delivery_order(ready_order, order_service, delivery_partner, rider_user):
    return order_service.accept_order(actor_for(rider_user), ready_order.id)


@pytest.fixture()
def delivered_order(out_for_delivery_order, order_service, rider_user):
    return order_service.verify_delivery_otp(
        actor_for(rider_user),
        out_for_delivery_order.id,
        out_for_delivery_order.otp_code,
    )


@pytest.fixture()
def deliver(order_service, advance, delivery_partner, rider_user):
    """Take a placed order all the way to ``delivered`` with the rider."""

    def _deliver(order):
        rider = actor_for(rider_user)
        order = advance(order, OrderStatus.READY_FOR_PICKUP)
        order = order_service.accept_order(rider, order.id)
        return order_service.verify_delivery_otp(rider, order.id, order.otp_code)

    return _deliver


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


@pytest.fixture()
def review_service():
    from modules.reviews.views import build_review_service

    return build_review_service()


@pytest.fixture()
def write_review(review_service, customer_user):
    """Review an order as ``customer_user`` (4/5/5 unless overridden)."""

    def _write(order, food=4, delivery=5, service=5, **extra):
        dto = CreateReviewDTO(
            customer_id=customer_user.pk,
            order_id=order.id,
            food=food,
            delivery=delivery,
            service=service,
            **extra,
        )
        return review_service.create_review(actor_for(customer_user), dto)

    return _write
