from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.catalog.models import MenuItem, Restaurant
from modules.core.roles import actor_for
from modules.customers.models import Address
from modules.delivery.models import DeliveryPartner
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.dtos import CartLineDTO, ChangeStatusDTO, CreateOrderDTO
from modules.orders.views import build_order_service

MENUS = {
    "Spice Route": [
        (
            "Paneer Tikka",
            Decimal("220.00"),
            {
                "add_ons": [{"name": "Extra Cheese", "price": "30", "is_available": True}],
            },
        ),
        (
            "Chicken Biryani",
            Decimal("280.00"),
            {
                "variants": [
                    {"name": "Half", "price": "180", "is_available": True},
                    {"name": "Full", "price": "280", "is_available": True},
                ],
                "customizations": [
                    {
                        "name": "Spice Level",
                        "options": [
                            {"name": "Mild", "price_modifier": "0"},
                            {"name": "Hot", "price_modifier": "0"},
                        ],
                        "is_required": True,
                        "max_selections": 1,
                    }
                ],
            },
        ),
        ("Garlic Naan", Decimal("60.00"), {}),
    ],
    "Green Bowl": [
        ("Quinoa Salad", Decimal("240.00"), {}),
        ("Cold Pressed Juice", Decimal("150.00"), {}),
    ],
}


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        restaurants = self._seed_catalog(users["owner"])
        address = self._seed_address(users["customer"])
        self._seed_delivery_partner(users["rider"])
        orders_created = self._seed_orders(users, restaurants, address)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"restaurants={len(restaurants)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> dict:
        User = get_user_model()
        users = {}
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
        users["admin"] = User.objects.get(username="admin")
        for key, username in (
            ("owner", "owner"),
            ("customer", "customer"),
            ("rider", "rider"),
        ):
            user, created = User.objects.get_or_create(username=username)
            if created:
                user.set_password(f"{username}123")
                user.save()
            users[key] = user
        return users

    def _seed_catalog(self, owner) -> list[Restaurant]:
        self.stdout.write("Creating restaurants...")
        restaurants = []
        for name, items in MENUS.items():
            restaurant, _ = Restaurant.objects.get_or_create(
                name=name,
                defaults={
                    "owner": owner,
                    "minimum_order": Decimal("100.00"),
                    "delivery_fee": Decimal("30.00"),
                },
            )
            for item_name, price, extras in items:
                MenuItem.objects.get_or_create(
                    restaurant=restaurant,
                    name=item_name,
                    defaults={"price": price, **extras},
                )
            restaurants.append(restaurant)
        self.stdout.write(self.style.SUCCESS("Creating restaurants... Done!"))
        return restaurants

    def _seed_address(self, customer) -> Address:
        address, _ = Address.objects.get_or_create(
            user=customer,
            label="Home",
            defaults={
                "address_line1": "12 MG Road",
                "city": "Bengaluru",
                "state": "Karnataka",
                "postal_code": "560001",
            },
        )
        return address

    def _seed_delivery_partner(self, rider) -> DeliveryPartner:
        partner, _ = DeliveryPartner.objects.get_or_create(
            user=rider, defaults={"is_approved": True, "is_online": True}
        )
        return partner

    def _seed_orders(self, users: dict, restaurants: list[Restaurant], address) -> int:
        self.stdout.write("Creating orders...")
        service = build_order_service()
        admin = actor_for(users["admin"])
        progressions = [
            [],
            [OrderStatus.CONFIRMED],
            [OrderStatus.CONFIRMED, OrderStatus.PREPARING],
            [OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY_FOR_PICKUP],
            [OrderStatus.CANCELLED],
        ]

        orders_created = 0
        for i in range(10):
            restaurant = random.choice(restaurants)
            plain_items = [
                item
                for item in restaurant.menu_items.alive()
                if not item.variants and not item.customizations
            ]
            picks = random.sample(plain_items, k=min(2, len(plain_items)))
            dto = CreateOrderDTO(
                customer_id=users["customer"].pk,
                restaurant_id=restaurant.id,
                delivery_address_id=address.id,
                payment_method=random.choice(list(PaymentMethod)),
                items=[
                    CartLineDTO(menu_item_id=item.id, quantity=random.randint(1, 3))
                    for item in picks
                ],
                special_instructions=f"Seed order {i + 1}",
            )
            order = service.create_order(dto)
            for target in random.choice(progressions):
                service.change_status(admin, order.id, ChangeStatusDTO(status=target))
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return orders_created
