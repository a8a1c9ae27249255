import django.core.validators
import django.db.models.deletion
import uuid6
from django.conf import settings
from django.db import migrations, models


def rating():
    return models.PositiveSmallIntegerField(
        validators=[
            django.core.validators.MinValueValidator(1),
            django.core.validators.MaxValueValidator(5),
        ]
    )


def uuid_pk():
    return models.UUIDField(
        default=uuid6.uuid7, editable=False, primary_key=True, serialize=False
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("catalog", "0001_initial"),
        ("delivery", "0001_initial"),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Review",
            fields=[
                ("id", uuid_pk()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "deleted_at",
                    models.DateTimeField(
                        blank=True, db_index=True, default=None, null=True
                    ),
                ),
                ("food", rating()),
                ("delivery", rating()),
                ("service", rating()),
                ("overall", models.DecimalField(decimal_places=1, max_digits=2)),
                (
                    "comment",
                    models.TextField(blank=True, default="", max_length=1000),
                ),
                ("tags", models.JSONField(blank=True, default=list)),
                ("helpful_count", models.PositiveIntegerField(default=0)),
                ("not_helpful_count", models.PositiveIntegerField(default=0)),
                (
                    "response_message",
                    models.CharField(blank=True, default="", max_length=500),
                ),
                ("responded_at", models.DateTimeField(blank=True, null=True)),
                ("is_reported", models.BooleanField(default=False)),
                (
                    "report_reason",
                    models.CharField(blank=True, default="", max_length=255),
                ),
                ("is_hidden", models.BooleanField(default=False)),
                ("moderated_at", models.DateTimeField(blank=True, null=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reviews",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "delivery_partner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reviews",
                        to="delivery.deliverypartner",
                    ),
                ),
                (
                    "moderated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reviews",
                        to="orders.order",
                    ),
                ),
                (
                    "responded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "restaurant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="reviews",
                        to="catalog.restaurant",
                    ),
                ),
            ],
            options={
                "db_table": "reviews",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["customer"], name="reviews_customer_idx"),
                    models.Index(
                        fields=["restaurant", "created_at"],
                        name="reviews_restaurant_idx",
                    ),
                    models.Index(
                        fields=["delivery_partner"], name="reviews_partner_idx"
                    ),
                    models.Index(fields=["overall"], name="reviews_overall_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("deleted_at__isnull", True)),
                        fields=("order",),
                        name="reviews_one_per_order",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("food__gte", 1),
                            ("food__lte", 5),
                            ("delivery__gte", 1),
                            ("delivery__lte", 5),
                            ("service__gte", 1),
                            ("service__lte", 5),
                        ),
                        name="reviews_ratings_in_range",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReviewItemRating",
            fields=[
                ("id", uuid_pk()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("rating", rating()),
                (
                    "comment",
                    models.CharField(blank=True, default="", max_length=500),
                ),
                (
                    "menu_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="item_ratings",
                        to="catalog.menuitem",
                    ),
                ),
                (
                    "review",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="item_ratings",
                        to="reviews.review",
                    ),
                ),
            ],
            options={
                "db_table": "review_item_ratings",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(
                        fields=["menu_item"], name="review_items_menu_item_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("review", "menu_item"),
                        name="review_items_unique_menu_item",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("rating__gte", 1), ("rating__lte", 5)),
                        name="review_items_rating_in_range",
                    ),
                ],
            },
        ),
    ]
