import django.core.validators
import django.db.models.deletion
import django.utils.timezone
import uuid6
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DeliveryPartner",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "vehicle_type",
                    models.CharField(
                        choices=[
                            ("bike", "Bike"),
                            ("scooter", "Scooter"),
                            ("bicycle", "Bicycle"),
                            ("car", "Car"),
                        ],
                        default="bike",
                        max_length=10,
                    ),
                ),
                ("is_online", models.BooleanField(default=False)),
                ("is_approved", models.BooleanField(default=False)),
                ("total_orders", models.PositiveIntegerField(default=0)),
                ("completed_orders", models.PositiveIntegerField(default=0)),
                ("cancelled_orders", models.PositiveIntegerField(default=0)),
                (
                    "completion_rate",
                    models.PositiveSmallIntegerField(
                        default=0,
                        validators=[django.core.validators.MaxValueValidator(100)],
                    ),
                ),
                (
                    "average_delivery_time",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Minutes from order placement to delivery.",
                    ),
                ),
                (
                    "rating_average",
                    models.DecimalField(
                        decimal_places=1, default=Decimal("0.0"), max_digits=2
                    ),
                ),
                ("rating_count", models.PositiveIntegerField(default=0)),
                (
                    "last_active_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="delivery_partner",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "delivery_partners",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["is_online"], name="dp_online_idx"),
                    models.Index(fields=["is_approved"], name="dp_approved_idx"),
                ],
            },
        ),
    ]
