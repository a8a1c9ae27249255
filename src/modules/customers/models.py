"""Customer delivery addresses.

Business rules implemented:
- An address belongs to exactly one user; orders may only be delivered to
  an address owned by the ordering customer (enforced at service layer).
- Postal codes are 5 or 6 digits, sanitised on save.
- Soft delete via ``deleted_at`` (inherited from SoftDeleteModel).  Orders
  keep pointing at deleted addresses, hence ``PROTECT`` on the order side.
"""

from __future__ import annotations

import re

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from modules.core.models import SoftDeleteModel

POSTAL_CODE_PATTERN = re.compile(r"^\d{5,6}$")


class AddressType(models.TextChoices):
    HOME = "home", "Home"
    WORK = "work", "Work"
    OTHER = "other", "Other"


class Address(SoftDeleteModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="addresses",
    )
    address_type = models.CharField(
        max_length=10, choices=AddressType.choices, default=AddressType.HOME
    )
    label = models.CharField(max_length=50, blank=True, default="")
    address_line1 = models.CharField(max_length=200)
    address_line2 = models.CharField(max_length=200, blank=True, default="")
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100)
    postal_code = models.CharField(max_length=6)
    country = models.CharField(max_length=60, default="India")
    latitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True
    )
    longitude = models.DecimalField(
        max_digits=9, decimal_places=6, null=True, blank=True
    )

    class Meta:
        db_table = "addresses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user"], name="addresses_user_idx"),
        ]

    def clean(self) -> None:
        super().clean()
        self.postal_code = (self.postal_code or "").strip()
        if not POSTAL_CODE_PATTERN.match(self.postal_code):
            raise ValidationError({"postal_code": "Enter a valid postal code."})

    def save(self, *args, **kwargs) -> None:
        if self.postal_code:
            self.postal_code = self.postal_code.strip()
        super().save(*args, **kwargs)

    @property
    def one_line(self) -> str:
        parts = [
            self.address_line1,
            self.address_line2,
            self.city,
            self.state,
            self.postal_code,
        ]
        return ", ".join(part for part in parts if part)

    def __str__(self) -> str:
        return f"{self.label or self.address_type}: {self.city}"
