"""Delivery OTP: a short numeric code proving the physical handoff.

The code is attached at order creation with an absolute expiry; other
status changes never extend it.  There is no attempt counter: a correct
code keeps working until it expires or the order is delivered.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from django.conf import settings

from modules.orders.exceptions import DeliveryOtpExpired, InvalidDeliveryOtp


@dataclass(frozen=True)
class DeliveryOtp:
    code: str
    expires_at: datetime


def generate_otp(
    now: datetime,
    length: Optional[int] = None,
    ttl_minutes: Optional[int] = None,
) -> DeliveryOtp:
    length = length or settings.ORDER_OTP_LENGTH
    ttl_minutes = ttl_minutes or settings.ORDER_OTP_TTL_MINUTES
    code = "".join(secrets.choice("0123456789") for _ in range(length))
    return DeliveryOtp(code=code, expires_at=now + timedelta(minutes=ttl_minutes))


def verify_otp(order: Any, supplied: str, now: datetime) -> None:
    """Raise unless ``supplied`` matches the order's code and it has not expired.

    Raises:
        InvalidDeliveryOtp: no code on the order, or the code does not match.
        DeliveryOtpExpired: the code matches but ``now`` is past the expiry.
    """
    stored = order.otp_code or ""
    if not stored or not secrets.compare_digest(
        stored.encode(), str(supplied or "").encode()
    ):
        raise InvalidDeliveryOtp("Invalid or expired OTP")
    if order.otp_expires_at is None or now > order.otp_expires_at:
        raise DeliveryOtpExpired("Invalid or expired OTP")
