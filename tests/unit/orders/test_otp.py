from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from modules.orders.exceptions import DeliveryOtpExpired, InvalidDeliveryOtp
from modules.orders.otp import generate_otp, verify_otp

pytestmark = pytest.mark.unit

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def _order(code="4821", expires_at=NOW + timedelta(minutes=30)):
    return SimpleNamespace(otp_code=code, otp_expires_at=expires_at)


class TestGenerateOtp:
    def test_code_is_numeric_with_configured_length(self, settings):
        settings.ORDER_OTP_LENGTH = 6

        otp = generate_otp(NOW)

        assert len(otp.code) == 6
        assert otp.code.isdigit()

    def test_expiry_is_absolute(self, settings):
        settings.ORDER_OTP_TTL_MINUTES = 45

        otp = generate_otp(NOW)

        assert otp.expires_at == NOW + timedelta(minutes=45)

    def test_explicit_arguments_override_settings(self):
        otp = generate_otp(NOW, length=4, ttl_minutes=5)

        assert len(otp.code) == 4
        assert otp.expires_at == NOW + timedelta(minutes=5)


class TestVerifyOtp:
    def test_matching_code_before_expiry_passes(self):
        verify_otp(_order(), "4821", NOW)

    def test_matching_code_at_expiry_passes(self):
        verify_otp(_order(expires_at=NOW), "4821", NOW)

    def test_wrong_code_rejected(self):
        with pytest.raises(InvalidDeliveryOtp) as exc_info:
            verify_otp(_order(), "1111", NOW)
        assert not isinstance(exc_info.value, DeliveryOtpExpired)

    def test_expired_code_rejected(self):
        with pytest.raises(DeliveryOtpExpired):
            verify_otp(_order(), "4821", NOW + timedelta(minutes=31))

    def test_order_without_code_rejects_everything(self):
        with pytest.raises(InvalidDeliveryOtp):
            verify_otp(_order(code=None), "", NOW)

    def test_code_is_reusable_until_expiry(self):
        order = _order()

        with pytest.raises(InvalidDeliveryOtp):
            verify_otp(order, "0000", NOW)
        verify_otp(order, "4821", NOW + timedelta(minutes=1))
