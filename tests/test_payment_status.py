from decimal import Decimal

import pytest

from drivingschool.api.payments.service import derive_payment_status
from drivingschool.core.enums import EnrollmentStatus, PaymentStatus
from drivingschool.core.money import to_decimal


@pytest.mark.parametrize(
    "contract, actual, discount, expected",
    [
        ("1800", "1600", "200", PaymentStatus.PAID),
        ("2000", "1000", "300", PaymentStatus.PARTIAL),
        ("2000", "0", "0", PaymentStatus.UNPAID),
        ("2000", "0", "0.01", PaymentStatus.PARTIAL),
        ("2000", "1999.99", "0", PaymentStatus.PARTIAL),
        ("2000", "2500", "0", PaymentStatus.PAID),
        ("0", "0", "0", PaymentStatus.PAID),
    ],
)
def test_derive_payment_status(contract, actual, discount, expected) -> None:
    assert derive_payment_status(Decimal(contract), Decimal(actual), Decimal(discount)) == expected


def test_exact_boundary_is_paid() -> None:
    # 0.1 + 0.2 style sums must not miss the boundary
    status = derive_payment_status(Decimal("0.30"), Decimal("0.10"), Decimal("0.20"))
    assert status == PaymentStatus.PAID


def test_payment_status_maps_to_enrollment_status() -> None:
    assert PaymentStatus.UNPAID.enrollment_status == EnrollmentStatus.ENROLLED_UNPAID
    assert PaymentStatus.PARTIAL.enrollment_status == EnrollmentStatus.ENROLLED_PARTIAL
    assert PaymentStatus.PAID.enrollment_status == EnrollmentStatus.ENROLLED_PAID
    assert PaymentStatus.REFUNDED.enrollment_status == EnrollmentStatus.REFUNDED


@pytest.mark.parametrize(
    "raw, expected",
    [(None, Decimal("0")), (Decimal("12.30"), Decimal("12.30")), (0.1, Decimal("0.1")), (25, Decimal("25"))],
)
def test_to_decimal(raw, expected) -> None:
    assert to_decimal(raw) == expected
