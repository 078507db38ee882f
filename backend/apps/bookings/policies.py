"""
Cancellation policies: how much of a booking is refunded given lead time.

    FLEXIBLE      more than 1 day: 100%, exactly 1 day: 50%, same day: 0%
    MODERATE      more than 5 days: 100%, 1 to 5 days: 50%, same day: 0%
    STRICT        more than 7 days: 50%, otherwise 0%
    SUPER_STRICT  same as STRICT
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

from apps.realestate.models import CancellationPolicy

CENTS = Decimal('0.01')


def days_until_check_in(start_date: date, today: date = None) -> int:
    """Whole calendar days from today (local time zone) until check-in."""
    today = today or timezone.localdate()
    return (start_date - today).days


def refund_percentage(policy: str, days: int) -> int:
    """Percentage of the booking refundable under a policy."""
    if days < 1:
        return 0

    if policy == CancellationPolicy.FLEXIBLE:
        return 100 if days > 1 else 50

    if policy == CancellationPolicy.MODERATE:
        return 100 if days > 5 else 50

    if policy in [CancellationPolicy.STRICT, CancellationPolicy.SUPER_STRICT]:
        return 50 if days > 7 else 0

    raise ValueError(f"Unknown cancellation policy: {policy}")


def calculate_refund(policy: str, amount: Decimal, days: int) -> Decimal:
    """Refund for `amount` under a policy, rounded to cents."""
    percentage = refund_percentage(policy, days)
    refund = (Decimal(amount) * percentage / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)
    return min(refund, Decimal(amount))
