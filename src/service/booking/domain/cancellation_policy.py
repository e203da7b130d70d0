"""
Cancellation refund policy

    hours before service   refund          fee
    H >= 24                payable         0
    4 <= H < 24            50% payable     the rest
    H < 4                  0               payable

Boundaries belong to the higher-refund tier. The fee is always
``payable - refund`` so the two add up to the payable amount exactly.
"""

from datetime import datetime
from decimal import Decimal

from src.service.booking.domain.value_object.cancellation import RefundDecision
from src.service.booking.domain.value_object.money import to_money


FULL_REFUND_HOURS = 24
PARTIAL_REFUND_HOURS = 4
PARTIAL_REFUND_RATE = Decimal('0.5')

_SECONDS_PER_HOUR = 3600


def hours_until(scheduled_at: datetime, now: datetime) -> float:
    return (scheduled_at - now).total_seconds() / _SECONDS_PER_HOUR


def refund_for(payable_amount: Decimal, hours_before_service: float) -> RefundDecision:
    payable = to_money(payable_amount)
    if hours_before_service >= FULL_REFUND_HOURS:
        refund = payable
    elif hours_before_service >= PARTIAL_REFUND_HOURS:
        refund = to_money(payable * PARTIAL_REFUND_RATE)
    else:
        refund = to_money(0)
    return RefundDecision(
        refund_amount=refund,
        cancellation_fee=payable - refund,
        hours_before_service=hours_before_service,
    )


def decide_refund(*, payable_amount: Decimal, scheduled_at: datetime, now: datetime) -> RefundDecision:
    return refund_for(payable_amount, hours_until(scheduled_at, now))
