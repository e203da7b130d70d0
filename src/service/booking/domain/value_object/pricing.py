"""
Pricing Calculator

    base        = catalog base price x surge multiplier (first window containing now)
    platform_fee = base x 0.15
    tax          = (base + platform_fee) x 0.18
    payable      = base + platform_fee + tax

    1000 -> 150 -> 207 -> 1357

Each component is rounded to the currency minor unit and payable is their
exact sum. The snapshot is taken once at booking creation and never
recomputed.
"""

from datetime import datetime, time
from decimal import Decimal
from typing import Optional

import attrs

from src.platform.exception.exceptions import ValidationError
from src.service.booking.domain.enum.service_kind import ServiceKind
from src.service.booking.domain.value_object.money import to_decimal, to_money


PLATFORM_FEE_RATE = Decimal('0.15')
TAX_RATE = Decimal('0.18')
NO_SURGE = Decimal('1')

_MINUTES_PER_DAY = 24 * 60


def _minute_of_day(moment: time) -> int:
    return moment.hour * 60 + moment.minute


@attrs.frozen
class SurgeWindow:
    """[start, end) time-of-day range; start > end wraps past midnight (22:00-06:00)."""

    start: time
    end: time
    multiplier: Decimal = attrs.field(converter=to_decimal)

    def __attrs_post_init__(self) -> None:
        if self.start == self.end:
            raise ValidationError(f'Surge window {self.start}-{self.end} is empty')
        if self.multiplier <= 0:
            raise ValidationError(f'Surge multiplier must be positive: {self.multiplier}')

    @property
    def wraps_midnight(self) -> bool:
        return self.start > self.end

    def contains(self, moment: time) -> bool:
        if self.wraps_midnight:
            return moment >= self.start or moment < self.end
        return self.start <= moment < self.end

    def minute_ranges(self) -> list[tuple[int, int]]:
        start, end = _minute_of_day(self.start), _minute_of_day(self.end)
        if self.wraps_midnight:
            return [(start, _MINUTES_PER_DAY), (0, end)]
        return [(start, end)]

    def overlaps(self, other: 'SurgeWindow') -> bool:
        return any(
            a_start < b_end and b_start < a_end
            for a_start, a_end in self.minute_ranges()
            for b_start, b_end in other.minute_ranges()
        )


def _validate_surge_windows(instance, attribute, windows: tuple[SurgeWindow, ...]) -> None:
    for i, window in enumerate(windows):
        for other in windows[i + 1 :]:
            if window.overlaps(other):
                raise ValidationError(
                    f'Surge windows {window.start}-{window.end} and '
                    f'{other.start}-{other.end} overlap'
                )


@attrs.frozen
class ServiceCatalogEntry:
    """Read-only catalog value, owned by the catalog service."""

    service_type: str
    kind: ServiceKind
    base_price: Decimal = attrs.field(converter=to_decimal)
    currency: str = 'INR'
    surge_windows: tuple[SurgeWindow, ...] = attrs.field(
        default=(), converter=tuple, validator=_validate_surge_windows
    )

    def __attrs_post_init__(self) -> None:
        if self.base_price <= 0:
            raise ValidationError(f'Base price must be positive for {self.service_type}')

    def surge_multiplier_at(self, moment: time) -> Decimal:
        for window in self.surge_windows:
            if window.contains(moment):
                return window.multiplier
        return NO_SURGE


@attrs.frozen
class PricingSnapshot:
    base_price: Decimal
    platform_fee: Decimal
    tax: Decimal
    payable_amount: Decimal
    currency: str
    surge_multiplier: Decimal = NO_SURGE

    def to_document(self) -> dict:
        return {
            'base_price': str(self.base_price),
            'platform_fee': str(self.platform_fee),
            'tax': str(self.tax),
            'payable_amount': str(self.payable_amount),
            'currency': self.currency,
            'surge_multiplier': str(self.surge_multiplier),
        }

    @classmethod
    def from_document(cls, document: dict) -> 'PricingSnapshot':
        return cls(
            base_price=Decimal(document['base_price']),
            platform_fee=Decimal(document['platform_fee']),
            tax=Decimal(document['tax']),
            payable_amount=Decimal(document['payable_amount']),
            currency=document['currency'],
            surge_multiplier=Decimal(document.get('surge_multiplier', '1')),
        )


def calculate_pricing(entry: ServiceCatalogEntry, now: Optional[datetime] = None) -> PricingSnapshot:
    """Price a booking for ``entry`` at ``now`` (local wall-clock time of the catalog)."""
    moment = (now or datetime.now()).time()
    multiplier = entry.surge_multiplier_at(moment)

    base = to_money(entry.base_price * multiplier)
    platform_fee = to_money(base * PLATFORM_FEE_RATE)
    tax = to_money((base + platform_fee) * TAX_RATE)
    return PricingSnapshot(
        base_price=base,
        platform_fee=platform_fee,
        tax=tax,
        payable_amount=base + platform_fee + tax,
        currency=entry.currency,
        surge_multiplier=multiplier,
    )
