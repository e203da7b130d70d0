from decimal import ROUND_HALF_UP, Decimal
from typing import Union


MONEY_QUANTUM = Decimal('0.01')

MoneyLike = Union[Decimal, int, float, str]


def to_decimal(value: MoneyLike) -> Decimal:
    # str() first so 0.1 stays 0.1 instead of its binary expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


def to_money(value: MoneyLike) -> Decimal:
    """Quantize to the currency minor unit (2 decimals, half-up)."""
    return to_decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)
