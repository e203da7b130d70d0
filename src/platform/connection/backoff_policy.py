import random

import attrs


def _positive(instance: object, attribute: attrs.Attribute, value: float) -> None:
    if value <= 0:
        raise ValueError(f'{attribute.name} must be positive')


@attrs.frozen
class BackoffPolicy:
    """Bounded exponential backoff: base, doubling, capped, optionally jittered."""

    base_delay: float = attrs.field(default=0.5, validator=_positive)
    max_delay: float = attrs.field(default=30.0, validator=_positive)
    factor: float = attrs.field(default=2.0, validator=_positive)
    max_retries: int = attrs.field(default=8, validator=attrs.validators.ge(0))
    jitter: bool = True

    def delay_for(self, attempt: int, *, rng: random.Random | None = None) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        ceiling = min(self.max_delay, self.base_delay * self.factor ** max(attempt - 1, 0))
        if not self.jitter:
            return ceiling
        # Equal jitter: uniform in [ceiling / 2, ceiling]
        return (rng or random).uniform(ceiling / 2, ceiling)
