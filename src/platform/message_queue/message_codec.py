"""
Outbound message envelope

    {
        "event": "booking.cancelled",
        "data": {...domain payload...},
        "timestamp": "2026-10-18T09:30:00+00:00",
        "service": "patient-booking-service"
    }
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional

import attrs
import orjson


def _default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    # uuid_utils.UUID and other str-able ids
    if hasattr(value, 'hex') and hasattr(value, 'bytes'):
        return str(value)
    raise TypeError(f'Type is not JSON serializable: {type(value).__name__}')


@attrs.frozen
class MessageEnvelope:
    event: str
    data: Mapping[str, Any]
    timestamp: str
    service: str

    @classmethod
    def build(
        cls,
        *,
        event: str,
        data: Mapping[str, Any],
        service: str,
        occurred_at: Optional[datetime] = None,
    ) -> 'MessageEnvelope':
        moment = occurred_at or datetime.now(timezone.utc)
        return cls(event=event, data=dict(data), timestamp=moment.isoformat(), service=service)

    def encode(self) -> bytes:
        return orjson.dumps(attrs.asdict(self), default=_default)

    @classmethod
    def decode(cls, raw: bytes) -> 'MessageEnvelope':
        payload = orjson.loads(raw)
        return cls(
            event=payload['event'],
            data=payload['data'],
            timestamp=payload['timestamp'],
            service=payload['service'],
        )
