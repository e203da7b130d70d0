from datetime import datetime
from decimal import Decimal
from typing import Optional

import attrs

from src.service.booking.domain.enum.service_kind import CancelledBy


@attrs.frozen
class RefundDecision:
    refund_amount: Decimal
    cancellation_fee: Decimal
    hours_before_service: float


@attrs.frozen
class Cancellation:
    cancelled_by: CancelledBy
    reason: str
    cancelled_at: datetime
    refund_amount: Decimal
    cancellation_fee: Decimal

    def to_document(self) -> dict:
        return {
            'cancelled_by': self.cancelled_by.value,
            'reason': self.reason,
            'cancelled_at': self.cancelled_at.isoformat(),
            'refund_amount': str(self.refund_amount),
            'cancellation_fee': str(self.cancellation_fee),
        }

    @classmethod
    def from_document(cls, document: Optional[dict]) -> Optional['Cancellation']:
        if not document:
            return None
        return cls(
            cancelled_by=CancelledBy(document['cancelled_by']),
            reason=document['reason'],
            cancelled_at=datetime.fromisoformat(document['cancelled_at']),
            refund_amount=Decimal(document['refund_amount']),
            cancellation_fee=Decimal(document['cancellation_fee']),
        )
