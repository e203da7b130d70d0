from abc import ABC, abstractmethod
from datetime import datetime

from uuid_utils import UUID

from src.service.booking.app.dto.outbox_entry import OutboxEntry


class IOutboxRepo(ABC):
    @abstractmethod
    async def fetch_pending(self, *, limit: int) -> list[OutboxEntry]:
        """Undelivered entries, oldest first; rows claimed by another dispatcher are skipped."""
        pass

    @abstractmethod
    async def mark_delivered(self, *, entry_id: UUID, delivered_at: datetime) -> None:
        pass

    @abstractmethod
    async def record_failure(self, *, entry_id: UUID, error: str) -> None:
        """Bump the attempt counter and keep the last error for operators."""
        pass
