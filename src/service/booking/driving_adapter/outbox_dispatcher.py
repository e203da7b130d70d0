"""
Background outbox dispatcher

Runs inside the app lifespan task group. Drains pending entries in batches;
a full batch is followed immediately by another, otherwise it waits one
interval. Store outages and any other failure of a round are logged and
retried on the next round; only cancellation stops the loop.
"""

import anyio
from anyio.abc import TaskStatus

from src.platform.exception.exceptions import StoreUnavailableError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.dispatch_outbox_use_case import DispatchOutboxUseCase


class OutboxDispatcher:
    def __init__(
        self,
        *,
        dispatch_outbox_use_case: DispatchOutboxUseCase,
        interval_seconds: float,
        batch_size: int,
    ) -> None:
        self.dispatch_outbox_use_case = dispatch_outbox_use_case
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size

    async def run_once(self) -> bool:
        """One batch; True when the batch was full and more entries are likely waiting."""
        try:
            report = await self.dispatch_outbox_use_case.dispatch_pending(batch_size=self.batch_size)
        except StoreUnavailableError as e:
            Logger.base.warning(f'⏸️ [OUTBOX] store unavailable, next round in {self.interval_seconds}s: {e}')
            return False
        except Exception:
            Logger.base.exception(
                f'💥 [OUTBOX] dispatch round failed, next round in {self.interval_seconds}s'
            )
            return False
        return report.failed == 0 and report.delivered >= self.batch_size

    async def run_forever(
        self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED
    ) -> None:
        Logger.base.info(
            f'📮 [OUTBOX] dispatcher started (interval={self.interval_seconds}s, batch={self.batch_size})'
        )
        task_status.started()
        while True:
            if not await self.run_once():
                await anyio.sleep(self.interval_seconds)
