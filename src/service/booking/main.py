"""
Patient Booking Service - Main Application

    uvicorn src.service.booking.main:app
"""

from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI

from src.platform.app_factory import create_app
from src.platform.config.di import cleanup, container, setup
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.exception.exceptions import BrokerUnavailableError, StoreUnavailableError
from src.platform.logging.loguru_io import Logger
from src.platform.logging.loguru_io_config import install_intercept_handler


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Manage application lifespan: startup and shutdown"""
    install_intercept_handler()
    Logger.base.info('🚀 [Booking Service] Starting up...')

    setup()
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Booking Service] Dependency injection wired')

    document_store = container.document_store()
    event_publisher = container.kafka_event_publisher()

    # Unreachable backends do not block startup; requests fail fast until they recover
    try:
        await document_store.start()
    except StoreUnavailableError as e:
        Logger.base.warning(f'⚠️  [Booking Service] Document store unavailable at startup: {e}')
    try:
        await event_publisher.start()
    except BrokerUnavailableError as e:
        Logger.base.warning(
            f'⚠️  [Booking Service] Kafka unavailable at startup: {e}'
            '\n   Events stay in the outbox until the broker is reachable'
        )

    async with anyio.create_task_group() as background_tasks:
        await background_tasks.start(container.outbox_dispatcher().run_forever)
        Logger.base.info('✅ [Booking Service] Startup complete')

        yield

        Logger.base.info('🛑 [Booking Service] Shutting down...')
        background_tasks.cancel_scope.cancel()

    await event_publisher.stop()
    await document_store.stop()
    container.unwire()
    cleanup()
    Logger.base.info('👋 [Booking Service] Shutdown complete')


app = create_app(lifespan=lifespan)
