"""
Production FastAPI Application

Booking API plus the background expiry sweeper.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import create_db_and_tables, dispose_engine, get_engine
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.booking.driving_adapter.background.expiry_sweeper import ExpirySweeper


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    Logger.base.info('🚀 [Booking Service] Starting up...')

    tracing = TracingConfig(service_name='bus-seat-booking')
    tracing.setup()
    Logger.base.info('📊 [Booking Service] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Booking Service] Dependency injection wired')

    engine = get_engine()
    tracing.instrument_sqlalchemy(engine=engine)
    if settings.DB_CREATE_TABLES_ON_STARTUP:
        await create_db_and_tables(engine)
    Logger.base.info('🗄️  [Booking Service] Database engine ready + instrumented')

    async with anyio.create_task_group() as tg:
        if settings.ENABLE_EXPIRY_SWEEPER:
            sweeper = ExpirySweeper(
                use_case_factory=container.expire_pending_reservations_use_case,
                interval_seconds=settings.EXPIRY_SWEEP_INTERVAL_SECONDS,
                seat_state_loader=container.seat_state_loader(),
            )
            tg.start_soon(sweeper.run_forever)

        Logger.base.info('✅ [Booking Service] Ready to serve requests')
        yield

        Logger.base.info('🛑 [Booking Service] Shutting down...')
        tg.cancel_scope.cancel()

    await dispose_engine()
    Logger.base.info('🗄️  [Booking Service] Database engine disposed')

    tracing.shutdown()
    container.unwire()
    Logger.base.info('👋 [Booking Service] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
