"""
Expiry Sweeper

Background loop started in the app lifespan task group. Every interval it
runs one ExpirePendingReservationsUseCase pass, then reconciles the seat
index with changes other processes made to the store. A failing pass is
logged and the loop carries on.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

import anyio

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.expire_pending_reservations_use_case import (
    ExpirePendingReservationsUseCase,
)
from src.service.booking.app.service.seat_state_loader import SeatStateLoader


class ExpirySweeper:
    def __init__(
        self,
        *,
        use_case_factory: Callable[[], ExpirePendingReservationsUseCase],
        interval_seconds: float = 60.0,
        seat_state_loader: Optional[SeatStateLoader] = None,
    ) -> None:
        self.use_case_factory = use_case_factory
        self.interval_seconds = interval_seconds
        self.seat_state_loader = seat_state_loader

    async def sweep_once(self) -> int:
        use_case = self.use_case_factory()
        expired = await use_case.execute(now=datetime.now(timezone.utc))
        if self.seat_state_loader is not None:
            await self.seat_state_loader.reconcile_loaded()
        return len(expired)

    async def run_forever(self) -> None:
        Logger.base.info(f'⏰ [EXPIRY] Sweeper started, interval={self.interval_seconds}s')
        try:
            while True:
                try:
                    await self.sweep_once()
                except anyio.get_cancelled_exc_class():
                    raise
                except Exception:
                    Logger.base.exception('⏰ [EXPIRY] Sweep pass failed')
                await anyio.sleep(self.interval_seconds)
        finally:
            Logger.base.info('⏰ [EXPIRY] Sweeper stopped')
