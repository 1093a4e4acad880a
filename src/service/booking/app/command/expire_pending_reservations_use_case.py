"""
Expire Pending Reservations Use Case

One pass of the expiry sweep: every PENDING reservation past its expiry
timestamp moves to EXPIRED and its seats are released. Runs concurrently
with payment confirmation; the transition handler resolves who wins.
"""

import time
from datetime import datetime, timezone
from typing import List, Optional

from opentelemetry import trace

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.interface import IReservationQueryRepo
from src.service.booking.app.service.reservation_transition_handler import (
    ReservationTransitionHandler,
)
from src.service.booking.domain.entity import Reservation
from src.service.booking.domain.enum import ReservationStatus


class ExpirePendingReservationsUseCase:
    def __init__(
        self,
        *,
        reservation_query_repo: IReservationQueryRepo,
        transition_handler: ReservationTransitionHandler,
        batch_size: int = 200,
    ) -> None:
        self.reservation_query_repo = reservation_query_repo
        self.transition_handler = transition_handler
        self.batch_size = batch_size
        self.tracer = trace.get_tracer(__name__)

    async def execute(self, *, now: Optional[datetime] = None) -> List[Reservation]:
        """
        Returns:
            Candidates that ended up EXPIRED
        """
        now = now or datetime.now(timezone.utc)
        started = time.perf_counter()

        with self.tracer.start_as_current_span('use_case.expire_pending_reservations') as span:
            candidates = await self.reservation_query_repo.list_expired_pending(
                now=now, limit=self.batch_size
            )
            expired = await self._expire_each(candidates, now=now)
            span.set_attribute('reservation.candidates', len(candidates))
            span.set_attribute('reservation.expired', len(expired))

        metrics.expiry_sweep_duration.observe(time.perf_counter() - started)
        if candidates:
            Logger.base.info(
                f'⏰ [EXPIRY] Sweep at {now.isoformat()}: '
                f'{len(expired)}/{len(candidates)} reservations expired'
            )
        return expired

    async def _expire_each(
        self, candidates: List[Reservation], *, now: datetime
    ) -> List[Reservation]:
        expired: List[Reservation] = []
        for reservation in candidates:
            try:
                result = await self.transition_handler.expire(reservation=reservation, now=now)
            except CustomBaseError as e:
                Logger.base.warning(
                    f'⏰ [EXPIRY] Skipped reservation {reservation.id}: {e.message}'
                )
                continue
            except Exception:
                Logger.base.exception(f'⏰ [EXPIRY] Failed to expire reservation {reservation.id}')
                continue

            # A concurrent confirmation may have won the race
            if result.status is ReservationStatus.EXPIRED:
                expired.append(result)
        return expired
