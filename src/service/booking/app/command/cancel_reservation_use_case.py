from datetime import datetime, timezone
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface import IReservationQueryRepo
from src.service.booking.app.service.reservation_transition_handler import (
    ReservationTransitionHandler,
)
from src.service.booking.domain.booking_exceptions import ReservationNotFoundError
from src.service.booking.domain.entity import Reservation


class CancelReservationUseCase:
    """
    PENDING -> CANCELLED on user or staff request.

    Cancelling an already cancelled or expired reservation is a no-op;
    a confirmed one raises InvalidTransitionError.
    """

    def __init__(
        self,
        *,
        reservation_query_repo: IReservationQueryRepo,
        transition_handler: ReservationTransitionHandler,
    ) -> None:
        self.reservation_query_repo = reservation_query_repo
        self.transition_handler = transition_handler
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        reservation_query_repo: IReservationQueryRepo = Depends(
            Provide[Container.reservation_query_repo]
        ),
        transition_handler: ReservationTransitionHandler = Depends(
            Provide[Container.reservation_transition_handler]
        ),
    ) -> Self:
        return cls(
            reservation_query_repo=reservation_query_repo,
            transition_handler=transition_handler,
        )

    @Logger.io
    async def cancel_reservation(
        self, *, reservation_id: str, now: Optional[datetime] = None
    ) -> Reservation:
        with self.tracer.start_as_current_span(
            'use_case.cancel_reservation', attributes={'reservation.id': reservation_id}
        ):
            reservation = await self.reservation_query_repo.get_by_id(
                reservation_id=reservation_id
            )
            if reservation is None:
                raise ReservationNotFoundError(reservation_id)

            return await self.transition_handler.cancel(
                reservation=reservation, now=now or datetime.now(timezone.utc)
            )
