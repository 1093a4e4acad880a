"""
Sell At Counter Use Case

Cashier sale: the lowest free seats in seat-map order go to the walk-in
passengers, and the reservation is confirmed immediately with a completed
payment for the full amount. A seat taken between snapshot and hold makes
the sale pick again, up to the configured number of attempts.
"""

from datetime import datetime, timezone
from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.booking_policy import BookingPolicy
from src.service.booking.app.command.confirm_payment_use_case import ConfirmPaymentUseCase
from src.service.booking.app.command.create_reservation_use_case import CreateReservationUseCase
from src.service.booking.app.dto import ConfirmPaymentResult
from src.service.booking.app.interface import ISeatStateHandler
from src.service.booking.app.service.seat_state_loader import SeatStateLoader
from src.service.booking.domain.booking_exceptions import (
    BookingValidationError,
    SeatConflictError,
)
from src.service.booking.domain.enum import BookingChannel, PaymentMethod, PaymentStatus
from src.service.booking.domain.value_object import Passenger


class SellAtCounterUseCase:
    def __init__(
        self,
        *,
        create_reservation_use_case: CreateReservationUseCase,
        confirm_payment_use_case: ConfirmPaymentUseCase,
        seat_state_handler: ISeatStateHandler,
        seat_state_loader: SeatStateLoader,
        policy: BookingPolicy,
    ) -> None:
        self.create_reservation_use_case = create_reservation_use_case
        self.confirm_payment_use_case = confirm_payment_use_case
        self.seat_state_handler = seat_state_handler
        self.seat_state_loader = seat_state_loader
        self.policy = policy
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        create_reservation_use_case: CreateReservationUseCase = Depends(
            CreateReservationUseCase.depends
        ),
        confirm_payment_use_case: ConfirmPaymentUseCase = Depends(ConfirmPaymentUseCase.depends),
        seat_state_handler: ISeatStateHandler = Depends(Provide[Container.seat_state_handler]),
        seat_state_loader: SeatStateLoader = Depends(Provide[Container.seat_state_loader]),
        policy: BookingPolicy = Depends(Provide[Container.booking_policy]),
    ) -> Self:
        return cls(
            create_reservation_use_case=create_reservation_use_case,
            confirm_payment_use_case=confirm_payment_use_case,
            seat_state_handler=seat_state_handler,
            seat_state_loader=seat_state_loader,
            policy=policy,
        )

    @Logger.io
    async def sell(
        self,
        *,
        trip_id: str,
        passengers: List[Passenger],
        payment_method: PaymentMethod = PaymentMethod.CASH,
        cashier: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ConfirmPaymentResult:
        if not passengers:
            raise BookingValidationError('At least one passenger is required')
        now = now or datetime.now(timezone.utc)
        await self.seat_state_loader.ensure_loaded(trip_id=trip_id)

        with self.tracer.start_as_current_span(
            'use_case.sell_at_counter',
            attributes={'trip.id': trip_id, 'seat.count': len(passengers)},
        ):
            return await self._sell_lowest_free(
                trip_id=trip_id,
                passengers=passengers,
                payment_method=payment_method,
                cashier=cashier,
                now=now,
            )

    async def _sell_lowest_free(
        self,
        *,
        trip_id: str,
        passengers: List[Passenger],
        payment_method: PaymentMethod,
        cashier: Optional[str],
        now: datetime,
    ) -> ConfirmPaymentResult:
        lost_seats: List[str] = []
        for attempt in range(1, self.policy.counter_sale_max_attempts + 1):
            snapshot = await self.seat_state_handler.snapshot(trip_id=trip_id)
            if len(snapshot.free) < len(passengers):
                raise SeatConflictError(
                    [], message=f'Only {len(snapshot.free)} seats left on this trip'
                )
            seat_ids = list(snapshot.free[: len(passengers)])

            try:
                created = await self.create_reservation_use_case.create_reservation(
                    trip_id=trip_id,
                    seat_ids=seat_ids,
                    passengers=passengers,
                    payment_method=payment_method,
                    channel=BookingChannel.COUNTER,
                    actor=cashier,
                    now=now,
                )
            except SeatConflictError as e:
                Logger.base.info(
                    f'🔁 [COUNTER] Attempt {attempt} lost seats {e.seat_ids} on trip {trip_id}'
                )
                lost_seats = e.seat_ids
                continue

            reservation = created.reservation
            return await self.confirm_payment_use_case.confirm_payment(
                reservation_id=reservation.id,
                status=PaymentStatus.COMPLETED,
                amount=reservation.total_amount,
                method=payment_method,
                now=now,
            )

        raise SeatConflictError(
            lost_seats,
            message=(
                f'Seats kept being taken, gave up after '
                f'{self.policy.counter_sale_max_attempts} attempts'
            ),
        )
