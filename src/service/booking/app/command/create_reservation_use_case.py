import time
from datetime import datetime, timezone
from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.booking_policy import BookingPolicy
from src.service.booking.app.dto import CreateReservationResult
from src.service.booking.app.interface import (
    IReservationCommandRepo,
    ISeatEventBroadcaster,
    ISeatStateHandler,
    ITripQueryRepo,
)
from src.service.booking.app.service.seat_state_loader import SeatStateLoader
from src.service.booking.domain.booking_exceptions import (
    BookingValidationError,
    InvalidSeatError,
    SeatConflictError,
    TripNotFoundError,
)
from src.service.booking.domain.entity import Reservation
from src.service.booking.domain.enum import BookingChannel, PaymentMethod
from src.service.booking.domain.value_object import HoldResult, Passenger, PaymentInstruction


class CreateReservationUseCase:
    """
    Booking Orchestrator

    Flow:
    1. Validate trip, seat count, seat labels and passengers (no state touched)
    2. Hold the seats in the Availability Index (all-or-nothing)
    3. Persist the PENDING reservation; the seat unique constraint guards
       other processes. Any failure here releases the hold again
    4. Broadcast seats-held and return the payment instruction
    """

    def __init__(
        self,
        *,
        trip_query_repo: ITripQueryRepo,
        reservation_command_repo: IReservationCommandRepo,
        seat_state_handler: ISeatStateHandler,
        seat_state_loader: SeatStateLoader,
        seat_event_broadcaster: ISeatEventBroadcaster,
        policy: BookingPolicy,
    ) -> None:
        self.trip_query_repo = trip_query_repo
        self.reservation_command_repo = reservation_command_repo
        self.seat_state_handler = seat_state_handler
        self.seat_state_loader = seat_state_loader
        self.seat_event_broadcaster = seat_event_broadcaster
        self.policy = policy
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        trip_query_repo: ITripQueryRepo = Depends(Provide[Container.trip_query_repo]),
        reservation_command_repo: IReservationCommandRepo = Depends(
            Provide[Container.reservation_command_repo]
        ),
        seat_state_handler: ISeatStateHandler = Depends(Provide[Container.seat_state_handler]),
        seat_state_loader: SeatStateLoader = Depends(Provide[Container.seat_state_loader]),
        seat_event_broadcaster: ISeatEventBroadcaster = Depends(
            Provide[Container.seat_event_broadcaster]
        ),
        policy: BookingPolicy = Depends(Provide[Container.booking_policy]),
    ) -> Self:
        return cls(
            trip_query_repo=trip_query_repo,
            reservation_command_repo=reservation_command_repo,
            seat_state_handler=seat_state_handler,
            seat_state_loader=seat_state_loader,
            seat_event_broadcaster=seat_event_broadcaster,
            policy=policy,
        )

    @Logger.io
    async def create_reservation(
        self,
        *,
        trip_id: str,
        seat_ids: List[str],
        passengers: List[Passenger],
        payment_method: PaymentMethod,
        channel: BookingChannel = BookingChannel.INTERACTIVE,
        actor: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CreateReservationResult:
        """
        Raises:
            TripNotFoundError: Unknown trip
            BookingValidationError: Trip not bookable, seat count or passenger details invalid
            InvalidSeatError: Seat label not on the trip's seat map
            SeatConflictError: Some seats are no longer free
        """
        started = time.perf_counter()
        now = now or datetime.now(timezone.utc)

        with self.tracer.start_as_current_span(
            'use_case.create_reservation',
            attributes={'trip.id': trip_id, 'channel': channel.value, 'seat.count': len(seat_ids)},
        ) as span:
            try:
                reservation = await self._build_reservation(
                    trip_id=trip_id,
                    seat_ids=seat_ids,
                    passengers=passengers,
                    payment_method=payment_method,
                    channel=channel,
                    now=now,
                )
                span.set_attribute('reservation.id', reservation.id)
                await self._hold_and_persist(reservation)
            except SeatConflictError:
                metrics.record_reservation_request(
                    channel=channel.value, result='conflict', duration=time.perf_counter() - started
                )
                raise
            except (BookingValidationError, InvalidSeatError):
                metrics.record_reservation_request(
                    channel=channel.value, result='invalid', duration=time.perf_counter() - started
                )
                raise

            metrics.record_reservation_request(
                channel=channel.value, result='created', duration=time.perf_counter() - started
            )
            Logger.base.info(
                f'📝 [CREATE-RESERVATION] {reservation.code} holds {reservation.seat_ids} '
                f'on trip {trip_id} until {reservation.expires_at.isoformat()}'
            )

            await self.seat_event_broadcaster.seats_held(
                reservation=reservation, actor=actor or channel.value
            )
            await self.seat_state_loader.publish_held_count(trip_id=trip_id)

            instruction = PaymentInstruction.for_method(
                method=payment_method,
                amount=reservation.total_amount,
                reference=reservation.code,
                pay_before=reservation.expires_at,
            )
            return CreateReservationResult(reservation=reservation, instruction=instruction)

    async def _build_reservation(
        self,
        *,
        trip_id: str,
        seat_ids: List[str],
        passengers: List[Passenger],
        payment_method: PaymentMethod,
        channel: BookingChannel,
        now: datetime,
    ) -> Reservation:
        trip = await self.trip_query_repo.get_by_id(trip_id=trip_id)
        if trip is None:
            raise TripNotFoundError(trip_id)
        if not trip.is_bookable:
            raise BookingValidationError(f'Trip is not open for booking (status: {trip.status})')

        if not seat_ids:
            raise BookingValidationError('At least one seat must be selected')
        max_seats = self.policy.max_seats_for(channel)
        if len(seat_ids) > max_seats:
            raise BookingValidationError(f'Maximum {max_seats} seats per booking')

        invalid = trip.seat_map.invalid(seat_ids)
        if invalid:
            raise InvalidSeatError(invalid)

        reservation = Reservation.create(
            trip_id=trip.id,
            company_id=trip.company_id,
            seat_ids=seat_ids,
            passengers=passengers,
            unit_price=trip.current_price,
            payment_method=payment_method,
            channel=channel,
            hold_duration=self.policy.hold_duration,
            now=now,
        )
        await self.seat_state_loader.ensure_loaded(trip_id=trip.id, trip=trip)
        return reservation

    async def _hold_and_persist(self, reservation: Reservation) -> None:
        hold = await self._try_hold(reservation)
        if not hold.success:
            # Another process may have freed these seats since we last looked
            if await self.seat_state_loader.reconcile(trip_id=reservation.trip_id):
                hold = await self._try_hold(reservation)
        if not hold.success:
            raise SeatConflictError(hold.conflicts)

        try:
            await self.reservation_command_repo.create(reservation=reservation)
        except Exception:
            # No hold survives a reservation that was not stored
            await self.seat_state_handler.release(
                trip_id=reservation.trip_id,
                seat_ids=reservation.seat_ids,
                reservation_id=reservation.id,
            )
            raise

    async def _try_hold(self, reservation: Reservation) -> HoldResult:
        return await self.seat_state_handler.try_hold(
            trip_id=reservation.trip_id,
            seat_ids=reservation.seat_ids,
            reservation_id=reservation.id,
        )
