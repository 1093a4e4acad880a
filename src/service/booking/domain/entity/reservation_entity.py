"""
Reservation Entity

Lifecycle:
    PENDING -> CONFIRMED | CANCELLED | EXPIRED

All right-hand states are terminal. A reservation owns its seat set until
it reaches CANCELLED or EXPIRED; a CONFIRMED reservation keeps its seats.
"""

from datetime import datetime, timedelta
from typing import List, Optional

import attrs

from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.booking_exceptions import (
    BookingValidationError,
    InvalidTransitionError,
    ReservationExpiredError,
)
from src.service.booking.domain.enum import BookingChannel, PaymentMethod, ReservationStatus
from src.service.booking.domain.value_object.booking_code import generate_code, new_id
from src.service.booking.domain.value_object.passenger import Passenger


_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED, ReservationStatus.EXPIRED}
    ),
    ReservationStatus.CONFIRMED: frozenset(),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.EXPIRED: frozenset(),
}

# Terminal states in which a request for the key is already satisfied (no-op)
_SETTLED_FOR: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.CONFIRMED: frozenset({ReservationStatus.CONFIRMED}),
    ReservationStatus.CANCELLED: frozenset(
        {ReservationStatus.CANCELLED, ReservationStatus.EXPIRED}
    ),
    ReservationStatus.EXPIRED: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED, ReservationStatus.EXPIRED}
    ),
}


@attrs.define
class Reservation:
    id: str
    code: str
    trip_id: str
    company_id: str
    seat_ids: List[str]
    passengers: List[Passenger]
    total_amount: int
    payment_method: PaymentMethod
    channel: BookingChannel
    expires_at: datetime
    status: ReservationStatus = ReservationStatus.PENDING
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        trip_id: str,
        company_id: str,
        seat_ids: List[str],
        passengers: List[Passenger],
        unit_price: int,
        payment_method: PaymentMethod,
        channel: BookingChannel,
        hold_duration: timedelta,
        now: datetime,
    ) -> 'Reservation':
        if not seat_ids:
            raise BookingValidationError('At least one seat must be selected')
        if len(set(seat_ids)) != len(seat_ids):
            raise BookingValidationError('Duplicate seats in request')
        if len(passengers) != len(seat_ids):
            raise BookingValidationError('One passenger is required per seat')
        for passenger in passengers:
            if not passenger.name or not passenger.name.strip():
                raise BookingValidationError('Passenger name is required')
            if not passenger.phone or not passenger.phone.strip():
                raise BookingValidationError('Passenger phone is required')
        if unit_price < 0:
            raise BookingValidationError('Trip price must not be negative')

        return cls(
            id=new_id(),
            code=generate_code(),
            trip_id=trip_id,
            company_id=company_id,
            seat_ids=list(seat_ids),
            passengers=list(passengers),
            total_amount=unit_price * len(seat_ids),
            payment_method=payment_method,
            channel=channel,
            status=ReservationStatus.PENDING,
            expires_at=now + hold_duration,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def unit_price(self) -> int:
        return self.total_amount // len(self.seat_ids)

    def is_past_expiry(self, now: datetime) -> bool:
        return now > self.expires_at

    def can_transition_to(self, target: ReservationStatus) -> bool:
        return target in _TRANSITIONS[self.status]

    def is_settled_for(self, target: ReservationStatus) -> bool:
        """True when the reservation already sits in a state that satisfies ``target``."""
        return self.status in _SETTLED_FOR.get(target, frozenset())

    def transition_to(self, target: ReservationStatus, *, now: datetime) -> 'Reservation':
        if not self.can_transition_to(target):
            if self.status is ReservationStatus.EXPIRED and target is ReservationStatus.CONFIRMED:
                raise ReservationExpiredError(self.id)
            raise InvalidTransitionError(self.status.value, target.value)

        changes: dict = {'status': target, 'updated_at': now}
        if target is ReservationStatus.CONFIRMED:
            changes['confirmed_at'] = now
        elif target is ReservationStatus.CANCELLED:
            changes['cancelled_at'] = now
        return attrs.evolve(self, **changes)

    @Logger.io
    def confirm(self, *, now: datetime) -> 'Reservation':
        return self.transition_to(ReservationStatus.CONFIRMED, now=now)

    @Logger.io
    def cancel(self, *, now: datetime) -> 'Reservation':
        return self.transition_to(ReservationStatus.CANCELLED, now=now)

    @Logger.io
    def expire(self, *, now: datetime) -> 'Reservation':
        return self.transition_to(ReservationStatus.EXPIRED, now=now)
