"""
Booking Errors

Domain errors raised by the booking core. Each maps onto an HTTP status
through CustomBaseError.status_code; extra fields in ``context`` are
merged into the error response body.
"""

from typing import Iterable

from src.platform.exception.exceptions import (
    ConflictError,
    DomainError,
    GoneError,
    NotFoundError,
)


class SeatConflictError(ConflictError):
    """One or more requested seats are already held or sold."""

    def __init__(self, seat_ids: Iterable[str], message: str | None = None) -> None:
        self.seat_ids = list(seat_ids)
        super().__init__(message or f'Seats not available: {", ".join(self.seat_ids)}')
        self.context['conflicting_seats'] = self.seat_ids


class InvalidSeatError(DomainError):
    """Requested seat labels are not part of the trip's seat map."""

    def __init__(self, seat_ids: Iterable[str]) -> None:
        self.seat_ids = list(seat_ids)
        super().__init__(f'Invalid seats for this trip: {", ".join(self.seat_ids)}', 400)
        self.context['invalid_seats'] = self.seat_ids


class BookingValidationError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class InvalidTransitionError(ConflictError):
    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f'Cannot move reservation from {current} to {target}')


class ReservationExpiredError(GoneError):
    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(f'Reservation {reservation_id} has expired')


class PaymentAmountMismatchError(DomainError):
    def __init__(self, *, expected: int, received: int) -> None:
        self.expected = expected
        self.received = received
        super().__init__(f'Payment amount {received} does not match total {expected}', 400)
        self.context['expected_amount'] = expected


class TripNotFoundError(NotFoundError):
    def __init__(self, trip_id: str) -> None:
        super().__init__(f'Trip {trip_id} not found')


class ReservationNotFoundError(NotFoundError):
    def __init__(self, reservation_id: str) -> None:
        super().__init__(f'Reservation {reservation_id} not found')
