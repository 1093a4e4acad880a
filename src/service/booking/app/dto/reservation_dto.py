"""Reservation use case results."""

from typing import List, Optional

import attrs

from src.service.booking.domain.entity import Payment, Reservation, Ticket
from src.service.booking.domain.value_object import PaymentInstruction


@attrs.define(frozen=True)
class CreateReservationResult:
    reservation: Reservation
    instruction: PaymentInstruction


@attrs.define(frozen=True)
class ConfirmPaymentResult:
    reservation: Reservation
    tickets: List[Ticket] = attrs.field(factory=list)
    payment: Optional[Payment] = None  # None when a redelivered result was ignored


@attrs.define(frozen=True)
class ReservationDetail:
    reservation: Reservation
    tickets: List[Ticket] = attrs.field(factory=list)
