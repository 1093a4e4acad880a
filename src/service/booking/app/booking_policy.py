"""
Booking Policy

Deployment knobs the booking use cases read. Built from Settings in the
container; tests construct it directly.
"""

from datetime import timedelta

import attrs

from src.platform.config.core_setting import Settings
from src.service.booking.domain.enum import BookingChannel


@attrs.define(frozen=True)
class BookingPolicy:
    hold_duration: timedelta = timedelta(minutes=15)
    max_seats_interactive: int = 2
    max_seats_guest: int = 10
    cancel_on_payment_failure: bool = False
    counter_sale_max_attempts: int = attrs.field(default=3, validator=attrs.validators.ge(1))
    ticket_signing_secret: str = ''

    @classmethod
    def from_settings(cls, settings: Settings) -> 'BookingPolicy':
        return cls(
            hold_duration=timedelta(minutes=settings.RESERVATION_HOLD_MINUTES),
            max_seats_interactive=settings.MAX_SEATS_PER_BOOKING,
            max_seats_guest=settings.MAX_SEATS_PER_GUEST_BOOKING,
            cancel_on_payment_failure=settings.CANCEL_ON_PAYMENT_FAILURE,
            counter_sale_max_attempts=settings.COUNTER_SALE_MAX_ATTEMPTS,
            ticket_signing_secret=settings.TICKET_SIGNING_SECRET.get_secret_value(),
        )

    def max_seats_for(self, channel: BookingChannel) -> int:
        if channel is BookingChannel.INTERACTIVE:
            return self.max_seats_interactive
        return self.max_seats_guest
