"""Booking Domain Enums"""

from src.service.booking.domain.enum.booking_channel import BookingChannel
from src.service.booking.domain.enum.payment_method import PaymentMethod
from src.service.booking.domain.enum.payment_status import PaymentStatus
from src.service.booking.domain.enum.reservation_status import ReservationStatus
from src.service.booking.domain.enum.seat_event_type import SeatEventType
from src.service.booking.domain.enum.trip_status import TripStatus

__all__ = [
    'BookingChannel',
    'PaymentMethod',
    'PaymentStatus',
    'ReservationStatus',
    'SeatEventType',
    'TripStatus',
]
