"""
Seat Event Type Enum

Event names pushed to dashboards over SSE.
"""

from enum import StrEnum


class SeatEventType(StrEnum):
    INITIAL_STATUS = 'initial_status'
    SEATS_HELD = 'seats-held'
    SEATS_RELEASED = 'seats-released'
    RESERVATION_CONFIRMED = 'reservation-confirmed'
