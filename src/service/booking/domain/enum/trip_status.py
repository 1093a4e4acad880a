"""
Trip Status Enum

Status transitions are driven by company staff outside the booking core;
the core only reads the status to decide whether seats can be sold.
"""

from enum import StrEnum


class TripStatus(StrEnum):
    SCHEDULED = 'scheduled'
    BOARDING = 'boarding'
    DEPARTED = 'departed'
    ARRIVED = 'arrived'
    CANCELLED = 'cancelled'
    DELAYED = 'delayed'


BOOKABLE_TRIP_STATUSES = frozenset({TripStatus.SCHEDULED, TripStatus.BOARDING, TripStatus.DELAYED})
