"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.booking.app.command import (
    cancel_reservation_use_case,
    confirm_payment_use_case,
    create_reservation_use_case,
    sell_at_counter_use_case,
)
from src.service.booking.app.query import (
    get_reservation_use_case,
    get_seat_snapshot_use_case,
    list_trip_reservations_use_case,
)
from src.service.booking.driving_adapter.http_controller import seat_stream_controller


WIRE_MODULES: list[ModuleType] = [
    create_reservation_use_case,
    confirm_payment_use_case,
    cancel_reservation_use_case,
    sell_at_counter_use_case,
    get_reservation_use_case,
    get_seat_snapshot_use_case,
    list_trip_reservations_use_case,
    seat_stream_controller,
]
