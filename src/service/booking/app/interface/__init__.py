"""Application layer interfaces (Ports)"""

from src.service.booking.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.booking.app.interface.i_reservation_query_repo import IReservationQueryRepo
from src.service.booking.app.interface.i_seat_event_broadcaster import ISeatEventBroadcaster
from src.service.booking.app.interface.i_seat_state_handler import ISeatStateHandler
from src.service.booking.app.interface.i_trip_repo import ITripCommandRepo, ITripQueryRepo

__all__ = [
    'IReservationCommandRepo',
    'IReservationQueryRepo',
    'ISeatEventBroadcaster',
    'ISeatStateHandler',
    'ITripCommandRepo',
    'ITripQueryRepo',
]
