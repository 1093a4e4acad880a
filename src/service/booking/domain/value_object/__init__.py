from src.service.booking.domain.value_object.passenger import Passenger
from src.service.booking.domain.value_object.payment_instruction import PaymentInstruction
from src.service.booking.domain.value_object.seat_map import SeatMap, generate_seat_map
from src.service.booking.domain.value_object.seat_snapshot import HoldResult, SeatSnapshot

__all__ = [
    'HoldResult',
    'Passenger',
    'PaymentInstruction',
    'SeatMap',
    'SeatSnapshot',
    'generate_seat_map',
]
