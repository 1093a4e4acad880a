from src.service.booking.domain.entity.payment_entity import Payment
from src.service.booking.domain.entity.reservation_entity import Reservation
from src.service.booking.domain.entity.ticket_entity import Ticket
from src.service.booking.domain.entity.trip_entity import Trip

__all__ = ['Payment', 'Reservation', 'Ticket', 'Trip']
