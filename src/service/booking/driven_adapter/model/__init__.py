"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.booking.driven_adapter.model.payment_model import PaymentModel
from src.service.booking.driven_adapter.model.reservation_model import (
    ReservationModel,
    ReservationSeatModel,
)
from src.service.booking.driven_adapter.model.ticket_model import TicketModel
from src.service.booking.driven_adapter.model.trip_model import TripModel

__all__ = [
    'PaymentModel',
    'ReservationModel',
    'ReservationSeatModel',
    'TicketModel',
    'TripModel',
]
