"""
Unit tests for the Reservation entity

Test Coverage:
1. Reservation.create validation and derived fields
2. Transition table (PENDING -> CONFIRMED | CANCELLED | EXPIRED, terminal states)
3. Errors for illegal transitions
4. Ticket minting
"""

from datetime import timedelta

import pytest

from src.service.booking.domain.booking_exceptions import (
    BookingValidationError,
    InvalidTransitionError,
    ReservationExpiredError,
)
from src.service.booking.domain.entity import Reservation, Ticket
from src.service.booking.domain.entity.ticket_entity import build_qr_payload
from src.service.booking.domain.enum import BookingChannel, PaymentMethod, ReservationStatus
from src.service.booking.domain.value_object import Passenger
from test.service.booking.fakes import NOW, TRIP_ID, make_passengers


pytestmark = pytest.mark.unit


def _create(seat_ids, passengers=None, unit_price=2500) -> Reservation:
    return Reservation.create(
        trip_id=TRIP_ID,
        company_id='company-senbus',
        seat_ids=seat_ids,
        passengers=passengers if passengers is not None else make_passengers(len(seat_ids)),
        unit_price=unit_price,
        payment_method=PaymentMethod.MOBILE_MONEY,
        channel=BookingChannel.INTERACTIVE,
        hold_duration=timedelta(minutes=15),
        now=NOW,
    )


class TestReservationCreate:
    def test_create_sets_pending_total_and_expiry(self):
        # Given: Two seats at 2500
        # When
        reservation = _create(['1A', '1B'])

        # Then
        assert reservation.status is ReservationStatus.PENDING
        assert reservation.total_amount == 5000
        assert reservation.unit_price == 2500
        assert reservation.expires_at == NOW + timedelta(minutes=15)
        assert reservation.created_at == NOW
        assert len(reservation.code) == 8
        assert reservation.id

    def test_each_reservation_gets_its_own_id_and_code(self):
        first = _create(['1A'])
        second = _create(['1A'])
        assert first.id != second.id
        assert first.code != second.code

    def test_empty_seat_list_is_rejected(self):
        with pytest.raises(BookingValidationError, match='At least one seat'):
            _create([], passengers=[])

    def test_duplicate_seats_are_rejected(self):
        with pytest.raises(BookingValidationError, match='Duplicate'):
            _create(['1A', '1A'])

    def test_passenger_count_must_match_seats(self):
        with pytest.raises(BookingValidationError, match='One passenger'):
            _create(['1A', '1B'], passengers=make_passengers(1))

    def test_passenger_name_required(self):
        with pytest.raises(BookingValidationError, match='name'):
            _create(['1A'], passengers=[Passenger(name='  ', phone='+221770000000')])

    def test_passenger_phone_required(self):
        with pytest.raises(BookingValidationError, match='phone'):
            _create(['1A'], passengers=[Passenger(name='Awa', phone='')])

    def test_free_trip_is_allowed(self):
        assert _create(['1A'], unit_price=0).total_amount == 0


class TestReservationTransitions:
    def setup_method(self):
        self.reservation = _create(['1A', '1B'])
        self.later = NOW + timedelta(minutes=5)

    @pytest.mark.parametrize(
        'target',
        [ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED, ReservationStatus.EXPIRED],
    )
    def test_pending_can_reach_every_terminal_state(self, target):
        moved = self.reservation.transition_to(target, now=self.later)

        assert moved.status is target
        assert moved.updated_at == self.later
        # Original is untouched
        assert self.reservation.status is ReservationStatus.PENDING

    def test_confirm_stamps_confirmed_at(self):
        confirmed = self.reservation.confirm(now=self.later)
        assert confirmed.confirmed_at == self.later
        assert confirmed.cancelled_at is None

    def test_cancel_stamps_cancelled_at(self):
        cancelled = self.reservation.cancel(now=self.later)
        assert cancelled.cancelled_at == self.later

    @pytest.mark.parametrize(
        'terminal',
        [ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED, ReservationStatus.EXPIRED],
    )
    def test_terminal_states_have_no_exits(self, terminal):
        settled = self.reservation.transition_to(terminal, now=self.later)

        assert settled.is_terminal
        for target in ReservationStatus:
            assert not settled.can_transition_to(target)

    def test_confirming_expired_reservation_raises_expired(self):
        expired = self.reservation.expire(now=self.later)

        with pytest.raises(ReservationExpiredError) as exc_info:
            expired.confirm(now=self.later)
        assert exc_info.value.status_code == 410

    def test_confirming_cancelled_reservation_raises_invalid_transition(self):
        cancelled = self.reservation.cancel(now=self.later)

        with pytest.raises(InvalidTransitionError) as exc_info:
            cancelled.confirm(now=self.later)
        assert exc_info.value.status_code == 409

    def test_cancelling_confirmed_reservation_raises(self):
        confirmed = self.reservation.confirm(now=self.later)

        with pytest.raises(InvalidTransitionError):
            confirmed.cancel(now=self.later)

    def test_settled_for(self):
        expired = self.reservation.expire(now=self.later)
        confirmed = self.reservation.confirm(now=self.later)

        # Cancelling something already expired is satisfied
        assert expired.is_settled_for(ReservationStatus.CANCELLED)
        # An expiry request against a confirmed reservation is satisfied
        assert confirmed.is_settled_for(ReservationStatus.EXPIRED)
        # Confirming an expired one is not
        assert not expired.is_settled_for(ReservationStatus.CONFIRMED)

    def test_is_past_expiry(self):
        assert not self.reservation.is_past_expiry(NOW + timedelta(minutes=15))
        assert self.reservation.is_past_expiry(NOW + timedelta(minutes=15, seconds=1))


class TestTicketMint:
    def test_qr_payload_is_signed_with_secret(self):
        passenger = Passenger(name='Awa Diallo', phone='+221770000001')
        ticket = Ticket.mint(
            reservation_id='r-1',
            trip_id=TRIP_ID,
            seat_id='1A',
            passenger=passenger,
            price=2500,
            valid_until=NOW + timedelta(hours=6),
            issued_at=NOW,
            secret='s3cret',
        )

        assert len(ticket.code) == 10
        assert len(ticket.qr_payload) == 16
        assert ticket.qr_payload == build_qr_payload(
            code=ticket.code, phone=passenger.phone, seat_id='1A', trip_id=TRIP_ID, secret='s3cret'
        )
        assert ticket.qr_payload != build_qr_payload(
            code=ticket.code, phone=passenger.phone, seat_id='1A', trip_id=TRIP_ID, secret='other'
        )
