"""
Unit tests for SeatStateLoader.reconcile across processes

Two harnesses over one store stand in for two API workers sharing a database.
Each keeps its own Availability Index.

Test Coverage:
1. A hold rejected by a stale entry succeeds once the index is reconciled
2. Cancel, expiry and confirm done elsewhere reach the index on reconcile_loaded
3. Holds made elsewhere after hydration show up as held
4. Local holds not yet stored survive reconciliation
"""

from datetime import timedelta

import pytest

from src.service.booking.app.command.cancel_reservation_use_case import CancelReservationUseCase
from src.service.booking.app.command.expire_pending_reservations_use_case import (
    ExpirePendingReservationsUseCase,
)
from src.service.booking.domain.enum import PaymentMethod, PaymentStatus, ReservationStatus
from test.service.booking.fakes import (
    NOW,
    TRIP_ID,
    build_harness,
    confirm_use_case,
    hold,
    make_trip,
)


pytestmark = pytest.mark.unit


class TestReconcileAcrossProcesses:
    def setup_method(self):
        self.worker_a = build_harness(make_trip())
        self.worker_b = build_harness(make_trip(), store=self.worker_a.store)

    async def _held_on_both(self, seat_ids):
        reservation = await hold(self.worker_a, seat_ids)
        await self.worker_b.loader.ensure_loaded(trip_id=TRIP_ID)
        snapshot = await self.worker_b.seat_state.snapshot(trip_id=TRIP_ID)
        assert set(seat_ids) <= set(snapshot.held)
        return reservation

    async def _cancel_on_a(self, reservation) -> None:
        await CancelReservationUseCase(
            reservation_query_repo=self.worker_a.store,
            transition_handler=self.worker_a.transitions,
        ).cancel_reservation(reservation_id=reservation.id, now=NOW)

    @pytest.mark.asyncio
    async def test_seat_cancelled_elsewhere_can_be_held(self):
        # Given: Worker B loaded the trip while 1A was held through worker A
        reservation = await self._held_on_both(['1A'])
        await self._cancel_on_a(reservation)

        # When
        again = await hold(self.worker_b, ['1A'])

        # Then
        assert again.status is ReservationStatus.PENDING
        assert self.worker_b.store.seat_rows[(TRIP_ID, '1A')] == again.id
        snapshot = await self.worker_b.seat_state.snapshot(trip_id=TRIP_ID)
        assert snapshot.held == ('1A',)

    @pytest.mark.asyncio
    async def test_cancel_elsewhere_frees_the_seat_on_reconcile(self):
        reservation = await self._held_on_both(['1A', '1B'])
        await self._cancel_on_a(reservation)

        changed = await self.worker_b.loader.reconcile_loaded()

        assert changed == 2
        snapshot = await self.worker_b.seat_state.snapshot(trip_id=TRIP_ID)
        assert snapshot.held == ()
        assert snapshot.free[:2] == ('1A', '1B')

    @pytest.mark.asyncio
    async def test_expiry_elsewhere_frees_the_seat_on_reconcile(self):
        await self._held_on_both(['2C'])
        await ExpirePendingReservationsUseCase(
            reservation_query_repo=self.worker_a.store,
            transition_handler=self.worker_a.transitions,
            batch_size=200,
        ).execute(now=NOW + timedelta(minutes=16))

        await self.worker_b.loader.reconcile_loaded()

        snapshot = await self.worker_b.seat_state.snapshot(trip_id=TRIP_ID)
        assert '2C' in snapshot.free

    @pytest.mark.asyncio
    async def test_confirm_elsewhere_moves_the_seat_to_confirmed(self):
        reservation = await self._held_on_both(['1A'])
        await confirm_use_case(self.worker_a).confirm_payment(
            reservation_id=reservation.id,
            status=PaymentStatus.COMPLETED,
            amount=reservation.total_amount,
            method=PaymentMethod.CASH,
            now=NOW,
        )

        await self.worker_b.loader.reconcile(trip_id=TRIP_ID)

        snapshot = await self.worker_b.seat_state.snapshot(trip_id=TRIP_ID)
        assert snapshot.confirmed == ('1A',)
        assert snapshot.held == ()

    @pytest.mark.asyncio
    async def test_hold_made_elsewhere_after_loading_shows_as_held(self):
        # Given: Worker B loaded an empty trip
        await self.worker_b.loader.ensure_loaded(trip_id=TRIP_ID)
        await hold(self.worker_a, ['2D'])

        # When
        changed = await self.worker_b.loader.reconcile(trip_id=TRIP_ID)

        # Then
        assert changed == ['2D']
        snapshot = await self.worker_b.seat_state.snapshot(trip_id=TRIP_ID)
        assert snapshot.held == ('2D',)

    @pytest.mark.asyncio
    async def test_local_hold_not_yet_stored_survives(self):
        # Given: Worker B holds 2A in its index; the insert has not landed yet
        await self.worker_b.loader.ensure_loaded(trip_id=TRIP_ID)
        result = await self.worker_b.seat_state.try_hold(
            trip_id=TRIP_ID, seat_ids=['2A'], reservation_id='r-in-flight'
        )
        assert result.success

        # When
        changed = await self.worker_b.loader.reconcile_loaded()

        # Then
        assert changed == 0
        owners = await self.worker_b.seat_state.held_owners(trip_id=TRIP_ID)
        assert owners == {'2A': 'r-in-flight'}
