"""
Unit tests for ConfirmPaymentUseCase (Payment Reconciliation)

Test Coverage:
1. Completed payment: PENDING -> CONFIRMED, one ticket per seat, seats confirmed
2. Idempotency: processor reference redelivery (also concurrent), repeat confirmation
3. Amount mismatch, failed and pending results
4. Payments arriving after expiry or cancellation
5. Webhook entry by reservation code
"""

from datetime import timedelta

import anyio
import pytest

from src.service.booking.app.booking_policy import BookingPolicy
from src.service.booking.domain.booking_exceptions import (
    InvalidTransitionError,
    PaymentAmountMismatchError,
    ReservationExpiredError,
    ReservationNotFoundError,
)
from src.service.booking.domain.enum import PaymentMethod, PaymentStatus, ReservationStatus
from test.service.booking.fakes import (
    NOW,
    TEST_SECRET,
    TRIP_ID,
    build_harness,
    confirm_use_case,
    hold,
    make_trip,
)


pytestmark = pytest.mark.unit


class TestCompletedPayment:
    def setup_method(self):
        self.h = build_harness(make_trip(capacity=8, price=2500))
        self.use_case = confirm_use_case(self.h)
        self.paid_at = NOW + timedelta(minutes=5)

    @pytest.mark.asyncio
    async def test_full_payment_confirms_and_issues_tickets(self):
        # Given: 1A + 1B held for 5000
        reservation = await hold(self.h, ['1A', '1B'])

        # When: Mobile money reports 5000 completed
        result = await self.use_case.confirm_payment(
            reservation_id=reservation.id,
            status=PaymentStatus.COMPLETED,
            amount=5000,
            processor_reference='MM-0001',
            now=self.paid_at,
        )

        # Then: Confirmed with one ticket per seat
        assert result.reservation.status is ReservationStatus.CONFIRMED
        assert result.reservation.confirmed_at == self.paid_at
        assert [t.seat_id for t in result.tickets] == ['1A', '1B']
        assert {t.passenger_name for t in result.tickets} == {'Passenger 1', 'Passenger 2'}
        assert all(t.price == 2500 for t in result.tickets)
        assert all(t.valid_until == NOW + timedelta(hours=6) for t in result.tickets)
        assert len({t.code for t in result.tickets}) == 2

        # And: Payment recorded with the reservation's method
        assert result.payment is not None
        assert result.payment.status is PaymentStatus.COMPLETED
        assert result.payment.method is PaymentMethod.MOBILE_MONEY
        assert self.h.store.payments == [result.payment]

        # And: Seats moved from held to confirmed
        snapshot = await self.h.seat_state.snapshot(trip_id=TRIP_ID)
        assert snapshot.confirmed == ('1A', '1B')
        assert snapshot.held == ()

        # And: Dashboards were told
        assert self.h.notifier.types() == ['seats-held', 'reservation-confirmed']
        assert self.h.notifier.events[-1]['ticket_codes'] == [t.code for t in result.tickets]

    @pytest.mark.asyncio
    async def test_redelivered_reference_is_a_no_op(self):
        # Given: A confirmed reservation
        reservation = await hold(self.h, ['1A', '1B'])
        first = await self.use_case.confirm_payment(
            reservation_id=reservation.id,
            status=PaymentStatus.COMPLETED,
            amount=5000,
            processor_reference='MM-0001',
            now=self.paid_at,
        )

        # When: The processor sends the same result again
        second = await self.use_case.confirm_payment(
            reservation_id=reservation.id,
            status=PaymentStatus.COMPLETED,
            amount=5000,
            processor_reference='MM-0001',
            now=self.paid_at + timedelta(minutes=1),
        )

        # Then: Same tickets, nothing new recorded
        assert second.reservation.status is ReservationStatus.CONFIRMED
        assert second.payment is None
        assert [t.code for t in second.tickets] == [t.code for t in first.tickets]
        assert len(self.h.store.payments) == 1
        assert self.h.notifier.types().count('reservation-confirmed') == 1

    @pytest.mark.asyncio
    async def test_second_completed_report_without_reference_is_a_no_op(self):
        reservation = await hold(self.h, ['1A'])
        await self.use_case.confirm_payment(
            reservation_id=reservation.id,
            status=PaymentStatus.COMPLETED,
            amount=2500,
            now=self.paid_at,
        )

        again = await self.use_case.confirm_payment(
            reservation_id=reservation.id,
            status=PaymentStatus.COMPLETED,
            amount=2500,
            now=self.paid_at,
        )

        assert again.reservation.status is ReservationStatus.CONFIRMED
        assert len(again.tickets) == 1
        assert again.payment is None
        assert len(self.h.store.payments) == 1

    @pytest.mark.asyncio
    async def test_amount_mismatch_is_rejected_and_nothing_recorded(self):
        # Given
        reservation = await hold(self.h, ['1A', '1B'])

        # When: Only 4000 was paid
        with pytest.raises(PaymentAmountMismatchError) as exc_info:
            await self.use_case.confirm_payment(
                reservation_id=reservation.id,
                status=PaymentStatus.COMPLETED,
                amount=4000,
                now=self.paid_at,
            )

        # Then
        assert exc_info.value.status_code == 400
        assert exc_info.value.context['expected_amount'] == 5000
        assert self.h.store.reservations[reservation.id].status is ReservationStatus.PENDING
        assert self.h.store.payments == []

    @pytest.mark.asyncio
    async def test_unknown_reservation(self):
        with pytest.raises(ReservationNotFoundError):
            await self.use_case.confirm_payment(
                reservation_id='missing', status=PaymentStatus.COMPLETED, amount=1, now=NOW
            )

    @pytest.mark.asyncio
    async def test_webhook_finds_reservation_by_code(self):
        reservation = await hold(self.h, ['2B'])

        result = await self.use_case.confirm_payment_by_code(
            code=reservation.code,
            status=PaymentStatus.COMPLETED,
            amount=2500,
            method=PaymentMethod.MOBILE_MONEY,
            processor_reference='MM-0099',
            now=self.paid_at,
        )

        assert result.reservation.id == reservation.id
        assert result.reservation.status is ReservationStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_webhook_unknown_code(self):
        with pytest.raises(ReservationNotFoundError):
            await self.use_case.confirm_payment_by_code(
                code='NOPE0000', status=PaymentStatus.COMPLETED, amount=1, now=NOW
            )


class TestUnsuccessfulPayment:
    @pytest.mark.asyncio
    async def test_failed_payment_keeps_reservation_pending(self):
        # Given
        h = build_harness(make_trip())
        reservation = await hold(h, ['1A'])

        # When
        result = await confirm_use_case(h).confirm_payment(
            reservation_id=reservation.id,
            status=PaymentStatus.FAILED,
            amount=2500,
            processor_reference='MM-FAIL-1',
            now=NOW + timedelta(minutes=2),
        )

        # Then: Attempt stored, hold untouched
        assert result.reservation.status is ReservationStatus.PENDING
        assert result.payment is not None
        assert result.payment.status is PaymentStatus.FAILED
        assert len(h.store.payments) == 1
        assert (await h.seat_state.snapshot(trip_id=TRIP_ID)).held == ('1A',)

    @pytest.mark.asyncio
    async def test_failed_payment_cancels_when_policy_says_so(self):
        # Given
        h = build_harness(
            make_trip(),
            policy=BookingPolicy(cancel_on_payment_failure=True, ticket_signing_secret=TEST_SECRET),
        )
        reservation = await hold(h, ['1A'])

        # When
        result = await confirm_use_case(h).confirm_payment(
            reservation_id=reservation.id,
            status=PaymentStatus.FAILED,
            amount=2500,
            now=NOW + timedelta(minutes=2),
        )

        # Then
        assert result.reservation.status is ReservationStatus.CANCELLED
        snapshot = await h.seat_state.snapshot(trip_id=TRIP_ID)
        assert '1A' in snapshot.free
        assert h.notifier.types()[-1] == 'seats-released'

    @pytest.mark.asyncio
    async def test_pending_result_is_recorded_only(self):
        h = build_harness(make_trip())
        reservation = await hold(h, ['1A'])

        result = await confirm_use_case(h).confirm_payment(
            reservation_id=reservation.id,
            status=PaymentStatus.PENDING,
            amount=2500,
            processor_reference='MM-WAIT-1',
            now=NOW + timedelta(minutes=1),
        )

        assert result.reservation.status is ReservationStatus.PENDING
        assert result.payment.status is PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_concurrent_redeliveries_of_failed_result_store_one_attempt(self):
        # Given: The processor delivers the same failure twice at once
        h = build_harness(make_trip())
        reservation = await hold(h, ['1A'])
        use_case = confirm_use_case(h)
        results = []

        async def deliver() -> None:
            results.append(
                await use_case.confirm_payment(
                    reservation_id=reservation.id,
                    status=PaymentStatus.FAILED,
                    amount=2500,
                    processor_reference='MM-FAIL-DUP',
                    now=NOW + timedelta(minutes=2),
                )
            )

        # When
        async with anyio.create_task_group() as tg:
            tg.start_soon(deliver)
            tg.start_soon(deliver)

        # Then: Both answered, one attempt recorded
        assert len(results) == 2
        assert all(r.reservation.status is ReservationStatus.PENDING for r in results)
        assert sum(r.payment is not None for r in results) == 1
        assert [p.processor_reference for p in h.store.payments] == ['MM-FAIL-DUP']


class TestLatePayment:
    def setup_method(self):
        self.h = build_harness(make_trip())
        self.use_case = confirm_use_case(self.h)

    @pytest.mark.asyncio
    async def test_payment_after_hold_expiry_raises_expired_and_frees_seats(self):
        # Given: Held at 08:00, hold ends 08:15
        reservation = await hold(self.h, ['1A', '1B'])

        # When: Payment arrives at 08:16 before any sweep ran
        with pytest.raises(ReservationExpiredError) as exc_info:
            await self.use_case.confirm_payment(
                reservation_id=reservation.id,
                status=PaymentStatus.COMPLETED,
                amount=5000,
                now=NOW + timedelta(minutes=16),
            )

        # Then
        assert exc_info.value.status_code == 410
        assert self.h.store.reservations[reservation.id].status is ReservationStatus.EXPIRED
        snapshot = await self.h.seat_state.snapshot(trip_id=TRIP_ID)
        assert snapshot.held == ()
        assert self.h.store.tickets == {}

    @pytest.mark.asyncio
    async def test_payment_for_swept_reservation_raises_expired(self):
        # Given: The sweep already expired it
        reservation = await hold(self.h, ['1A'])
        await self.h.transitions.expire(reservation=reservation, now=NOW + timedelta(minutes=16))

        # When / Then
        with pytest.raises(ReservationExpiredError):
            await self.use_case.confirm_payment(
                reservation_id=reservation.id,
                status=PaymentStatus.COMPLETED,
                amount=2500,
                now=NOW + timedelta(minutes=17),
            )

    @pytest.mark.asyncio
    async def test_payment_for_cancelled_reservation_is_invalid(self):
        reservation = await hold(self.h, ['1A'])
        await self.h.transitions.cancel(reservation=reservation, now=NOW + timedelta(minutes=1))

        with pytest.raises(InvalidTransitionError):
            await self.use_case.confirm_payment(
                reservation_id=reservation.id,
                status=PaymentStatus.COMPLETED,
                amount=2500,
                now=NOW + timedelta(minutes=2),
            )

    @pytest.mark.asyncio
    async def test_payment_exactly_at_expiry_still_confirms(self):
        reservation = await hold(self.h, ['1A'])

        result = await self.use_case.confirm_payment(
            reservation_id=reservation.id,
            status=PaymentStatus.COMPLETED,
            amount=2500,
            now=reservation.expires_at,
        )

        assert result.reservation.status is ReservationStatus.CONFIRMED
