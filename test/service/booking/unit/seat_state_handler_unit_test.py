"""
Unit tests for SeatStateHandlerImpl (Availability Index)

Test Coverage:
1. Initialization and snapshot partitioning
2. All-or-nothing holds with conflicts in seat-map order
3. Release / confirm only touch the caller's own seats
4. Concurrent overlapping holds: exactly one winner
"""

import anyio
import pytest

from src.service.booking.domain.booking_exceptions import TripNotFoundError
from src.service.booking.driven_adapter.state.seat_state_handler_impl import SeatStateHandlerImpl


pytestmark = pytest.mark.unit

TRIP = 'trip-1'


class TestSeatStateInitialization:
    def setup_method(self):
        self.handler = SeatStateHandlerImpl()

    @pytest.mark.asyncio
    async def test_fresh_trip_is_all_free(self):
        # When
        loaded = await self.handler.initialize_trip(trip_id=TRIP, capacity=6)
        snapshot = await self.handler.snapshot(trip_id=TRIP)

        # Then
        assert loaded is True
        assert snapshot.free == ('1A', '1B', '1C', '1D', '2A', '2B')
        assert snapshot.held == ()
        assert snapshot.confirmed == ()
        assert snapshot.capacity == 6

    @pytest.mark.asyncio
    async def test_initialize_from_persisted_state(self):
        # Given: Seats held and confirmed in storage
        await self.handler.initialize_trip(
            trip_id=TRIP,
            capacity=6,
            held={'2A': 'r-pending'},
            confirmed={'1B': 'r-confirmed', '1A': 'r-confirmed'},
        )

        # When
        snapshot = await self.handler.snapshot(trip_id=TRIP)

        # Then: Every list is in seat-map order
        assert snapshot.confirmed == ('1A', '1B')
        assert snapshot.held == ('2A',)
        assert snapshot.free == ('1C', '1D', '2B')

    @pytest.mark.asyncio
    async def test_second_initialize_is_ignored(self):
        await self.handler.initialize_trip(trip_id=TRIP, capacity=4, held={'1A': 'r-1'})

        loaded = await self.handler.initialize_trip(trip_id=TRIP, capacity=4)

        assert loaded is False
        assert (await self.handler.snapshot(trip_id=TRIP)).held == ('1A',)

    @pytest.mark.asyncio
    async def test_unknown_trip_raises(self):
        assert not self.handler.is_loaded(trip_id='nope')
        with pytest.raises(TripNotFoundError):
            await self.handler.snapshot(trip_id='nope')


class TestSeatHolds:
    def setup_method(self):
        self.handler = SeatStateHandlerImpl()

    async def _load(self, capacity: int = 8) -> None:
        await self.handler.initialize_trip(trip_id=TRIP, capacity=capacity)

    @pytest.mark.asyncio
    async def test_hold_free_seats(self):
        await self._load()

        result = await self.handler.try_hold(
            trip_id=TRIP, seat_ids=['1A', '1B'], reservation_id='r-1'
        )

        assert result.success is True
        assert result.conflicts == ()
        assert (await self.handler.snapshot(trip_id=TRIP)).held == ('1A', '1B')

    @pytest.mark.asyncio
    async def test_partial_overlap_holds_nothing(self):
        # Given: 1B already held
        await self._load()
        await self.handler.try_hold(trip_id=TRIP, seat_ids=['1B'], reservation_id='r-1')

        # When: Another reservation asks for 1A + 1B
        result = await self.handler.try_hold(
            trip_id=TRIP, seat_ids=['1A', '1B'], reservation_id='r-2'
        )

        # Then: Rejected, 1A stays free
        assert result.success is False
        assert result.conflicts == ('1B',)
        snapshot = await self.handler.snapshot(trip_id=TRIP)
        assert '1A' in snapshot.free
        assert snapshot.held == ('1B',)

    @pytest.mark.asyncio
    async def test_conflicts_listed_in_seat_map_order_with_unknown_last(self):
        await self._load()
        await self.handler.try_hold(trip_id=TRIP, seat_ids=['2A', '1C'], reservation_id='r-1')

        result = await self.handler.try_hold(
            trip_id=TRIP, seat_ids=['9Z', '2A', '1C'], reservation_id='r-2'
        )

        assert result.success is False
        assert result.conflicts == ('1C', '2A', '9Z')

    @pytest.mark.asyncio
    async def test_confirmed_seat_cannot_be_held(self):
        await self._load()
        await self.handler.try_hold(trip_id=TRIP, seat_ids=['1A'], reservation_id='r-1')
        await self.handler.confirm(trip_id=TRIP, seat_ids=['1A'], reservation_id='r-1')

        result = await self.handler.try_hold(trip_id=TRIP, seat_ids=['1A'], reservation_id='r-2')

        assert result.success is False
        assert result.conflicts == ('1A',)

    @pytest.mark.asyncio
    async def test_release_only_frees_own_seats(self):
        # Given: r-1 holds 1A, r-2 holds 1B
        await self._load()
        await self.handler.try_hold(trip_id=TRIP, seat_ids=['1A'], reservation_id='r-1')
        await self.handler.try_hold(trip_id=TRIP, seat_ids=['1B'], reservation_id='r-2')

        # When: r-1 tries to release both
        released = await self.handler.release(
            trip_id=TRIP, seat_ids=['1A', '1B'], reservation_id='r-1'
        )

        # Then
        assert released == ['1A']
        snapshot = await self.handler.snapshot(trip_id=TRIP)
        assert snapshot.held == ('1B',)

    @pytest.mark.asyncio
    async def test_release_does_not_touch_confirmed_seats(self):
        await self._load()
        await self.handler.try_hold(trip_id=TRIP, seat_ids=['1A'], reservation_id='r-1')
        await self.handler.confirm(trip_id=TRIP, seat_ids=['1A'], reservation_id='r-1')

        released = await self.handler.release(trip_id=TRIP, seat_ids=['1A'], reservation_id='r-1')

        assert released == []
        assert (await self.handler.snapshot(trip_id=TRIP)).confirmed == ('1A',)

    @pytest.mark.asyncio
    async def test_confirm_moves_held_to_confirmed(self):
        await self._load()
        await self.handler.try_hold(trip_id=TRIP, seat_ids=['1A', '1B'], reservation_id='r-1')

        moved = await self.handler.confirm(
            trip_id=TRIP, seat_ids=['1A', '1B'], reservation_id='r-1'
        )

        assert moved == ['1A', '1B']
        snapshot = await self.handler.snapshot(trip_id=TRIP)
        assert snapshot.confirmed == ('1A', '1B')
        assert snapshot.held == ()

    @pytest.mark.asyncio
    async def test_partition_always_covers_capacity(self):
        await self._load(capacity=10)
        await self.handler.try_hold(trip_id=TRIP, seat_ids=['1A', '3B'], reservation_id='r-1')
        await self.handler.try_hold(trip_id=TRIP, seat_ids=['2C'], reservation_id='r-2')
        await self.handler.confirm(trip_id=TRIP, seat_ids=['2C'], reservation_id='r-2')
        await self.handler.release(trip_id=TRIP, seat_ids=['3B'], reservation_id='r-1')

        snapshot = await self.handler.snapshot(trip_id=TRIP)

        seats = snapshot.free + snapshot.held + snapshot.confirmed
        assert sorted(seats) == sorted(set(seats))
        assert len(seats) == 10


class TestConcurrentHolds:
    @pytest.mark.asyncio
    async def test_overlapping_holds_have_exactly_one_winner(self):
        # Given: 20 requests all wanting 1A plus a distinct second seat
        handler = SeatStateHandlerImpl()
        await handler.initialize_trip(trip_id=TRIP, capacity=40)
        others = [seat for seat in (await handler.snapshot(trip_id=TRIP)).free if seat != '1A']
        results: dict[str, bool] = {}

        async def attempt(index: int) -> None:
            reservation_id = f'r-{index}'
            result = await handler.try_hold(
                trip_id=TRIP, seat_ids=['1A', others[index]], reservation_id=reservation_id
            )
            results[reservation_id] = result.success

        # When
        async with anyio.create_task_group() as tg:
            for i in range(20):
                tg.start_soon(attempt, i)

        # Then
        assert sum(results.values()) == 1
        snapshot = await handler.snapshot(trip_id=TRIP)
        assert len(snapshot.held) == 2
        assert '1A' in snapshot.held
