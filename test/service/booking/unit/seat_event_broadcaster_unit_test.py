"""
Unit tests for the Real-time Notifier

Test Coverage:
1. InMemoryEventBroadcasterImpl subscribe / broadcast / unsubscribe
2. Slow subscribers lose events instead of blocking the publisher
3. SeatEventBroadcasterImpl fans events out to trip and company channels
4. SSE forwarding: initial snapshot first, unsubscribe when the client leaves
"""

from datetime import timedelta

import anyio
import orjson
import pytest

from src.platform.event.in_memory_broadcaster import InMemoryEventBroadcasterImpl
from src.service.booking.domain.entity import Reservation
from src.service.booking.domain.enum import BookingChannel, PaymentMethod
from src.service.booking.driven_adapter.broadcaster.seat_event_broadcaster_impl import (
    SeatEventBroadcasterImpl,
    company_channel,
    trip_channel,
)
from src.service.booking.driving_adapter.http_controller.seat_stream_controller import (
    _forward_events,
)
from test.service.booking.fakes import COMPANY_ID, NOW, TRIP_ID, make_passengers


pytestmark = pytest.mark.unit


def _reservation() -> Reservation:
    return Reservation.create(
        trip_id=TRIP_ID,
        company_id=COMPANY_ID,
        seat_ids=['1A', '1B'],
        passengers=make_passengers(2),
        unit_price=2500,
        payment_method=PaymentMethod.CASH,
        channel=BookingChannel.INTERACTIVE,
        hold_duration=timedelta(minutes=15),
        now=NOW,
    )


class TestInMemoryEventBroadcaster:
    def setup_method(self):
        self.broadcaster = InMemoryEventBroadcasterImpl(max_buffer_size=2)

    @pytest.mark.asyncio
    async def test_broadcast_without_subscribers_delivers_nothing(self):
        delivered = await self.broadcaster.broadcast(channel='trip:x', event_data={'a': 1})
        assert delivered == 0

    @pytest.mark.asyncio
    async def test_every_subscriber_of_the_channel_receives(self):
        first = await self.broadcaster.subscribe(channel='trip:x')
        second = await self.broadcaster.subscribe(channel='trip:x')
        other = await self.broadcaster.subscribe(channel='trip:y')

        delivered = await self.broadcaster.broadcast(channel='trip:x', event_data={'n': 1})

        assert delivered == 2
        assert first.receive_nowait() == {'n': 1}
        assert second.receive_nowait() == {'n': 1}
        with pytest.raises(anyio.WouldBlock):
            other.receive_nowait()

    @pytest.mark.asyncio
    async def test_full_buffer_drops_instead_of_blocking(self):
        # Given: A subscriber that never reads, buffer of 2
        stream = await self.broadcaster.subscribe(channel='trip:x')

        # When: Three events are published
        results = [
            await self.broadcaster.broadcast(channel='trip:x', event_data={'n': n})
            for n in range(3)
        ]

        # Then: The third is dropped for that subscriber
        assert results == [1, 1, 0]
        assert stream.receive_nowait() == {'n': 0}
        assert stream.receive_nowait() == {'n': 1}

    @pytest.mark.asyncio
    async def test_unsubscribe_cleans_up_channel(self):
        stream = await self.broadcaster.subscribe(channel='trip:x')
        assert self.broadcaster.subscriber_count(channel='trip:x') == 1

        await self.broadcaster.unsubscribe(channel='trip:x', stream=stream)
        await self.broadcaster.unsubscribe(channel='trip:x', stream=stream)

        assert self.broadcaster.subscriber_count(channel='trip:x') == 0


class TestSeatEventBroadcaster:
    def setup_method(self):
        self.pubsub = InMemoryEventBroadcasterImpl(max_buffer_size=10)
        self.notifier = SeatEventBroadcasterImpl(broadcaster=self.pubsub)

    @pytest.mark.asyncio
    async def test_seats_held_reaches_trip_and_company_dashboards(self):
        trip_stream = await self.pubsub.subscribe(channel=trip_channel(TRIP_ID))
        company_stream = await self.pubsub.subscribe(channel=company_channel(COMPANY_ID))
        reservation = _reservation()

        await self.notifier.seats_held(reservation=reservation, actor='cashier-7')

        for stream in (trip_stream, company_stream):
            event = stream.receive_nowait()
            assert event['event_type'] == 'seats-held'
            assert event['seat_ids'] == ['1A', '1B']
            assert event['actor'] == 'cashier-7'
            assert event['expires_at'] == reservation.expires_at.isoformat()
            assert 'timestamp' in event

    @pytest.mark.asyncio
    async def test_released_and_confirmed_event_shapes(self):
        stream = await self.pubsub.subscribe(channel=trip_channel(TRIP_ID))
        reservation = _reservation()

        await self.notifier.seats_released(reservation=reservation, reason='expired')
        await self.notifier.reservation_confirmed(reservation=reservation, tickets=[])

        released = stream.receive_nowait()
        confirmed = stream.receive_nowait()
        assert released['event_type'] == 'seats-released'
        assert released['reason'] == 'expired'
        assert confirmed['event_type'] == 'reservation-confirmed'
        assert confirmed['ticket_codes'] == []

    @pytest.mark.asyncio
    async def test_publishing_without_listeners_is_harmless(self):
        await self.notifier.seats_released(reservation=_reservation(), reason='cancelled')


class TestForwardEvents:
    @pytest.mark.asyncio
    async def test_initial_snapshot_then_live_events(self):
        # Given: A trip subscriber with one pending event
        pubsub = InMemoryEventBroadcasterImpl(max_buffer_size=10)
        channel = trip_channel(TRIP_ID)
        stream = await pubsub.subscribe(channel=channel)
        await pubsub.broadcast(
            channel=channel, event_data={'event_type': 'seats-held', 'seat_ids': ['1A']}
        )
        initial = {'event_type': 'initial_status', 'trip_id': TRIP_ID, 'free': ['1B']}

        # When
        events = _forward_events(
            broadcaster=pubsub, channel=channel, stream=stream, first_event=initial
        )
        first = await events.__anext__()
        second = await events.__anext__()
        await events.aclose()

        # Then
        assert first['event'] == 'initial_status'
        assert orjson.loads(first['data'])['free'] == ['1B']
        assert second['event'] == 'seats-held'
        assert orjson.loads(second['data'])['seat_ids'] == ['1A']
        assert pubsub.subscriber_count(channel=channel) == 0
