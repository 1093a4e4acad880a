"""
Seat Stream Controller

Server-Sent Events for cashier and manager dashboards.

Architecture: Use Case -> SeatEventBroadcaster -> InMemoryEventBroadcaster -> SSE

Trip streams open with an ``initial_status`` snapshot, then forward
``seats-held`` / ``seats-released`` / ``reservation-confirmed`` events.
Delivery is best-effort; clients re-poll /seats after reconnecting.
"""

from collections.abc import AsyncIterator

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status
import orjson
from sse_starlette.sse import EventSourceResponse

from src.platform.config.di import Container
from src.platform.event.i_in_memory_broadcaster import IInMemoryEventBroadcaster
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.query.get_seat_snapshot_use_case import GetSeatSnapshotUseCase
from src.service.booking.domain.enum import SeatEventType
from src.service.booking.driven_adapter.broadcaster.seat_event_broadcaster_impl import (
    company_channel,
    trip_channel,
)


router = APIRouter()


async def _forward_events(
    *,
    broadcaster: IInMemoryEventBroadcaster,
    channel: str,
    stream: MemoryObjectReceiveStream[dict],
    first_event: dict | None = None,
) -> AsyncIterator[dict[str, str]]:
    try:
        if first_event is not None:
            yield {'event': first_event['event_type'], 'data': orjson.dumps(first_event).decode()}

        async for event_data in stream:
            yield {
                'event': event_data.get('event_type', 'message'),
                'data': orjson.dumps(event_data).decode(),
            }
    except anyio.get_cancelled_exc_class():
        Logger.base.info(f'🔌 [SSE] Client disconnected from {channel}')
        raise
    finally:
        with anyio.CancelScope(shield=True):
            await broadcaster.unsubscribe(channel=channel, stream=stream)


@router.get('/trip/{trip_id}/sse', status_code=status.HTTP_200_OK)
@Logger.io
@inject
async def stream_trip_seats(
    trip_id: str,
    use_case: GetSeatSnapshotUseCase = Depends(GetSeatSnapshotUseCase.depends),
    broadcaster: IInMemoryEventBroadcaster = Depends(Provide[Container.event_broadcaster]),
) -> EventSourceResponse:
    # Unknown trip fails here with 404, before the stream opens
    snapshot = await use_case.execute(trip_id=trip_id)

    channel = trip_channel(trip_id)
    stream = await broadcaster.subscribe(channel=channel)
    Logger.base.info(f'📡 [SSE] Client subscribed to {channel}')

    initial = {'event_type': SeatEventType.INITIAL_STATUS.value, **snapshot.to_dict()}
    return EventSourceResponse(
        _forward_events(
            broadcaster=broadcaster, channel=channel, stream=stream, first_event=initial
        )
    )


@router.get('/company/{company_id}/sse', status_code=status.HTTP_200_OK)
@Logger.io
@inject
async def stream_company_seats(
    company_id: str,
    broadcaster: IInMemoryEventBroadcaster = Depends(Provide[Container.event_broadcaster]),
) -> EventSourceResponse:
    channel = company_channel(company_id)
    stream = await broadcaster.subscribe(channel=channel)
    Logger.base.info(f'📡 [SSE] Client subscribed to {channel}')

    return EventSourceResponse(
        _forward_events(broadcaster=broadcaster, channel=channel, stream=stream)
    )
