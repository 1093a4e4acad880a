"""
In-memory Event Broadcaster Interface

Provides the pub/sub mechanism that carries seat-state events from
use cases to SSE endpoints within the same process.
"""

from typing import Protocol

from anyio.streams.memory import MemoryObjectReceiveStream


class IInMemoryEventBroadcaster(Protocol):
    """
    Interface for in-memory event broadcasting

    Channels are opaque strings such as 'trip:<trip_id>' or
    'company:<company_id>'. Delivery is best-effort: dashboards treat
    the seat snapshot as the source of truth.
    """

    async def subscribe(self, *, channel: str) -> MemoryObjectReceiveStream[dict]:
        """
        Subscribe to a channel

        Returns:
            MemoryObjectReceiveStream that will receive event dictionaries
        """
        ...

    async def broadcast(self, *, channel: str, event_data: dict) -> int:
        """
        Broadcast event to all subscribers of a channel

        Returns:
            Number of subscribers the event was delivered to

        Note:
            - Silently ignores channels without subscribers
            - Drops the event for a subscriber whose buffer is full
        """
        ...

    async def unsubscribe(self, *, channel: str, stream: MemoryObjectReceiveStream[dict]) -> None:
        """
        Unsubscribe and cleanup

        Note:
            - Removes empty subscriber lists to prevent memory leaks
            - Safe to call with a non-existent stream
        """
        ...
