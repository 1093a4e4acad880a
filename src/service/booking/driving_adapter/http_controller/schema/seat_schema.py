from typing import List

from pydantic import BaseModel

from src.service.booking.domain.value_object import SeatSnapshot


class SeatSnapshotResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'trip_id': '01936d8f-5e73-7c4e-a9c5-123456789abc',
                'capacity': 8,
                'free': ['1C', '1D', '2A', '2B', '2C', '2D'],
                'held': ['1A'],
                'confirmed': ['1B'],
            }
        },
    }

    trip_id: str
    capacity: int
    free: List[str]
    held: List[str]
    confirmed: List[str]

    @classmethod
    def from_value_object(cls, snapshot: SeatSnapshot) -> 'SeatSnapshotResponse':
        return cls(
            trip_id=snapshot.trip_id,
            capacity=snapshot.capacity,
            free=list(snapshot.free),
            held=list(snapshot.held),
            confirmed=list(snapshot.confirmed),
        )
