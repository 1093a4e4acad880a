import attrs


@attrs.frozen
class SeatSnapshot:
    """Point-in-time view of a trip's seats, each list in seat-map order."""

    trip_id: str
    free: tuple[str, ...]
    held: tuple[str, ...]
    confirmed: tuple[str, ...]

    @property
    def capacity(self) -> int:
        return len(self.free) + len(self.held) + len(self.confirmed)

    def to_dict(self) -> dict:
        return {
            'trip_id': self.trip_id,
            'free': list(self.free),
            'held': list(self.held),
            'confirmed': list(self.confirmed),
        }


@attrs.frozen
class HoldResult:
    success: bool
    conflicts: tuple[str, ...] = ()
