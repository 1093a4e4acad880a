"""
Seat Map

Seat labels are derived from capacity alone: four seats per row, lettered
A to D, rows numbered from 1. Capacity 6 gives 1A 1B 1C 1D 2A 2B.
"""

from functools import lru_cache
from typing import Iterable

import attrs


SEAT_LETTERS = 'ABCD'
SEATS_PER_ROW = len(SEAT_LETTERS)


def seat_label(index: int) -> str:
    return f'{index // SEATS_PER_ROW + 1}{SEAT_LETTERS[index % SEATS_PER_ROW]}'


def seat_sort_key(label: str) -> tuple[int, str]:
    """Seat-map order for a well-formed label: row number, then letter."""
    return int(label[:-1]), label[-1]


@lru_cache(maxsize=256)
def generate_seat_map(capacity: int) -> tuple[str, ...]:
    if capacity <= 0:
        raise ValueError(f'capacity must be positive, got {capacity}')
    return tuple(seat_label(i) for i in range(capacity))


@attrs.frozen
class SeatMap:
    capacity: int
    labels: tuple[str, ...] = attrs.field(init=False)
    _positions: dict[str, int] = attrs.field(init=False, repr=False, eq=False)

    def __attrs_post_init__(self) -> None:
        labels = generate_seat_map(self.capacity)
        object.__setattr__(self, 'labels', labels)
        object.__setattr__(self, '_positions', {label: i for i, label in enumerate(labels)})

    def __contains__(self, seat_id: object) -> bool:
        return seat_id in self._positions

    def __len__(self) -> int:
        return self.capacity

    def invalid(self, seat_ids: Iterable[str]) -> list[str]:
        return [seat_id for seat_id in seat_ids if seat_id not in self._positions]

    def ordered(self, seat_ids: Iterable[str]) -> list[str]:
        """Sort known seat labels into seat-map order."""
        return sorted(seat_ids, key=self._positions.__getitem__)
