"""Front / middle / back placement of a group inside the available pool."""
from __future__ import annotations

from typing import Callable, Sequence, TypeVar

from ..core.exceptions import InsufficientSeats, InvalidSeatingOption
from ..models.entities import SEATING_OPTIONS, SeatingRequest

T = TypeVar("T")


def start_index(seating_option: int, pool_size: int) -> int:
    if seating_option == 1:
        return 0
    if seating_option == 2:
        return pool_size // 3
    if seating_option == 3:
        return (pool_size * 2) // 3
    raise InvalidSeatingOption(seating_option)


def _units(available: Sequence[T], partner: Callable[[T], T | None] | None) -> list[list[int]]:
    """Pool positions grouped so that both halves of a dual pod form one unit."""
    units: list[list[int]] = []
    placed: set[int] = set()
    for i, seat in enumerate(available):
        if i in placed:
            continue
        unit = [i]
        other = partner(seat) if partner is not None else None
        if other is not None and other in available:
            j = available.index(other)
            if j != i and j not in placed:
                unit.append(j)
        placed.update(unit)
        units.append(unit)
    return units


def select_seats(
    available: Sequence[T],
    request: SeatingRequest,
    partner: Callable[[T], T | None] | None = None,
) -> list[T]:
    """Pick a contiguous window of ``request.group_size`` seats.

    ``available`` must already be pairing-filtered and ordered by column.
    The window starts at the option's index; when that would run past the
    end of the pool it is pulled back so the group still fits.

    ``partner`` maps a seat to the other half of its dual pod. A dual pod is
    never split: when the window touches one half it takes both, so the
    result can hold one seat more than the group size.
    """
    if request.seating_option not in SEATING_OPTIONS:
        raise InvalidSeatingOption(request.seating_option)
    needed = request.group_size
    if needed < 1:
        raise ValueError("group_size must be at least 1")

    n = len(available)
    if n < needed:
        raise InsufficientSeats(needed=needed, available=n)

    units = _units(available, partner)
    start = start_index(request.seating_option, n)
    first = next(k for k, unit in enumerate(units) if start in unit)

    taken: list[int] = []
    for unit in units[first:]:
        if len(taken) >= needed:
            break
        taken.extend(unit)
    for unit in reversed(units[:first]):
        if len(taken) >= needed:
            break
        taken.extend(unit)

    return [available[i] for i in sorted(taken)]
