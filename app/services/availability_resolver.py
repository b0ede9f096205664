"""Interval-overlap checks shared by the availability query and the booking commit."""

from typing import Dict, Iterable, List, Optional
from app.models.reservation import BLOCKING_STATUSES
from app.utils.validators import time_to_minutes


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open [start, end) overlap; touching endpoints do not conflict"""
    return a_start < b_end and a_end > b_start


def _field(reservation, name):
    if isinstance(reservation, dict):
        return reservation[name]
    return getattr(reservation, name)


def _status_value(reservation):
    status = _field(reservation, 'status')
    return getattr(status, 'value', status)


_BLOCKING_VALUES = {status.value for status in BLOCKING_STATUSES}


def is_blocking(reservation) -> bool:
    return _status_value(reservation) in _BLOCKING_VALUES


def find_conflict(start_time: str, end_time: str, reservations: Iterable):
    """Return the first blocking reservation overlapping [start_time, end_time), or None.

    Reservations may be model instances or dicts with start_time, end_time and
    status (enum or its string value).
    """
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time)
    for reservation in reservations:
        if not is_blocking(reservation):
            continue
        if intervals_overlap(start, end,
                             time_to_minutes(_field(reservation, 'start_time')),
                             time_to_minutes(_field(reservation, 'end_time'))):
            return reservation
    return None


def mark_availability(slots: List[Dict], reservations: Iterable) -> List[Dict]:
    """Copy each candidate slot with is_available set"""
    reservations = list(reservations)
    marked = []
    for slot in slots:
        conflict = find_conflict(slot['start_time'], slot['end_time'], reservations)
        marked.append(dict(slot, is_available=conflict is None))
    return marked


def resolve_available(slots: List[Dict], reservations: Iterable) -> List[Dict]:
    """Subset of candidate slots that no blocking reservation overlaps"""
    return [slot for slot in mark_availability(slots, reservations) if slot['is_available']]


def first_overlapping_pair(reservations: Iterable) -> Optional[tuple]:
    """Return two blocking reservations that overlap, or None if the set is clean"""
    blocking = sorted(
        (r for r in reservations if is_blocking(r)),
        key=lambda r: time_to_minutes(_field(r, 'start_time'))
    )
    for previous, current in zip(blocking, blocking[1:]):
        if time_to_minutes(_field(current, 'start_time')) < time_to_minutes(_field(previous, 'end_time')):
            return previous, current
    return None
