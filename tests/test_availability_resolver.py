from app.models import Reservation
from app.models.reservation import ReservationStatus
from app.services.availability_resolver import (
    find_conflict, first_overlapping_pair, intervals_overlap, mark_availability, resolve_available
)


def make_reservation(start, end, status=ReservationStatus.CONFIRMED):
    return Reservation(start_time=start, end_time=end, status=status)


def slot(start, end):
    return {'start_time': start, 'end_time': end, 'duration': 90}


class TestAvailabilityResolver:
    """Test interval overlap exclusion"""

    def test_half_open_overlap(self):
        assert intervals_overlap(60, 120, 90, 150)
        assert not intervals_overlap(60, 120, 120, 180)
        assert not intervals_overlap(120, 180, 60, 120)
        assert intervals_overlap(60, 180, 90, 120)

    def test_slot_ending_at_reservation_start_is_available(self):
        existing = [make_reservation('14:00', '15:30')]
        marked = mark_availability([slot('12:30', '14:00')], existing)
        assert marked[0]['is_available'] is True

    def test_slot_starting_at_reservation_end_is_available(self):
        existing = [make_reservation('14:00', '15:30')]
        marked = mark_availability([slot('15:30', '17:00')], existing)
        assert marked[0]['is_available'] is True

    def test_partial_overlap_is_unavailable(self):
        existing = [make_reservation('14:00', '15:30')]
        marked = mark_availability([slot('13:00', '14:30')], existing)
        assert marked[0]['is_available'] is False

    def test_cancelled_and_completed_do_not_block(self):
        existing = [
            make_reservation('14:00', '15:30', ReservationStatus.CANCELLED),
            make_reservation('14:00', '15:30', ReservationStatus.COMPLETED),
        ]
        assert find_conflict('14:00', '15:30', existing) is None

    def test_pending_blocks(self):
        existing = [make_reservation('14:00', '15:30', ReservationStatus.PENDING)]
        assert find_conflict('15:00', '16:30', existing) is existing[0]

    def test_accepts_plain_dicts(self):
        existing = [{'start_time': '09:00', 'end_time': '10:00', 'status': 'confirmed'}]
        assert find_conflict('09:30', '10:30', existing) == existing[0]
        assert find_conflict('10:00', '11:00', existing) is None

    def test_resolve_returns_available_subset_in_order(self):
        candidates = [slot('08:00', '09:30'), slot('09:30', '11:00'), slot('11:00', '12:30'), slot('12:30', '14:00')]
        existing = [make_reservation('09:00', '10:00'), make_reservation('12:30', '14:00')]

        available = resolve_available(candidates, existing)
        assert [s['start_time'] for s in available] == ['11:00']
        # inputs are not mutated
        assert 'is_available' not in candidates[0]

    def test_many_reservations(self):
        existing = [make_reservation(f"{h:02d}:00", f"{h:02d}:30") for h in range(8, 22)]
        candidates = [slot(f"{h:02d}:30", f"{h + 1:02d}:00") for h in range(8, 21)]
        assert len(resolve_available(candidates, existing)) == len(candidates)

    def test_first_overlapping_pair(self):
        clean = [make_reservation('08:00', '09:30'), make_reservation('09:30', '11:00')]
        assert first_overlapping_pair(clean) is None

        dirty = clean + [make_reservation('10:00', '11:30')]
        pair = first_overlapping_pair(dirty)
        assert [r.start_time for r in pair] == ['09:30', '10:00']
