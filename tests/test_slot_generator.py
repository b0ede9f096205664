from datetime import datetime
from app.services.slot_generator import generate_slots


OPEN_DAY = {'is_open': True, 'start': '08:00', 'end': '22:00'}


class TestSlotGenerator:
    """Test candidate slot generation"""

    def test_ninety_minute_slots_fill_the_day(self):
        """08:00-22:00 with 90 minute matches gives nine slots ending at 22:00"""
        slots = generate_slots(OPEN_DAY, 90)

        starts = [slot['start_time'] for slot in slots]
        assert starts == ['08:00', '09:30', '11:00', '12:30', '14:00', '15:30', '17:00', '18:30', '20:00']
        assert slots[0] == {'start_time': '08:00', 'end_time': '09:30', 'duration': 90}
        assert slots[-1]['start_time'] == '20:00'
        assert slots[-1]['end_time'] == '21:30'

    def test_generation_is_deterministic(self):
        first = generate_slots(OPEN_DAY, 60)
        second = generate_slots(OPEN_DAY, 60)
        assert first == second
        assert [s['start_time'] for s in first] == sorted(s['start_time'] for s in first)

    def test_closed_day_has_no_slots(self):
        assert generate_slots({'is_open': False, 'start': '08:00', 'end': '22:00'}, 90) == []

    def test_window_of_exactly_one_duration(self):
        slots = generate_slots({'is_open': True, 'start': '10:00', 'end': '11:30'}, 90)
        assert slots == [{'start_time': '10:00', 'end_time': '11:30', 'duration': 90}]

    def test_window_one_minute_short(self):
        assert generate_slots({'is_open': True, 'start': '10:00', 'end': '11:29'}, 90) == []

    def test_close_on_slot_boundary_includes_last_slot(self):
        slots = generate_slots({'is_open': True, 'start': '08:00', 'end': '11:00'}, 60)
        assert [s['start_time'] for s in slots] == ['08:00', '09:00', '10:00']

    def test_slots_never_cross_midnight(self):
        slots = generate_slots({'is_open': True, 'start': '20:00', 'end': '23:59'}, 90)
        assert [s['end_time'] for s in slots] == ['21:30', '23:00']

    def test_today_lead_buffer(self):
        """A slot starting in 29 minutes is hidden, one starting in 31 minutes is shown"""
        day = {'is_open': True, 'start': '08:00', 'end': '22:00'}

        now = datetime(2030, 6, 3, 9, 31)  # 10:00 starts in 29 minutes
        starts = [s['start_time'] for s in generate_slots(day, 30, now, is_today=True)]
        assert '10:00' not in starts
        assert starts[0] == '10:30'

        now = datetime(2030, 6, 3, 9, 29)  # 10:00 starts in 31 minutes
        starts = [s['start_time'] for s in generate_slots(day, 30, now, is_today=True)]
        assert starts[0] == '10:00'

    def test_lead_buffer_counts_seconds(self):
        day = {'is_open': True, 'start': '08:00', 'end': '12:00'}
        now = datetime(2030, 6, 3, 9, 30, 1)
        starts = [s['start_time'] for s in generate_slots(day, 30, now, is_today=True)]
        assert starts[0] == '10:30'

    def test_future_date_has_no_lead_buffer(self):
        now = datetime(2030, 6, 3, 21, 0)
        slots = generate_slots(OPEN_DAY, 90, now, is_today=False)
        assert slots[0]['start_time'] == '08:00'

    def test_today_after_closing_has_no_slots(self):
        now = datetime(2030, 6, 3, 21, 45)
        assert generate_slots(OPEN_DAY, 90, now, is_today=True) == []
