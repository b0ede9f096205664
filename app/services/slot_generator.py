"""Candidate slot generation for one court on one date."""

from datetime import datetime
from typing import Dict, List, Optional
from app.utils.validators import time_to_minutes, minutes_to_time, MINUTES_PER_DAY
from config.config import Config


def generate_slots(day_hours: Dict, match_duration: int, reference_now: Optional[datetime] = None,
                   is_today: bool = False, lead_minutes: int = None) -> List[Dict]:
    """Generate back-to-back slots of match_duration inside the day's working hours.

    Slots start at the opening time and advance by match_duration; a slot is
    kept only if it ends at or before the closing time. On the current day,
    slots starting before reference_now + lead_minutes are dropped.
    Returns dicts with start_time, end_time and duration, ordered by start.
    """
    if not day_hours or not day_hours.get('is_open'):
        return []
    if match_duration <= 0:
        return []

    if lead_minutes is None:
        lead_minutes = Config.BOOKING_LEAD_MINUTES

    open_minute = time_to_minutes(day_hours['start'])
    close_minute = min(time_to_minutes(day_hours['end']), MINUTES_PER_DAY)

    # seconds after midnight; a slot must not start before this
    earliest_start = 0
    if is_today:
        now = reference_now or datetime.now()
        earliest_start = now.hour * 3600 + now.minute * 60 + now.second + lead_minutes * 60

    slots = []
    start = open_minute
    while start + match_duration <= close_minute:
        if start * 60 >= earliest_start:
            slots.append({
                'start_time': minutes_to_time(start),
                'end_time': minutes_to_time(start + match_duration),
                'duration': match_duration
            })
        start += match_duration

    return slots
