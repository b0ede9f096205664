import re
from datetime import date, datetime
from typing import Optional, Tuple

TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')

MINUTES_PER_DAY = 24 * 60

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')


def validate_time_format(value: str) -> Tuple[bool, Optional[str]]:
    """Validate a wall-clock time in HH:MM format"""
    if not value or not isinstance(value, str):
        return False, "Time is required"
    if not TIME_PATTERN.match(value):
        return False, f"Invalid time '{value}'. Use HH:MM"
    return True, None


def time_to_minutes(value: str) -> int:
    """Convert HH:MM to minutes after midnight"""
    hours, minutes = value.split(':')
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes after midnight to zero-padded HH:MM"""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date(value) -> Optional[date]:
    """Parse YYYY-MM-DD (or an ISO datetime) into a date, None if malformed"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def validate_day_hours(day_hours: dict) -> Tuple[bool, Optional[str]]:
    """Validate a single weekday entry {is_open, start, end}"""
    if not isinstance(day_hours, dict):
        return False, "Working hours entry must be an object"
    if not isinstance(day_hours.get('is_open'), bool):
        return False, "is_open must be true or false"
    if not day_hours['is_open']:
        return True, None

    for field in ('start', 'end'):
        valid, error = validate_time_format(day_hours.get(field))
        if not valid:
            return False, f"{field}: {error}"

    if time_to_minutes(day_hours['start']) >= time_to_minutes(day_hours['end']):
        return False, "Opening time must be before closing time"
    return True, None


def validate_match_duration(duration) -> Tuple[bool, Optional[str]]:
    """Validate a match duration in minutes"""
    if isinstance(duration, bool) or not isinstance(duration, int):
        return False, "Match duration must be a whole number of minutes"
    if duration < 1 or duration > MINUTES_PER_DAY:
        return False, "Match duration must be between 1 minute and 24 hours"
    return True, None
