from .logger import setup_logger, get_logger
from .security import generate_token, verify_token, is_operator, can_manage_company
from .validators import (
    validate_time_format, time_to_minutes, minutes_to_time, parse_date,
    validate_day_hours, validate_match_duration, WEEKDAYS, MINUTES_PER_DAY
)

__all__ = [
    'setup_logger', 'get_logger',
    'generate_token', 'verify_token', 'is_operator', 'can_manage_company',
    'validate_time_format', 'time_to_minutes', 'minutes_to_time', 'parse_date',
    'validate_day_hours', 'validate_match_duration', 'WEEKDAYS', 'MINUTES_PER_DAY'
]
