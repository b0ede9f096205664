from .calendar_config import CalendarConfig
from .reservation import Reservation, CourtDayLock

__all__ = ['CalendarConfig', 'Reservation', 'CourtDayLock']
