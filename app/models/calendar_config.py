from datetime import date
from sqlalchemy import Column, String, Integer, Float, Boolean, JSON
from sqlalchemy.ext.mutable import MutableList
from .base import BaseModel
from app.utils.validators import WEEKDAYS


class CalendarConfig(BaseModel):
    __tablename__ = 'calendar_configs'

    court_id = Column(String(64), nullable=False, unique=True, index=True)
    company_id = Column(String(64), index=True)

    # Seven entries indexed by weekday ordinal (0 = Monday), each {"is_open", "start", "end"}
    working_hours = Column(MutableList.as_mutable(JSON), nullable=False)

    # Fixed by the owner, never chosen at booking time
    match_duration = Column(Integer, nullable=False, default=90)

    # Pricing
    base_price_per_hour = Column(Float, nullable=False, default=0)
    advance_booking_price = Column(Float)  # flat price, not scaled by hours
    advance_threshold_days = Column(Integer, nullable=False, default=30)

    # Booking window
    advance_booking_days = Column(Integer, nullable=False, default=30)

    # [{"date": "2025-12-25", "reason": "Holiday", "is_recurring": true}, ...]
    blocked_dates = Column(MutableList.as_mutable(JSON), nullable=False, default=list)

    # Cancellation policy
    allow_cancellation = Column(Boolean, nullable=False, default=True)
    cancellation_deadline_hours = Column(Integer, nullable=False, default=24)

    auto_confirm_bookings = Column(Boolean, nullable=False, default=True)

    # Display snapshots maintained by the court/company services
    court_details = Column(JSON)
    company_details = Column(JSON)

    def hours_for_weekday(self, weekday: int) -> dict:
        """Working hours for a weekday ordinal (date.weekday())"""
        return self.working_hours[weekday]

    def hours_for_date(self, day: date) -> dict:
        return self.hours_for_weekday(day.weekday())

    def blocked_reason(self, day: date):
        """Return the block reason if the date is blocked, else None"""
        for blocked in self.blocked_dates or []:
            blocked_day = date.fromisoformat(blocked['date'])
            if blocked_day == day:
                return blocked.get('reason') or 'Unavailable'
            if blocked.get('is_recurring') and (blocked_day.month, blocked_day.day) == (day.month, day.day):
                return blocked.get('reason') or 'Unavailable'
        return None

    def working_hours_by_name(self) -> dict:
        return {name: dict(self.working_hours[index]) for index, name in enumerate(WEEKDAYS)}
