from datetime import date
from typing import Optional


def calculate_price(config, booking_date: date, duration: int, today: Optional[date] = None) -> float:
    """Price for a reservation of `duration` minutes on `booking_date`.

    Hourly base price scaled by duration; bookings placed at least
    advance_threshold_days ahead pay the flat advance price when the court
    has one configured.
    """
    today = today or date.today()
    hours = duration / 60
    price = (config.base_price_per_hour or 0) * hours

    days_ahead = (booking_date - today).days
    if config.advance_booking_price is not None and days_ahead >= config.advance_threshold_days:
        price = config.advance_booking_price

    return round(price, 2)
