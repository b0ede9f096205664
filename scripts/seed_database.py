#!/usr/bin/env python3
"""
Script to seed the database with sample court calendars and reservations
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date, timedelta
from app.database import init_db, drop_db
from app.services.calendar_service import CalendarService
from app.services.reservation_service import ReservationService
from app.services.errors import SchedulingError

SAMPLE_COURTS = [
    {
        'court_id': 'court-paddle-1',
        'meta': {
            'name': 'Paddle Court 1', 'type': 'paddle', 'match_duration': 90,
            'price_per_hour': 15, 'company_id': 'company-1', 'company_name': 'Downtown Sports',
            'manager_email': 'manager@downtown-sports.test', 'city': 'Tunis'
        },
        'patch': {
            'pricing': {'advance_booking_price': 200, 'advance_threshold_days': 30},
            'working_hours': {'sunday': {'is_open': False}},
            'blocked_dates': [{'date': f"{date.today().year}-12-25", 'reason': 'Holiday', 'is_recurring': True}]
        }
    },
    {
        'court_id': 'court-football-1',
        'meta': {
            'name': 'Five-a-side Pitch', 'type': 'football', 'match_duration': 60,
            'price_per_hour': 40, 'company_id': 'company-1', 'company_name': 'Downtown Sports',
            'manager_email': 'manager@downtown-sports.test', 'city': 'Tunis'
        },
        'patch': {
            'auto_confirm_bookings': False,
            'cancellation_policy': {'allow_cancellation': True, 'deadline_hours': 12}
        }
    }
]


def seed_calendars(calendar_service):
    for court in SAMPLE_COURTS:
        calendar_service.get_or_create_default(court['court_id'], court['meta'])
        calendar_service.update_config(court['court_id'], court['patch'])
        print(f"Seeded calendar for {court['meta']['name']}")


def seed_reservations(reservation_service):
    tomorrow = date.today() + timedelta(days=1)
    bookings = [
        ('court-paddle-1', 'player-1', '08:00'),
        ('court-paddle-1', 'player-2', '11:00'),
        ('court-football-1', 'team-1', '18:00'),
    ]
    for court_id, subject_id, start_time in bookings:
        try:
            reservation = reservation_service.create_reservation(
                court_id, subject_id, tomorrow, start_time,
                booking_type='team' if subject_id.startswith('team') else 'individual',
                booked_by=subject_id
            )
            print(f"Reserved {court_id} {reservation['start_time']}-{reservation['end_time']} "
                  f"for {subject_id} ({reservation['status']})")
        except SchedulingError as e:
            print(f"Skipped {court_id} {start_time}: {e.message}")


def main():
    reset = '--reset' in sys.argv
    if reset:
        drop_db()
    init_db()

    seed_calendars(CalendarService())
    seed_reservations(ReservationService())
    print("Database seeded")


if __name__ == '__main__':
    main()
