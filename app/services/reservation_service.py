from datetime import datetime, date, timedelta
from math import ceil
from typing import Callable, Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from app.database import DatabaseManager, get_db
from app.models import CalendarConfig, Reservation, CourtDayLock
from app.models.reservation import BLOCKING_STATUSES, BookingType, ReservationStatus
from app.services.availability_resolver import find_conflict, mark_availability
from app.services.calendar_service import CalendarService
from app.services.errors import (
    ConflictError, InvalidTransitionError, NotFoundError, PolicyViolationError, ValidationError
)
from app.services.notification_service import NotificationService
from app.services.pricing_service import calculate_price
from app.services.slot_generator import generate_slots
from app.utils.validators import (
    MINUTES_PER_DAY, WEEKDAYS, minutes_to_time, parse_date, time_to_minutes, validate_time_format
)
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)

MAX_NOTES_LENGTH = 500
MAX_REASON_LENGTH = 200
MAX_TEAM_SIZE = 22


class ReservationService:
    """Reservation lifecycle: availability, creation, cancellation and status changes"""

    def __init__(self, clock: Callable[[], datetime] = None):
        self.calendar_service = CalendarService()
        self.notification_service = NotificationService()
        self.reservation_db = DatabaseManager(Reservation)
        self.lock_db = DatabaseManager(CourtDayLock)
        # Court local wall-clock
        self.clock = clock or datetime.now

    def get_availability(self, court_id: str, day) -> Dict:
        """Candidate slots for a court on a date, each marked available or taken"""
        query_day = parse_date(day)
        if not query_day:
            raise ValidationError("Invalid date. Use YYYY-MM-DD", rule='invalid_date')

        config = self.calendar_service.load(court_id)
        now = self.clock()
        today = now.date()

        day_hours = config.hours_for_date(query_day)
        blocked_reason = config.blocked_reason(query_day)

        bookable = (
            today <= query_day <= today + timedelta(days=config.advance_booking_days)
            and not blocked_reason
            and day_hours['is_open']
        )

        slots = []
        if bookable:
            candidates = generate_slots(day_hours, config.match_duration, now, is_today=query_day == today)
            with get_db() as db:
                existing = self._blocking_reservations(db, court_id, query_day)
            slots = mark_availability(candidates, existing)
            for slot in slots:
                slot['price'] = calculate_price(config, query_day, slot['duration'], today)

        return {
            'court_id': court_id,
            'date': query_day.isoformat(),
            'day_of_week': WEEKDAYS[query_day.weekday()],
            'working_hours': dict(day_hours),
            'match_duration': config.match_duration,
            'is_blocked': blocked_reason is not None,
            'blocked_reason': blocked_reason,
            'slots': slots
        }

    def create_reservation(self, court_id: str, subject_id: str, day, start_time: str,
                           notes: str = None, booking_type: str = 'individual', team_size: int = 1,
                           booked_by: str = None, court_meta: Optional[Dict] = None,
                           subject_details: Optional[Dict] = None) -> Dict:
        """Validate and durably record a reservation for one slot.

        court_meta is the court/company snapshot from the court service. When
        given, a court booked for the first time gets a default calendar from
        it; without it the court must already have a calendar.
        """
        booking_day, kind = self._validate_request(court_id, subject_id, day, start_time,
                                                   notes, booking_type, team_size)
        start_time = minutes_to_time(time_to_minutes(start_time))

        if court_meta:
            config = self.calendar_service.load_or_create(court_id, court_meta)
        else:
            config = self.calendar_service.load(court_id)
        now = self.clock()
        end_time = self._check_booking_rules(config, booking_day, start_time, now)

        duration = config.match_duration
        price = calculate_price(config, booking_day, duration, now.date())
        status = ReservationStatus.CONFIRMED if config.auto_confirm_bookings else ReservationStatus.PENDING

        self._ensure_court_day_row(court_id, booking_day)
        try:
            with get_db() as db:
                # Writers for this court/date queue here; the check below sees every earlier commit
                self._lock_court_day(db, court_id, booking_day)

                existing = self._blocking_reservations(db, court_id, booking_day)
                conflict = find_conflict(start_time, end_time, existing)
                if conflict:
                    raise ConflictError(
                        f"{start_time}-{end_time} is no longer available "
                        f"(overlaps {conflict.start_time}-{conflict.end_time})"
                    )

                reservation = Reservation(
                    court_id=court_id,
                    company_id=config.company_id,
                    subject_id=str(subject_id),
                    booking_type=kind,
                    booked_by=str(booked_by) if booked_by else None,
                    team_size=team_size,
                    date=booking_day,
                    start_time=start_time,
                    end_time=end_time,
                    duration=duration,
                    status=status,
                    price=price,
                    price_per_hour=config.base_price_per_hour,
                    notes=notes,
                    confirmed_at=datetime.utcnow() if status == ReservationStatus.CONFIRMED else None,
                    court_details=config.court_details,
                    company_details=config.company_details,
                    subject_details=subject_details
                )
                db.add(reservation)
                db.flush()
                result = self.format_reservation(reservation)
        except IntegrityError:
            logger.warning(f"Store rejected overlapping reservation for court {court_id} "
                           f"on {booking_day} at {start_time}")
            raise ConflictError(f"{start_time}-{end_time} is no longer available")
        except ConflictError:
            logger.info(f"Booking conflict for court {court_id} on {booking_day} at {start_time}")
            raise

        logger.info(f"Reservation {result['id']} created for court {court_id} on {booking_day} "
                    f"{start_time}-{end_time} ({result['status']})")

        self.notification_service.send_reservation_created(result)
        return result

    def cancel_reservation(self, reservation_id: int, reason: str = None, requested_by: str = None) -> Dict:
        """Cancel on behalf of the booker, subject to the court's cancellation policy"""
        if reason and len(reason) > MAX_REASON_LENGTH:
            raise ValidationError(f"Reason must be at most {MAX_REASON_LENGTH} characters",
                                  rule='reason_too_long')

        now = self.clock()
        with get_db() as db:
            reservation = self._get_for_update(db, reservation_id)

            if not reservation.can_transition_to(ReservationStatus.CANCELLED):
                raise InvalidTransitionError(f"Reservation is already {reservation.status.value}")

            config = db.query(CalendarConfig).filter(CalendarConfig.court_id == reservation.court_id).first()
            self._check_cancellation_policy(config, reservation, now)

            reservation.status = ReservationStatus.CANCELLED
            reservation.cancellation_reason = reason or 'Cancelled by user'
            reservation.cancelled_at = datetime.utcnow()
            db.flush()
            result = self.format_reservation(reservation)

        logger.info(f"Reservation {reservation_id} cancelled by {requested_by or result['booked_by']}: "
                    f"{result['cancellation_reason']}")
        self.notification_service.send_reservation_cancelled(result)
        return result

    def update_status(self, reservation_id: int, new_status: str, reason: str = None) -> Dict:
        """Operator-driven status change along the reservation state machine"""
        try:
            target = ReservationStatus(new_status)
        except ValueError:
            raise ValidationError(f"Invalid status '{new_status}'", rule='invalid_status')

        if reason and len(reason) > MAX_REASON_LENGTH:
            raise ValidationError(f"Reason must be at most {MAX_REASON_LENGTH} characters",
                                  rule='reason_too_long')

        with get_db() as db:
            reservation = self._get_for_update(db, reservation_id)

            if not reservation.can_transition_to(target):
                raise InvalidTransitionError(
                    f"Cannot change reservation from {reservation.status.value} to {target.value}"
                )

            if target == ReservationStatus.CANCELLED:
                if not reason:
                    raise ValidationError("Cancellation reason is required", rule='reason_required')
                reservation.cancellation_reason = reason
                reservation.cancelled_at = datetime.utcnow()
            elif target == ReservationStatus.CONFIRMED:
                reservation.confirmed_at = datetime.utcnow()
            elif target == ReservationStatus.COMPLETED:
                reservation.completed_at = datetime.utcnow()

            previous = reservation.status
            reservation.status = target
            db.flush()
            result = self.format_reservation(reservation)

        logger.info(f"Reservation {reservation_id} moved from {previous.value} to {target.value}")
        self.notification_service.send_status_changed(result)
        return result

    def get_reservation(self, reservation_id: int) -> Dict:
        reservation = self.reservation_db.get(reservation_id)
        if not reservation:
            raise NotFoundError("Reservation not found")
        return self.format_reservation(reservation)

    def list_subject_reservations(self, subject_id: str, status: str = None, day=None,
                                  page: int = 1, limit: int = None, company_id: str = None,
                                  booked_by: str = None) -> Dict:
        """Reservations made for an individual or team, newest first.

        company_id and booked_by narrow the result for callers who may only
        see one company's courts or their own bookings.
        """
        criteria = [Reservation.subject_id == str(subject_id)]
        if company_id:
            criteria.append(Reservation.company_id == str(company_id))
        if booked_by:
            criteria.append(Reservation.booked_by == str(booked_by))
        return self._list_reservations(criteria, status, day, page, limit)

    def list_court_reservations(self, court_id: str, status: str = None, day=None,
                                page: int = 1, limit: int = None) -> Dict:
        """Reservations on a court, for the court's managers"""
        return self._list_reservations([Reservation.court_id == court_id], status, day, page, limit)

    def complete_past_reservations(self, now: datetime = None) -> int:
        """Mark confirmed reservations whose end time has passed as completed"""
        now = now or self.clock()
        completed = 0
        with get_db() as db:
            candidates = db.query(Reservation).filter(
                Reservation.status == ReservationStatus.CONFIRMED,
                Reservation.date <= now.date()
            ).all()

            for reservation in candidates:
                if self._end_datetime(reservation) <= now:
                    reservation.status = ReservationStatus.COMPLETED
                    reservation.completed_at = datetime.utcnow()
                    completed += 1

        if completed:
            logger.info(f"Marked {completed} reservations completed")
        return completed

    def _validate_request(self, court_id, subject_id, day, start_time, notes, booking_type, team_size):
        """Shape checks on the raw request before any rule is evaluated"""
        if not court_id:
            raise ValidationError("court_id is required", rule='missing_field')
        if not subject_id:
            raise ValidationError("subject_id is required", rule='missing_field')

        booking_day = parse_date(day)
        if not booking_day:
            raise ValidationError("Invalid date. Use YYYY-MM-DD", rule='invalid_date')

        valid, error = validate_time_format(start_time)
        if not valid:
            raise ValidationError(error, rule='invalid_time')

        if notes is not None and (not isinstance(notes, str) or len(notes) > MAX_NOTES_LENGTH):
            raise ValidationError(f"Notes must be text of at most {MAX_NOTES_LENGTH} characters",
                                  rule='notes_too_long')

        try:
            kind = BookingType(booking_type)
        except ValueError:
            raise ValidationError(f"Invalid booking type '{booking_type}'", rule='invalid_booking_type')

        if isinstance(team_size, bool) or not isinstance(team_size, int) or not 1 <= team_size <= MAX_TEAM_SIZE:
            raise ValidationError(f"Team size must be between 1 and {MAX_TEAM_SIZE}", rule='invalid_team_size')

        return booking_day, kind

    def _check_booking_rules(self, config: CalendarConfig, booking_day: date, start_time: str,
                             now: datetime) -> str:
        """Apply the booking rules in order and return the derived end time"""
        today = now.date()

        if booking_day < today:
            raise ValidationError("Cannot book for past dates", rule='date_in_past')

        if booking_day > today + timedelta(days=config.advance_booking_days):
            raise ValidationError(
                f"Cannot book more than {config.advance_booking_days} days in advance",
                rule='beyond_advance_window'
            )

        blocked_reason = config.blocked_reason(booking_day)
        if blocked_reason:
            raise ValidationError(f"This date is not available for booking: {blocked_reason}",
                                  rule='date_blocked')

        day_hours = config.hours_for_date(booking_day)
        if not day_hours['is_open']:
            raise ValidationError(f"Court is closed on {WEEKDAYS[booking_day.weekday()]}",
                                  rule='court_closed')

        start_minute = time_to_minutes(start_time)
        end_minute = start_minute + config.match_duration
        if end_minute > MINUTES_PER_DAY:
            raise ValidationError("Reservation would end after midnight", rule='outside_working_hours')

        if start_minute < time_to_minutes(day_hours['start']) or end_minute > time_to_minutes(day_hours['end']):
            raise ValidationError(
                f"Court is only open from {day_hours['start']} to {day_hours['end']} "
                f"and matches last {config.match_duration} minutes",
                rule='outside_working_hours'
            )

        if booking_day == today:
            now_seconds = now.hour * 3600 + now.minute * 60 + now.second
            if start_minute * 60 < now_seconds + Config.BOOKING_LEAD_MINUTES * 60:
                raise ValidationError(
                    f"Bookings must start at least {Config.BOOKING_LEAD_MINUTES} minutes from now",
                    rule='start_too_soon'
                )

        return minutes_to_time(end_minute)

    def _check_cancellation_policy(self, config: Optional[CalendarConfig], reservation: Reservation,
                                   now: datetime):
        allow = config.allow_cancellation if config else True
        deadline_hours = config.cancellation_deadline_hours if config else Config.DEFAULT_CANCELLATION_DEADLINE_HOURS

        if not allow:
            raise PolicyViolationError("Cancellation is not allowed for this court",
                                       rule='cancellation_disabled')

        hours_until = (self._start_datetime(reservation) - now).total_seconds() / 3600
        if hours_until <= deadline_hours:
            raise PolicyViolationError(
                f"Cancellation must be done at least {deadline_hours} hours before the booking",
                rule='cancellation_deadline_passed'
            )

    def _ensure_court_day_row(self, court_id: str, day: date):
        if self.lock_db.exists(court_id=court_id, date=day):
            return
        try:
            self.lock_db.create(court_id=court_id, date=day, version=0)
        except IntegrityError:
            logger.debug(f"Lock row for court {court_id} on {day} created concurrently")

    def _lock_court_day(self, db, court_id: str, day: date):
        """Take the per court/date write lock for the current transaction"""
        updated = db.query(CourtDayLock).filter(
            CourtDayLock.court_id == court_id,
            CourtDayLock.date == day
        ).update({CourtDayLock.version: CourtDayLock.version + 1}, synchronize_session=False)
        if not updated:
            raise RuntimeError(f"Missing lock row for court {court_id} on {day}")

    def _blocking_reservations(self, db, court_id: str, day: date) -> List[Reservation]:
        return db.query(Reservation).filter(
            Reservation.court_id == court_id,
            Reservation.date == day,
            Reservation.status.in_(BLOCKING_STATUSES)
        ).order_by(Reservation.start_time).all()

    def _get_for_update(self, db, reservation_id: int) -> Reservation:
        """Lock the reservation row for the current transaction, then load it.

        The write comes first so concurrent status changes queue on it and the
        status read below is the committed one.
        """
        locked = db.query(Reservation).filter(
            Reservation.id == reservation_id
        ).update({Reservation.updated_at: datetime.utcnow()}, synchronize_session=False)
        if not locked:
            raise NotFoundError("Reservation not found")
        return db.query(Reservation).filter(Reservation.id == reservation_id).populate_existing().one()

    def _list_reservations(self, criteria, status, day, page, limit) -> Dict:
        limit = min(limit or Config.DEFAULT_PAGE_SIZE, Config.MAX_PAGE_SIZE)
        page = max(page or 1, 1)

        with get_db() as db:
            query = db.query(Reservation).filter(*criteria)

            if status:
                try:
                    query = query.filter(Reservation.status == ReservationStatus(status))
                except ValueError:
                    raise ValidationError(f"Invalid status '{status}'", rule='invalid_status')

            if day:
                query_day = parse_date(day)
                if not query_day:
                    raise ValidationError("Invalid date. Use YYYY-MM-DD", rule='invalid_date')
                query = query.filter(Reservation.date == query_day)

            total = query.count()
            reservations = query.order_by(
                Reservation.date.desc(), Reservation.start_time.desc()
            ).offset((page - 1) * limit).limit(limit).all()

            return {
                'reservations': [self.format_reservation(r) for r in reservations],
                'total': total,
                'page': page,
                'total_pages': ceil(total / limit) if total else 0
            }

    @staticmethod
    def _start_datetime(reservation: Reservation) -> datetime:
        return datetime.combine(reservation.date, datetime.min.time()) + \
            timedelta(minutes=time_to_minutes(reservation.start_time))

    @staticmethod
    def _end_datetime(reservation: Reservation) -> datetime:
        return datetime.combine(reservation.date, datetime.min.time()) + \
            timedelta(minutes=time_to_minutes(reservation.end_time))

    def format_reservation(self, reservation: Reservation) -> Dict:
        """Format reservation for API response"""
        return {
            'id': reservation.id,
            'court_id': reservation.court_id,
            'company_id': reservation.company_id,
            'subject_id': reservation.subject_id,
            'booking_type': reservation.booking_type.value,
            'booked_by': reservation.booked_by,
            'team_size': reservation.team_size,
            'date': reservation.date.isoformat(),
            'start_time': reservation.start_time,
            'end_time': reservation.end_time,
            'duration': reservation.duration,
            'status': reservation.status.value,
            'price': reservation.price,
            'price_per_hour': reservation.price_per_hour,
            'notes': reservation.notes,
            'cancellation_reason': reservation.cancellation_reason,
            'confirmed_at': reservation.confirmed_at.isoformat() if reservation.confirmed_at else None,
            'cancelled_at': reservation.cancelled_at.isoformat() if reservation.cancelled_at else None,
            'completed_at': reservation.completed_at.isoformat() if reservation.completed_at else None,
            'court_details': reservation.court_details,
            'company_details': reservation.company_details,
            'subject_details': reservation.subject_details,
            'created_at': reservation.created_at.isoformat() if reservation.created_at else None
        }
