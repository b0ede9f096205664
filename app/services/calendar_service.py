from copy import deepcopy
from typing import Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from app.database import DatabaseManager, get_db
from app.models import CalendarConfig
from app.services.errors import InvalidConfigError, NotFoundError
from app.utils.validators import (
    WEEKDAYS, parse_date, time_to_minutes, validate_day_hours, validate_match_duration
)
from config.config import Config
from app.utils.logger import get_logger

logger = get_logger(__name__)

PATCHABLE_FIELDS = {
    'working_hours', 'match_duration', 'pricing', 'advance_booking_days',
    'blocked_dates', 'cancellation_policy', 'auto_confirm_bookings',
    'court_details', 'company_details'
}


class CalendarService:
    """Store for per-court scheduling configuration"""

    def __init__(self):
        self.config_db = DatabaseManager(CalendarConfig)

    def get_config(self, court_id: str) -> Dict:
        """Get a court's calendar, NotFoundError if it was never configured"""
        return self.format_config(self.load(court_id))

    def load(self, court_id: str) -> CalendarConfig:
        config = self.config_db.get_by(court_id=court_id)
        if not config:
            raise NotFoundError(f"Court {court_id} has no schedule configured", rule='calendar_not_found')
        return config

    def get_or_create_default(self, court_id: str, court_meta: Optional[Dict] = None) -> Dict:
        """Get a court's calendar, creating it with defaults on first access"""
        return self.format_config(self.load_or_create(court_id, court_meta))

    def load_or_create(self, court_id: str, court_meta: Optional[Dict] = None) -> CalendarConfig:
        config = self.config_db.get_by(court_id=court_id)
        if config:
            return config

        values = self._default_values(court_id, court_meta or {})
        try:
            config = self.config_db.create(**values)
        except IntegrityError:
            # Lost the race to another first booking for this court
            config = self.config_db.get_by(court_id=court_id)
            if not config:
                raise
            return config

        logger.info(f"Created default calendar for court {court_id}")
        return config

    def update_config(self, court_id: str, patch: Dict) -> Dict:
        """Validate and apply a partial update; nothing is stored if any field is invalid"""
        if not isinstance(patch, dict) or not patch:
            raise InvalidConfigError("Update must be a non-empty object")

        unknown = set(patch) - PATCHABLE_FIELDS
        if unknown:
            raise InvalidConfigError(f"Unknown fields: {', '.join(sorted(unknown))}")

        with get_db() as db:
            config = db.query(CalendarConfig).filter(CalendarConfig.court_id == court_id).first()
            if not config:
                raise NotFoundError(f"Court {court_id} has no schedule configured", rule='calendar_not_found')

            values = self._merge_patch(config, patch)
            self._validate(values)

            for key, value in values.items():
                setattr(config, key, value)
            db.flush()

            logger.info(f"Calendar updated for court {court_id}: {', '.join(sorted(patch))}")
            return self.format_config(config)

    def add_blocked_date(self, court_id: str, day, reason: str, is_recurring: bool = False) -> Dict:
        """Block a whole date (optionally every year on the same day)"""
        blocked_day = parse_date(day)
        if not blocked_day:
            raise InvalidConfigError("Invalid blocked date. Use YYYY-MM-DD")

        config = self.load(court_id)
        blocked = [entry for entry in config.blocked_dates or [] if entry['date'] != blocked_day.isoformat()]
        blocked.append({'date': blocked_day.isoformat(), 'reason': reason, 'is_recurring': bool(is_recurring)})
        return self.update_config(court_id, {'blocked_dates': blocked})

    def remove_blocked_date(self, court_id: str, day) -> Dict:
        blocked_day = parse_date(day)
        if not blocked_day:
            raise InvalidConfigError("Invalid blocked date. Use YYYY-MM-DD")

        config = self.load(court_id)
        remaining = [entry for entry in config.blocked_dates or [] if entry['date'] != blocked_day.isoformat()]
        if len(remaining) == len(config.blocked_dates or []):
            raise NotFoundError(f"{blocked_day.isoformat()} is not blocked", rule='blocked_date_not_found')
        return self.update_config(court_id, {'blocked_dates': remaining})

    def _default_values(self, court_id: str, court_meta: Dict) -> Dict:
        """Defaults for a court seen for the first time"""
        company_id = court_meta.get('company_id')
        if not company_id:
            raise InvalidConfigError("company_id is required to create a court calendar",
                                     rule='missing_company')

        day = {'is_open': True, 'start': Config.DEFAULT_OPEN_TIME, 'end': Config.DEFAULT_CLOSE_TIME}

        match_duration = court_meta.get('match_duration') or court_meta.get('match_time')
        valid, _ = validate_match_duration(match_duration)
        if not valid or time_to_minutes(day['start']) + match_duration > time_to_minutes(day['end']):
            match_duration = Config.DEFAULT_MATCH_DURATION

        price_per_hour = court_meta.get('price_per_hour')
        if isinstance(price_per_hour, bool) or not isinstance(price_per_hour, (int, float)) or price_per_hour < 0:
            price_per_hour = Config.DEFAULT_PRICE_PER_HOUR

        return {
            'court_id': court_id,
            'company_id': str(company_id),
            'working_hours': [dict(day) for _ in WEEKDAYS],
            'match_duration': match_duration,
            'base_price_per_hour': price_per_hour,
            'advance_booking_price': None,
            'advance_threshold_days': Config.DEFAULT_ADVANCE_THRESHOLD_DAYS,
            'advance_booking_days': Config.DEFAULT_ADVANCE_BOOKING_DAYS,
            'blocked_dates': [],
            'allow_cancellation': True,
            'cancellation_deadline_hours': Config.DEFAULT_CANCELLATION_DEADLINE_HOURS,
            'auto_confirm_bookings': Config.DEFAULT_AUTO_CONFIRM,
            'court_details': {
                'name': court_meta.get('name'),
                'type': court_meta.get('type'),
                'address': court_meta.get('address'),
                'city': court_meta.get('city'),
            },
            'company_details': {
                'company_name': court_meta.get('company_name'),
                'manager_name': court_meta.get('manager_name'),
                'manager_email': court_meta.get('manager_email'),
                'manager_phone': court_meta.get('manager_phone'),
            },
        }

    def _merge_patch(self, config: CalendarConfig, patch: Dict) -> Dict:
        """Flatten an API-shaped patch onto the current column values"""
        values = {
            'working_hours': deepcopy(list(config.working_hours)),
            'match_duration': config.match_duration,
            'base_price_per_hour': config.base_price_per_hour,
            'advance_booking_price': config.advance_booking_price,
            'advance_threshold_days': config.advance_threshold_days,
            'advance_booking_days': config.advance_booking_days,
            'blocked_dates': deepcopy(list(config.blocked_dates or [])),
            'allow_cancellation': config.allow_cancellation,
            'cancellation_deadline_hours': config.cancellation_deadline_hours,
            'auto_confirm_bookings': config.auto_confirm_bookings,
        }

        if 'working_hours' in patch:
            hours = patch['working_hours']
            if not isinstance(hours, dict):
                raise InvalidConfigError("working_hours must map weekday names to hours")
            for name, day_hours in hours.items():
                if name not in WEEKDAYS:
                    raise InvalidConfigError(f"Unknown weekday '{name}'")
                if not isinstance(day_hours, dict):
                    raise InvalidConfigError(f"{name}: working hours entry must be an object")
                merged = dict(values['working_hours'][WEEKDAYS.index(name)])
                merged.update(day_hours)
                values['working_hours'][WEEKDAYS.index(name)] = merged

        if 'match_duration' in patch:
            values['match_duration'] = patch['match_duration']

        pricing = patch.get('pricing')
        if pricing is not None:
            if not isinstance(pricing, dict):
                raise InvalidConfigError("pricing must be an object")
            for key in ('base_price_per_hour', 'advance_booking_price', 'advance_threshold_days'):
                if key in pricing:
                    values[key] = pricing[key]

        if 'advance_booking_days' in patch:
            values['advance_booking_days'] = patch['advance_booking_days']

        if 'blocked_dates' in patch:
            values['blocked_dates'] = self._normalize_blocked_dates(patch['blocked_dates'])

        policy = patch.get('cancellation_policy')
        if policy is not None:
            if not isinstance(policy, dict):
                raise InvalidConfigError("cancellation_policy must be an object")
            if 'allow_cancellation' in policy:
                values['allow_cancellation'] = policy['allow_cancellation']
            if 'deadline_hours' in policy:
                values['cancellation_deadline_hours'] = policy['deadline_hours']

        if 'auto_confirm_bookings' in patch:
            values['auto_confirm_bookings'] = patch['auto_confirm_bookings']

        for key in ('court_details', 'company_details'):
            if key in patch:
                values[key] = patch[key]

        return values

    def _normalize_blocked_dates(self, entries) -> List[Dict]:
        if not isinstance(entries, list):
            raise InvalidConfigError("blocked_dates must be a list")

        normalized = []
        for entry in entries:
            if not isinstance(entry, dict):
                raise InvalidConfigError("Each blocked date must be an object")
            blocked_day = parse_date(entry.get('date'))
            if not blocked_day:
                raise InvalidConfigError(f"Invalid blocked date '{entry.get('date')}'. Use YYYY-MM-DD")
            reason = entry.get('reason') or ''
            if not isinstance(reason, str) or len(reason) > 200:
                raise InvalidConfigError("Blocked date reason must be text of at most 200 characters")
            normalized.append({
                'date': blocked_day.isoformat(),
                'reason': reason,
                'is_recurring': bool(entry.get('is_recurring', False))
            })
        return normalized

    def _validate(self, values: Dict):
        valid, error = validate_match_duration(values['match_duration'])
        if not valid:
            raise InvalidConfigError(error, rule='invalid_match_duration')

        for index, day_hours in enumerate(values['working_hours']):
            name = WEEKDAYS[index]
            valid, error = validate_day_hours(day_hours)
            if not valid:
                raise InvalidConfigError(f"{name}: {error}", rule='invalid_working_hours')
            if day_hours['is_open']:
                span = time_to_minutes(day_hours['end']) - time_to_minutes(day_hours['start'])
                if span < values['match_duration']:
                    raise InvalidConfigError(
                        f"{name}: {day_hours['start']}-{day_hours['end']} is shorter than one "
                        f"{values['match_duration']}-minute match",
                        rule='invalid_working_hours'
                    )

        for key in ('base_price_per_hour', 'advance_booking_price'):
            price = values[key]
            if price is None and key == 'advance_booking_price':
                continue
            if isinstance(price, bool) or not isinstance(price, (int, float)) or price < 0:
                raise InvalidConfigError(f"{key} must be a non-negative number", rule='invalid_pricing')

        for key in ('advance_threshold_days', 'advance_booking_days', 'cancellation_deadline_hours'):
            number = values[key]
            if isinstance(number, bool) or not isinstance(number, int) or number < 0:
                raise InvalidConfigError(f"{key} must be a non-negative whole number")

        for key in ('allow_cancellation', 'auto_confirm_bookings'):
            if not isinstance(values[key], bool):
                raise InvalidConfigError(f"{key} must be true or false")

    def format_config(self, config: CalendarConfig) -> Dict:
        """Format calendar config for API response"""
        return {
            'id': config.id,
            'court_id': config.court_id,
            'company_id': config.company_id,
            'working_hours': config.working_hours_by_name(),
            'match_duration': config.match_duration,
            'pricing': {
                'base_price_per_hour': config.base_price_per_hour,
                'advance_booking_price': config.advance_booking_price,
                'advance_threshold_days': config.advance_threshold_days
            },
            'advance_booking_days': config.advance_booking_days,
            'blocked_dates': list(config.blocked_dates or []),
            'cancellation_policy': {
                'allow_cancellation': config.allow_cancellation,
                'deadline_hours': config.cancellation_deadline_hours
            },
            'auto_confirm_bookings': config.auto_confirm_bookings,
            'court_details': config.court_details,
            'company_details': config.company_details,
            'updated_at': config.updated_at.isoformat() if config.updated_at else None
        }
