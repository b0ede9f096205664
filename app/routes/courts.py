from flask import Blueprint, request, jsonify
from app.middleware.auth import require_auth, require_operator
from app.services.calendar_service import CalendarService
from app.services.errors import SchedulingError
from app.services.reservation_service import ReservationService
from app.utils.security import can_manage_company
from app.utils.logger import get_logger

bp = Blueprint('courts', __name__)
logger = get_logger(__name__)
calendar_service = CalendarService()
reservation_service = ReservationService()


@bp.route('/<court_id>/availability', methods=['GET'])
@require_auth
def get_availability(court_id, current_user):
    """Get bookable slots for a court on a date"""
    try:
        day = request.args.get('date')
        if not day:
            return jsonify({'error': 'date is required', 'rule': 'missing_field'}), 400

        availability = reservation_service.get_availability(court_id, day)
        return jsonify(availability), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error getting availability: {str(e)}")
        return jsonify({'error': 'Failed to get available slots'}), 500


@bp.route('/<court_id>/calendar', methods=['GET'])
@require_auth
def get_calendar(court_id, current_user):
    """Get a court's schedule configuration"""
    try:
        return jsonify(calendar_service.get_config(court_id)), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error getting calendar: {str(e)}")
        return jsonify({'error': 'Failed to get court schedule'}), 500


@bp.route('/<court_id>/calendar', methods=['POST'])
@require_auth
@require_operator
def init_calendar(court_id, current_user):
    """Create the court's schedule with defaults (idempotent)"""
    try:
        court_meta = dict(request.get_json(silent=True) or {})

        # Managers register courts for their own company
        if not court_meta.get('company_id') and current_user.get('company_id'):
            court_meta['company_id'] = current_user['company_id']
        if not court_meta.get('company_id'):
            return jsonify({'error': 'company_id is required', 'rule': 'missing_field'}), 400

        if not can_manage_company(current_user, court_meta['company_id']):
            return jsonify({'error': 'Unauthorized to manage this court'}), 403

        config = calendar_service.get_or_create_default(court_id, court_meta)
        if not can_manage_company(current_user, config['company_id']):
            return jsonify({'error': 'Unauthorized to manage this court'}), 403

        return jsonify(config), 201

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error creating calendar: {str(e)}")
        return jsonify({'error': 'Failed to create court schedule'}), 500


@bp.route('/<court_id>/calendar', methods=['PUT'])
@require_auth
@require_operator
def update_calendar(court_id, current_user):
    """Update working hours, duration, pricing or policies"""
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or not data:
            return jsonify({'error': 'Request body required', 'rule': 'invalid_config'}), 400

        current = calendar_service.get_config(court_id)
        if not can_manage_company(current_user, current['company_id']):
            return jsonify({'error': 'Unauthorized to manage this court'}), 403

        config = calendar_service.update_config(court_id, data)
        return jsonify({'message': 'Court schedule updated successfully', 'calendar': config}), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error updating calendar: {str(e)}")
        return jsonify({'error': 'Failed to update court schedule'}), 500


@bp.route('/<court_id>/calendar/blocked-dates', methods=['POST'])
@require_auth
@require_operator
def add_blocked_date(court_id, current_user):
    """Block a date for the whole day"""
    try:
        data = request.get_json(silent=True) or {}
        if not data.get('date'):
            return jsonify({'error': 'date is required', 'rule': 'missing_field'}), 400

        current = calendar_service.get_config(court_id)
        if not can_manage_company(current_user, current['company_id']):
            return jsonify({'error': 'Unauthorized to manage this court'}), 403

        config = calendar_service.add_blocked_date(
            court_id, data['date'], data.get('reason'), data.get('is_recurring', False)
        )
        return jsonify({'message': 'Date blocked', 'calendar': config}), 201

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error blocking date: {str(e)}")
        return jsonify({'error': 'Failed to block date'}), 500


@bp.route('/<court_id>/calendar/blocked-dates/<day>', methods=['DELETE'])
@require_auth
@require_operator
def remove_blocked_date(court_id, day, current_user):
    try:
        current = calendar_service.get_config(court_id)
        if not can_manage_company(current_user, current['company_id']):
            return jsonify({'error': 'Unauthorized to manage this court'}), 403

        config = calendar_service.remove_blocked_date(court_id, day)
        return jsonify({'message': 'Date unblocked', 'calendar': config}), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error unblocking date: {str(e)}")
        return jsonify({'error': 'Failed to unblock date'}), 500
