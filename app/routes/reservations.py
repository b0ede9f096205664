from flask import Blueprint, request, jsonify
from app.middleware.auth import require_auth, require_operator
from app.services.errors import SchedulingError
from app.services.reservation_service import ReservationService
from app.utils.security import can_manage_company, is_operator
from app.utils.logger import get_logger

bp = Blueprint('reservations', __name__)
logger = get_logger(__name__)
reservation_service = ReservationService()


@bp.route('/', methods=['POST'])
@require_auth
def create_reservation(current_user):
    """Reserve a slot for the caller or the caller's team"""
    try:
        data = request.get_json(silent=True) or {}

        required_fields = ['court_id', 'date', 'start_time']
        for field in required_fields:
            if not data.get(field):
                return jsonify({'error': f'{field} is required', 'rule': 'missing_field'}), 400

        # end_time and duration are set by the court, never by the caller
        if 'end_time' in data or 'duration' in data:
            return jsonify({
                'error': 'end_time and duration are fixed by the court and cannot be supplied',
                'rule': 'duration_not_adjustable'
            }), 400

        booking_type = data.get('booking_type', 'individual')
        if booking_type == 'team':
            if not data.get('team_id'):
                return jsonify({'error': 'team_id is required for team bookings', 'rule': 'missing_field'}), 400
            subject_id = data['team_id']
            subject_details = dict(data.get('team') or {})
            subject_details.setdefault('captain_name', current_user.get('name'))
            subject_details.setdefault('email', current_user.get('email'))
        else:
            subject_id = current_user['user_id']
            subject_details = {
                'name': current_user.get('name'),
                'email': current_user.get('email'),
                'phone': current_user.get('phone')
            }

        reservation = reservation_service.create_reservation(
            court_id=str(data['court_id']),
            subject_id=str(subject_id),
            day=data['date'],
            start_time=data['start_time'],
            notes=data.get('notes'),
            booking_type=booking_type,
            team_size=data.get('team_size', 1),
            booked_by=str(current_user['user_id']),
            subject_details=subject_details
        )

        return jsonify({
            'message': 'Reservation created successfully',
            'reservation': reservation
        }), 201

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error creating reservation: {str(e)}")
        return jsonify({'error': 'Failed to create reservation'}), 500


@bp.route('/', methods=['GET'])
@require_auth
def get_my_reservations(current_user):
    """Reservations for the caller, or for a team via subject_id"""
    try:
        user_id = str(current_user['user_id'])
        subject_id = request.args.get('subject_id') or user_id

        scope = {}
        if subject_id != user_id:
            if is_operator(current_user):
                if current_user.get('role') != 'admin':
                    if not current_user.get('company_id'):
                        return jsonify({'error': 'Unauthorized to view these reservations'}), 403
                    scope['company_id'] = current_user['company_id']
            else:
                # Players only see another subject's reservations they booked themselves
                scope['booked_by'] = user_id

        result = reservation_service.list_subject_reservations(
            subject_id,
            status=request.args.get('status'),
            day=request.args.get('date'),
            page=request.args.get('page', 1, type=int),
            limit=request.args.get('limit', type=int),
            **scope
        )
        return jsonify(result), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error getting reservations: {str(e)}")
        return jsonify({'error': 'Failed to get reservations'}), 500


@bp.route('/court/<court_id>', methods=['GET'])
@require_auth
@require_operator
def get_court_reservations(court_id, current_user):
    """All reservations on a court (company managers)"""
    try:
        calendar = reservation_service.calendar_service.get_config(court_id)
        if not can_manage_company(current_user, calendar['company_id']):
            return jsonify({'error': 'Unauthorized to view this court'}), 403

        result = reservation_service.list_court_reservations(
            court_id,
            status=request.args.get('status'),
            day=request.args.get('date'),
            page=request.args.get('page', 1, type=int),
            limit=request.args.get('limit', type=int)
        )
        return jsonify(result), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error getting court reservations: {str(e)}")
        return jsonify({'error': 'Failed to get court reservations'}), 500


@bp.route('/<int:reservation_id>', methods=['GET'])
@require_auth
def get_reservation(reservation_id, current_user):
    try:
        reservation = reservation_service.get_reservation(reservation_id)
        if not _can_access(current_user, reservation):
            return jsonify({'error': 'Reservation not found', 'rule': 'not_found'}), 404

        return jsonify(reservation), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error getting reservation: {str(e)}")
        return jsonify({'error': 'Failed to get reservation'}), 500


@bp.route('/<int:reservation_id>/cancel', methods=['POST'])
@require_auth
def cancel_reservation(reservation_id, current_user):
    """Cancel a reservation within the court's cancellation policy"""
    try:
        data = request.get_json(silent=True) or {}

        reservation = reservation_service.get_reservation(reservation_id)
        if not _can_access(current_user, reservation):
            return jsonify({'error': 'Reservation not found', 'rule': 'not_found'}), 404

        reservation = reservation_service.cancel_reservation(
            reservation_id, data.get('reason'), requested_by=str(current_user['user_id'])
        )
        return jsonify({
            'message': 'Reservation cancelled successfully',
            'reservation': reservation
        }), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error cancelling reservation: {str(e)}")
        return jsonify({'error': 'Failed to cancel reservation'}), 500


@bp.route('/<int:reservation_id>/status', methods=['PUT'])
@require_auth
@require_operator
def update_reservation_status(reservation_id, current_user):
    """Confirm, complete or cancel a reservation (company managers)"""
    try:
        data = request.get_json(silent=True) or {}
        if not data.get('status'):
            return jsonify({'error': 'status is required', 'rule': 'missing_field'}), 400

        reservation = reservation_service.get_reservation(reservation_id)
        if not can_manage_company(current_user, reservation['company_id']):
            return jsonify({'error': 'Unauthorized to manage this reservation'}), 403

        reservation = reservation_service.update_status(
            reservation_id, data['status'], data.get('reason') or data.get('cancellation_reason')
        )
        return jsonify({
            'message': 'Reservation status updated successfully',
            'reservation': reservation
        }), 200

    except SchedulingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logger.error(f"Error updating reservation status: {str(e)}")
        return jsonify({'error': 'Failed to update reservation status'}), 500


def _can_access(current_user, reservation) -> bool:
    """Bookers see their own reservations; operators see their company's"""
    user_id = str(current_user['user_id'])
    if reservation['booked_by'] == user_id or reservation['subject_id'] == user_id:
        return True
    return is_operator(current_user) and can_manage_company(current_user, reservation['company_id'])
