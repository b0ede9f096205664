from functools import wraps
from flask import request, jsonify
from app.utils.security import verify_token, OPERATOR_ROLES
from app.utils.logger import get_logger

logger = get_logger(__name__)


def require_auth(f):
    """Decorator to require a bearer token issued by the account service"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'Authorization header missing'}), 401

        parts = auth_header.split()
        if len(parts) != 2 or parts[0] != 'Bearer':
            return jsonify({'error': 'Invalid authorization header format'}), 401

        payload = verify_token(parts[1])
        if not payload:
            logger.warning(f"Rejected token on {request.path}")
            return jsonify({'error': 'Invalid or expired token'}), 401

        # Add user info to kwargs
        return f(current_user=payload, *args, **kwargs)

    return decorated_function


def require_role(allowed_roles):
    """Decorator to require specific roles"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, current_user=None, **kwargs):
            if not current_user or current_user.get('role') not in allowed_roles:
                return jsonify({'error': 'Insufficient permissions'}), 403
            return f(*args, current_user=current_user, **kwargs)
        return decorated_function
    return decorator


def require_operator(f):
    """Decorator to require a court manager or admin"""
    return require_role(list(OPERATOR_ROLES))(f)
