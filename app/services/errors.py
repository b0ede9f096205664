"""
Typed failures for the scheduling engine.
Raised by the services and translated to HTTP responses by the routes.
"""


class SchedulingError(Exception):
    """Base exception for all scheduling errors."""
    status_code = 400
    default_rule = 'scheduling_error'

    def __init__(self, message: str, rule: str = None):
        super().__init__(message)
        self.message = message
        self.rule = rule or self.default_rule

    def to_dict(self) -> dict:
        return {'error': self.message, 'rule': self.rule}


class ValidationError(SchedulingError):
    """The request breaks a static booking rule; the caller must change it."""
    status_code = 400
    default_rule = 'invalid_request'


class InvalidConfigError(SchedulingError):
    """A calendar configuration patch is invalid and was not stored."""
    status_code = 400
    default_rule = 'invalid_config'


class ConflictError(SchedulingError):
    """The slot was taken by another reservation before this one committed."""
    status_code = 409
    default_rule = 'slot_taken'


class PolicyViolationError(SchedulingError):
    """The court's cancellation policy forbids the request."""
    status_code = 403
    default_rule = 'cancellation_policy'


class InvalidTransitionError(SchedulingError):
    """The reservation state machine does not allow the requested change."""
    status_code = 409
    default_rule = 'invalid_transition'


class NotFoundError(SchedulingError):
    """Referenced court calendar or reservation does not exist."""
    status_code = 404
    default_rule = 'not_found'
