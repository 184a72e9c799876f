"""
Unified exception hierarchy.

Every business exception inherits BaseAppException and carries:
- type:        error category (validation_error / not_found / forbidden / ...)
- code:        business error code (PRESCRIPTION_NOT_FOUND / INSUFFICIENT_STOCK / ...)
- message:     human readable description
- detail:      optional extra payload (dict / list / None)
- http_status: HTTP status code

Services and workflows only raise; exception_handler catches and formats.
"""


class BaseAppException(Exception):
    """Base class of every business exception."""

    type = 'error'
    code = 'UNKNOWN_ERROR'
    http_status = 500

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class ValidationError(BaseAppException):
    """Malformed or out-of-range input, rejected at the boundary. 400."""

    type = 'validation_error'
    code = 'VALIDATION_ERROR'
    http_status = 400


class PreconditionError(BaseAppException):
    """
    A referenced record exists but is not in a usable state
    (prescription already dispensed, pharmacy inactive, stock too low...). 400.
    """

    type = 'precondition_failed'
    code = 'PRECONDITION_FAILED'
    http_status = 400


class InvalidStateError(BaseAppException):
    """
    Status transition guard failed. 400.

    detail always carries current_status so clients can refresh their view.
    """

    type = 'invalid_state'
    code = 'INVALID_TRANSITION'
    http_status = 400

    def __init__(self, message, current_status, code=None, detail=None):
        self.current_status = current_status
        merged = {'current_status': current_status}
        if detail:
            merged.update(detail)
        super().__init__(message, code=code, detail=merged)


class ForbiddenError(BaseAppException):
    """Actor may not perform this action on this record. 403."""

    type = 'forbidden'
    code = 'FORBIDDEN'
    http_status = 403


class NotFoundError(BaseAppException):
    """Referenced entity does not exist. 404."""

    type = 'not_found'
    code = 'NOT_FOUND'
    http_status = 404


class BlockError(BaseAppException):
    """Business rule conflict (e.g. overlapping booking). 409."""

    type = 'block'
    code = 'BUSINESS_BLOCK'
    http_status = 409
