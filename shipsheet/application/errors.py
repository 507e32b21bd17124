"""Failures the order store reports to its callers.

Every error carries the HTTP status the API answers with; the message is
shown to the user as-is.
"""

class OrderStoreError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

class ValidationViolation(OrderStoreError):
    status_code = 400

class Unauthenticated(OrderStoreError):
    status_code = 401

class AuthorizationDenied(OrderStoreError):
    status_code = 403

class NotFound(OrderStoreError):
    status_code = 404

class PersistenceFailure(OrderStoreError):
    status_code = 500

_BY_STATUS = {
    400: ValidationViolation,
    401: Unauthenticated,
    403: AuthorizationDenied,
    404: NotFound,
}

def error_for_status(status_code: int, message: str) -> OrderStoreError:
    """Rebuild the matching error from an HTTP status and message."""
    cls = _BY_STATUS.get(status_code, PersistenceFailure)
    return cls(message, status_code=status_code)
