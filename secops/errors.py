"""
Error taxonomy shared by the OTP and IP access services.

Every error carries the HTTP status it maps to and whether a retry may succeed.
"""


class SecOpsError(Exception):
    status_code = 500
    retryable = False

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(SecOpsError):
    status_code = 400


class Unauthorized(SecOpsError):
    status_code = 403


class NotFoundError(SecOpsError):
    status_code = 404


class ConflictError(SecOpsError):
    status_code = 409


class DeliveryFailed(SecOpsError):
    status_code = 502
    retryable = True


class PersistenceError(SecOpsError):
    status_code = 503
    retryable = True


class EvaluationError(SecOpsError):
    """The access decision could not be computed because the rule store failed."""
    status_code = 503
    retryable = True
