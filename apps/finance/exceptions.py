# apps/finance/exceptions.py

"""
Error taxonomy of the fees ledger.

Services raise these directly; the API layer renders them as
``{"code", "message", "details"}`` with the matching HTTP status.
"""


class FeesError(Exception):
    code = "internal"
    status_code = 500

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_dict(self):
        return {"code": self.code, "message": self.message, "details": self.details}


class InvalidArgument(FeesError):
    """Malformed input or a business rule violation (over-payment, missing txn ref)."""
    code = "invalid_argument"
    status_code = 400


class NotFound(FeesError):
    code = "not_found"
    status_code = 404


class AlreadyExists(FeesError):
    """Idempotency key or transaction reference collision."""
    code = "already_exists"
    status_code = 409


class FailedPrecondition(FeesError):
    """Operation not allowed in the entity's current state, e.g. paying a void invoice."""
    code = "failed_precondition"
    status_code = 400
