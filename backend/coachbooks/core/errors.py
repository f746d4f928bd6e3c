"""Errors raised by the ledger services.

Each error carries a short machine ``code`` (rendered as the HTTP ``detail``)
and a human-readable message naming the invariant that failed.
"""


class LedgerError(Exception):
    status_code = 400
    code = "ledger_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class LedgerValidationError(LedgerError):
    """Precondition or business-rule violation. Never retried."""

    status_code = 400
    code = "validation_failed"


class LedgerNotFoundError(LedgerError):
    status_code = 404
    code = "not_found"


class ReferenceNumberConflict(LedgerError):
    """A reference number could not be allocated or collided on insert.

    The unit of work has been rolled back; the caller may retry.
    """

    status_code = 409
    code = "reference_number_conflict"
