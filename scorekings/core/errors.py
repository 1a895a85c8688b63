"""
Error taxonomy of the ledger service.

Every error carries the HTTP status it maps to and a stable ``code`` that
the API returns next to the human readable message.
"""


class LedgerError(Exception):
    status_code = 500
    code = "InternalError"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    @classmethod
    def default_message(cls) -> str:
        return "Internal server error"


class ValidationError(LedgerError):
    status_code = 400
    code = "ValidationError"


class InvalidPicks(LedgerError):
    status_code = 400
    code = "InvalidPicks"


class AuthError(LedgerError):
    status_code = 401
    code = "AuthError"

    @classmethod
    def default_message(cls) -> str:
        return "Not authenticated"


class PermissionDenied(LedgerError):
    status_code = 403
    code = "PermissionDenied"

    @classmethod
    def default_message(cls) -> str:
        return "Not allowed to act on behalf of another user"


class NotFound(LedgerError):
    status_code = 404
    code = "NotFound"


class InsufficientFunds(LedgerError):
    status_code = 402
    code = "InsufficientFunds"

    @classmethod
    def default_message(cls) -> str:
        return "Insufficient funds"


class AlreadySettled(LedgerError):
    status_code = 409
    code = "AlreadySettled"


class IdempotencyConflict(LedgerError):
    status_code = 409
    code = "IdempotencyConflict"


class Timeout(LedgerError):
    status_code = 504
    code = "Timeout"

    @classmethod
    def default_message(cls) -> str:
        return "Request timed out"


class InternalError(LedgerError):
    pass
