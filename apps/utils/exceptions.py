# utils/exceptions.py

"""
Base domain errors shared by every ledger app.

Each error carries the HTTP status the API layer answers with, so views never
need to know which service raised it.
"""


class LedgerError(Exception):
    """Base class for expected, user-facing ledger failures."""

    status_code = 400
    code = 'LEDGER_ERROR'

    def __init__(self, message=None):
        self.message = message or self.default_message()
        super().__init__(self.message)

    def default_message(self):
        return "The request could not be completed"

    @property
    def public_message(self):
        """Message returned to API clients."""
        return self.message


class NotFoundError(LedgerError):
    status_code = 404
    code = 'NOT_FOUND'

    def default_message(self):
        return "Not found"


class CrossTenantAccessError(LedgerError):
    """A referenced record belongs to a different school."""

    status_code = 403
    code = 'CROSS_TENANT_ACCESS'

    def default_message(self):
        return "Record does not belong to the active school"
