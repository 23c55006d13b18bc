# fees/exceptions.py

from utils.exceptions import LedgerError, NotFoundError, CrossTenantAccessError  # noqa: F401


class OverpaymentError(LedgerError):
    """Payment amount exceeds the invoice's outstanding balance"""

    status_code = 400
    code = 'OVERPAYMENT'
    PREFIX = 'OVERPAYMENT: '

    def __init__(self, amount, balance):
        self.amount = amount
        self.balance = balance
        super().__init__(f"{self.PREFIX}Amount ({amount}) exceeds invoice balance ({balance})")

    @property
    def public_message(self):
        return self.message[len(self.PREFIX):]


class AlreadyVoidedError(LedgerError):
    status_code = 409
    code = 'ALREADY_VOIDED'

    def default_message(self):
        return "Payment is already voided"


class InstallmentOverpayError(LedgerError):
    status_code = 400
    code = 'INSTALLMENT_OVERPAY'

    def __init__(self, amount, remaining):
        self.amount = amount
        self.remaining = remaining
        super().__init__(f"Amount exceeds remaining balance of {remaining}")


class FeeStructureNotFoundError(LedgerError):
    """Raised when no active fee structure exists for the requested period"""

    code = 'NO_FEE_STRUCTURES'

    def default_message(self):
        return "No fee structures found for this term/year"


class NoActiveStudentsError(LedgerError):
    code = 'NO_ACTIVE_STUDENTS'

    def default_message(self):
        return "No active students found"
