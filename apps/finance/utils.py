# finance/utils.py

"""
Finance ledger helpers used by the fee payment flows.

- Writing the credit row for a fee payment
- Finding and voiding the credit row of a fee payment
"""

import re
from django.utils import timezone
import logging

from finance.models import FinanceTransaction

logger = logging.getLogger(__name__)


# =============================================================================
# PAYMENT CREDITS
# =============================================================================

def record_payment_credit(payment, description):
    """
    Write the credit row mirroring a FeePayment.

    Args:
        payment: FeePayment instance (already saved)
        description: Ledger text, expected to embed the receipt number

    Returns:
        FinanceTransaction instance
    """
    return FinanceTransaction.objects.create(
        school_id=payment.school_id,
        student_id=payment.student_id,
        fee_payment=payment,
        transaction_type='credit',
        amount=payment.amount_paid,
        description=description,
        term=payment.term,
        year=payment.year,
        transaction_date=payment.payment_date,
    )


def _mentions_receipt(description, receipt_number):
    # REC-2025-1000 must not match REC-2025-10000
    return re.search(rf"{re.escape(receipt_number)}(?!\d)", description or '') is not None


def find_payment_credit(payment):
    """
    Locate the live credit row written for a payment.

    Rows linked through fee_payment are used directly. Rows written before
    the link existed are matched on student, amount and the receipt number
    in the description.
    """
    transactions = FinanceTransaction.objects.for_school(payment.school_id).filter(
        is_voided=False
    ).select_for_update()

    linked = transactions.filter(fee_payment=payment).order_by('id').first()
    if linked is not None:
        return linked

    candidates = transactions.filter(
        fee_payment__isnull=True,
        student_id=payment.student_id,
        transaction_type='credit',
        amount=payment.amount_paid,
        description__contains=payment.receipt_number,
    ).order_by('id')

    for candidate in candidates:
        if _mentions_receipt(candidate.description, payment.receipt_number):
            return candidate
    return None


def void_payment_credit(payment):
    """Mark the payment's credit row voided. Returns the row, or None if none was found."""
    credit = find_payment_credit(payment)
    if credit is None:
        logger.warning(
            f"No finance transaction found for receipt {payment.receipt_number}; "
            f"payment {payment.pk} voided without a ledger reversal"
        )
        return None

    credit.is_voided = True
    credit.voided_at = timezone.now()
    credit.save(update_fields=['is_voided', 'voided_at'])
    return credit
