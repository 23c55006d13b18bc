# fees/utils.py

"""
Fee Ledger Utility Functions

Contains:
- Reference number generation (invoices, receipts)
"""

import re
from django.db import IntegrityError, transaction
from django.db.models import F
import logging

logger = logging.getLogger(__name__)

RECEIPT_PATTERN = re.compile(r"^REC-(\d{4})-(\d+)$")


# =============================================================================
# REFERENCE NUMBER GENERATION
# =============================================================================

def build_invoice_number(school_id, student_id, term, year):
    """
    Deterministic invoice number.
    Format: INV-{year}-T{term}-{school_id}-{student_id:05d}

    The same (school, student, term, year) always yields the same number.
    """
    return f"INV-{year}-T{term}-{school_id}-{int(student_id):05d}"


def format_receipt_number(year, sequence):
    return f"REC-{year}-{sequence:04d}"


def _highest_legacy_receipt(school_id, year):
    """Highest sequence already used by REC-{year}- receipts of this school."""
    from fees.models import FeePayment

    prefix = f"REC-{year}-"
    numbers = FeePayment.objects.for_school(school_id).filter(
        receipt_number__startswith=prefix
    ).values_list('receipt_number', flat=True)

    highest = 0
    for receipt_number in numbers:
        try:
            highest = max(highest, int(receipt_number.split('-')[-1]))
        except ValueError:
            continue
    return highest


def _lock_sequence(school_id, year):
    """
    Return the (school, year) counter row locked for the caller's transaction.

    The first use for a (school, year) seeds the counter from any receipts
    written before the counter existed.
    """
    from fees.models import ReceiptSequence

    sequences = ReceiptSequence.objects.for_school(school_id).select_for_update()
    sequence = sequences.filter(year=year).first()
    if sequence is not None:
        return sequence

    seed = _highest_legacy_receipt(school_id, year)
    try:
        with transaction.atomic():
            return ReceiptSequence.objects.create(
                school_id=school_id, year=year, last_number=seed
            )
    except IntegrityError:
        # Another transaction created the counter first
        return sequences.get(year=year)


def generate_receipt_number(school_id, year):
    """
    Allocate the next receipt number for a school and year.
    Format: REC-{year}-NNNN

    The counter row is locked for the rest of the caller's transaction, so
    concurrent payments for the same school/year queue behind each other.

    Returns:
        str: Receipt number
    """
    from fees.models import ReceiptSequence

    with transaction.atomic():
        sequence = _lock_sequence(school_id, year)
        ReceiptSequence.objects.filter(pk=sequence.pk).update(last_number=F('last_number') + 1)
        sequence.refresh_from_db(fields=['last_number'])

    receipt_number = format_receipt_number(year, sequence.last_number)
    logger.debug(f"Allocated receipt {receipt_number} for school {school_id}")
    return receipt_number


def reserve_receipt_number(school_id, receipt_number):
    """
    Account for a manually issued receipt number.

    A number in the REC-{year}-NNNN format moves that year's counter past it,
    so later allocations never reissue it. Other formats are left alone.
    Must run inside the transaction that writes the payment.
    """
    from fees.models import ReceiptSequence

    match = RECEIPT_PATTERN.match(receipt_number)
    if match is None:
        return

    year, number = int(match.group(1)), int(match.group(2))
    sequence = _lock_sequence(school_id, year)
    if number > sequence.last_number:
        ReceiptSequence.objects.filter(pk=sequence.pk).update(last_number=number)
        logger.info(f"Receipt counter {year} for school {school_id} moved to {number} by {receipt_number}")
