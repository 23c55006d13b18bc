# fees/services.py

"""
Core Fee Ledger Operations

- FeeStructureService: fee catalog CRUD (soft delete)
- InvoiceLedger: the single place invoice paid/balance/status change
- InvoiceService: invoice queries, edits and reminders
- PaymentService: recording, voiding and listing fee payments

For term invoice generation, see fees/invoice_generators.py
For payment plans, see fees/payment_plans.py
"""

from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
import logging

from fees.exceptions import AlreadyVoidedError, NotFoundError, OverpaymentError
from fees.models import FeePayment, FeeStructure, Invoice
from fees.utils import generate_receipt_number, reserve_receipt_number
from finance.utils import record_payment_credit, void_payment_credit
from students.utils import get_school_student
from utils.utils import paginate_queryset
from utils.validators import (
    parse_choice, parse_date, parse_id, parse_non_negative_amount,
    parse_positive_amount, parse_term, parse_year, require_text, to_amount,
)

logger = logging.getLogger(__name__)

RECEIPT_NUMBER_MAX_LENGTH = FeePayment._meta.get_field('receipt_number').max_length


# =============================================================================
# FEE STRUCTURE SERVICE - CATALOG
# =============================================================================

class FeeStructureService:
    """Fee catalog maintenance. Structures are deactivated, never deleted."""

    BOARDING_STATUSES = ('all', 'day', 'boarding')

    @staticmethod
    def list_structures(school_id, year=None, term=None):
        structures = FeeStructure.objects.for_school(school_id).filter(is_active=True)
        if year is not None:
            structures = structures.filter(year=year)
        if term is not None:
            structures = structures.filter(term=term)
        return list(structures.order_by('class_level', 'fee_type', 'id'))

    @staticmethod
    def _clean(data, partial=False):
        """Validate incoming catalog fields. With partial=True only present keys are checked."""
        cleaned = {}

        def present(key):
            return not partial or key in data

        if present('class_level'):
            cleaned['class_level'] = require_text(data.get('class_level'), "Class level")
        if present('fee_type'):
            cleaned['fee_type'] = require_text(data.get('fee_type'), "Fee type")
        if present('amount'):
            cleaned['amount'] = parse_non_negative_amount(data.get('amount'), "Amount")
        if present('year'):
            cleaned['year'] = parse_year(data.get('year'))
        if present('term'):
            cleaned['term'] = parse_term(data.get('term'), required=False)
        if present('boarding_status'):
            cleaned['boarding_status'] = parse_choice(
                data.get('boarding_status'),
                FeeStructureService.BOARDING_STATUSES,
                "Boarding status",
                default='all',
            )
        if 'description' in data:
            cleaned['description'] = (data.get('description') or '').strip()
        return cleaned

    @staticmethod
    def create(school_id, data):
        cleaned = FeeStructureService._clean(data)
        structure = FeeStructure.objects.create(school_id=school_id, **cleaned)
        logger.info(
            f"Created fee structure {structure.pk}: {structure.fee_type} "
            f"{structure.class_level} = {structure.amount}"
        )
        return structure

    @staticmethod
    def get_structure(structure_id, school_id):
        structure = FeeStructure.objects.for_school(school_id).filter(
            pk=structure_id, is_active=True
        ).first()
        if structure is None:
            raise NotFoundError("Fee structure not found")
        return structure

    @staticmethod
    @transaction.atomic
    def update(structure_id, school_id, data):
        structure = FeeStructureService.get_structure(structure_id, school_id)
        cleaned = FeeStructureService._clean(data, partial=True)

        for field, value in cleaned.items():
            setattr(structure, field, value)
        structure.save()

        logger.info(f"Updated fee structure {structure.pk}")
        return structure

    @staticmethod
    def delete(structure_id, school_id):
        structure = FeeStructureService.get_structure(structure_id, school_id)
        structure.is_active = False
        structure.save(update_fields=['is_active'])
        logger.info(f"Deactivated fee structure {structure.pk}")


# =============================================================================
# INVOICE LEDGER - BALANCE UPDATES
# =============================================================================

class InvoiceLedger:
    """
    Applies money to an invoice under a row lock.

    Direct payments, plan installments and voids all go through
    apply_payment so concurrent updates to one invoice serialize.
    """

    @staticmethod
    @transaction.atomic
    def apply_payment(invoice_id, amount):
        """
        Add amount (negative to reverse) to amount_paid and recompute
        balance and status.

        Returns:
            The updated Invoice
        """
        invoice = Invoice.objects.select_for_update().get(pk=invoice_id)

        invoice.amount_paid = invoice.amount_paid + Decimal(amount)
        invoice.recalculate()
        invoice.save(update_fields=['amount_paid', 'balance', 'status'])

        logger.debug(
            f"Applied {amount} to invoice {invoice.invoice_number}: "
            f"paid={invoice.amount_paid} balance={invoice.balance} status={invoice.status}"
        )
        return invoice


# =============================================================================
# INVOICE SERVICE - QUERIES AND REMINDERS
# =============================================================================

class InvoiceService:
    """Invoice lookups, the editable fields, and reminder bookkeeping"""

    REMINDER_CHANNELS = ('sms', 'email', 'whatsapp')

    @staticmethod
    def list_invoices(school_id, filters, limit, offset):
        """
        Args:
            filters (dict): student_id, term, year, status (all optional)

        Returns:
            dict: {"data": [Invoice], "total": int}
        """
        invoices = Invoice.objects.for_school(school_id).select_related('student')

        student_id = parse_id(filters.get('student_id'), "Student", required=False)
        term = parse_term(filters.get('term'), required=False)
        year = parse_year(filters.get('year'), required=False)
        status = filters.get('status')

        if student_id is not None:
            invoices = invoices.filter(student_id=student_id)
        if term is not None:
            invoices = invoices.filter(term=term)
        if year is not None:
            invoices = invoices.filter(year=year)
        if status:
            invoices = invoices.filter(status=parse_choice(status, ('unpaid', 'partial', 'paid'), "Status"))

        data, total = paginate_queryset(invoices.order_by('-created_at', '-id'), limit, offset)
        return {"data": data, "total": total}

    @staticmethod
    def get_invoice(invoice_id, school_id):
        invoice = (
            Invoice.objects.for_school(school_id)
            .select_related('student')
            .prefetch_related('items')
            .filter(pk=invoice_id)
            .first()
        )
        if invoice is None:
            raise NotFoundError("Invoice not found")
        return invoice

    @staticmethod
    @transaction.atomic
    def update_invoice(invoice_id, school_id, data):
        """Only notes and due_date are editable; amounts never change here."""
        invoice = InvoiceService.get_invoice(invoice_id, school_id)

        update_fields = []
        if 'notes' in data:
            invoice.notes = data.get('notes') or ''
            update_fields.append('notes')
        if 'due_date' in data:
            invoice.due_date = parse_date(data.get('due_date'), "Due date", required=False)
            update_fields.append('due_date')

        if update_fields:
            invoice.save(update_fields=update_fields)
            logger.info(f"Updated invoice {invoice.invoice_number}: {', '.join(update_fields)}")
        return invoice

    @staticmethod
    def _clean_channel(channel):
        return parse_choice(channel, InvoiceService.REMINDER_CHANNELS, "Reminder type", default='sms')

    @staticmethod
    @transaction.atomic
    def send_reminder(invoice_id, school_id, channel='sms'):
        """
        Record that a reminder went out. Delivery itself belongs to the
        messaging service.
        """
        channel = InvoiceService._clean_channel(channel)
        invoice = Invoice.objects.for_school(school_id).select_for_update().filter(pk=invoice_id).first()
        if invoice is None:
            raise NotFoundError("Invoice not found")

        invoice.reminder_sent_at = timezone.now()
        invoice.reminder_count += 1
        invoice.last_reminder_type = channel
        invoice.save(update_fields=['reminder_sent_at', 'reminder_count', 'last_reminder_type'])

        logger.info(f"Reminder #{invoice.reminder_count} ({channel}) recorded for {invoice.invoice_number}")
        return invoice

    @staticmethod
    @transaction.atomic
    def bulk_send_reminders(school_id, channel='sms', min_balance=0):
        """
        Record a reminder on every invoice whose balance exceeds min_balance.

        Returns:
            int: Number of invoices reminded
        """
        channel = InvoiceService._clean_channel(channel)
        min_balance = parse_non_negative_amount(min_balance, "Minimum balance")

        invoices = Invoice.objects.for_school(school_id).filter(
            balance__gt=min_balance
        ).select_for_update()

        now = timezone.now()
        count = 0
        for invoice in invoices:
            invoice.reminder_sent_at = now
            invoice.reminder_count += 1
            invoice.last_reminder_type = channel
            invoice.save(update_fields=['reminder_sent_at', 'reminder_count', 'last_reminder_type'])
            count += 1

        logger.info(f"Bulk {channel} reminders recorded for {count} invoices in school {school_id}")
        return count


# =============================================================================
# PAYMENT SERVICE - RECORD, VOID, HISTORY
# =============================================================================

class PaymentService:
    """Direct fee payments against a student's term invoice"""

    @staticmethod
    def record_payment(school_id, user_id, student_id, fee_type, amount_paid, term, year,
                       payment_method=None, notes='', receipt_number=None):
        """
        Record a payment and apply it to the matching term invoice.

        Writes, in one transaction:
        - the FeePayment row (amount_due/balance snapshot the invoice)
        - a credit FinanceTransaction linked to it
        - the invoice update, when an invoice exists for (student, term, year)

        Args:
            receipt_number: Manually issued receipt (optional). Allocated
                from the school's sequence when omitted.

        Returns:
            FeePayment instance

        Raises:
            ValidationError: Bad input, nothing written
            CrossTenantAccessError: Student is not in this school
            OverpaymentError: Amount exceeds a positive invoice balance
        """
        amount = parse_positive_amount(amount_paid, "Amount paid")
        student_id = parse_id(student_id, "Student")
        fee_type = require_text(fee_type, "Fee type")
        term = parse_term(term)
        year = parse_year(year)
        payment_method = (payment_method or '').strip() or settings.BURSARY['DEFAULT_PAYMENT_METHOD']
        receipt_number = (receipt_number or '').strip() or None
        if receipt_number and len(receipt_number) > RECEIPT_NUMBER_MAX_LENGTH:
            raise ValidationError(f"Receipt number cannot exceed {RECEIPT_NUMBER_MAX_LENGTH} characters")

        student = get_school_student(school_id, student_id)

        with transaction.atomic():
            if receipt_number is None:
                receipt_number = generate_receipt_number(school_id, year)
            elif FeePayment.objects.for_school(school_id).filter(receipt_number=receipt_number).exists():
                raise ValidationError(f"Receipt number {receipt_number} is already in use")
            else:
                reserve_receipt_number(school_id, receipt_number)

            invoice = Invoice.objects.for_school(school_id).select_for_update().filter(
                student=student, term=term, year=year
            ).first()
            due_before_payment = invoice.balance if invoice else Decimal('0')

            # Guard only fires while the invoice still has a balance
            if invoice and invoice.balance > 0 and amount > invoice.balance:
                logger.warning(
                    f"Rejected overpayment of {amount} on invoice {invoice.invoice_number} "
                    f"(balance {invoice.balance})"
                )
                raise OverpaymentError(amount, to_amount(invoice.balance))

            balance = max(Decimal('0'), due_before_payment - amount)

            payment = FeePayment.objects.create(
                school_id=school_id,
                student=student,
                invoice=invoice,
                fee_type=fee_type,
                amount_due=due_before_payment,
                amount_paid=amount,
                balance=balance,
                term=term,
                year=year,
                payment_date=timezone.localdate(),
                payment_method=payment_method,
                receipt_number=receipt_number,
                status='paid' if balance <= 0 else 'partial',
                notes=notes or '',
                received_by_id=user_id,
            )

            record_payment_credit(
                payment, f"Payment - {fee_type} (T{term}/{year}) - {receipt_number}"
            )

            if invoice:
                InvoiceLedger.apply_payment(invoice.pk, amount)

        logger.info(
            f"Recorded payment {receipt_number} of {amount} for student {student.pk} "
            f"T{term}/{year} by user {user_id}"
        )
        return payment

    @staticmethod
    def _invoice_for_reversal(payment):
        """
        The invoice a payment was applied to.

        Payments carry the invoice they were applied to. Rows written before
        that link existed fall back to the (student, term, year) invoice,
        but only when they recorded an outstanding amount, since a payment
        without an invoice at the time snapshots amount_due as zero.
        """
        if payment.invoice_id is not None:
            return payment.invoice_id
        if payment.installment_id is not None or payment.amount_due <= 0:
            return None

        return Invoice.objects.for_school(payment.school_id).filter(
            student_id=payment.student_id, term=payment.term, year=payment.year
        ).values_list('pk', flat=True).first()

    @staticmethod
    def void_payment(payment_id, school_id, user_id, reason):
        """
        Reverse a payment across payment, finance ledger and invoice.

        Raises:
            ValidationError: Missing reason
            NotFoundError: Payment not in this school
            AlreadyVoidedError: Payment was voided before
        """
        reason = require_text(reason, "Void reason")

        with transaction.atomic():
            payment = FeePayment.objects.for_school(school_id).select_for_update().filter(
                pk=payment_id
            ).first()
            if payment is None:
                raise NotFoundError("Payment not found")
            if payment.is_voided:
                raise AlreadyVoidedError()

            payment.is_voided = True
            payment.void_reason = reason
            payment.voided_at = timezone.now()
            payment.voided_by_id = user_id
            payment.save(update_fields=['is_voided', 'void_reason', 'voided_at', 'voided_by_id'])

            void_payment_credit(payment)

            invoice_id = PaymentService._invoice_for_reversal(payment)
            if invoice_id is not None:
                InvoiceLedger.apply_payment(invoice_id, -payment.amount_paid)

        logger.warning(
            f"Voided payment {payment.receipt_number} ({payment.amount_paid}) "
            f"by user {user_id}: {reason}"
        )
        return payment

    @staticmethod
    def list_payments(school_id, limit, offset):
        payments = FeePayment.objects.for_school(school_id).select_related('student').order_by(
            '-payment_date', '-id'
        )
        data, total = paginate_queryset(payments, limit, offset)
        return {"data": data, "total": total}

    @staticmethod
    def student_payments(student_id, school_id):
        student = get_school_student(school_id, student_id)
        return list(
            FeePayment.objects.for_school(school_id)
            .filter(student=student)
            .select_related('student')
            .order_by('-payment_date', '-id')
        )
