# fees/payment_plans.py

"""
Payment plans: a balance split into dated installments.

Installment payments write the same three records as a direct payment
(FeePayment, credit FinanceTransaction, invoice update) and share the
receipt sequence and InvoiceLedger with fees/services.py.
"""

from datetime import timedelta
from decimal import Decimal
from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone
import logging

from fees.exceptions import CrossTenantAccessError, InstallmentOverpayError, NotFoundError
from fees.models import FeePayment, Invoice, PaymentPlan, PlanInstallment
from fees.services import InvoiceLedger
from fees.utils import generate_receipt_number
from finance.utils import record_payment_credit
from students.utils import get_school_student
from utils.utils import paginate_queryset
from utils.validators import (
    parse_choice, parse_date, parse_id, parse_int, parse_non_negative_amount,
    parse_positive_amount, to_amount,
)

logger = logging.getLogger(__name__)

PLAN_FEE_TYPE = 'Tuition'


def installment_due_date(start_date, number, frequency):
    """Due date of installment `number` (1-based): weekly steps or calendar months."""
    if frequency == 'weekly':
        return start_date + timedelta(days=7 * number)
    return start_date + relativedelta(months=number)


class PaymentPlanService:

    # =========================================================================
    # CREATE
    # =========================================================================

    @staticmethod
    def create_plan(school_id, data):
        """
        Create a plan and its installment schedule.

        Args:
            data (dict):
                student_id, total_amount, installment_count, start_date (required)
                down_payment (default 0), frequency (default monthly),
                invoice_id, plan_name, notes (optional)

        Returns:
            PaymentPlan instance with installments saved
        """
        student_id = parse_id(data.get('student_id'), "Student")
        total_amount = parse_positive_amount(data.get('total_amount'), "Total amount")
        down_payment = parse_non_negative_amount(
            data.get('down_payment') if data.get('down_payment') not in (None, '') else 0,
            "Down payment",
        )
        if down_payment >= total_amount:
            raise ValidationError("Down payment must be less than the total amount")

        installment_count = parse_int(data.get('installment_count'), "Installment count")
        max_installments = settings.BURSARY['MAX_INSTALLMENTS']
        if not 1 <= installment_count <= max_installments:
            raise ValidationError(f"Installment count must be between 1 and {max_installments}")

        frequency = parse_choice(data.get('frequency'), ('weekly', 'monthly'), "Frequency", default='monthly')
        start_date = parse_date(data.get('start_date'), "Start date")
        invoice_id = parse_id(data.get('invoice_id'), "Invoice", required=False)

        student = get_school_student(school_id, student_id)
        plan_name = (data.get('plan_name') or '').strip() or f"Payment Plan - {student.get_full_name()}"

        invoice = None
        if invoice_id is not None:
            invoice = Invoice.objects.for_school(school_id).filter(pk=invoice_id).first()
            if invoice is None:
                raise NotFoundError("Invoice not found")
            if invoice.student_id != student.pk:
                raise ValidationError("Invoice belongs to a different student")

        amount_per_installment = to_amount((total_amount - down_payment) / installment_count)

        with transaction.atomic():
            plan = PaymentPlan.objects.create(
                school_id=school_id,
                student=student,
                invoice=invoice,
                plan_name=plan_name,
                total_amount=total_amount,
                down_payment=down_payment,
                installment_count=installment_count,
                frequency=frequency,
                start_date=start_date,
                status='active',
                notes=data.get('notes') or '',
            )

            for number in range(1, installment_count + 1):
                PlanInstallment.objects.create(
                    plan=plan,
                    installment_number=number,
                    due_date=installment_due_date(start_date, number, frequency),
                    amount=amount_per_installment,
                    status='pending',
                )

        logger.info(
            f"Created payment plan {plan.pk} for student {student.pk}: "
            f"{installment_count} x {amount_per_installment} ({frequency})"
        )
        return plan

    # =========================================================================
    # QUERIES
    # =========================================================================

    @staticmethod
    def list_plans(school_id, limit, offset):
        plans = (
            PaymentPlan.objects.for_school(school_id)
            .select_related('student')
            .prefetch_related('installments')
            .order_by('-created_at', '-id')
        )
        data, total = paginate_queryset(plans, limit, offset)
        return {"data": data, "total": total}

    @staticmethod
    def get_plan(plan_id, school_id):
        plan = (
            PaymentPlan.objects.for_school(school_id)
            .select_related('student')
            .prefetch_related('installments')
            .filter(pk=plan_id)
            .first()
        )
        if plan is None:
            raise NotFoundError("Plan not found")
        return plan

    @staticmethod
    def _lock_plan(plan_id, school_id):
        plan = PaymentPlan.objects.for_school(school_id).select_for_update().filter(pk=plan_id).first()
        if plan is not None:
            return plan

        # Distinguish another school's plan from a missing one
        if PaymentPlan.objects.filter(pk=plan_id).exists():
            raise CrossTenantAccessError("Access denied to payment plan from another school")
        raise NotFoundError("Plan not found")

    # =========================================================================
    # INSTALLMENT PAYMENT
    # =========================================================================

    @staticmethod
    def pay_installment(plan_id, installment_id, amount, school_id, user_id):
        """
        Pay (part of) one installment.

        Returns:
            FeePayment instance written for the installment

        Raises:
            NotFoundError: Plan or installment missing, or installment not in plan
            CrossTenantAccessError: Plan belongs to another school
            InstallmentOverpayError: Amount exceeds what is left on the installment
        """
        amount = parse_positive_amount(amount, "Amount")
        installment_id = parse_id(installment_id, "Installment")

        with transaction.atomic():
            plan = PaymentPlanService._lock_plan(plan_id, school_id)
            if plan.status == 'cancelled':
                raise ValidationError("Payment plan is cancelled")

            installment = plan.installments.select_for_update().filter(pk=installment_id).first()
            if installment is None:
                raise NotFoundError("Installment not found")

            remaining = installment.remaining
            if amount > remaining:
                raise InstallmentOverpayError(amount, to_amount(remaining))

            invoice = plan.invoice
            if invoice is not None:
                term, year = invoice.term, invoice.year
            else:
                term, year = 1, timezone.localdate().year

            receipt_number = generate_receipt_number(school_id, year)

            installment.paid_amount = installment.paid_amount + amount
            installment.paid_at = timezone.now()
            installment.status = 'paid' if installment.paid_amount >= installment.amount else 'partial'
            installment.save(update_fields=['paid_amount', 'paid_at', 'status'])

            balance = max(Decimal('0'), remaining - amount)
            payment = FeePayment.objects.create(
                school_id=plan.school_id,
                student_id=plan.student_id,
                invoice=invoice,
                installment=installment,
                fee_type=PLAN_FEE_TYPE,
                amount_due=installment.amount,
                amount_paid=amount,
                balance=balance,
                term=term,
                year=year,
                payment_date=timezone.localdate(),
                payment_method=settings.BURSARY['DEFAULT_PAYMENT_METHOD'],
                receipt_number=receipt_number,
                status='paid' if balance <= 0 else 'partial',
                notes=f"Installment #{installment.installment_number} - {plan.plan_name}",
                received_by_id=user_id,
            )

            record_payment_credit(
                payment,
                f"Payment Plan: {plan.plan_name} (Inst #{installment.installment_number}) - {receipt_number}",
            )

            if invoice is not None:
                InvoiceLedger.apply_payment(invoice.pk, amount)

            if not plan.installments.exclude(status='paid').exists():
                plan.status = 'completed'
                plan.save(update_fields=['status'])
                logger.info(f"Payment plan {plan.pk} completed")

        logger.info(
            f"Installment #{installment.installment_number} of plan {plan.pk} paid {amount} "
            f"({receipt_number}) by user {user_id}"
        )
        return payment
