# fees/models.py

"""
Student Fee Ledger Models

Billing and collection records for a school:
- Fee structures (catalog), per-student overrides and scholarships
- Term invoices with line items
- Fee payments and the receipt counter
- Payment plans and their installments

Amounts are whole currency units stored in DecimalFields. Audit fields and
timestamps are handled by BaseModel.
"""

from django.db import models
from decimal import Decimal
import logging

from utils.models import BaseModel, SchoolScopedModel
from students.models import Student

logger = logging.getLogger(__name__)


TERM_CHOICES = (
    (1, 'Term 1'),
    (2, 'Term 2'),
    (3, 'Term 3'),
)


# =============================================================================
# FEE CATALOG
# =============================================================================

class FeeStructure(SchoolScopedModel):
    """Default fee amount for a class level, term/year and boarding status"""

    BOARDING_STATUS_CHOICES = (
        ('all', 'All Students'),
        ('day', 'Day Scholars'),
        ('boarding', 'Boarders'),
    )

    class_level = models.CharField("Class Level", max_length=50, db_index=True)
    fee_type = models.CharField("Fee Type", max_length=100)
    description = models.CharField("Description", max_length=255, blank=True)
    amount = models.DecimalField("Amount", max_digits=12, decimal_places=2)

    term = models.PositiveSmallIntegerField(
        "Term",
        choices=TERM_CHOICES,
        null=True,
        blank=True,
        help_text="Leave empty for fees charged every term"
    )
    year = models.PositiveIntegerField("Year", db_index=True)
    boarding_status = models.CharField(
        "Boarding Status",
        max_length=10,
        choices=BOARDING_STATUS_CHOICES,
        default='all'
    )

    # Soft delete only
    is_active = models.BooleanField("Is Active", default=True, db_index=True)

    class Meta:
        verbose_name = "Fee Structure"
        ordering = ['class_level', 'fee_type']
        indexes = [
            models.Index(fields=['school_id', 'year', 'term', 'is_active'], name='feestructure_period_idx'),
        ]

    def __str__(self):
        return f"{self.fee_type} - {self.class_level} ({self.year})"

    def applies_to_boarding(self, boarding_status):
        return self.boarding_status in ('', 'all', boarding_status)


# =============================================================================
# OVERRIDES AND SCHOLARSHIPS
# =============================================================================

class StudentFeeOverride(SchoolScopedModel):
    """Per-student replacement amount for one fee type"""

    student = models.ForeignKey(
        Student,
        verbose_name="Student",
        on_delete=models.CASCADE,
        related_name='fee_overrides'
    )
    fee_type = models.CharField("Fee Type", max_length=100)
    custom_amount = models.DecimalField("Custom Amount", max_digits=12, decimal_places=2)
    term = models.PositiveSmallIntegerField("Term", choices=TERM_CHOICES, null=True, blank=True)
    year = models.PositiveIntegerField("Year")
    reason = models.CharField("Reason", max_length=255, blank=True)
    is_active = models.BooleanField("Is Active", default=True, db_index=True)

    class Meta:
        verbose_name = "Student Fee Override"
        ordering = ['fee_type']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'fee_type', 'year', 'term'],
                name='unique_fee_override_per_student_period',
            ),
        ]

    def __str__(self):
        return f"{self.student} - {self.fee_type}: {self.custom_amount}"


class Scholarship(SchoolScopedModel):
    """Percentage or fixed reduction applied to some or all fee types"""

    DISCOUNT_TYPE_CHOICES = (
        ('percentage', 'Percentage'),
        ('fixed', 'Fixed Amount'),
    )

    name = models.CharField("Name", max_length=150)
    discount_type = models.CharField("Discount Type", max_length=10, choices=DISCOUNT_TYPE_CHOICES)
    discount_value = models.DecimalField("Discount Value", max_digits=12, decimal_places=2)
    fee_types = models.JSONField(
        "Fee Types",
        default=list,
        blank=True,
        help_text="Fee types this scholarship covers. Empty means every fee type."
    )
    description = models.TextField("Description", blank=True)
    is_active = models.BooleanField("Is Active", default=True, db_index=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    def covers(self, fee_type):
        return not self.fee_types or fee_type in self.fee_types


class StudentScholarship(SchoolScopedModel):
    """Assignment of a scholarship to a student for a term/year"""

    STATUS_CHOICES = (
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    )

    student = models.ForeignKey(
        Student,
        verbose_name="Student",
        on_delete=models.CASCADE,
        related_name='scholarships'
    )
    scholarship = models.ForeignKey(
        Scholarship,
        verbose_name="Scholarship",
        on_delete=models.CASCADE,
        related_name='assignments'
    )
    term = models.PositiveSmallIntegerField(
        "Term",
        choices=TERM_CHOICES,
        null=True,
        blank=True,
        help_text="Leave empty for the whole year"
    )
    year = models.PositiveIntegerField("Year")
    status = models.CharField("Status", max_length=10, choices=STATUS_CHOICES, default='active', db_index=True)
    notes = models.TextField("Notes", blank=True)

    class Meta:
        verbose_name = "Student Scholarship"
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'scholarship', 'year', 'term'],
                name='unique_scholarship_assignment_per_period',
            ),
        ]

    def __str__(self):
        return f"{self.student} - {self.scholarship}"


# =============================================================================
# INVOICES
# =============================================================================

class Invoice(SchoolScopedModel):
    """
    What one student owes for one term/year.

    Only amount_paid, balance, status, notes, due_date and the reminder
    fields change after generation. balance and status always follow from
    (total_amount, amount_paid), see compute_balance/compute_status.
    """

    STATUS_CHOICES = (
        ('unpaid', 'Unpaid'),
        ('partial', 'Partially Paid'),
        ('paid', 'Paid in Full'),
    )

    # -------------------------------------------------------------------------
    # IDENTIFICATION
    # -------------------------------------------------------------------------

    invoice_number = models.CharField("Invoice Number", max_length=50, unique=True)
    student = models.ForeignKey(
        Student,
        verbose_name="Student",
        on_delete=models.PROTECT,
        related_name='invoices'
    )
    term = models.PositiveSmallIntegerField("Term", choices=TERM_CHOICES)
    year = models.PositiveIntegerField("Year", db_index=True)

    # -------------------------------------------------------------------------
    # AMOUNTS
    # -------------------------------------------------------------------------

    total_amount = models.DecimalField("Total Amount", max_digits=12, decimal_places=2)
    amount_paid = models.DecimalField("Amount Paid", max_digits=12, decimal_places=2, default=Decimal('0'))
    balance = models.DecimalField("Balance", max_digits=12, decimal_places=2)

    # -------------------------------------------------------------------------
    # STATUS AND DATES
    # -------------------------------------------------------------------------

    status = models.CharField("Status", max_length=10, choices=STATUS_CHOICES, default='unpaid', db_index=True)
    due_date = models.DateField("Due Date", null=True, blank=True, db_index=True)
    notes = models.TextField("Notes", blank=True)

    # -------------------------------------------------------------------------
    # REMINDERS
    # -------------------------------------------------------------------------

    reminder_sent_at = models.DateTimeField("Reminder Sent At", null=True, blank=True)
    reminder_count = models.PositiveIntegerField("Reminder Count", default=0)
    last_reminder_type = models.CharField("Last Reminder Type", max_length=20, blank=True)

    class Meta:
        ordering = ['-created_at', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['school_id', 'student', 'term', 'year'],
                name='unique_invoice_per_student_term',
            ),
        ]
        indexes = [
            models.Index(fields=['school_id', 'year', 'term'], name='invoice_period_idx'),
            models.Index(fields=['school_id', 'balance'], name='invoice_balance_idx'),
        ]

    def __str__(self):
        return self.invoice_number

    # -------------------------------------------------------------------------
    # BALANCE INVARIANT
    # -------------------------------------------------------------------------

    @staticmethod
    def compute_balance(total_amount, amount_paid):
        return max(Decimal('0'), Decimal(total_amount) - Decimal(amount_paid))

    @staticmethod
    def compute_status(total_amount, amount_paid):
        if amount_paid <= 0:
            return 'unpaid'
        if amount_paid >= total_amount:
            return 'paid'
        return 'partial'

    def recalculate(self):
        """Derive balance and status from total_amount and amount_paid."""
        self.balance = self.compute_balance(self.total_amount, self.amount_paid)
        self.status = self.compute_status(self.total_amount, self.amount_paid)


class InvoiceItem(BaseModel):
    """One fee line of an invoice; immutable once written"""

    invoice = models.ForeignKey(
        Invoice,
        verbose_name="Invoice",
        on_delete=models.CASCADE,
        related_name='items'
    )
    fee_type = models.CharField("Fee Type", max_length=100)
    description = models.CharField("Description", max_length=255, blank=True)
    amount = models.DecimalField("Amount", max_digits=12, decimal_places=2)

    class Meta:
        ordering = ['id']

    def __str__(self):
        return f"{self.invoice.invoice_number} - {self.fee_type}"


# =============================================================================
# PAYMENTS
# =============================================================================

class FeePayment(SchoolScopedModel):
    """
    Audit record of money received.

    Never deleted or edited, except for the void fields.
    amount_due and balance are snapshots of the invoice at payment time.
    """

    STATUS_CHOICES = (
        ('partial', 'Partial'),
        ('paid', 'Paid'),
    )

    student = models.ForeignKey(
        Student,
        verbose_name="Student",
        on_delete=models.PROTECT,
        related_name='fee_payments'
    )
    invoice = models.ForeignKey(
        Invoice,
        verbose_name="Invoice",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments'
    )
    installment = models.ForeignKey(
        'fees.PlanInstallment',
        verbose_name="Plan Installment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments'
    )

    fee_type = models.CharField("Fee Type", max_length=100)
    amount_due = models.DecimalField("Amount Due", max_digits=12, decimal_places=2)
    amount_paid = models.DecimalField("Amount Paid", max_digits=12, decimal_places=2)
    balance = models.DecimalField("Balance", max_digits=12, decimal_places=2)
    term = models.PositiveSmallIntegerField("Term", choices=TERM_CHOICES)
    year = models.PositiveIntegerField("Year")

    payment_date = models.DateField("Payment Date", db_index=True)
    payment_method = models.CharField("Payment Method", max_length=50)
    receipt_number = models.CharField("Receipt Number", max_length=30)
    status = models.CharField("Status", max_length=10, choices=STATUS_CHOICES)
    notes = models.TextField("Notes", blank=True)
    received_by_id = models.PositiveIntegerField("Received By ID", null=True, blank=True)

    # -------------------------------------------------------------------------
    # VOID TRACKING
    # -------------------------------------------------------------------------

    is_voided = models.BooleanField("Is Voided", default=False, db_index=True)
    void_reason = models.CharField("Void Reason", max_length=255, blank=True)
    voided_at = models.DateTimeField("Voided At", null=True, blank=True)
    voided_by_id = models.PositiveIntegerField("Voided By ID", null=True, blank=True)

    class Meta:
        ordering = ['-payment_date', '-id']
        constraints = [
            models.UniqueConstraint(
                fields=['school_id', 'receipt_number'],
                name='unique_receipt_number_per_school',
            ),
        ]
        indexes = [
            models.Index(fields=['school_id', 'student', 'term', 'year'], name='feepayment_student_period_idx'),
        ]

    def __str__(self):
        return f"{self.receipt_number} - {self.amount_paid}"


class ReceiptSequence(SchoolScopedModel):
    """Last issued receipt sequence number for a school and year"""

    year = models.PositiveIntegerField("Year")
    last_number = models.PositiveIntegerField("Last Number", default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['school_id', 'year'],
                name='unique_receipt_sequence_per_school_year',
            ),
        ]

    def __str__(self):
        return f"REC-{self.year} @ {self.last_number}"


# =============================================================================
# PAYMENT PLANS
# =============================================================================

class PaymentPlan(SchoolScopedModel):
    """Agreed schedule splitting a balance into dated installments"""

    FREQUENCY_CHOICES = (
        ('weekly', 'Weekly'),
        ('monthly', 'Monthly'),
    )

    STATUS_CHOICES = (
        ('active', 'Active'),
        ('completed', 'Completed'),
        ('defaulted', 'Defaulted'),
        ('cancelled', 'Cancelled'),
    )

    student = models.ForeignKey(
        Student,
        verbose_name="Student",
        on_delete=models.PROTECT,
        related_name='payment_plans'
    )
    invoice = models.ForeignKey(
        Invoice,
        verbose_name="Invoice",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payment_plans'
    )

    plan_name = models.CharField("Plan Name", max_length=150)
    total_amount = models.DecimalField("Total Amount", max_digits=12, decimal_places=2)
    down_payment = models.DecimalField("Down Payment", max_digits=12, decimal_places=2, default=Decimal('0'))
    installment_count = models.PositiveSmallIntegerField("Installment Count")
    frequency = models.CharField("Frequency", max_length=10, choices=FREQUENCY_CHOICES, default='monthly')
    start_date = models.DateField("Start Date")
    status = models.CharField("Status", max_length=10, choices=STATUS_CHOICES, default='active', db_index=True)
    notes = models.TextField("Notes", blank=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.plan_name} ({self.student})"


class PlanInstallment(BaseModel):
    """One dated installment of a payment plan"""

    STATUS_CHOICES = (
        ('pending', 'Pending'),
        ('partial', 'Partially Paid'),
        ('paid', 'Paid'),
    )

    plan = models.ForeignKey(
        PaymentPlan,
        verbose_name="Payment Plan",
        on_delete=models.CASCADE,
        related_name='installments'
    )
    installment_number = models.PositiveSmallIntegerField("Installment Number")
    due_date = models.DateField("Due Date")
    amount = models.DecimalField("Amount", max_digits=12, decimal_places=2)
    paid_amount = models.DecimalField("Paid Amount", max_digits=12, decimal_places=2, default=Decimal('0'))
    paid_at = models.DateTimeField("Paid At", null=True, blank=True)
    status = models.CharField("Status", max_length=10, choices=STATUS_CHOICES, default='pending')

    class Meta:
        ordering = ['installment_number']
        constraints = [
            models.UniqueConstraint(
                fields=['plan', 'installment_number'],
                name='unique_installment_number_per_plan',
            ),
        ]

    def __str__(self):
        return f"{self.plan.plan_name} #{self.installment_number}"

    @property
    def remaining(self):
        return max(Decimal('0'), self.amount - self.paid_amount)
