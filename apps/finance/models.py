# finance/models.py

"""
Finance ledger models.

- FinanceTransaction: append-only credit/debit rows used for summaries
- Expense: money spent by the school, consumed by the stats views
"""

from django.db import models
import logging

from utils.models import SchoolScopedModel
from students.models import Student

logger = logging.getLogger(__name__)


# =============================================================================
# FINANCE TRANSACTIONS
# =============================================================================

class FinanceTransaction(SchoolScopedModel):
    """
    One ledger row per charge (debit) or payment (credit).

    Rows written for a fee payment point back at it through fee_payment and
    also carry the receipt number in the description. Older rows may only
    have the description.
    """

    TRANSACTION_TYPE_CHOICES = (
        ('debit', 'Debit (charge)'),
        ('credit', 'Credit (payment)'),
    )

    student = models.ForeignKey(
        Student,
        verbose_name="Student",
        on_delete=models.PROTECT,
        related_name='finance_transactions'
    )
    fee_payment = models.ForeignKey(
        'fees.FeePayment',
        verbose_name="Fee Payment",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='finance_transactions'
    )

    transaction_type = models.CharField("Type", max_length=10, choices=TRANSACTION_TYPE_CHOICES, db_index=True)
    amount = models.DecimalField("Amount", max_digits=12, decimal_places=2)
    description = models.CharField("Description", max_length=255, blank=True)
    term = models.PositiveSmallIntegerField("Term")
    year = models.PositiveIntegerField("Year")
    transaction_date = models.DateField("Transaction Date", db_index=True)

    is_voided = models.BooleanField("Is Voided", default=False, db_index=True)
    voided_at = models.DateTimeField("Voided At", null=True, blank=True)

    class Meta:
        verbose_name = "Finance Transaction"
        ordering = ['transaction_date', 'id']
        indexes = [
            models.Index(fields=['school_id', 'student'], name='financetxn_student_idx'),
        ]

    def __str__(self):
        return f"{self.transaction_type} {self.amount} - {self.description}"


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(SchoolScopedModel):

    STATUS_CHOICES = (
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('paid', 'Paid'),
    )

    amount = models.DecimalField("Amount", max_digits=12, decimal_places=2)
    description = models.CharField("Description", max_length=255)
    vendor = models.CharField("Vendor", max_length=150, blank=True)
    expense_date = models.DateField("Expense Date", db_index=True)
    term = models.PositiveSmallIntegerField("Term", null=True, blank=True)
    year = models.PositiveIntegerField("Year", null=True, blank=True)
    status = models.CharField("Status", max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)

    class Meta:
        ordering = ['-expense_date', '-id']

    def __str__(self):
        return f"{self.description} - {self.amount}"
