# finance/stats.py

"""
Read-only financial roll-ups for a school.

- get_financial_summary: finance ledger credits/debits against expenses
- get_hub_stats: invoice billing vs. collections for an optional term/year
- get_student_transactions: one student's ledger with a running balance

Amounts are returned as floats, ready for JsonResponse.
"""

from decimal import Decimal
from django.db.models import Count, Q, Sum
from django.db.models.functions import Coalesce
import logging

from fees.models import FeePayment, Invoice
from finance.models import Expense, FinanceTransaction
from students.utils import get_school_student
from utils.validators import to_amount

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')


def collection_rate(collected, due):
    """Whole-number percentage of due that was collected; 0 when nothing is due."""
    if due <= 0:
        return 0
    return int(to_amount(Decimal(collected) / Decimal(due) * 100))


def _counted_expenses(school_id):
    return Expense.objects.for_school(school_id).exclude(status='rejected')


# =============================================================================
# FINANCIAL SUMMARY
# =============================================================================

def get_financial_summary(school_id):
    """
    Ledger-wide summary. Voided transactions and payments are ignored.

    Returns:
        dict: total_revenue, total_due, total_outstanding, total_expenses,
              net_income, collection_rate, payment_count, expense_count
    """
    ledger = FinanceTransaction.objects.for_school(school_id).filter(
        is_voided=False
    ).aggregate(
        credits=Coalesce(Sum('amount', filter=Q(transaction_type='credit')), ZERO),
        debits=Coalesce(Sum('amount', filter=Q(transaction_type='debit')), ZERO),
    )

    expenses = _counted_expenses(school_id).aggregate(
        total=Coalesce(Sum('amount'), ZERO),
        count=Count('id'),
    )

    payment_count = FeePayment.objects.for_school(school_id).filter(is_voided=False).count()

    total_revenue = ledger['credits']
    total_due = ledger['debits']
    total_expenses = expenses['total']

    return {
        'total_revenue': float(total_revenue),
        'total_due': float(total_due),
        'total_outstanding': float(total_due - total_revenue),
        'total_expenses': float(total_expenses),
        'net_income': float(total_revenue - total_expenses),
        'collection_rate': collection_rate(total_revenue, total_due),
        'payment_count': payment_count,
        'expense_count': expenses['count'],
    }


# =============================================================================
# HUB STATS
# =============================================================================

def get_hub_stats(school_id, term=None, year=None):
    """
    Billing vs. collection figures, optionally for one term and/or year.

    total_collected is the non-voided payment sum, falling back to the
    invoices' amount_paid when no payment rows exist for the period.
    """
    period = {}
    if term is not None:
        period['term'] = term
    if year is not None:
        period['year'] = year

    invoices = Invoice.objects.for_school(school_id).filter(**period).aggregate(
        total_due=Coalesce(Sum('total_amount'), ZERO),
        total_paid=Coalesce(Sum('amount_paid'), ZERO),
        total_balance=Coalesce(Sum('balance'), ZERO),
        invoice_count=Count('id'),
    )

    total_expenses = _counted_expenses(school_id).filter(**period).aggregate(
        total=Coalesce(Sum('amount'), ZERO)
    )['total']

    total_collected = FeePayment.objects.for_school(school_id).filter(
        is_voided=False, **period
    ).aggregate(total=Coalesce(Sum('amount_paid'), ZERO))['total']

    if not total_collected:
        total_collected = invoices['total_paid']

    total_due = invoices['total_due']

    return {
        'total_due': float(total_due),
        'total_collected': float(total_collected),
        'total_outstanding': float(invoices['total_balance']),
        'total_expenses': float(total_expenses),
        'net_income': float(total_collected - total_expenses),
        'collection_rate': collection_rate(total_collected, total_due),
        'invoice_count': invoices['invoice_count'],
    }


# =============================================================================
# STUDENT LEDGER
# =============================================================================

def get_student_transactions(student_id, school_id):
    """
    A student's finance transactions, oldest first, each with the running
    balance after it (debits add, credits subtract). Voided rows are listed
    but do not move the balance.
    """
    student = get_school_student(school_id, student_id)
    transactions = FinanceTransaction.objects.for_school(school_id).filter(
        student=student
    ).order_by('transaction_date', 'id')

    running_balance = ZERO
    rows = []
    for txn in transactions:
        if not txn.is_voided:
            if txn.transaction_type == 'debit':
                running_balance += txn.amount
            else:
                running_balance -= txn.amount

        rows.append({
            'id': txn.pk,
            'student_id': txn.student_id,
            'fee_payment_id': txn.fee_payment_id,
            'transaction_type': txn.transaction_type,
            'amount': float(txn.amount),
            'description': txn.description,
            'term': txn.term,
            'year': txn.year,
            'transaction_date': txn.transaction_date.isoformat(),
            'is_voided': txn.is_voided,
            'running_balance': float(running_balance),
        })
    return rows
