# finance/debtors.py

"""
Debtor aging over unpaid invoices.
"""

from decimal import Decimal
from django.utils import timezone
import logging

from fees.models import Invoice
from utils.validators import parse_term, parse_year

logger = logging.getLogger(__name__)


AGING_BUCKETS = (
    # (lower bound exclusive, category, summary key)
    (90, '90+', 'days_90_plus'),
    (60, '61-90', 'days_61_90'),
    (30, '31-60', 'days_31_60'),
    (0, '1-30', 'days_1_30'),
)

CURRENT_CATEGORY = ('current', 'current')


def aging_category(days_overdue):
    """Return (category, summary key) for a number of days overdue."""
    for lower_bound, category, key in AGING_BUCKETS:
        if days_overdue > lower_bound:
            return category, key
    return CURRENT_CATEGORY


def days_overdue(invoice, today):
    """Whole days past the due date (or creation date when undated), never negative."""
    reference = invoice.due_date
    if reference is None:
        reference = timezone.localtime(invoice.created_at).date()
    return max(0, (today - reference).days)


def _debtor_row(invoice, overdue, category):
    student = invoice.student
    return {
        'id': invoice.pk,
        'invoice_number': invoice.invoice_number,
        'student_id': invoice.student_id,
        'student_name': student.get_full_name(),
        'student_class': student.class_level,
        'term': invoice.term,
        'year': invoice.year,
        'total_amount': float(invoice.total_amount),
        'amount_paid': float(invoice.amount_paid),
        'balance': float(invoice.balance),
        'status': invoice.status,
        'due_date': invoice.due_date.isoformat() if invoice.due_date else None,
        'reminder_count': invoice.reminder_count,
        'days_overdue': overdue,
        'aging_category': category,
    }


def list_debtors(school_id, term=None, year=None, class_level=None, limit=50, offset=0, today=None):
    """
    Invoices with an outstanding balance, largest balance first.

    The summary covers every matching invoice; only `debtors` is paged.

    Returns:
        dict: {"debtors": [row], "summary": {...}, "total": int}
    """
    term = parse_term(term, required=False)
    year = parse_year(year, required=False)
    today = today or timezone.localdate()

    invoices = Invoice.objects.for_school(school_id).filter(balance__gt=0).select_related('student')
    if term is not None:
        invoices = invoices.filter(term=term)
    if year is not None:
        invoices = invoices.filter(year=year)
    if class_level:
        invoices = invoices.filter(student__class_level=class_level)

    summary = {
        'total_debtors': 0,
        'total_outstanding': Decimal('0'),
        'current': Decimal('0'),
        'days_1_30': Decimal('0'),
        'days_31_60': Decimal('0'),
        'days_61_90': Decimal('0'),
        'days_90_plus': Decimal('0'),
    }

    rows = []
    for invoice in invoices.order_by('-balance', 'id'):
        overdue = days_overdue(invoice, today)
        category, key = aging_category(overdue)

        summary['total_debtors'] += 1
        summary['total_outstanding'] += invoice.balance
        summary[key] += invoice.balance

        rows.append(_debtor_row(invoice, overdue, category))

    for key, value in summary.items():
        if isinstance(value, Decimal):
            summary[key] = float(value)

    return {
        'debtors': rows[offset:offset + limit],
        'summary': summary,
        'total': len(rows),
    }
