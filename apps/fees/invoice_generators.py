# fees/invoice_generators.py

"""
Term invoice generation.

One invoice per active student per (term, year), built from the fee catalog,
per-student overrides and scholarships. Students that already have an
invoice for the period are skipped, so re-running a term is harmless.
"""

from decimal import Decimal
from django.db import IntegrityError, transaction
from django.db.models import Q
import logging

from fees.exceptions import FeeStructureNotFoundError, NoActiveStudentsError
from fees.models import FeeStructure, Invoice, InvoiceItem
from fees.overrides import FeeResolver
from fees.utils import build_invoice_number
from students.models import Student
from utils.validators import parse_date, parse_term, parse_year

logger = logging.getLogger(__name__)


# =============================================================================
# TERM INVOICE GENERATOR
# =============================================================================

class TermInvoiceGenerator:
    """Generate term invoices for every active student of a school"""

    @staticmethod
    def generate(school_id, term, year, class_level=None, due_date=None):
        """
        Generate invoices for a term.

        Args:
            school_id: School to bill
            term: 1, 2 or 3
            year: Billing year
            class_level: Only bill students in this class (optional)
            due_date: Due date stamped on every new invoice (optional)

        Returns:
            dict: {"created": int, "skipped": int}

        Raises:
            FeeStructureNotFoundError: No active structure for the term/year
            NoActiveStudentsError: Roster is empty after filtering
        """
        term = parse_term(term)
        year = parse_year(year)
        due_date = parse_date(due_date, "Due date", required=False)

        structures = list(
            FeeStructure.objects.for_school(school_id).filter(
                Q(term=term) | Q(term__isnull=True),
                year=year,
                is_active=True,
            ).order_by('id')
        )
        if not structures:
            raise FeeStructureNotFoundError()

        students = Student.objects.for_school(school_id).filter(is_active=True)
        if class_level:
            students = students.filter(class_level=class_level)
        students = list(students.order_by('id'))
        if not students:
            raise NoActiveStudentsError()

        resolver = FeeResolver(school_id, term, year)
        invoiced_students = set(
            Invoice.objects.for_school(school_id).filter(
                term=term, year=year
            ).values_list('student_id', flat=True)
        )

        created = 0
        skipped = 0

        with transaction.atomic():
            for student in students:
                if student.pk in invoiced_students:
                    skipped += 1
                    continue

                items = TermInvoiceGenerator._build_items(student, structures, resolver)
                if not items:
                    # Nothing in the catalog applies to this student
                    continue

                try:
                    with transaction.atomic():
                        TermInvoiceGenerator._create_invoice(
                            school_id, student, term, year, due_date, items
                        )
                except IntegrityError:
                    # Created concurrently by another run
                    logger.warning(
                        f"Invoice for student {student.pk} T{term}/{year} already exists, skipping"
                    )
                    skipped += 1
                    continue

                created += 1

        logger.info(
            f"Generated invoices for school {school_id} T{term}/{year}: "
            f"{created} created, {skipped} skipped"
        )
        return {"created": created, "skipped": skipped}

    @staticmethod
    def _build_items(student, structures, resolver):
        items = []
        for structure in structures:
            if structure.class_level != student.class_level:
                continue
            if not structure.applies_to_boarding(student.boarding_status):
                continue

            items.append({
                'fee_type': structure.fee_type,
                'description': f"{structure.fee_type} - {structure.class_level}",
                'amount': resolver.billed_amount(student, structure),
            })
        return items

    @staticmethod
    def _create_invoice(school_id, student, term, year, due_date, items):
        total_amount = sum((item['amount'] for item in items), Decimal('0'))

        invoice = Invoice(
            school_id=school_id,
            student=student,
            invoice_number=build_invoice_number(school_id, student.pk, term, year),
            term=term,
            year=year,
            total_amount=total_amount,
            amount_paid=Decimal('0'),
            due_date=due_date,
        )
        invoice.recalculate()
        invoice.save()

        for item in items:
            InvoiceItem.objects.create(invoice=invoice, **item)

        logger.debug(f"Created invoice {invoice.invoice_number} for {total_amount}")
        return invoice
