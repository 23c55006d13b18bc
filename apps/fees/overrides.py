# fees/overrides.py

"""
Per-student fee adjustments.

- OverrideService: custom amounts replacing a fee structure's default
- ScholarshipService: scholarship catalog and student assignments
- FeeResolver: what one student is billed for one fee, used by the
  invoice generator
"""

from collections import defaultdict
from decimal import Decimal
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q

from fees.exceptions import NotFoundError
from fees.models import Scholarship, StudentFeeOverride, StudentScholarship
from students.utils import get_school_student
from utils.validators import (
    parse_choice, parse_id, parse_non_negative_amount, parse_positive_amount,
    parse_term, parse_year, require_text, to_amount,
)

logger = logging.getLogger(__name__)


def _period_filter(term):
    """Rows for this term or for the whole year."""
    return Q(term=term) | Q(term__isnull=True)


# =============================================================================
# OVERRIDES
# =============================================================================

class OverrideService:

    @staticmethod
    def list_for_student(student_id, school_id):
        get_school_student(school_id, student_id)
        return list(
            StudentFeeOverride.objects.for_school(school_id)
            .filter(student_id=student_id, is_active=True)
            .order_by('year', 'term', 'fee_type')
        )

    @staticmethod
    @transaction.atomic
    def upsert(school_id, data):
        """
        Create or update the override for (student, fee_type, term, year).
        A previously deactivated override is reactivated.
        """
        student_id = parse_id(data.get('student_id'), "Student")
        fee_type = require_text(data.get('fee_type'), "Fee type")
        custom_amount = parse_non_negative_amount(data.get('custom_amount'), "Custom amount")
        term = parse_term(data.get('term'), required=False)
        year = parse_year(data.get('year'))
        reason = (data.get('reason') or '').strip()

        student = get_school_student(school_id, student_id)

        override, created = StudentFeeOverride.objects.update_or_create(
            school_id=school_id,
            student=student,
            fee_type=fee_type,
            term=term,
            year=year,
            defaults={
                'custom_amount': custom_amount,
                'reason': reason,
                'is_active': True,
            },
        )

        logger.info(
            f"{'Created' if created else 'Updated'} fee override {override.pk} "
            f"for student {student.pk}: {fee_type} = {custom_amount}"
        )
        return override

    @staticmethod
    def deactivate(override_id, school_id):
        updated = StudentFeeOverride.objects.for_school(school_id).filter(
            pk=override_id
        ).update(is_active=False)
        if not updated:
            raise NotFoundError("Fee override not found")
        logger.info(f"Deactivated fee override {override_id}")


# =============================================================================
# SCHOLARSHIPS
# =============================================================================

class ScholarshipService:

    @staticmethod
    def list_active(school_id):
        return list(Scholarship.objects.for_school(school_id).filter(is_active=True))

    @staticmethod
    def create(school_id, data):
        name = require_text(data.get('name'), "Name")
        discount_type = parse_choice(data.get('discount_type'), ('percentage', 'fixed'), "Discount type")
        discount_value = parse_positive_amount(data.get('discount_value'), "Discount value")
        if discount_type == 'percentage' and discount_value > 100:
            raise ValidationError("Percentage discount cannot exceed 100")

        fee_types = data.get('fee_types') or []
        if not isinstance(fee_types, list) or not all(isinstance(f, str) for f in fee_types):
            raise ValidationError("Fee types must be a list of fee type names")

        scholarship = Scholarship.objects.create(
            school_id=school_id,
            name=name,
            discount_type=discount_type,
            discount_value=discount_value,
            fee_types=fee_types,
            description=data.get('description') or '',
        )
        logger.info(f"Created scholarship {scholarship.pk} ({scholarship.name})")
        return scholarship

    @staticmethod
    @transaction.atomic
    def assign(scholarship_id, school_id, data):
        student_id = parse_id(data.get('student_id'), "Student")
        term = parse_term(data.get('term'), required=False)
        year = parse_year(data.get('year'))

        scholarship = Scholarship.objects.for_school(school_id).filter(
            pk=scholarship_id, is_active=True
        ).first()
        if scholarship is None:
            raise NotFoundError("Scholarship not found")
        student = get_school_student(school_id, student_id)

        assignment, _ = StudentScholarship.objects.update_or_create(
            school_id=school_id,
            student=student,
            scholarship=scholarship,
            term=term,
            year=year,
            defaults={'status': 'active', 'notes': data.get('notes') or ''},
        )
        logger.info(f"Assigned scholarship {scholarship.pk} to student {student.pk} for {year}")
        return assignment

    @staticmethod
    def revoke(assignment_id, school_id):
        updated = StudentScholarship.objects.for_school(school_id).filter(
            pk=assignment_id
        ).update(status='inactive')
        if not updated:
            raise NotFoundError("Scholarship assignment not found")
        logger.info(f"Revoked scholarship assignment {assignment_id}")


# =============================================================================
# FEE RESOLUTION
# =============================================================================

def apply_discount(amount, discount_type, discount_value):
    """One discount step, floored at zero."""
    if discount_type == 'percentage':
        discounted = to_amount(amount * (Decimal('1') - discount_value / Decimal('100')))
    else:
        discounted = amount - discount_value
    return max(Decimal('0'), discounted)


class FeeResolver:
    """
    Billed amounts for one generation run.

    Overrides and scholarship assignments are loaded once for the whole
    school/term/year. A term-specific override wins over a whole-year one.
    Discounts compose percentage first, then fixed, each by scholarship id.
    """

    DISCOUNT_ORDER = {'percentage': 0, 'fixed': 1}

    def __init__(self, school_id, term, year):
        self.school_id = school_id
        self.term = term
        self.year = year
        self.overrides = self._load_overrides()
        self.scholarships = self._load_scholarships()

    def _load_overrides(self):
        overrides = {}
        rows = StudentFeeOverride.objects.for_school(self.school_id).filter(
            _period_filter(self.term), year=self.year, is_active=True
        )
        for override in rows:
            key = (override.student_id, override.fee_type)
            current = overrides.get(key)
            if current is None or (current.term is None and override.term is not None):
                overrides[key] = override
        return {key: o.custom_amount for key, o in overrides.items()}

    def _load_scholarships(self):
        by_student = defaultdict(list)
        assignments = StudentScholarship.objects.for_school(self.school_id).filter(
            _period_filter(self.term),
            year=self.year,
            status='active',
            scholarship__is_active=True,
        ).select_related('scholarship')

        seen = set()
        for assignment in assignments:
            key = (assignment.student_id, assignment.scholarship_id)
            if key in seen:
                continue
            seen.add(key)
            by_student[assignment.student_id].append(assignment.scholarship)

        for scholarships in by_student.values():
            scholarships.sort(key=lambda s: (self.DISCOUNT_ORDER[s.discount_type], s.pk))
        return by_student

    def amount_for(self, student, structure):
        """Override amount if one is active for this period, else the catalog amount."""
        return self.overrides.get((student.pk, structure.fee_type), structure.amount)

    def apply_discounts(self, student, fee_type, amount):
        for scholarship in self.scholarships.get(student.pk, []):
            if scholarship.covers(fee_type):
                amount = apply_discount(amount, scholarship.discount_type, scholarship.discount_value)
        return to_amount(amount)

    def billed_amount(self, student, structure):
        amount = self.amount_for(student, structure)
        return self.apply_discounts(student, structure.fee_type, amount)
