# tests/test_invoice_generation.py

import datetime
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError

from fees.exceptions import FeeStructureNotFoundError, NoActiveStudentsError
from fees.invoice_generators import TermInvoiceGenerator
from fees.models import Invoice, Scholarship, StudentFeeOverride, StudentScholarship
from fees.overrides import FeeResolver, OverrideService, ScholarshipService, apply_discount

pytestmark = pytest.mark.django_db


def generate(school_id, **kwargs):
    kwargs.setdefault('term', 1)
    kwargs.setdefault('year', 2025)
    return TermInvoiceGenerator.generate(school_id, **kwargs)


def test_generates_unpaid_invoice_from_catalog(school_id, student, tuition):
    result = generate(school_id)

    assert result == {"created": 1, "skipped": 0}
    invoice = Invoice.objects.get(student=student)
    assert invoice.total_amount == Decimal('500000')
    assert invoice.balance == Decimal('500000')
    assert invoice.amount_paid == 0
    assert invoice.status == 'unpaid'
    assert invoice.invoice_number == f"INV-2025-T1-{school_id}-{student.pk:05d}"


def test_line_items_sum_to_total(school_id, student, tuition, make_structure):
    make_structure(fee_type="Lunch", amount=120000)

    generate(school_id)

    invoice = Invoice.objects.get(student=student)
    items = list(invoice.items.all())
    assert [i.description for i in items] == ["Tuition - P5", "Lunch - P5"]
    assert sum(i.amount for i in items) == invoice.total_amount == Decimal('620000')


def test_second_run_creates_nothing(school_id, student, tuition, make_student):
    make_student(first_name="Brian")

    first = generate(school_id)
    second = generate(school_id)

    assert first == {"created": 2, "skipped": 0}
    assert second == {"created": 0, "skipped": 2}
    assert Invoice.objects.for_school(school_id).count() == 2


def test_student_without_matching_structure_is_left_out(school_id, student, tuition, make_student):
    make_student(first_name="Grace", class_level="S1")

    result = generate(school_id)

    assert result == {"created": 1, "skipped": 0}
    assert Invoice.objects.for_school(school_id).count() == 1


def test_boarding_specific_structures(school_id, make_student, make_structure):
    day = make_student(first_name="Day", boarding_status="day")
    boarder = make_student(first_name="Boarder", boarding_status="boarding")
    make_structure(fee_type="Tuition", amount=500000, boarding_status="all")
    make_structure(fee_type="Boarding", amount=300000, boarding_status="boarding")

    generate(school_id)

    assert Invoice.objects.get(student=day).total_amount == Decimal('500000')
    assert Invoice.objects.get(student=boarder).total_amount == Decimal('800000')


def test_year_round_structure_applies_to_every_term(school_id, student, make_structure):
    make_structure(fee_type="Development", amount=50000, term=None)
    make_structure(fee_type="Tuition", amount=500000, term=2)

    generate(school_id, term=1)

    invoice = Invoice.objects.get(student=student)
    assert invoice.total_amount == Decimal('50000')


def test_inactive_structures_and_students_are_ignored(school_id, student, tuition, make_structure, make_student):
    make_structure(fee_type="Old Levy", amount=99000, is_active=False)
    make_student(first_name="Left", is_active=False)

    result = generate(school_id)

    assert result["created"] == 1
    assert Invoice.objects.get(student=student).total_amount == Decimal('500000')


def test_class_level_filter(school_id, student, tuition, make_student, make_structure):
    make_student(first_name="Senior", class_level="S1")
    make_structure(class_level="S1", amount=700000)

    result = generate(school_id, class_level="S1")

    assert result == {"created": 1, "skipped": 0}
    assert not Invoice.objects.filter(student=student).exists()


def test_due_date_is_stamped(school_id, student, tuition):
    generate(school_id, due_date="2025-02-15")

    assert Invoice.objects.get(student=student).due_date == datetime.date(2025, 2, 15)


def test_missing_catalog_is_rejected(school_id, student):
    with pytest.raises(FeeStructureNotFoundError):
        generate(school_id)


def test_empty_roster_is_rejected(school_id, tuition):
    with pytest.raises(NoActiveStudentsError):
        generate(school_id)


def test_invalid_term_is_rejected(school_id, student, tuition):
    with pytest.raises(ValidationError):
        generate(school_id, term=4)


def test_other_schools_are_untouched(school_id, other_school_id, student, tuition, make_student, make_structure):
    make_student(first_name="Elsewhere", school_id=other_school_id)
    make_structure(school_id=other_school_id)

    generate(school_id)

    assert Invoice.objects.for_school(other_school_id).count() == 0


# =============================================================================
# OVERRIDES
# =============================================================================

def test_override_replaces_catalog_amount(school_id, student, tuition):
    OverrideService.upsert(school_id, {
        'student_id': student.pk, 'fee_type': 'Tuition', 'custom_amount': 250000,
        'term': 1, 'year': 2025, 'reason': 'Staff child',
    })

    generate(school_id)

    assert Invoice.objects.get(student=student).total_amount == Decimal('250000')


def test_deactivated_override_is_not_applied(school_id, student, tuition):
    override = OverrideService.upsert(school_id, {
        'student_id': student.pk, 'fee_type': 'Tuition', 'custom_amount': 250000,
        'term': 1, 'year': 2025,
    })
    OverrideService.deactivate(override.pk, school_id)

    generate(school_id)

    assert Invoice.objects.get(student=student).total_amount == Decimal('500000')


def test_upsert_updates_existing_override(school_id, student):
    data = {'student_id': student.pk, 'fee_type': 'Tuition', 'custom_amount': 250000, 'term': 1, 'year': 2025}
    first = OverrideService.upsert(school_id, data)
    second = OverrideService.upsert(school_id, {**data, 'custom_amount': 300000})

    assert first.pk == second.pk
    assert StudentFeeOverride.objects.get(pk=first.pk).custom_amount == Decimal('300000')


def test_term_override_wins_over_year_override(school_id, student, tuition):
    base = {'student_id': student.pk, 'fee_type': 'Tuition', 'year': 2025}
    OverrideService.upsert(school_id, {**base, 'custom_amount': 400000, 'term': None})
    OverrideService.upsert(school_id, {**base, 'custom_amount': 350000, 'term': 1})

    resolver = FeeResolver(school_id, 1, 2025)

    assert resolver.amount_for(student, tuition) == Decimal('350000')


# =============================================================================
# SCHOLARSHIPS
# =============================================================================

def make_scholarship(school_id, name, discount_type, value, fee_types=None):
    return ScholarshipService.create(school_id, {
        'name': name, 'discount_type': discount_type,
        'discount_value': value, 'fee_types': fee_types or [],
    })


def test_percentage_scholarship_on_covered_fee_only(school_id, student, tuition, make_structure):
    make_structure(fee_type="Lunch", amount=100000)
    bursary = make_scholarship(school_id, "Half tuition", "percentage", 50, ["Tuition"])
    ScholarshipService.assign(bursary.pk, school_id, {'student_id': student.pk, 'year': 2025, 'term': 1})

    generate(school_id)

    items = {i.fee_type: i.amount for i in Invoice.objects.get(student=student).items.all()}
    assert items == {"Tuition": Decimal('250000'), "Lunch": Decimal('100000')}


def test_percentage_applies_before_fixed_regardless_of_creation_order(school_id, student, tuition):
    fixed = make_scholarship(school_id, "Sports", "fixed", 100000)
    percent = make_scholarship(school_id, "Merit", "percentage", 10)
    for scholarship in (fixed, percent):
        ScholarshipService.assign(scholarship.pk, school_id, {'student_id': student.pk, 'year': 2025})

    generate(school_id)

    # 500000 * 0.9 = 450000, then - 100000
    assert Invoice.objects.get(student=student).total_amount == Decimal('350000')


def test_discounts_never_go_negative(school_id, student, tuition):
    big = make_scholarship(school_id, "Full", "fixed", 900000)
    ScholarshipService.assign(big.pk, school_id, {'student_id': student.pk, 'year': 2025})

    generate(school_id)

    invoice = Invoice.objects.get(student=student)
    assert invoice.total_amount == 0
    assert invoice.status == 'unpaid'


def test_revoked_assignment_is_ignored(school_id, student, tuition):
    scholarship = make_scholarship(school_id, "Merit", "percentage", 10)
    assignment = ScholarshipService.assign(scholarship.pk, school_id, {'student_id': student.pk, 'year': 2025})
    ScholarshipService.revoke(assignment.pk, school_id)

    generate(school_id)

    assert Invoice.objects.get(student=student).total_amount == Decimal('500000')
    assert StudentScholarship.objects.get(pk=assignment.pk).status == 'inactive'


def test_inactive_scholarship_is_ignored(school_id, student, tuition):
    scholarship = make_scholarship(school_id, "Merit", "percentage", 10)
    ScholarshipService.assign(scholarship.pk, school_id, {'student_id': student.pk, 'year': 2025})
    Scholarship.objects.filter(pk=scholarship.pk).update(is_active=False)

    generate(school_id)

    assert Invoice.objects.get(student=student).total_amount == Decimal('500000')


def test_percentage_discount_rounds_half_up():
    assert apply_discount(Decimal('333335'), 'percentage', Decimal('10')) == Decimal('300002')
    assert apply_discount(Decimal('1000'), 'fixed', Decimal('1500')) == 0


def test_percentage_over_hundred_is_rejected(school_id):
    with pytest.raises(ValidationError):
        make_scholarship(school_id, "Too much", "percentage", 150)
