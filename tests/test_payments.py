# tests/test_payments.py

from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from fees.exceptions import CrossTenantAccessError, OverpaymentError
from fees.invoice_generators import TermInvoiceGenerator
from fees.models import FeePayment, Invoice, ReceiptSequence
from fees.payment_plans import PaymentPlanService
from fees.services import InvoiceLedger, PaymentService
from fees.utils import generate_receipt_number
from finance.models import FinanceTransaction

pytestmark = pytest.mark.django_db

USER_ID = 7


@pytest.fixture
def invoice(school_id, student, tuition):
    TermInvoiceGenerator.generate(school_id, 1, 2025)
    return Invoice.objects.get(student=student)


def pay(school_id, student, amount, **kwargs):
    kwargs.setdefault('fee_type', 'Tuition')
    kwargs.setdefault('term', 1)
    kwargs.setdefault('year', 2025)
    return PaymentService.record_payment(school_id, USER_ID, student.pk, amount_paid=amount, **kwargs)


def assert_invariant(invoice):
    assert invoice.balance == max(Decimal('0'), invoice.total_amount - invoice.amount_paid)
    assert invoice.status == Invoice.compute_status(invoice.total_amount, invoice.amount_paid)


def test_partial_payment(school_id, student, invoice):
    payment = pay(school_id, student, 200000)

    invoice.refresh_from_db()
    assert invoice.amount_paid == Decimal('200000')
    assert invoice.balance == Decimal('300000')
    assert invoice.status == 'partial'
    assert payment.amount_due == Decimal('500000')
    assert payment.balance == Decimal('300000')
    assert payment.status == 'partial'
    assert payment.invoice_id == invoice.pk
    assert payment.received_by_id == USER_ID
    assert payment.payment_method == 'Cash'
    assert_invariant(invoice)


def test_paying_remaining_balance_settles_invoice(school_id, student, invoice):
    pay(school_id, student, 200000)
    payment = pay(school_id, student, 300000)

    invoice.refresh_from_db()
    assert invoice.balance == 0
    assert invoice.status == 'paid'
    assert payment.amount_due == Decimal('300000')
    assert payment.status == 'paid'
    assert_invariant(invoice)


def test_payment_on_settled_invoice_is_accepted(school_id, student, invoice):
    """The overpayment guard only fires while the invoice has a balance."""
    pay(school_id, student, 500000)

    payment = pay(school_id, student, 50000)

    invoice.refresh_from_db()
    assert invoice.amount_paid == Decimal('550000')
    assert invoice.balance == 0
    assert invoice.status == 'paid'
    assert payment.amount_due == 0
    assert payment.balance == 0
    assert payment.status == 'paid'


def test_overpayment_is_rejected_without_side_effects(school_id, student, invoice):
    pay(school_id, student, 200000)

    with pytest.raises(OverpaymentError) as excinfo:
        pay(school_id, student, 400000)

    assert str(excinfo.value) == "OVERPAYMENT: Amount (400000) exceeds invoice balance (300000)"
    assert excinfo.value.public_message == "Amount (400000) exceeds invoice balance (300000)"
    invoice.refresh_from_db()
    assert invoice.amount_paid == Decimal('200000')
    assert invoice.balance == Decimal('300000')
    assert FeePayment.objects.count() == 1
    assert FinanceTransaction.objects.count() == 1


def test_rejected_overpayment_does_not_consume_a_receipt(school_id, student, invoice):
    pay(school_id, student, 200000)
    with pytest.raises(OverpaymentError):
        pay(school_id, student, 400000)

    payment = pay(school_id, student, 100000)

    assert payment.receipt_number == "REC-2025-0002"


def test_payment_without_invoice(school_id, student):
    payment = pay(school_id, student, 75000, fee_type="Uniform")

    assert payment.invoice_id is None
    assert payment.amount_due == 0
    assert payment.balance == 0
    assert payment.status == 'paid'
    assert not Invoice.objects.exists()


def test_credit_transaction_links_payment(school_id, student, invoice):
    payment = pay(school_id, student, 200000)

    txn = FinanceTransaction.objects.get()
    assert txn.fee_payment_id == payment.pk
    assert txn.transaction_type == 'credit'
    assert txn.amount == Decimal('200000')
    assert txn.description == f"Payment - Tuition (T1/2025) - {payment.receipt_number}"
    assert txn.school_id == school_id


def test_student_from_another_school_is_rejected(other_school_id, student, invoice):
    with pytest.raises(CrossTenantAccessError) as excinfo:
        pay(other_school_id, student, 1000)

    assert str(excinfo.value) == "Student does not belong to the active school"
    assert FeePayment.objects.count() == 0


@pytest.mark.parametrize("overrides", [
    {'amount': 0},
    {'amount': -50},
    {'amount': "abc"},
    {'term': 4},
    {'year': 2019},
    {'year': 2101},
    {'fee_type': ''},
])
def test_invalid_input_writes_nothing(school_id, student, invoice, overrides):
    amount = overrides.pop('amount', 1000)

    with pytest.raises(ValidationError):
        pay(school_id, student, amount, **overrides)

    assert FeePayment.objects.count() == 0
    assert not ReceiptSequence.objects.exists()


def test_manual_receipt_number(school_id, student, invoice):
    payment = pay(school_id, student, 1000, receipt_number="BANK-778")

    assert payment.receipt_number == "BANK-778"
    with pytest.raises(ValidationError):
        pay(school_id, student, 1000, receipt_number="BANK-778")
    with pytest.raises(ValidationError):
        pay(school_id, student, 1000, receipt_number="X" * 31)


# =============================================================================
# RECEIPT NUMBERS
# =============================================================================

def test_receipts_are_sequential_per_school_and_year(school_id, other_school_id, student, make_student):
    other = make_student(school_id=other_school_id)

    first = pay(school_id, student, 1000)
    second = pay(school_id, student, 1000)
    next_year = pay(school_id, student, 1000, year=2026)
    elsewhere = pay(other_school_id, other, 1000)

    assert first.receipt_number == "REC-2025-0001"
    assert second.receipt_number == "REC-2025-0002"
    assert next_year.receipt_number == "REC-2026-0001"
    assert elsewhere.receipt_number == "REC-2025-0001"


def test_manual_receipt_in_sequence_format_advances_counter(school_id, student, invoice):
    first = pay(school_id, student, 1000)
    manual = pay(school_id, student, 1000, receipt_number="REC-2025-0002")
    after = pay(school_id, student, 1000)

    assert [first.receipt_number, manual.receipt_number, after.receipt_number] == [
        "REC-2025-0001", "REC-2025-0002", "REC-2025-0003",
    ]


def test_manual_receipt_before_any_allocation_seeds_counter(school_id, student):
    pay(school_id, student, 1000, receipt_number="REC-2025-0010")

    assert pay(school_id, student, 1000).receipt_number == "REC-2025-0011"
    assert ReceiptSequence.objects.get(school_id=school_id, year=2025).last_number == 11


def test_lower_manual_receipt_leaves_counter_alone(school_id, student):
    for _ in range(3):
        pay(school_id, student, 1000)
    pay(school_id, student, 1000, receipt_number="REC-2025-0000")
    pay(school_id, student, 1000, receipt_number="BANK-2025-0099")

    assert pay(school_id, student, 1000).receipt_number == "REC-2025-0004"


def test_manual_receipt_for_another_year_moves_that_years_counter(school_id, student):
    pay(school_id, student, 1000, receipt_number="REC-2026-0005")

    assert pay(school_id, student, 1000).receipt_number == "REC-2025-0001"
    assert pay(school_id, student, 1000, year=2026).receipt_number == "REC-2026-0006"


def test_installment_payment_after_manual_receipt(school_id, student):
    year = timezone.localdate().year
    plan = PaymentPlanService.create_plan(school_id, {
        'student_id': student.pk, 'total_amount': 200000, 'installment_count': 2,
        'start_date': '2025-01-01',
    })
    pay(school_id, student, 1000, year=year, receipt_number=f"REC-{year}-0001")

    payment = PaymentPlanService.pay_installment(
        plan.pk, plan.installments.first().pk, 100000, school_id, USER_ID
    )

    assert payment.receipt_number == f"REC-{year}-0002"


def test_counter_continues_after_legacy_receipts(school_id, student):
    FeePayment.objects.create(
        school_id=school_id, student=student, fee_type="Tuition",
        amount_due=0, amount_paid=100, balance=0, term=1, year=2025,
        payment_date="2025-01-10", payment_method="Cash",
        receipt_number="REC-2025-0041", status="paid",
    )

    assert generate_receipt_number(school_id, 2025) == "REC-2025-0042"
    assert generate_receipt_number(school_id, 2025) == "REC-2025-0043"


# =============================================================================
# INVOICE LEDGER
# =============================================================================

def test_apply_payment_recomputes_from_totals(school_id, student, invoice):
    InvoiceLedger.apply_payment(invoice.pk, Decimal('600000'))
    updated = InvoiceLedger.apply_payment(invoice.pk, Decimal('-150000'))

    assert updated.amount_paid == Decimal('450000')
    assert updated.balance == Decimal('50000')
    assert updated.status == 'partial'


@pytest.mark.parametrize("total, paid, status", [
    (500000, 0, 'unpaid'),
    (500000, -10, 'unpaid'),
    (500000, 1, 'partial'),
    (500000, 500000, 'paid'),
    (500000, 700000, 'paid'),
    (0, 0, 'unpaid'),
])
def test_status_is_a_function_of_total_and_paid(total, paid, status):
    assert Invoice.compute_status(Decimal(total), Decimal(paid)) == status
    assert Invoice.compute_balance(total, paid) == max(0, total - paid)


def test_history_queries(school_id, student, invoice, make_student):
    sibling = make_student(first_name="Sibling")
    pay(school_id, student, 1000)
    pay(school_id, sibling, 2000)

    everything = PaymentService.list_payments(school_id, limit=1, offset=0)
    mine = PaymentService.student_payments(student.pk, school_id)

    assert everything['total'] == 2
    assert len(everything['data']) == 1
    assert [p.amount_paid for p in mine] == [Decimal('1000')]
