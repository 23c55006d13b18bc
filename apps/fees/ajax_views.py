# fees/ajax_views.py

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
import logging

from fees.invoice_generators import TermInvoiceGenerator
from fees.overrides import OverrideService, ScholarshipService
from fees.payment_plans import PaymentPlanService
from fees.services import FeeStructureService, InvoiceService, PaymentService
from utils.api import parse_json_body, school_api_view
from utils.utils import get_page_params, parse_filters
from utils.validators import parse_term, parse_year

logger = logging.getLogger(__name__)


# =============================================================================
# SERIALIZATION
# =============================================================================

def _date(value):
    return value.isoformat() if value else None


def serialize_structure(structure):
    return {
        'id': structure.pk,
        'class_level': structure.class_level,
        'fee_type': structure.fee_type,
        'description': structure.description,
        'amount': float(structure.amount),
        'term': structure.term,
        'year': structure.year,
        'boarding_status': structure.boarding_status,
        'is_active': structure.is_active,
    }


def serialize_invoice(invoice, include_items=False):
    data = {
        'id': invoice.pk,
        'invoice_number': invoice.invoice_number,
        'student_id': invoice.student_id,
        'student_name': invoice.student.get_full_name(),
        'student_class': invoice.student.class_level,
        'term': invoice.term,
        'year': invoice.year,
        'total_amount': float(invoice.total_amount),
        'amount_paid': float(invoice.amount_paid),
        'balance': float(invoice.balance),
        'status': invoice.status,
        'due_date': _date(invoice.due_date),
        'notes': invoice.notes,
        'reminder_sent_at': _date(invoice.reminder_sent_at),
        'reminder_count': invoice.reminder_count,
        'last_reminder_type': invoice.last_reminder_type,
        'created_at': _date(invoice.created_at),
    }
    if include_items:
        data['items'] = [
            {
                'id': item.pk,
                'fee_type': item.fee_type,
                'description': item.description,
                'amount': float(item.amount),
            }
            for item in invoice.items.all()
        ]
    return data


def serialize_payment(payment):
    return {
        'id': payment.pk,
        'student_id': payment.student_id,
        'student_name': payment.student.get_full_name(),
        'student_class': payment.student.class_level,
        'invoice_id': payment.invoice_id,
        'installment_id': payment.installment_id,
        'fee_type': payment.fee_type,
        'amount_due': float(payment.amount_due),
        'amount_paid': float(payment.amount_paid),
        'balance': float(payment.balance),
        'term': payment.term,
        'year': payment.year,
        'payment_date': _date(payment.payment_date),
        'payment_method': payment.payment_method,
        'receipt_number': payment.receipt_number,
        'status': payment.status,
        'notes': payment.notes,
        'received_by': payment.received_by_id,
        'is_voided': payment.is_voided,
        'void_reason': payment.void_reason,
    }


def serialize_plan(plan):
    return {
        'id': plan.pk,
        'student_id': plan.student_id,
        'student_name': plan.student.get_full_name(),
        'invoice_id': plan.invoice_id,
        'plan_name': plan.plan_name,
        'total_amount': float(plan.total_amount),
        'down_payment': float(plan.down_payment),
        'installment_count': plan.installment_count,
        'frequency': plan.frequency,
        'start_date': _date(plan.start_date),
        'status': plan.status,
        'installments': [
            {
                'id': installment.pk,
                'installment_number': installment.installment_number,
                'due_date': _date(installment.due_date),
                'amount': float(installment.amount),
                'paid_amount': float(installment.paid_amount),
                'paid_at': _date(installment.paid_at),
                'status': installment.status,
            }
            for installment in plan.installments.all()
        ],
    }


def serialize_override(override):
    return {
        'id': override.pk,
        'student_id': override.student_id,
        'fee_type': override.fee_type,
        'custom_amount': float(override.custom_amount),
        'term': override.term,
        'year': override.year,
        'reason': override.reason,
        'is_active': override.is_active,
    }


def serialize_scholarship(scholarship):
    return {
        'id': scholarship.pk,
        'name': scholarship.name,
        'discount_type': scholarship.discount_type,
        'discount_value': float(scholarship.discount_value),
        'fee_types': scholarship.fee_types,
        'description': scholarship.description,
        'is_active': scholarship.is_active,
    }


# =============================================================================
# FEE STRUCTURES
# =============================================================================

@require_http_methods(["GET", "POST"])
@school_api_view
def fee_structures(request):
    if request.method == "POST":
        structure = FeeStructureService.create(request.school_id, parse_json_body(request))
        return JsonResponse(
            {"success": True, "message": "Fee structure created", "fee_structure": serialize_structure(structure)},
            status=201
        )

    filters = parse_filters(request, ['year', 'term'])
    structures = FeeStructureService.list_structures(
        request.school_id,
        year=parse_year(filters['year'], required=False),
        term=parse_term(filters['term'], required=False),
    )
    return JsonResponse({"success": True, "data": [serialize_structure(s) for s in structures]})


@require_http_methods(["GET", "PUT", "DELETE"])
@school_api_view
def fee_structure_detail(request, pk):
    if request.method == "PUT":
        structure = FeeStructureService.update(pk, request.school_id, parse_json_body(request))
        return JsonResponse(
            {"success": True, "message": "Fee structure updated", "fee_structure": serialize_structure(structure)}
        )

    if request.method == "DELETE":
        FeeStructureService.delete(pk, request.school_id)
        return JsonResponse({"success": True, "message": "Fee structure deleted"})

    structure = FeeStructureService.get_structure(pk, request.school_id)
    return JsonResponse({"success": True, "fee_structure": serialize_structure(structure)})


# =============================================================================
# FEE PAYMENTS
# =============================================================================

@require_http_methods(["GET", "POST"])
@school_api_view
def fee_payments(request):
    if request.method == "POST":
        data = parse_json_body(request)
        payment = PaymentService.record_payment(
            school_id=request.school_id,
            user_id=request.user_id,
            student_id=data.get('student_id'),
            fee_type=data.get('fee_type'),
            amount_paid=data.get('amount_paid'),
            term=data.get('term'),
            year=data.get('year'),
            payment_method=data.get('payment_method'),
            notes=data.get('notes') or '',
            receipt_number=data.get('receipt_number'),
        )
        return JsonResponse(
            {"success": True, "message": "Payment recorded", "payment": serialize_payment(payment)},
            status=201
        )

    limit, offset = get_page_params(request)
    result = PaymentService.list_payments(request.school_id, limit, offset)
    return JsonResponse({
        "success": True,
        "data": [serialize_payment(p) for p in result['data']],
        "total": result['total'],
    })


@require_http_methods(["GET"])
@school_api_view
def student_fee_payments(request, student_id):
    payments = PaymentService.student_payments(student_id, request.school_id)
    return JsonResponse({"success": True, "data": [serialize_payment(p) for p in payments]})


@require_http_methods(["POST"])
@school_api_view
def void_fee_payment(request, pk):
    data = parse_json_body(request)
    payment = PaymentService.void_payment(pk, request.school_id, request.user_id, data.get('reason'))
    return JsonResponse(
        {"success": True, "message": "Payment voided successfully", "payment": serialize_payment(payment)}
    )


# =============================================================================
# INVOICES
# =============================================================================

@require_http_methods(["GET"])
@school_api_view
def invoices(request):
    limit, offset = get_page_params(request)
    filters = parse_filters(request, ['student_id', 'term', 'year', 'status'])
    result = InvoiceService.list_invoices(request.school_id, filters, limit, offset)
    return JsonResponse({
        "success": True,
        "data": [serialize_invoice(i) for i in result['data']],
        "total": result['total'],
    })


@require_http_methods(["GET", "PUT"])
@school_api_view
def invoice_detail(request, pk):
    if request.method == "PUT":
        InvoiceService.update_invoice(pk, request.school_id, parse_json_body(request))

    invoice = InvoiceService.get_invoice(pk, request.school_id)
    return JsonResponse({"success": True, "invoice": serialize_invoice(invoice, include_items=True)})


@require_http_methods(["POST"])
@school_api_view
def generate_invoices(request):
    data = parse_json_body(request)
    result = TermInvoiceGenerator.generate(
        request.school_id,
        data.get('term'),
        data.get('year'),
        class_level=data.get('class_level') or None,
        due_date=data.get('due_date') or None,
    )
    return JsonResponse({
        "success": True,
        "message": f"{result['created']} invoices created, {result['skipped']} skipped",
        **result,
    })


@require_http_methods(["POST"])
@school_api_view
def invoice_remind(request, pk):
    data = parse_json_body(request)
    invoice = InvoiceService.send_reminder(pk, request.school_id, data.get('type') or 'sms')
    return JsonResponse({
        "success": True,
        "message": "Reminder recorded",
        "reminder_count": invoice.reminder_count,
    })


@require_http_methods(["POST"])
@school_api_view
def invoices_bulk_remind(request):
    data = parse_json_body(request)
    count = InvoiceService.bulk_send_reminders(
        request.school_id,
        data.get('type') or 'sms',
        data.get('min_balance', 0),
    )
    return JsonResponse({"success": True, "message": f"Reminders recorded for {count} invoices", "count": count})


# =============================================================================
# PAYMENT PLANS
# =============================================================================

@require_http_methods(["GET", "POST"])
@school_api_view
def payment_plans(request):
    if request.method == "POST":
        plan = PaymentPlanService.create_plan(request.school_id, parse_json_body(request))
        plan = PaymentPlanService.get_plan(plan.pk, request.school_id)
        return JsonResponse(
            {"success": True, "message": "Payment plan created", "plan": serialize_plan(plan)},
            status=201
        )

    limit, offset = get_page_params(request)
    result = PaymentPlanService.list_plans(request.school_id, limit, offset)
    return JsonResponse({
        "success": True,
        "data": [serialize_plan(p) for p in result['data']],
        "total": result['total'],
    })


@require_http_methods(["GET"])
@school_api_view
def payment_plan_detail(request, pk):
    plan = PaymentPlanService.get_plan(pk, request.school_id)
    return JsonResponse({"success": True, "plan": serialize_plan(plan)})


@require_http_methods(["POST"])
@school_api_view
def pay_installment(request, pk):
    data = parse_json_body(request)
    payment = PaymentPlanService.pay_installment(
        pk,
        data.get('installment_id'),
        data.get('amount'),
        request.school_id,
        request.user_id,
    )
    return JsonResponse(
        {"success": True, "message": "Installment payment recorded", "payment": serialize_payment(payment)}
    )


# =============================================================================
# OVERRIDES AND SCHOLARSHIPS
# =============================================================================

@require_http_methods(["GET"])
@school_api_view
def student_fee_overrides(request, student_id):
    overrides = OverrideService.list_for_student(student_id, request.school_id)
    return JsonResponse({"success": True, "data": [serialize_override(o) for o in overrides]})


@require_http_methods(["POST"])
@school_api_view
def save_fee_override(request):
    override = OverrideService.upsert(request.school_id, parse_json_body(request))
    return JsonResponse({"success": True, "message": "Fee override saved", "override": serialize_override(override)})


@require_http_methods(["DELETE"])
@school_api_view
def delete_fee_override(request, pk):
    OverrideService.deactivate(pk, request.school_id)
    return JsonResponse({"success": True, "message": "Fee override removed"})


@require_http_methods(["GET", "POST"])
@school_api_view
def scholarships(request):
    if request.method == "POST":
        scholarship = ScholarshipService.create(request.school_id, parse_json_body(request))
        return JsonResponse(
            {"success": True, "message": "Scholarship created", "scholarship": serialize_scholarship(scholarship)},
            status=201
        )

    return JsonResponse({
        "success": True,
        "data": [serialize_scholarship(s) for s in ScholarshipService.list_active(request.school_id)],
    })


@require_http_methods(["POST"])
@school_api_view
def assign_scholarship(request, pk):
    assignment = ScholarshipService.assign(pk, request.school_id, parse_json_body(request))
    return JsonResponse({
        "success": True,
        "message": "Scholarship assigned",
        "assignment_id": assignment.pk,
    })


@require_http_methods(["DELETE"])
@school_api_view
def revoke_scholarship(request, pk):
    ScholarshipService.revoke(pk, request.school_id)
    return JsonResponse({"success": True, "message": "Scholarship assignment revoked"})
