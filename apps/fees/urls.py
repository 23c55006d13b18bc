# fees/urls.py

from django.urls import path
from . import ajax_views

app_name = 'fees'

urlpatterns = [
    # =============================================================================
    # FEE STRUCTURES
    # =============================================================================
    path('fee-structures/', ajax_views.fee_structures, name='fee_structures'),
    path('fee-structures/<int:pk>/', ajax_views.fee_structure_detail, name='fee_structure_detail'),


    # =============================================================================
    # FEE PAYMENTS
    # =============================================================================
    path('fee-payments/', ajax_views.fee_payments, name='fee_payments'),
    path('fee-payments/student/<int:student_id>/', ajax_views.student_fee_payments, name='student_fee_payments'),
    path('fee-payments/<int:pk>/void/', ajax_views.void_fee_payment, name='void_fee_payment'),


    # =============================================================================
    # INVOICES
    # =============================================================================
    path('invoices/', ajax_views.invoices, name='invoices'),
    path('invoices/generate/', ajax_views.generate_invoices, name='generate_invoices'),
    path('invoices/bulk-remind/', ajax_views.invoices_bulk_remind, name='invoices_bulk_remind'),
    path('invoices/<int:pk>/', ajax_views.invoice_detail, name='invoice_detail'),
    path('invoices/<int:pk>/remind/', ajax_views.invoice_remind, name='invoice_remind'),


    # =============================================================================
    # PAYMENT PLANS
    # =============================================================================
    path('payment-plans/', ajax_views.payment_plans, name='payment_plans'),
    path('payment-plans/<int:pk>/', ajax_views.payment_plan_detail, name='payment_plan_detail'),
    path('payment-plans/<int:pk>/pay/', ajax_views.pay_installment, name='pay_installment'),


    # =============================================================================
    # OVERRIDES AND SCHOLARSHIPS
    # =============================================================================
    path('student-fee-overrides/', ajax_views.save_fee_override, name='save_fee_override'),
    path('student-fee-overrides/<int:student_id>/', ajax_views.student_fee_overrides, name='student_fee_overrides'),
    path('student-fee-overrides/<int:pk>/delete/', ajax_views.delete_fee_override, name='delete_fee_override'),
    path('scholarships/', ajax_views.scholarships, name='scholarships'),
    path('scholarships/<int:pk>/assign/', ajax_views.assign_scholarship, name='assign_scholarship'),
    path('scholarship-assignments/<int:pk>/', ajax_views.revoke_scholarship, name='revoke_scholarship'),
]
