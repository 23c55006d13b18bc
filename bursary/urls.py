"""
URL configuration for the bursary project.

Every ledger endpoint lives under /api/ and is scoped to the school resolved
by SchoolContextMiddleware.
"""
from django.urls import path, include

from utils.views import health_check

urlpatterns = [
    path('health/', health_check, name='health'),

    # Fee ledger: catalog, invoices, payments, plans, overrides
    path('api/', include(('fees.urls', 'fees'), namespace='fees')),

    # Finance ledger: summaries, debtors, student transactions
    path('api/', include(('finance.urls', 'finance'), namespace='finance')),
]
