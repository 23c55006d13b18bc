# finance/urls.py

from django.urls import path
from . import ajax_views

app_name = 'finance'

urlpatterns = [
    path('financial-summary/', ajax_views.financial_summary, name='financial_summary'),
    path('finance-transactions/<int:student_id>/', ajax_views.student_transactions, name='student_transactions'),
    path('finance/debtors/', ajax_views.debtors, name='debtors'),
    path('finance/hub-stats/', ajax_views.hub_stats, name='hub_stats'),
]
