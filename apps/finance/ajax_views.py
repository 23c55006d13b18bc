# finance/ajax_views.py

from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
import logging

from finance.debtors import list_debtors
from finance.stats import get_financial_summary, get_hub_stats, get_student_transactions
from utils.api import school_api_view
from utils.utils import get_page_params, parse_filters
from utils.validators import parse_term, parse_year

logger = logging.getLogger(__name__)


# =============================================================================
# SUMMARIES
# =============================================================================

@require_http_methods(["GET"])
@school_api_view
def financial_summary(request):
    return JsonResponse({"success": True, **get_financial_summary(request.school_id)})


@require_http_methods(["GET"])
@school_api_view
def hub_stats(request):
    filters = parse_filters(request, ['term', 'year'])
    stats = get_hub_stats(
        request.school_id,
        term=parse_term(filters['term'], required=False),
        year=parse_year(filters['year'], required=False),
    )
    return JsonResponse({"success": True, **stats})


@require_http_methods(["GET"])
@school_api_view
def student_transactions(request, student_id):
    rows = get_student_transactions(student_id, request.school_id)
    return JsonResponse({"success": True, "data": rows})


# =============================================================================
# DEBTORS
# =============================================================================

@require_http_methods(["GET"])
@school_api_view
def debtors(request):
    limit, offset = get_page_params(request)
    filters = parse_filters(request, ['term', 'year', 'class_level'])
    result = list_debtors(
        request.school_id,
        term=filters['term'],
        year=filters['year'],
        class_level=filters['class_level'],
        limit=limit,
        offset=offset,
    )
    return JsonResponse({"success": True, **result})
