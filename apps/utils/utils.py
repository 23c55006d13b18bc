# utils/utils.py

from django.conf import settings
from django.core.exceptions import ValidationError

# =============================================================================
# CORE UTILITY HELPER FUNCTIONS
# =============================================================================

def get_page_params(request):
    """
    Read limit/offset from request.GET.
    limit defaults to BURSARY['DEFAULT_PAGE_SIZE'] and is capped at MAX_PAGE_SIZE.
    """
    default_size = settings.BURSARY['DEFAULT_PAGE_SIZE']
    max_size = settings.BURSARY['MAX_PAGE_SIZE']

    try:
        limit = int(request.GET.get('limit', default_size))
        offset = int(request.GET.get('offset', 0))
    except ValueError:
        raise ValidationError("limit and offset must be whole numbers")

    if limit < 1 or offset < 0:
        raise ValidationError("limit must be positive and offset cannot be negative")

    return min(limit, max_size), offset


def paginate_queryset(queryset, limit, offset):
    """Slice a queryset, returning (rows, total) where total ignores the slice."""
    total = queryset.count()
    return list(queryset[offset:offset + limit]), total


def parse_filters(request, filter_keys):
    """
    Extract filter values from request.GET.
    filter_keys: list of filter names to extract
    Returns dict: {key: value or None}
    """
    filters = {}
    for key in filter_keys:
        value = request.GET.get(key, '').strip()
        filters[key] = value if value else None
    return filters
