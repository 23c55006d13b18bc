# utils/api.py

"""
Shared plumbing for the JSON endpoints.

school_api_view wraps a view so that it:
- refuses to run without an active school (400)
- maps ValidationError / LedgerError to their status codes
- logs anything unexpected and answers with a generic 500
"""

import functools
import json
import logging

from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from bursary.managers import TenantContextError
from utils.exceptions import LedgerError

logger = logging.getLogger(__name__)

NO_SCHOOL_MESSAGE = "No active school selected"
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"


def error_response(message, status):
    return JsonResponse({"success": False, "message": message}, status=status)


def validation_message(exc):
    return "; ".join(exc.messages)


def school_api_view(view_func):
    """Decorator applied to every school-scoped JSON view."""

    @csrf_exempt
    @functools.wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if getattr(request, 'school_id', None) is None:
            return error_response(NO_SCHOOL_MESSAGE, 400)

        try:
            return view_func(request, *args, **kwargs)
        except ValidationError as e:
            return error_response(validation_message(e), 400)
        except LedgerError as e:
            if e.status_code >= 500:
                logger.error(f"{view_func.__name__} failed: {e.message}")
            return error_response(e.public_message, e.status_code)
        except TenantContextError:
            return error_response(NO_SCHOOL_MESSAGE, 400)
        except Exception:
            logger.exception(f"Unexpected error in {view_func.__name__} ({request.method} {request.path})")
            return error_response(UNEXPECTED_ERROR_MESSAGE, 500)

    return wrapper


def parse_json_body(request):
    """Decode a JSON object body, treating an empty body as {}."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data
