# bursary/middleware.py

"""
Multi-tenant school context middleware.

This middleware:
1. Resolves the active school and acting user for each request
2. Exposes them as request.school_id / request.user_id
3. Sets the thread-local school used by SchoolManager.for_school()
4. Restores the previous context once the response is built

Session handling and login belong to the upstream auth layer. This
middleware only reads what that layer has already established:
- session['school_id'] / session['user_id'] for browser sessions
- X-School-Id / X-User-Id headers for calls forwarded by the gateway
"""

import logging

from .managers import get_current_school, set_current_school, clear_current_school

logger = logging.getLogger(__name__)


class SchoolContextMiddleware:
    """
    Resolve (school_id, user_id) and bind the school to the current thread.

    Lookup order:
    1. Authenticated session keys
    2. Gateway headers
    3. None (views decide whether that is acceptable)
    """

    # Paths that never need a school context
    SYSTEM_PATHS = ['/health/', '/static/']

    SCHOOL_HEADER = 'HTTP_X_SCHOOL_ID'
    USER_HEADER = 'HTTP_X_USER_ID'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        original_school = get_current_school()

        request.school_id = None
        request.user_id = None

        if not self.is_system_path(request.path):
            request.school_id = self.resolve_school_id(request)
            request.user_id = self.resolve_user_id(request)

            if request.school_id is not None:
                set_current_school(request.school_id)
                logger.debug(f"Bound school context {request.school_id} for {request.path}")

        try:
            response = self.get_response(request)
        finally:
            # Restore original school context
            if original_school is not None:
                set_current_school(original_school)
            else:
                clear_current_school()

        return response

    def is_system_path(self, path):
        """Check if path never needs a school context."""
        return any(path.startswith(p) for p in self.SYSTEM_PATHS)

    # ==========================================================================
    # CONTEXT RESOLUTION
    # ==========================================================================

    def resolve_school_id(self, request):
        session = getattr(request, 'session', None)
        value = session.get('school_id') if session is not None else None
        if value is None:
            value = request.META.get(self.SCHOOL_HEADER)
        return self._to_int(value, 'school_id')

    def resolve_user_id(self, request):
        session = getattr(request, 'session', None)
        value = session.get('user_id') if session is not None else None
        if value is None:
            value = request.META.get(self.USER_HEADER)
        return self._to_int(value, 'user_id')

    @staticmethod
    def _to_int(value, label):
        if value in (None, ''):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed {label} in request context: {value!r}")
            return None
