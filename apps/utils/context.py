# utils/context.py

"""
Thread-local request context for audit stamping.

The middleware records who is acting and from where at the start of each
request; BaseModel.save() reads it back to fill created_by_id/updated_by_id.
"""

from threading import local
import logging

logger = logging.getLogger(__name__)

# Thread-local storage
_thread_locals = local()


def set_request_context(user_id=None, ip_address=None, request_path=None):
    """
    Set the current request context for this thread.

    Args:
        user_id: Id of the acting user supplied by the auth layer (or None)
        ip_address: Client IP address
        request_path: The request path/URL
    """
    _thread_locals.request_context = {
        'user_id': user_id,
        'ip_address': ip_address,
        'request_path': request_path or '',
    }

    logger.debug(f"Set request context: user_id={user_id}, ip={ip_address}")


def get_request_context():
    """
    Get the current request context for this thread.

    Returns:
        dict with user_id, ip_address and request_path, or None if unset.
    """
    return getattr(_thread_locals, 'request_context', None)


def get_current_user_id():
    context = get_request_context()
    return context.get('user_id') if context else None


def clear_request_context():
    """Clear the request context for this thread."""
    if hasattr(_thread_locals, 'request_context'):
        delattr(_thread_locals, 'request_context')
        logger.debug("Cleared request context")


def get_client_ip(request):
    """
    Extract the client's real IP address from the request.

    Handles X-Forwarded-For header for proxied requests.
    """
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


# ============================================================================
# CONTEXT MANAGER
# ============================================================================

class RequestContext:
    """
    Context manager for temporarily setting request context.

    Useful for management commands and tests that write ledger rows
    outside a request.

    Example:
        with RequestContext(user_id=7):
            PaymentService.record_payment(...)
    """

    def __init__(self, user_id=None, ip_address=None, request_path=None):
        self.context = {
            'user_id': user_id,
            'ip_address': ip_address,
            'request_path': request_path or '',
        }
        self.previous_context = None

    def __enter__(self):
        self.previous_context = get_request_context()
        _thread_locals.request_context = self.context
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.previous_context:
            _thread_locals.request_context = self.previous_context
        else:
            clear_request_context()
