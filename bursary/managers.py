# managers.py

from django.db import models
from threading import local
import logging

logger = logging.getLogger(__name__)

_thread_locals = local()


class TenantContextError(RuntimeError):
    """Raised when a school-scoped query runs without any school context"""
    pass


def get_current_school():
    """Get the current school id for this thread"""
    return getattr(_thread_locals, 'current_school', None)


def set_current_school(school_id):
    """Set the current school id for this thread"""
    if school_id is None:
        return False

    _thread_locals.current_school = int(school_id)
    logger.debug(f"Set current_school to: {school_id}")
    return True


def clear_current_school():
    """Clear the current school setting"""
    if hasattr(_thread_locals, 'current_school'):
        delattr(_thread_locals, 'current_school')


class SchoolContext:
    """Context manager for temporarily switching the active school"""

    def __init__(self, school_id):
        self.school_id = school_id
        self.previous_school = None

    def __enter__(self):
        self.previous_school = get_current_school()
        set_current_school(self.school_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.previous_school is not None:
            set_current_school(self.previous_school)
        else:
            clear_current_school()


class SchoolQuerySet(models.QuerySet):
    """QuerySet that knows how to restrict itself to a single school"""

    def for_school(self, school_id=None):
        """
        Filter on school_id.

        Uses the explicit school_id when given, otherwise the thread's current
        school. Refuses to return unscoped rows when neither is available.
        """
        if school_id is None:
            school_id = get_current_school()

        if school_id is None:
            raise TenantContextError(
                f"No school context available for {self.model.__name__} query"
            )

        return self.filter(school_id=school_id)


class SchoolManager(models.Manager.from_queryset(SchoolQuerySet)):
    """Default manager for every school-scoped model"""
    pass


# ==============================================================================
# UTILITY FUNCTIONS
# ==============================================================================

def with_school(school_id):
    """
    Decorator to execute a function inside a specific school context.

    Example:
        @with_school(12)
        def count_invoices():
            return Invoice.objects.for_school().count()
    """
    def decorator(func):
        def wrapper(*args, **kwargs):
            with SchoolContext(school_id):
                return func(*args, **kwargs)
        return wrapper
    return decorator
