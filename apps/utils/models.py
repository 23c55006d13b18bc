# utils/models.py

"""
Base models for the bursary ledger.

Key Features:
- Creation/update timestamps set on save
- Audit stamping of the acting user and IP from the request context
- School scoping through a plain school_id column and SchoolManager
"""

from django.db import models
from django.utils import timezone
from bursary.managers import SchoolManager
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# BASE MODEL
# =============================================================================

class BaseModel(models.Model):
    """
    Abstract base with timestamps and audit trail fields.

    created_at is only filled when not already provided, so imports and
    tests can backdate records.
    """

    created_at = models.DateTimeField("Created At", db_index=True)
    updated_at = models.DateTimeField("Updated At")

    # Plain ids: users live in the upstream auth service
    created_by_id = models.PositiveIntegerField("Created By ID", null=True, blank=True)
    updated_by_id = models.PositiveIntegerField("Updated By ID", null=True, blank=True)

    created_from_ip = models.GenericIPAddressField("Created From IP", null=True, blank=True)
    updated_from_ip = models.GenericIPAddressField("Updated From IP", null=True, blank=True)

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        from utils.context import get_request_context

        is_new = self._state.adding
        now = timezone.now()

        if is_new and not self.created_at:
            self.created_at = now
        self.updated_at = now

        context = get_request_context()
        if context:
            user_id = context.get('user_id')
            ip_address = context.get('ip_address')

            if is_new:
                if user_id and not self.created_by_id:
                    self.created_by_id = user_id
                if ip_address and not self.created_from_ip:
                    self.created_from_ip = ip_address

            if user_id:
                self.updated_by_id = user_id
            if ip_address:
                self.updated_from_ip = ip_address

        # update_fields callers must still persist the timestamp and audit stamps
        update_fields = kwargs.get('update_fields')
        if update_fields is not None:
            kwargs['update_fields'] = set(update_fields) | {
                'updated_at', 'updated_by_id', 'updated_from_ip'
            }

        return super().save(*args, **kwargs)


# =============================================================================
# SCHOOL-SCOPED MODEL
# =============================================================================

class SchoolScopedModel(BaseModel):
    """
    Base for every tenant-owned row.

    There is no School table in this service; the tenant is the school_id
    column and every service query goes through objects.for_school().
    """

    school_id = models.PositiveIntegerField("School ID", db_index=True)

    objects = SchoolManager()

    class Meta:
        abstract = True
