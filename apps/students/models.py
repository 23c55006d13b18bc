# students/models.py

from django.db import models
from utils.models import SchoolScopedModel

import logging

logger = logging.getLogger(__name__)


# =============================================================================
# STUDENT MODEL
# =============================================================================

class Student(SchoolScopedModel):
    """
    Billing view of a student.

    Enrollment, guardians and academic records are owned by the student
    records service; the ledger only needs what drives fee selection.
    """

    # -------------------------------------------------------------------------
    # CHOICE FIELDS
    # -------------------------------------------------------------------------

    BOARDING_STATUS_CHOICES = (
        ('day', 'Day Scholar'),
        ('boarding', 'Boarder'),
    )

    # -------------------------------------------------------------------------
    # BASIC INFORMATION
    # -------------------------------------------------------------------------

    first_name = models.CharField("First Name", max_length=100)
    last_name = models.CharField("Last Name", max_length=100, blank=True)
    admission_number = models.CharField("Admission Number", max_length=50, blank=True)

    class_level = models.CharField(
        "Class Level",
        max_length=50,
        db_index=True,
        help_text="Current grade/class level, e.g. P5 or S2"
    )
    boarding_status = models.CharField(
        "Boarding Status",
        max_length=10,
        choices=BOARDING_STATUS_CHOICES,
        default='day'
    )
    is_active = models.BooleanField("Is Active", default=True, db_index=True)

    class Meta:
        ordering = ['class_level', 'first_name', 'last_name']
        indexes = [
            models.Index(fields=['school_id', 'is_active', 'class_level'], name='student_roster_idx'),
        ]

    def __str__(self):
        return self.get_full_name()

    def get_full_name(self):
        return f"{self.first_name} {self.last_name}".strip()
