# students/utils.py

from utils.exceptions import CrossTenantAccessError

from .models import Student

# =============================================================================
# STUDENT LOOKUPS
# =============================================================================

def get_school_student(school_id, student_id):
    """
    Return the student if it belongs to school_id.

    Unknown ids and students of another school are reported the same way so
    callers cannot probe other schools' rosters.
    """
    student = Student.objects.for_school(school_id).filter(pk=student_id).first()
    if student is None:
        raise CrossTenantAccessError("Student does not belong to the active school")
    return student
