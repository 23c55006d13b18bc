# tests/conftest.py

import datetime
from decimal import Decimal

import pytest
from django.test import Client

from fees.models import FeeStructure
from students.models import Student

SCHOOL_ID = 1
OTHER_SCHOOL_ID = 2
USER_ID = 7


@pytest.fixture
def school_id():
    return SCHOOL_ID


@pytest.fixture
def other_school_id():
    return OTHER_SCHOOL_ID


@pytest.fixture
def make_student(db):
    def _make(first_name="Amina", class_level="P5", boarding_status="day",
              school_id=SCHOOL_ID, is_active=True, last_name="Nakato"):
        return Student.objects.create(
            school_id=school_id,
            first_name=first_name,
            last_name=last_name,
            class_level=class_level,
            boarding_status=boarding_status,
            is_active=is_active,
        )
    return _make


@pytest.fixture
def student(make_student):
    return make_student()


@pytest.fixture
def make_structure(db):
    def _make(fee_type="Tuition", amount=500000, class_level="P5", term=1, year=2025,
              boarding_status="all", school_id=SCHOOL_ID, is_active=True):
        return FeeStructure.objects.create(
            school_id=school_id,
            class_level=class_level,
            fee_type=fee_type,
            amount=Decimal(amount),
            term=term,
            year=year,
            boarding_status=boarding_status,
            is_active=is_active,
        )
    return _make


@pytest.fixture
def tuition(make_structure):
    return make_structure()


@pytest.fixture
def api(db):
    """Client acting as USER_ID inside SCHOOL_ID, as forwarded by the gateway."""
    return Client(HTTP_X_SCHOOL_ID=str(SCHOOL_ID), HTTP_X_USER_ID=str(USER_ID))


@pytest.fixture
def anonymous_api(db):
    return Client()


@pytest.fixture
def today():
    return datetime.date(2025, 6, 15)
