# This project was developed with assistance from AI tools.
"""Shared test data: minimal valid wizard steps and fake storage."""

import itertools
from unittest.mock import AsyncMock, MagicMock

VALID_STEPS: dict[str, dict] = {
    "basic-info": {
        "surname": "ZHANG",
        "given_names": "SAN",
        "full_name_native": "张三",
        "sex": "MALE",
        "marital_status": "SINGLE",
        "date_of_birth": "1990-05-01",
        "city_of_birth": "Hangzhou",
        "state_province_of_birth": "Zhejiang",
        "passport_number": "E12345678",
        "passport_expiry": "2031-05-01",
    },
    "personal-info-2": {"nationality": "CHINA", "marital_status": "SINGLE"},
    "address-phone": {
        "home_address_street": "1 West Lake Road",
        "home_address_city": "Hangzhou",
        "home_address_state": "Zhejiang",
        "home_address_country": "CHINA",
        "is_mailing_address_same_as_home": True,
        "primary_phone_number": "13800000000",
        "email_address": "zhangsan@example.com",
    },
    "work-info": {
        "primary_occupation": "ENGINEER",
        "employment_status": "employed",
        "employer_name": "Acme Ltd",
        "job_title": "Engineer",
    },
    "family-info": {
        "father_surname": "ZHANG",
        "father_given_name": "YI",
        "father_birth_date": "1960-01-01",
        "mother_surname": "LI",
        "mother_given_name": "ER",
        "mother_birth_date": "1962-02-02",
    },
    "travel-info": {
        "purpose_of_trip": "TOURISM",
        "arrival_date": "2027-03-01",
        "departure_date": "2027-03-15",
        "trip_duration": 14,
        "address_in_us": "100 Market St, San Francisco, CA",
        "paying_person_relationship": "SELF",
    },
    "travel-companions": {"traveling_with_others": False},
    "previous-us-travel": {"been_to_us": False},
    "us-contact": {},
    "upload": {},
}

REQUIRED_UPLOADS = ("passport", "photo", "employment", "financial")

_case_seq = itertools.count(1)


def make_mock_storage() -> MagicMock:
    """StorageService stand-in: records uploads, never touches S3."""
    storage = MagicMock()
    storage.build_object_key.side_effect = (
        lambda case_id, attachment_id, filename: f"cases/{case_id}/{attachment_id}/{filename}"
    )
    storage.upload_file = AsyncMock(side_effect=lambda data, key, content_type: key)
    storage.delete_file = AsyncMock()
    storage.get_download_url = AsyncMock(return_value="https://storage.example/signed")
    return storage


async def insert_case(
    session,
    *,
    status=None,
    consultant_id: int = 2,
    organization_id: int = 1,
    case_number: str | None = None,
    visa_type=None,
    review_round: int = 1,
    applicant_name: str = "张三",
):
    """Insert a case (and applicant) directly, bypassing the workflow."""
    from db import Applicant, Case
    from db.enums import CaseStatus, VisaType

    case = Case(
        case_number=case_number or f"V20260101{next(_case_seq):04d}",
        organization_id=organization_id,
        consultant_id=consultant_id,
        visa_type=visa_type or VisaType.B1_B2,
        status=status or CaseStatus.CREATED,
        review_round=review_round,
        is_vip=False,
    )
    case.applicant = Applicant(name=applicant_name)
    session.add(case)
    await session.commit()
    return case


async def complete_all_steps(session, case) -> None:
    """Mark every wizard step saved with ``continue``."""
    from db import FormSection

    from src.wizard import STEP_KEYS

    for key in STEP_KEYS:
        session.add(
            FormSection(case_id=case.id, step=key, data=VALID_STEPS.get(key, {}), is_complete=True)
        )
    await session.commit()
