# This project was developed with assistance from AI tools.
"""Field models and validation descriptors for the ten wizard steps.

All fields default to an empty value ("" / False / [] / None) so partial
drafts round-trip without type errors. Numeric fields accept numeric
strings; an empty string in a numeric field becomes None.
"""

from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict

from .engine import (
    EMAIL_PATTERN,
    PASSPORT_PATTERN,
    AnyOfRule,
    ConditionalRule,
    DateOrderRule,
    ElementRule,
    FormatRule,
    MinimumRule,
    StepSchema,
    is_blank,
    parse_date,
)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _check_date(value: str) -> str:
    if value and parse_date(value) is None:
        raise ValueError("日期格式应为 YYYY-MM-DD")
    return value


Number = Annotated[float | None, BeforeValidator(_blank_to_none)]
Integer = Annotated[int | None, BeforeValidator(_blank_to_none)]
DateStr = Annotated[str, AfterValidator(_check_date)]

MaritalStatus = Literal["", "SINGLE", "MARRIED", "LEGALLY_SEPARATED", "DIVORCED", "WIDOWED"]
EmploymentStatus = Literal["", "employed", "self_employed", "unemployed", "student", "retired"]


class _StepModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


# -- 1. basic-info --


class BasicInfo(_StepModel):
    surname: str = ""
    given_names: str = ""
    full_name_native: str = ""
    has_used_other_names: bool = False
    other_surnames: str = ""
    other_given_names: str = ""
    sex: Literal["", "MALE", "FEMALE"] = ""
    marital_status: MaritalStatus = ""
    date_of_birth: DateStr = ""
    city_of_birth: str = ""
    state_province_of_birth: str = ""
    passport_number: str = ""
    passport_expiry: DateStr = ""


BASIC_INFO = StepSchema(
    model=BasicInfo,
    required={
        "surname": "请输入姓氏 (Last Name)",
        "given_names": "请输入名字 (First Names)",
        "full_name_native": "请输入中文全名",
        "sex": "请选择性别",
        "marital_status": "请选择婚姻状况",
        "date_of_birth": "请选择出生日期",
        "city_of_birth": "请输入出生城市",
        "state_province_of_birth": "请选择出生省份",
        "passport_number": "护照号码格式不正确（如：G12345678）",
        "passport_expiry": "请选择护照有效期至",
    },
    rules=(
        ConditionalRule(lambda d: d["has_used_other_names"], "other_surnames", "请输入曾用姓氏"),
        ConditionalRule(lambda d: d["has_used_other_names"], "other_given_names", "请输入曾用名字"),
        FormatRule("passport_number", PASSPORT_PATTERN, "护照号码格式不正确（如：G12345678）"),
    ),
)


# -- 2. personal-info-2 --


class PersonalInfo2(_StepModel):
    nationality: str = ""
    other_nationalities: bool = False
    other_nationalities_list: list[str] = []
    us_social_security_number: str = ""
    marital_status: MaritalStatus = ""
    other_names_used: bool = False
    other_surnames: str = ""
    other_given_names: str = ""


PERSONAL_INFO_2 = StepSchema(
    model=PersonalInfo2,
    required={
        "nationality": "请选择国籍",
        "marital_status": "请选择婚姻状况",
    },
    rules=(
        ConditionalRule(
            lambda d: d["other_nationalities"], "other_nationalities_list", "请输入其他国籍"
        ),
        ConditionalRule(lambda d: d["other_names_used"], "other_surnames", "请输入曾用姓氏"),
        ConditionalRule(lambda d: d["other_names_used"], "other_given_names", "请输入曾用名字"),
    ),
)


# -- 3. address-phone --


class SocialMediaAccount(_StepModel):
    platform: str = ""
    username: str = ""


class AddressPhone(_StepModel):
    home_address_street: str = ""
    home_address_city: str = ""
    home_address_state: str = ""
    home_address_postal_code: str = ""
    home_address_country: str = ""
    is_mailing_address_same_as_home: bool = True
    mailing_address_street: str = ""
    mailing_address_city: str = ""
    mailing_address_state: str = ""
    mailing_address_postal_code: str = ""
    mailing_address_country: str = ""
    primary_phone_number: str = ""
    secondary_phone_number: str = ""
    work_phone_number: str = ""
    email_address: str = ""
    social_media_accounts: list[SocialMediaAccount] = []


ADDRESS_PHONE = StepSchema(
    model=AddressPhone,
    required={
        "home_address_street": "请输入家庭地址",
        "home_address_city": "请输入城市",
        "home_address_state": "请选择省/市",
        "home_address_country": "请选择国家",
        "primary_phone_number": "请输入主要电话号码",
        "email_address": "请输入有效的邮箱地址",
    },
    rules=(
        ConditionalRule(
            lambda d: not d["is_mailing_address_same_as_home"],
            "mailing_address_street",
            "请输入邮寄地址",
        ),
        FormatRule("email_address", EMAIL_PATTERN, "请输入有效的邮箱地址"),
        ElementRule(
            "social_media_accounts",
            {"platform": "请选择社交媒体平台", "username": "请输入社交媒体账号"},
        ),
    ),
)


# -- 4. work-info --


class WorkInfo(_StepModel):
    primary_occupation: str = ""
    employment_status: EmploymentStatus = ""
    employer_name: str = ""
    employer_address: str = ""
    employer_phone: str = ""
    job_title: str = ""
    monthly_salary: Number = None
    employment_start_date: DateStr = ""
    duties: str = ""


def _has_employer(data: dict) -> bool:
    return data["employment_status"] in ("employed", "self_employed")


WORK_INFO = StepSchema(
    model=WorkInfo,
    required={
        "primary_occupation": "请输入主要职业",
        "employment_status": "请选择就业状态",
    },
    rules=(
        ConditionalRule(_has_employer, "employer_name", "请输入雇主名称"),
        ConditionalRule(_has_employer, "job_title", "请输入职位名称"),
    ),
)


# -- 5. family-info --


class FamilyInfo(_StepModel):
    father_surname: str = ""
    father_given_name: str = ""
    father_birth_date: DateStr = ""
    father_in_us: bool = False
    mother_surname: str = ""
    mother_given_name: str = ""
    mother_birth_date: DateStr = ""
    mother_in_us: bool = False
    spouse_surname: str = ""
    spouse_given_name: str = ""
    spouse_birth_date: DateStr = ""
    spouse_nationality: str = ""


FAMILY_INFO = StepSchema(
    model=FamilyInfo,
    required={
        "father_surname": "请输入父亲姓氏",
        "father_given_name": "请输入父亲名字",
        "father_birth_date": "请选择父亲出生日期",
        "mother_surname": "请输入母亲姓氏",
        "mother_given_name": "请输入母亲名字",
        "mother_birth_date": "请选择母亲出生日期",
    },
)


# -- 6. travel-info --


class TravelInfo(_StepModel):
    purpose_of_trip: str = ""
    arrival_date: DateStr = ""
    arrival_flight: str = ""
    arrival_city: str = ""
    departure_date: DateStr = ""
    departure_flight: str = ""
    departure_city: str = ""
    trip_duration: Integer = None
    address_in_us: str = ""
    paying_person_relationship: str = ""


TRAVEL_INFO = StepSchema(
    model=TravelInfo,
    required={
        "purpose_of_trip": "请选择访问目的",
        "arrival_date": "请选择预计到达日期",
        "departure_date": "请选择预计离开日期",
        "trip_duration": "请输入有效的停留天数",
        "address_in_us": "请输入在美国的地址",
        "paying_person_relationship": "请输入费用承担关系",
    },
    rules=(
        DateOrderRule("arrival_date", "departure_date", "离开日期必须晚于到达日期"),
        MinimumRule("trip_duration", 1, "请输入有效的停留天数"),
    ),
)


# -- 7. travel-companions --


class Companion(_StepModel):
    surname: str = ""
    given_name: str = ""
    relationship: str = ""


class TravelCompanions(_StepModel):
    traveling_with_others: bool = False
    traveling_as_group: bool = False
    group_name: str = ""
    companions: list[Companion] = []


TRAVEL_COMPANIONS = StepSchema(
    model=TravelCompanions,
    rules=(
        ConditionalRule(lambda d: d["traveling_with_others"], "companions", "请添加至少一位旅行同伴"),
        ConditionalRule(lambda d: d["traveling_as_group"], "group_name", "请输入团体名称"),
        ElementRule(
            "companions",
            {
                "surname": "请输入同伴姓氏",
                "given_name": "请输入同伴名字",
                "relationship": "请选择关系",
            },
        ),
    ),
)


# -- 8. previous-us-travel --


class PreviousVisit(_StepModel):
    arrival_date: DateStr = ""
    length_of_stay: str = ""
    visa_number: str = ""


class PreviousUsTravel(_StepModel):
    been_to_us: bool = False
    previous_visits: list[PreviousVisit] = []
    us_drivers_license: bool = False
    license_number: str = ""
    license_state: str = ""
    visa_lost: bool = False


PREVIOUS_US_TRAVEL = StepSchema(
    model=PreviousUsTravel,
    rules=(
        ConditionalRule(lambda d: d["been_to_us"], "previous_visits", "请添加至少一次访问记录"),
        ConditionalRule(lambda d: d["us_drivers_license"], "license_number", "请输入驾照号码"),
        ConditionalRule(lambda d: d["us_drivers_license"], "license_state", "请选择签发州"),
        ElementRule(
            "previous_visits",
            {"arrival_date": "请输入到达日期", "length_of_stay": "请输入停留时长"},
        ),
    ),
)


# -- 9. us-contact --


class UsContact(_StepModel):
    contact_person: str = ""
    organization_name: str = ""
    relationship: str = ""
    contact_address: str = ""
    contact_phone: str = ""
    contact_email: str = ""


def _has_any_contact(data: dict) -> bool:
    return any(not is_blank(v) for v in data.values())


US_CONTACT = StepSchema(
    model=UsContact,
    rules=(
        AnyOfRule(
            _has_any_contact,
            ("contact_person", "organization_name"),
            "请输入联系人姓名或机构名称",
        ),
        ConditionalRule(_has_any_contact, "relationship", "请选择与您的关系"),
        FormatRule("contact_email", EMAIL_PATTERN, "请输入有效的邮箱地址"),
    ),
)


# -- 10. upload --


class Upload(_StepModel):
    """Uploaded attachment ids per document type."""

    passport: list[str] = []
    photo: list[str] = []
    employment: list[str] = []
    financial: list[str] = []
    other: list[str] = []


UPLOAD = StepSchema(
    model=Upload,
    required={
        "passport": "请上传护照信息页",
        "photo": "请上传证件照片",
        "employment": "请上传在职证明",
        "financial": "请上传银行流水",
    },
)
