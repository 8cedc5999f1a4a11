"""Categorical code tables for the survey variables.

Each raw survey variable is stored as a small integer code. The tables below
map every recognised code to an enum member; codes not listed are invalid and
cause the record to be rejected. Enum declaration order is the canonical level
ordering used for grouping and for choosing regression reference levels.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Mapping, Optional, Type


class Gender(Enum):
    MALE = "Male"
    FEMALE = "Female"


class Education(Enum):
    NO_DEGREE = "NoDegree"
    HIGH_SCHOOL = "HighSchool"
    ASSOCIATES = "Associates"
    BACHELORS = "Bachelors"
    GRADUATE = "Graduate"


class MaritalStatus(Enum):
    NEVER_MARRIED = "NeverMarried"
    MARRIED = "Married"
    SEPARATED = "Separated"
    DIVORCED = "Divorced"
    WIDOWED = "Widowed"


GENDER_CODES: Mapping[int, Gender] = {
    1: Gender.MALE,
    2: Gender.FEMALE,
}

# Eight raw attainment codes collapse into five levels.
EDUCATION_CODES: Mapping[int, Education] = {
    0: Education.NO_DEGREE,
    1: Education.NO_DEGREE,
    2: Education.HIGH_SCHOOL,
    3: Education.ASSOCIATES,
    4: Education.BACHELORS,
    5: Education.GRADUATE,
    6: Education.GRADUATE,
    7: Education.GRADUATE,
}

MARITAL_STATUS_CODES: Mapping[int, MaritalStatus] = {
    0: MaritalStatus.NEVER_MARRIED,
    1: MaritalStatus.MARRIED,
    2: MaritalStatus.SEPARATED,
    3: MaritalStatus.DIVORCED,
    4: MaritalStatus.WIDOWED,
}

CATEGORICAL_FIELDS: Mapping[str, Type[Enum]] = {
    "gender": Gender,
    "education": Education,
    "marital_status": MaritalStatus,
}

NUMERIC_FIELDS = ("income",)

CODE_TABLES: Mapping[str, Mapping[int, Enum]] = {
    "gender": GENDER_CODES,
    "education": EDUCATION_CODES,
    "marital_status": MARITAL_STATUS_CODES,
}


def canonical_rank(member: Enum) -> int:
    """Position of ``member`` within its enum declaration."""
    return list(type(member)).index(member)


def canonical_code(member: Enum) -> int:
    """Smallest raw code that recodes to ``member``."""
    table = CODE_TABLES[_field_for_enum(type(member))]
    return min(code for code, value in table.items() if value is member)


def _field_for_enum(enum_cls: Type[Enum]) -> str:
    lookup: Dict[Type[Enum], str] = {cls: name for name, cls in CATEGORICAL_FIELDS.items()}
    field: Optional[str] = lookup.get(enum_cls)
    if field is None:
        raise KeyError(f"No code table registered for {enum_cls.__name__}")
    return field


__all__ = [
    "CATEGORICAL_FIELDS",
    "CODE_TABLES",
    "EDUCATION_CODES",
    "Education",
    "GENDER_CODES",
    "Gender",
    "MARITAL_STATUS_CODES",
    "MaritalStatus",
    "NUMERIC_FIELDS",
    "canonical_code",
    "canonical_rank",
]
