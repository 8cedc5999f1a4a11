"""Validation and recoding of raw survey rows into typed records."""

from __future__ import annotations

import math
from collections import Counter
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, TypeVar

import numpy as np

from .codes import EDUCATION_CODES, GENDER_CODES, MARITAL_STATUS_CODES, canonical_code
from .errors import InvalidRecordError
from .records import CleanedRecord, CleaningResult, RawFieldNames, RawRecord, TopcodeRule

EnumT = TypeVar("EnumT", bound=Enum)


def clean_records(
    raw_records: Iterable[RawRecord],
    fields: Optional[RawFieldNames] = None,
    topcode: Optional[TopcodeRule] = None,
) -> CleaningResult:
    """Recode every raw record, keeping valid ones in their original order.

    Invalid records are dropped and tallied by rejection reason; nothing is
    imputed.
    """
    names = fields or RawFieldNames()
    kept: List[CleanedRecord] = []
    reasons: Counter[str] = Counter()
    clipped = 0

    for raw in raw_records:
        try:
            record, was_clipped = _clean_one(raw, names, topcode)
        except InvalidRecordError as exc:
            reasons[exc.reason] += 1
            continue
        kept.append(record)
        clipped += int(was_clipped)

    return CleaningResult(
        records=tuple(kept),
        rejected=sum(reasons.values()),
        rejection_reasons=dict(sorted(reasons.items())),
        clipped=clipped,
    )


def clean_record(
    raw: RawRecord,
    fields: Optional[RawFieldNames] = None,
    topcode: Optional[TopcodeRule] = None,
) -> CleanedRecord:
    """Recode a single raw record or raise `InvalidRecordError`."""
    record, _ = _clean_one(raw, fields or RawFieldNames(), topcode)
    return record


def record_to_raw(record: CleanedRecord, fields: Optional[RawFieldNames] = None) -> Dict[str, Any]:
    """Express a cleaned record as a raw row using canonical codes."""
    names = fields or RawFieldNames()
    return {
        names.income: record.income,
        names.gender: canonical_code(record.gender),
        names.education: canonical_code(record.education),
        names.marital_status: canonical_code(record.marital_status),
    }


def _clean_one(
    raw: RawRecord,
    names: RawFieldNames,
    topcode: Optional[TopcodeRule],
) -> Tuple[CleanedRecord, bool]:
    gender = _recode(raw, names.gender, GENDER_CODES, "gender")
    education = _recode(raw, names.education, EDUCATION_CODES, "education")
    marital_status = _recode(raw, names.marital_status, MARITAL_STATUS_CODES, "marital_status")
    income = parse_income(raw.get(names.income))

    was_clipped = False
    if topcode is not None and income > topcode.threshold:
        if topcode.policy == "exclude":
            raise InvalidRecordError("income", income, "topcoded")
        income = float(topcode.threshold)
        was_clipped = True

    record = CleanedRecord(
        income=income,
        gender=gender,
        education=education,
        marital_status=marital_status,
    )
    return record, was_clipped


def _recode(raw: RawRecord, column: str, table: Mapping[int, EnumT], field: str) -> EnumT:
    value = raw.get(column)
    code = parse_code(value, field)
    member = table.get(code)
    if member is None:
        raise InvalidRecordError(field, value, f"unrecognized {field} code")
    return member


def parse_code(value: Any, field: str) -> int:
    """Convert integer-like raw codes (``2``, ``2.0``, ``"2"``) to ints."""
    if value is None:
        raise InvalidRecordError(field, value, f"missing {field}")
    if isinstance(value, (bool, np.bool_)):
        raise InvalidRecordError(field, value, f"unrecognized {field} code")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidRecordError(field, value, f"missing {field}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(field, value, f"unrecognized {field} code") from None
    if math.isnan(number):
        raise InvalidRecordError(field, value, f"missing {field}")
    if not math.isfinite(number) or not number.is_integer():
        raise InvalidRecordError(field, value, f"unrecognized {field} code")
    return int(number)


def parse_income(value: Any) -> float:
    """Parse a strictly positive, finite income."""
    if value is None:
        raise InvalidRecordError("income", value, "missing income")
    if isinstance(value, (bool, np.bool_)):
        raise InvalidRecordError("income", value, "non-numeric income")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidRecordError("income", value, "missing income")
    try:
        income = float(value)
    except (TypeError, ValueError):
        raise InvalidRecordError("income", value, "non-numeric income") from None
    if math.isnan(income):
        raise InvalidRecordError("income", value, "missing income")
    if not math.isfinite(income):
        raise InvalidRecordError("income", value, "non-finite income")
    if income <= 0:
        raise InvalidRecordError("income", value, "non-positive income")
    return income


__all__ = ["clean_record", "clean_records", "parse_code", "parse_income", "record_to_raw"]
