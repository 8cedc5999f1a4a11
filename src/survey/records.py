"""Shared record types for the survey cleaning stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Tuple

import numpy as np

from .codes import Education, Gender, MaritalStatus

RawRecord = Mapping[str, Any]
TopcodePolicy = Literal["exclude", "clip"]
TOPCODE_POLICIES: Tuple[TopcodePolicy, ...] = ("exclude", "clip")


@dataclass(frozen=True)
class RawFieldNames:
    """Column names under which raw records expose each survey variable."""

    income: str = "income"
    gender: str = "gender"
    education: str = "education"
    marital_status: str = "marital_status"


@dataclass(frozen=True)
class TopcodeRule:
    """Explicit handling for incomes above a censoring threshold."""

    threshold: float
    policy: TopcodePolicy

    def __post_init__(self) -> None:
        if not np.isfinite(self.threshold) or self.threshold <= 0:
            raise ValueError("Topcode threshold must be a finite positive number.")
        if self.policy not in TOPCODE_POLICIES:
            raise ValueError(f"Unknown topcode policy '{self.policy}'; expected one of {TOPCODE_POLICIES}.")


@dataclass(frozen=True)
class CleanedRecord:
    """Single validated survey respondent."""

    income: float
    gender: Gender
    education: Education
    marital_status: MaritalStatus

    def value(self, field_name: str) -> Any:
        """Return a field by name, rejecting anything that is not a record field."""
        if field_name not in self.__dataclass_fields__:
            raise ValueError(f"Unknown record field '{field_name}'")
        return getattr(self, field_name)


@dataclass(frozen=True)
class CleaningResult:
    """Output of the cleaning stage: kept records plus rejection bookkeeping."""

    records: Tuple[CleanedRecord, ...]
    rejected: int
    rejection_reasons: Mapping[str, int] = field(default_factory=dict)
    clipped: int = 0

    @property
    def kept(self) -> int:
        return len(self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kept": self.kept,
            "rejected": self.rejected,
            "rejection_reasons": dict(self.rejection_reasons),
            "clipped": self.clipped,
        }


__all__ = [
    "CleanedRecord",
    "CleaningResult",
    "RawFieldNames",
    "RawRecord",
    "TOPCODE_POLICIES",
    "TopcodePolicy",
    "TopcodeRule",
]
