from .cleaning import clean_record, clean_records, record_to_raw
from .codes import CATEGORICAL_FIELDS, NUMERIC_FIELDS, Education, Gender, MaritalStatus
from .errors import (
    IncomeGapError,
    InputCardinalityError,
    InsufficientSampleError,
    InvalidRecordError,
    SingularDesignMatrixError,
)
from .loader import load_raw_records
from .records import CleanedRecord, CleaningResult, RawFieldNames, RawRecord, TopcodeRule

__all__ = [
    "CATEGORICAL_FIELDS",
    "NUMERIC_FIELDS",
    "CleanedRecord",
    "CleaningResult",
    "Education",
    "Gender",
    "IncomeGapError",
    "InputCardinalityError",
    "InsufficientSampleError",
    "InvalidRecordError",
    "MaritalStatus",
    "RawFieldNames",
    "RawRecord",
    "SingularDesignMatrixError",
    "TopcodeRule",
    "clean_record",
    "clean_records",
    "load_raw_records",
    "record_to_raw",
]
