from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import pandas as pd

from .records import RawFieldNames


def load_raw_records(
    path: Path,
    fields: Optional[RawFieldNames] = None,
) -> Iterator[Dict[str, Any]]:
    """Yield raw survey rows from a CSV file as plain dicts.

    Missing cells come back as ``None`` so the cleaner can reject them.
    """
    names = fields or RawFieldNames()
    frame = pd.read_csv(path)

    expected = {names.income, names.gender, names.education, names.marital_status}
    missing = sorted(expected - set(frame.columns))
    if missing:
        raise ValueError(f"{path} is missing required columns: {', '.join(missing)}")

    frame = frame.astype(object).where(pd.notna(frame), None)
    for row in frame.to_dict(orient="records"):
        yield {str(key): value for key, value in row.items()}


__all__ = ["load_raw_records"]
