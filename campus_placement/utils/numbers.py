"""
Numeric helpers shared by the analytics services.

Student and job documents come from bulk imports and free-form forms, so
numbers may arrive as ints, floats, numeric strings or garbage.
"""

import math
import re
from typing import Any, Optional


def as_number(value: Any) -> Optional[float]:
    """
    Parse a loosely-typed numeric field.

    Returns None for missing, boolean, non-finite or unparseable values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for positives (2.5 -> 3), unlike round()."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def percentage(part: int, total: int) -> int:
    """Integer percentage of part/total; 0 when total is 0."""
    if total <= 0:
        return 0
    return int(round_half_up(part / total * 100))


CTC_NUMBER = re.compile(r"\d+(?:\.\d+)?")


def parse_ctc(value: Any) -> Optional[float]:
    """
    Package in LPA from a free-text CTC ("12 LPA", "Rs. 8.5 LPA", "6-12 LPA").

    Ranges resolve to their lower bound, the guaranteed package. Text
    without any number ("Negotiable") gives None.
    """
    number = as_number(value)
    if number is not None or not isinstance(value, str):
        return number
    match = CTC_NUMBER.search(value.replace(",", ""))
    return float(match.group(0)) if match else None
