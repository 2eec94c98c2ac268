"""
Eligibility Filter

Jobs carry their minimum CGPA either as a structured field (under one of
several historical names) or only as a sentence in the description, e.g.
"Minimum CGPA: 7.5 required". resolve_min_cgpa() is the single place that
knows those names; everything else calls it.
"""

import re
from typing import Any, Dict, List

from campus_placement.utils.numbers import as_number


# Checked in this order; the first valid number wins.
MIN_CGPA_FIELDS = ("min_cgpa", "minCgpa", "minimumCGPA", "minCGPA")

MIN_CGPA_PATTERNS = [
    re.compile(r"minimum\s*cgpa\s*[:\-]?\s*(\d+(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"min\.?\s*cgpa\s*[:\-]?\s*(\d+(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"cgpa\s*(?:>=|at\s*least|minimum\s*of)?\s*(\d+(?:\.\d+)?)", re.IGNORECASE),
]


def resolve_min_cgpa(job: Dict[str, Any]) -> float:
    """
    Resolve a job's minimum CGPA.

    Structured fields first, then the description patterns, else 0
    (no minimum).
    """
    if not isinstance(job, dict):
        return 0

    for field in MIN_CGPA_FIELDS:
        value = as_number(job.get(field))
        if value is not None:
            return value

    form_data = job.get("formData")
    if isinstance(form_data, dict):
        value = as_number(form_data.get("minimumCGPA"))
        if value is not None:
            return value

    description = job.get("description")
    if isinstance(description, str) and description:
        for pattern in MIN_CGPA_PATTERNS:
            match = pattern.search(description)
            if match:
                value = as_number(match.group(1))
                if value is not None:
                    return value
    return 0


def is_eligible(student: Dict[str, Any], job: Dict[str, Any]) -> bool:
    """
    True iff the student's GPA meets the job's minimum CGPA.

    A student without a GPA only qualifies for jobs with no minimum.
    """
    minimum = resolve_min_cgpa(job)
    gpa = as_number((student or {}).get("gpa"))
    if gpa is None:
        return minimum <= 0
    return gpa >= minimum


def eligible_students(students: List[Dict[str, Any]], job: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Candidate pool for a job: the students that pass is_eligible()."""
    return [s for s in students or [] if is_eligible(s, job)]
