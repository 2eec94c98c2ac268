"""
Field Normalizer

Student records are created by bulk imports, officer edits and student
self-service forms, so course, branch and program type arrive as free text
("b.tech", "B Tech", "CSE-A", "Computer Science & Applications", "PG").
This module maps them onto a small canonical vocabulary so that the
statistics, eligibility and fallback services can group and compare them.

Rules:
- Input is lower-cased and trimmed, then checked against an ordered list
  of patterns; the first canonical label whose pattern matches wins.
- Short abbreviations (cs, it, me, ...) only match as whole words.
- Null/empty input maps to "Unknown".
- No match returns the original value unchanged.
- Canonical labels normalize to themselves.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from campus_placement.utils.numbers import as_number


UNKNOWN = "Unknown"

# (canonical label, substrings, whole words)
Pattern = Tuple[str, Sequence[str], Sequence[str]]

COURSE_PATTERNS: List[Pattern] = [
    ("MCA", ("mca",), ()),
    ("BTech", ("btech", "b.tech", "b tech", "b. tech"), ()),
    ("MTech", ("mtech", "m.tech", "m tech", "m. tech"), ()),
    ("BCA", ("bca",), ()),
    ("MBA", ("mba",), ()),
    ("BBA", ("bba",), ()),
    ("MCOM", ("mcom", "m.com"), ()),
]

DEPARTMENT_PATTERNS: List[Pattern] = [
    ("Computer Science", ("computer science", "compute science"), ("cse", "cs")),
    ("Information Technology", ("information technology",), ("it",)),
    ("Electronics and Communication", ("electronics", "e&c"), ("ece",)),
    ("Mechanical Engineering", ("mechanical",), ("me", "mech")),
    ("Civil Engineering", ("civil",), ("ce",)),
    ("MCA", ("mca",), ()),
]

PROGRAM_TYPE_PATTERNS: List[Pattern] = [
    ("Undergraduate", ("undergraduate", "under graduate", "bachelor"), ("ug",)),
    ("Postgraduate", ("postgraduate", "post graduate", "master"), ("pg",)),
    ("Diploma", ("diploma",), ()),
]

_WORD_SPLIT = re.compile(r"[^a-z0-9]+")


def _match(raw: Any, patterns: List[Pattern]) -> str:
    if raw is None:
        return UNKNOWN
    if not isinstance(raw, str):
        raw = str(raw)
    lowered = raw.lower().strip()
    if not lowered:
        return UNKNOWN

    words = set(_WORD_SPLIT.split(lowered))
    for label, substrings, whole_words in patterns:
        if any(s in lowered for s in substrings):
            return label
        if any(w in words for w in whole_words):
            return label
    return raw


def normalize_course(raw: Any) -> str:
    """Map a free-text course to MCA/BTech/MTech/BCA/MBA/BBA/MCOM."""
    return _match(raw, COURSE_PATTERNS)


def normalize_department(raw: Any) -> str:
    """Map a free-text branch/department to its canonical department name."""
    return _match(raw, DEPARTMENT_PATTERNS)


def normalize_program_type(raw: Any) -> str:
    """Map a free-text program type to Undergraduate/Postgraduate/Diploma."""
    return _match(raw, PROGRAM_TYPE_PATTERNS)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _skills(value: Any) -> List[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        return []
    return [str(s).strip() for s in value if s is not None and str(s).strip()]


def normalize_student(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the normalized (ephemeral) view of a student document.

    Numeric fields that are missing or malformed become None so that
    averages can skip them instead of counting them as zero.
    """
    raw = raw or {}
    placement = raw.get("placement_details")
    gpa = as_number(raw.get("gpa"))
    if gpa is None:
        gpa = as_number(raw.get("cgpa"))

    return {
        "id": str(raw["_id"]) if raw.get("_id") is not None else raw.get("id"),
        "name": _text(raw.get("name")),
        "email": _text(raw.get("email")),
        "roll_number": _text(raw.get("roll_number")),
        "branch": normalize_department(raw.get("branch")),
        "course": normalize_course(raw.get("course")),
        "program_type": normalize_program_type(raw.get("program_type")),
        "year": _text(raw.get("year")),
        "section": _text(raw.get("section")),
        "is_active": bool(raw.get("is_active", True)),
        "is_placed": bool(raw.get("is_placed", False)),
        "placement_details": dict(placement) if isinstance(placement, dict) else {},
        "gpa": gpa,
        "attendance_percentage": as_number(raw.get("attendance_percentage")),
        "backlogs": as_number(raw.get("backlogs")),
        "skills": _skills(raw.get("skills")),
        "original_branch": raw.get("branch"),
        "original_course": raw.get("course"),
        "original_program_type": raw.get("program_type"),
    }
