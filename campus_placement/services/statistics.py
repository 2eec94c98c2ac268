"""
Statistics Aggregator

Consumes normalized students (see normalizer.normalize_student) and
produces the counts, rates and groupings used by the analysis endpoint,
the officer dashboard and the fallback responder.

All rates are integer percentages rounded half-up from count ratios.
An empty student list yields zeroed statistics and empty breakdowns.
"""

from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from campus_placement.utils.numbers import parse_ctc, percentage, round_half_up


UNSPECIFIED = "Unspecified"

# breakdown key -> (student field, row label key, associated-set field, associated-set key)
BREAKDOWN_KEYS = {
    "course": ("course", "course", None, None),
    "department": ("branch", "department", "course", "courses"),
    "year": ("year", "year", "branch", "departments"),
}

CTC_BANDS = ("0-3 LPA", "3-6 LPA", "6-10 LPA", "10+ LPA")


def _average(values: Iterable[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return float(np.mean(present))


def _rounded_average(values: Iterable[Optional[float]]) -> float:
    avg = _average(values)
    return round_half_up(avg, 2) if avg is not None else 0


def compute_statistics(
    students: List[Dict[str, Any]],
    jobs: List[Dict[str, Any]],
    companies: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """
    Compute overall counts and academic performance figures.

    GPA and attendance averages skip students where the value is missing.
    """
    students = students or []
    total = len(students)
    active = sum(1 for s in students if s.get("is_active"))
    placed = sum(1 for s in students if s.get("is_placed"))

    gpas = [s.get("gpa") for s in students if s.get("gpa") is not None]
    attendance = [
        s.get("attendance_percentage") for s in students
        if s.get("attendance_percentage") is not None
    ]
    with_backlogs = sum(1 for s in students if (s.get("backlogs") or 0) > 0)

    return {
        "total_students": total,
        "active_students": active,
        "placed_students": placed,
        "blocked_students": total - active,
        "total_jobs": len(jobs or []),
        "total_companies": len(companies or []),
        "placement_rate": percentage(placed, total),
        "academic_performance": {
            "students_with_gpa": len(gpas),
            "average_gpa": _rounded_average(gpas),
            "students_with_attendance": len(attendance),
            "average_attendance": _rounded_average(attendance),
            "students_with_backlogs": with_backlogs,
            "backlog_rate": percentage(with_backlogs, total),
        },
    }


def _label(value: Any) -> str:
    if value is None:
        return UNSPECIFIED
    value = str(value).strip()
    return value or UNSPECIFIED


def breakdown_by(students: List[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    """
    Group students by course, department or year.

    One row per distinct value plus an "Unspecified" row for null/empty
    values. Course and department rows are sorted by descending total;
    year rows by descending year label with "Unspecified" last.
    """
    if key not in BREAKDOWN_KEYS:
        raise ValueError(f"Unknown breakdown key '{key}'. Use one of: {', '.join(BREAKDOWN_KEYS)}")

    field, label_key, assoc_field, assoc_key = BREAKDOWN_KEYS[key]
    groups: Dict[str, Dict[str, Any]] = {}

    for student in students or []:
        label = _label(student.get(field))
        row = groups.get(label)
        if row is None:
            row = {label_key: label, "total": 0, "active": 0, "placed": 0, "_gpas": []}
            if assoc_key:
                row[assoc_key] = []
            groups[label] = row

        row["total"] += 1
        if student.get("is_active"):
            row["active"] += 1
        if student.get("is_placed"):
            row["placed"] += 1
        row["_gpas"].append(student.get("gpa"))

        if assoc_key:
            assoc = student.get(assoc_field)
            if assoc and assoc not in row[assoc_key]:
                row[assoc_key].append(assoc)

    rows = []
    for row in groups.values():
        gpas = row.pop("_gpas")
        row["avg_gpa"] = _rounded_average(gpas)
        row["placement_rate"] = percentage(row["placed"], row["total"])
        row["active_rate"] = percentage(row["active"], row["total"])
        rows.append(row)

    if key == "year":
        specified = [r for r in rows if r["year"] != UNSPECIFIED]
        unspecified = [r for r in rows if r["year"] == UNSPECIFIED]
        specified.sort(key=lambda r: r["year"], reverse=True)
        return specified + unspecified

    rows.sort(key=lambda r: r["total"], reverse=True)
    return rows


def _ctc_band(ctc: float) -> str:
    if ctc <= 3:
        return "0-3 LPA"
    if ctc <= 6:
        return "3-6 LPA"
    if ctc <= 10:
        return "6-10 LPA"
    return "10+ LPA"


def placement_analysis(students: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Company-wise placement counts, average CTC and CTC bands for placed students."""
    placed = [s for s in students or [] if s.get("is_placed")]
    companies: Dict[str, Dict[str, Any]] = {}
    bands = {band: 0 for band in CTC_BANDS}

    for student in placed:
        details = student.get("placement_details") or {}
        ctc = parse_ctc(details.get("ctc"))
        bands[_ctc_band(ctc or 0)] += 1

        name = details.get("company_name")
        if not name:
            continue
        entry = companies.setdefault(name, {"company": name, "count": 0, "_ctcs": []})
        entry["count"] += 1
        entry["_ctcs"].append(ctc)

    rows = []
    for entry in companies.values():
        entry["avg_ctc"] = _rounded_average(entry.pop("_ctcs"))
        rows.append(entry)
    rows.sort(key=lambda r: r["count"], reverse=True)

    return {
        "total_placed": len(placed),
        "companies": rows,
        "ctc_ranges": bands,
        "top_companies": rows[:10],
    }
