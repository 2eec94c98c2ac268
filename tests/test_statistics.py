# tests/test_statistics.py
import random

import pytest

from campus_placement.services.normalizer import normalize_student
from campus_placement.services.statistics import (
    UNSPECIFIED, breakdown_by, compute_statistics, placement_analysis,
)


def _students(*raws):
    return [normalize_student(r) for r in raws]


def test_course_breakdown_groups_normalized_labels():
    students = _students(
        {"course": "B.Tech", "is_placed": True},
        {"course": "btech", "is_placed": False},
        {"course": "MCA", "is_placed": True},
    )
    rows = breakdown_by(students, "course")

    assert [r["course"] for r in rows] == ["BTech", "MCA"]
    btech, mca = rows
    assert (btech["total"], btech["placed"], btech["placement_rate"]) == (2, 1, 50)
    assert (mca["total"], mca["placed"], mca["placement_rate"]) == (1, 1, 100)


def test_empty_input_yields_zeroes():
    stats = compute_statistics([], [], [])
    assert stats["total_students"] == 0
    assert stats["placement_rate"] == 0
    assert stats["academic_performance"]["average_gpa"] == 0
    assert stats["academic_performance"]["backlog_rate"] == 0
    for key in ("course", "department", "year"):
        assert breakdown_by([], key) == []


def test_averages_skip_missing_values():
    students = _students(
        {"gpa": 8.0, "attendance_percentage": 90},
        {"gpa": None, "attendance_percentage": "absent"},
        {"gpa": "7.0"},
    )
    perf = compute_statistics(students, [], [])["academic_performance"]
    assert perf["students_with_gpa"] == 2
    assert perf["average_gpa"] == 7.5
    assert perf["students_with_attendance"] == 1
    assert perf["average_attendance"] == 90


def test_counts_and_rates():
    students = _students(
        {"is_active": True, "is_placed": True, "backlogs": 0},
        {"is_active": True, "is_placed": False, "backlogs": 2},
        {"is_active": False, "is_placed": False},
    )
    stats = compute_statistics(students, [{"title": "SDE"}], [{"name": "Acme"}, {"name": "Globex"}])
    assert stats["total_students"] == 3
    assert stats["active_students"] == 2
    assert stats["blocked_students"] == 1
    assert stats["placed_students"] == 1
    assert stats["placement_rate"] == 33
    assert stats["total_jobs"] == 1
    assert stats["total_companies"] == 2
    assert stats["academic_performance"]["students_with_backlogs"] == 1
    assert stats["academic_performance"]["backlog_rate"] == 33


def test_rates_round_half_up():
    # 1/8 = 12.5% -> 13
    students = _students(*([{"is_placed": True}] + [{"is_placed": False}] * 7))
    assert compute_statistics(students, [], [])["placement_rate"] == 13


def test_placement_rate_stays_within_bounds():
    rng = random.Random(7)
    for _ in range(50):
        total = rng.randint(0, 30)
        students = _students(*[{"is_placed": rng.random() < 0.5} for _ in range(total)])
        rate = compute_statistics(students, [], [])["placement_rate"]
        assert 0 <= rate <= 100


def test_breakdown_totals_cover_every_student():
    students = _students(
        {"course": "MCA"}, {"course": None}, {"course": "b.tech"}, {"course": "Unknown Program"},
        {"course": ""}, {"course": "MBA"},
    )
    for key in ("course", "department", "year"):
        rows = breakdown_by(students, key)
        assert sum(r["total"] for r in rows) == len(students)


def test_department_rows_list_their_courses():
    students = _students(
        {"branch": "CSE", "course": "BTech"},
        {"branch": "cs", "course": "MTech"},
        {"branch": "IT", "course": "BTech"},
    )
    rows = breakdown_by(students, "department")
    assert rows[0]["department"] == "Computer Science"
    assert rows[0]["total"] == 2
    assert sorted(rows[0]["courses"]) == ["BTech", "MTech"]


def test_year_rows_sorted_descending_with_unspecified_last():
    students = _students({"year": "2024"}, {"year": None}, {"year": "2025"}, {"year": "2024"})
    rows = breakdown_by(students, "year")
    assert [r["year"] for r in rows] == ["2025", "2024", UNSPECIFIED]
    assert rows[1]["total"] == 2


def test_unknown_breakdown_key_is_rejected():
    with pytest.raises(ValueError):
        breakdown_by([], "section")


def test_placement_analysis_groups_companies_and_ctc_bands():
    students = _students(
        {"is_placed": True, "placement_details": {"company_name": "Acme", "ctc": 4}},
        {"is_placed": True, "placement_details": {"company_name": "Acme", "ctc": "8"}},
        {"is_placed": True, "placement_details": {"company_name": "Globex", "ctc": 12}},
        {"is_placed": True},
        {"is_placed": False, "placement_details": {"company_name": "Ignored", "ctc": 20}},
    )
    analysis = placement_analysis(students)

    assert analysis["total_placed"] == 4
    assert analysis["top_companies"][0] == {"company": "Acme", "count": 2, "avg_ctc": 6}
    assert analysis["ctc_ranges"] == {"0-3 LPA": 1, "3-6 LPA": 1, "6-10 LPA": 1, "10+ LPA": 1}
