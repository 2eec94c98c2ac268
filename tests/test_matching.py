# tests/test_matching.py
import random

from campus_placement.services.matching_service import (
    compute_match, rank_jobs_for_student, skill_matches,
)


def test_match_score_example():
    student = {"skills": ["react", "node"], "gpa": 8.0}
    job = {"skills": ["react", "node", "sql"], "min_cgpa": 7.0}
    # round(2/3 * 80) = 53, +10 branch, +10 cgpa
    assert compute_match(student, job) == 73


def test_skill_matching_is_case_insensitive_and_substring_tolerant():
    student = {"skills": ["React.js", " NODE "], "gpa": 9}
    job = {"skills": ["react", "Node"]}
    assert compute_match(student, job) == 100


def test_single_letter_skill_does_not_match_inside_other_words():
    assert not skill_matches("c", ["react"])
    assert skill_matches("c", ["c"])
    assert skill_matches("java", ["javascript"])


def test_branch_restriction():
    job = {"skills": [], "branches": ["CSE"]}
    assert compute_match({"branch": "Computer Science", "gpa": 8}, job) == 20
    assert compute_match({"branch": "ECE", "gpa": 8}, job) == 10
    assert compute_match({"branch": "ECE", "gpa": 8}, {"branches": ["All"]}) == 20


def test_cgpa_bonus_requires_eligibility():
    job = {"skills": ["python"], "description": "Minimum CGPA: 7.5"}
    assert compute_match({"skills": ["python"], "gpa": 8}, job) == 100
    assert compute_match({"skills": ["python"], "gpa": 7}, job) == 90
    assert compute_match({"skills": ["python"]}, job) == 90


def test_empty_records_do_not_raise():
    assert compute_match({}, {}) == 20
    assert compute_match(None, None) == 20


def test_score_is_always_within_bounds():
    rng = random.Random(11)
    pool = ["python", "java", "sql", "react", "c", "go", "node", "aws"]
    for _ in range(200):
        student = {
            "skills": rng.sample(pool, rng.randint(0, len(pool))),
            "branch": rng.choice(["CSE", "IT", None]),
            "gpa": rng.choice([None, rng.uniform(0, 10)]),
        }
        job = {
            "skills": rng.sample(pool, rng.randint(0, len(pool))),
            "branches": rng.choice([[], ["All"], ["IT"]]),
            "min_cgpa": rng.choice([None, rng.uniform(0, 10)]),
        }
        assert 0 <= compute_match(student, job) <= 100


def test_rank_jobs_for_student_sorts_and_filters():
    student = {"skills": ["python", "sql"], "branch": "CSE", "gpa": 7.0}
    jobs = [
        {"_id": "a", "skills": ["java"], "min_cgpa": 6},
        {"_id": "b", "skills": ["python", "sql"], "min_cgpa": 6},
        {"_id": "c", "skills": ["python"], "min_cgpa": 8},
    ]

    ranked = rank_jobs_for_student(student, jobs)
    assert [r["job"]["_id"] for r in ranked] == ["b", "c", "a"]
    assert ranked[0]["match_score"] == 100
    assert ranked[1]["eligible"] is False
    assert "Below minimum CGPA of 8" in ranked[1]["reason"]

    eligible = rank_jobs_for_student(student, jobs, eligible_only=True)
    assert [r["job"]["_id"] for r in eligible] == ["b", "a"]
