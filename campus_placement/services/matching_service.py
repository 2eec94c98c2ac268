"""
Match Scoring Service

PURPOSE:
Score how well a student fits a job posting (0-100) and rank the open
jobs shown on the student's "Jobs for You" page.

HOW IT WORKS:
1. Skill overlap: matched job skills / total job skills, scaled to 80
2. Branch: +10 if the job is open to all branches or lists the student's
3. CGPA: +10 if the student meets the job's minimum CGPA
4. Clamp to [0, 100]

The weighting is a heuristic; it is kept stable so scores shown to
students do not shift between releases.
"""

from typing import Any, Dict, List

from campus_placement.services.eligibility import is_eligible, resolve_min_cgpa
from campus_placement.services.normalizer import normalize_department
from campus_placement.utils.numbers import round_half_up


SKILL_WEIGHT = 80
BRANCH_BONUS = 10
CGPA_BONUS = 10

# Substring matches only count when the shorter skill is at least this long,
# so "c" does not match "react".
MIN_SUBSTRING_LEN = 3


def _clean_skills(skills: Any) -> List[str]:
    if isinstance(skills, str):
        skills = skills.split(",")
    if not isinstance(skills, (list, tuple, set)):
        return []
    cleaned = []
    for skill in skills:
        if skill is None:
            continue
        skill = str(skill).lower().strip()
        if skill:
            cleaned.append(skill)
    return cleaned


def skill_matches(job_skill: str, student_skills: List[str]) -> bool:
    """Case-insensitive match: exact, or one contains the other."""
    for skill in student_skills:
        if skill == job_skill:
            return True
        shorter = min(len(skill), len(job_skill))
        if shorter >= MIN_SUBSTRING_LEN and (job_skill in skill or skill in job_skill):
            return True
    return False


def branch_compatible(student: Dict[str, Any], job: Dict[str, Any]) -> bool:
    """A job with no branch list, or one listing "All", is open to everyone."""
    branches = job.get("branches")
    if isinstance(branches, str):
        branches = [branches]
    if not branches:
        return True

    student_branch = normalize_department(student.get("branch"))
    for branch in branches:
        if branch is None:
            continue
        if str(branch).strip().lower() == "all":
            return True
        if normalize_department(branch) == student_branch:
            return True
    return False


def compute_match(student: Dict[str, Any], job: Dict[str, Any]) -> int:
    """
    Compute the 0-100 compatibility score between a student and a job.

    Example:
        student skills ["react", "node"], job skills ["react", "node", "sql"],
        no branch restriction, GPA 8.0 vs minimum 7.0
        -> round(2/3 * 80) + 10 + 10 = 73
    """
    student = student or {}
    job = job or {}

    job_skills = _clean_skills(job.get("skills"))
    student_skills = _clean_skills(student.get("skills"))

    total = len(job_skills) or 1
    matched = sum(1 for s in job_skills if skill_matches(s, student_skills))
    score = int(round_half_up(matched / total * SKILL_WEIGHT))

    if branch_compatible(student, job):
        score += BRANCH_BONUS
    if is_eligible(student, job):
        score += CGPA_BONUS

    return max(0, min(100, score))


def _generate_reason(match: int, eligible: bool, min_cgpa: float) -> str:
    """Generate human-readable match reason."""
    reasons = [f"Overall match: {match}%"]
    if match >= 80:
        reasons.append("Excellent fit")
    elif match >= 50:
        reasons.append("Good fit")
    else:
        reasons.append("Partial fit")

    if min_cgpa > 0:
        reasons.append("Meets minimum CGPA" if eligible else f"Below minimum CGPA of {min_cgpa:g}")
    return ". ".join(reasons) + "."


def rank_jobs_for_student(
    student: Dict[str, Any],
    jobs: List[Dict[str, Any]],
    eligible_only: bool = False
) -> List[Dict[str, Any]]:
    """
    Score every job for a student and sort by descending match.

    Returns dicts: {"job", "match_score", "eligible", "min_cgpa", "reason"}.
    """
    ranked = []
    for job in jobs or []:
        eligible = is_eligible(student, job)
        if eligible_only and not eligible:
            continue
        score = compute_match(student, job)
        min_cgpa = resolve_min_cgpa(job)
        ranked.append({
            "job": job,
            "match_score": score,
            "eligible": eligible,
            "min_cgpa": min_cgpa,
            "reason": _generate_reason(score, eligible, min_cgpa),
        })

    ranked.sort(key=lambda r: r["match_score"], reverse=True)
    return ranked
