"""
Analysis Service

Answers free-text questions from placement officers about the student
database.

Flow:
1. Cached answer for the same (normalized) query -> return it
2. Simple list/lookup query -> rule-based fallback responder (fast path)
3. Otherwise -> LLM with a prompt built from the database context;
   on missing configuration, timeout or provider error -> fallback responder

Reports (CSV / printable HTML) are attached only for non-simple queries.
"""

import json
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from openai import OpenAIError
from pymongo.database import Database

from campus_placement.db.mongodb import COLLECTIONS
from campus_placement.services import fallback_responder
from campus_placement.services.cache_service import analysis_cache_key, answer_cache, context_cache
from campus_placement.services.llm_client import get_llm_client
from campus_placement.services.mongo_service import serialize_docs
from campus_placement.services.normalizer import normalize_student
from campus_placement.services.report_export import generate_reports
from campus_placement.services.statistics import breakdown_by, compute_statistics, placement_analysis

logger = logging.getLogger(__name__)

CONTEXT_CACHE_KEY = "database:context:full"

# Snapshot caps per collection
STUDENT_LIMIT = 1000
JOB_LIMIT = 500
COMPANY_LIMIT = 200

SIMPLE_QUERY_PATTERN = re.compile(r"list|show|give me|students|details about")

ANALYSIS_TYPES = [
    "general",
    "student_analysis",
    "placement_analysis",
    "eligibility_analysis",
    "report_generation",
    "trend_analysis",
    "comparative_analysis"
]

CAPABILITIES = {
    "analysis_types": ANALYSIS_TYPES,
    "sample_queries": [
        "Give me the list of all MCA students",
        "Show me all BTech students",
        "List all students from CSE department",
        "Show me students with CGPA above 8.0",
        "Generate a report of placed students in 2024",
        "What is the placement rate by department?",
        "Compare placement statistics between UG and PG programs",
        "Show me students with backlogs and their details",
        "Generate a comprehensive placement report",
        "What are the top performing departments?",
        "List students from 2025 batch",
        "Show me students with attendance below 75%",
        "Find all placed students with company details",
        "Show me year-wise student distribution",
        "List all companies that recruited students",
        "Generate academic performance report"
    ],
    "supported_formats": ["json", "csv", "pdf"],
    "data_sources": [
        "students",
        "jobs",
        "companies",
        "placements",
        "eligibility_criteria",
        "academic_performance"
    ]
}

SYSTEM_PROMPT = (
    "You are an expert placement officer assistant with access to the college "
    "placement database. Answer only from the data provided."
)


@dataclass
class DatabaseContext:
    """Snapshot of normalized students, jobs and companies plus precomputed aggregates."""
    students: List[Dict[str, Any]]
    jobs: List[Dict[str, Any]]
    companies: List[Dict[str, Any]]
    statistics: Dict[str, Any] = field(default_factory=dict)
    course_breakdown: List[Dict[str, Any]] = field(default_factory=list)
    department_breakdown: List[Dict[str, Any]] = field(default_factory=list)
    year_breakdown: List[Dict[str, Any]] = field(default_factory=list)
    placement_analysis: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def build(cls, students: List[Dict[str, Any]], jobs: List[Dict[str, Any]],
              companies: List[Dict[str, Any]]) -> "DatabaseContext":
        normalized = [normalize_student(s) for s in students or []]
        jobs = jobs or []
        companies = companies or []
        return cls(
            students=normalized,
            jobs=jobs,
            companies=companies,
            statistics=compute_statistics(normalized, jobs, companies),
            course_breakdown=breakdown_by(normalized, "course"),
            department_breakdown=breakdown_by(normalized, "department"),
            year_breakdown=breakdown_by(normalized, "year"),
            placement_analysis=placement_analysis(normalized)
        )

    def summary(self) -> Dict[str, int]:
        return {
            "total_students": len(self.students),
            "total_jobs": len(self.jobs),
            "total_companies": len(self.companies)
        }


def load_database_context(db: Database, use_cache: bool = True) -> DatabaseContext:
    """
    Read students, jobs and companies and build the analysis context.

    The result is cached for context_cache_ttl_seconds; write routes
    invalidate it.
    """
    if use_cache:
        cached = context_cache.get(CONTEXT_CACHE_KEY)
        if cached is not None:
            logger.debug("Using cached database context")
            return cached

    logger.info("Fetching fresh database context")
    start = time.perf_counter()

    students = list(db[COLLECTIONS["students"]].find({}, {"password": 0}).limit(STUDENT_LIMIT))
    jobs = serialize_docs(list(db[COLLECTIONS["jobs"]].find({}).limit(JOB_LIMIT)))
    companies = serialize_docs(list(db[COLLECTIONS["companies"]].find({}).limit(COMPANY_LIMIT)))

    context = DatabaseContext.build(students, jobs, companies)
    context_cache[CONTEXT_CACHE_KEY] = context

    logger.info(
        "Database context loaded in %.0fms (%d students, %d jobs, %d companies)",
        (time.perf_counter() - start) * 1000, len(students), len(jobs), len(companies)
    )
    return context


def is_simple_query(query: str) -> bool:
    """List/lookup style queries are answered by the fallback responder directly."""
    return bool(SIMPLE_QUERY_PATTERN.search((query or "").lower()))


def _student_line(s: Dict[str, Any]) -> str:
    status = "Placed" if s.get("is_placed") else "Not Placed"
    return (
        f"- {s.get('name')} ({s.get('email')}) - {s.get('roll_number')} - {s.get('course')} - "
        f"{s.get('branch')} - {s.get('year')} - {status}"
    )


def build_analysis_prompt(query: str, context: DatabaseContext, analysis_type: str = "general") -> str:
    """Build the LLM prompt from the database context."""
    stats = context.statistics
    academic = stats["academic_performance"]
    placements = context.placement_analysis

    courses = "\n".join(
        f"- {c['course']}: {c['total']} students ({c['placed']} placed, "
        f"{c['placement_rate']}% rate, Avg GPA: {c['avg_gpa']})"
        for c in context.course_breakdown
    )
    departments = "\n".join(
        f"- {d['department']}: {d['total']} students ({d['placed']} placed, "
        f"{d['placement_rate']}% rate) - Courses: {', '.join(d['courses'])}"
        for d in context.department_breakdown
    )
    years = "\n".join(
        f"- {y['year']}: {y['total']} students ({y['placed']} placed, "
        f"{y['placement_rate']}% rate) - Departments: {', '.join(y['departments'])}"
        for y in context.year_breakdown
    )
    top_companies = ", ".join(
        f"{c['company']} ({c['count']} students, Avg CTC: {c['avg_ctc']} LPA)"
        for c in placements["top_companies"]
    )
    ctc_ranges = ", ".join(f"{band}: {count} students" for band, count in placements["ctc_ranges"].items())
    student_list = "\n".join(_student_line(s) for s in context.students)

    return f"""Analyze the following query and provide insights based on the database context.

QUERY: "{query}"
ANALYSIS TYPE: {analysis_type}

OVERALL STATISTICS:
- Total Students: {stats['total_students']}
- Active Students: {stats['active_students']}
- Placed Students: {stats['placed_students']}
- Blocked Students: {stats['blocked_students']}
- Placement Rate: {stats['placement_rate']}%
- Total Jobs: {stats['total_jobs']}
- Total Companies: {stats['total_companies']}

ACADEMIC PERFORMANCE:
- Students with GPA data: {academic['students_with_gpa']}
- Average GPA: {academic['average_gpa']}
- Students with Attendance data: {academic['students_with_attendance']}
- Average Attendance: {academic['average_attendance']}%
- Students with Backlogs: {academic['students_with_backlogs']}
- Backlog Rate: {academic['backlog_rate']}%

COURSE-WISE BREAKDOWN:
{courses}

DEPARTMENT-WISE BREAKDOWN:
{departments}

YEAR-WISE BREAKDOWN:
{years}

PLACEMENT ANALYSIS:
- Total Placed: {placements['total_placed']}
- Top Companies: {top_companies}
- CTC Distribution: {ctc_ranges}

FULL STUDENT LIST:
{student_list}

SAMPLE JOB DATA (first 3 jobs):
{json.dumps(context.jobs[:3], indent=2, default=str)}

SAMPLE COMPANY DATA (first 3 companies):
{json.dumps(context.companies[:3], indent=2, default=str)}

INSTRUCTIONS:
1. Use only the data above. Never invent students, companies or numbers.
2. For individual student queries provide ONLY a simple table with the student's details.
3. For list queries provide ONLY the list in table format, no analysis.
4. For analysis queries start with a brief summary, then the statistics in tables,
   then actionable recommendations.
5. Use markdown formatting.
"""


def generate_ai_response(query: str, context: DatabaseContext, analysis_type: str = "general") -> Dict[str, Any]:
    """
    Ask the LLM; degrade to the fallback responder when it is unavailable.

    Returns the answer dict and never raises for LLM failures.
    """
    client = get_llm_client()
    if not client.is_configured():
        logger.info("LLM not configured, using fallback responder")
        return fallback_responder.respond(query, context)

    prompt = build_analysis_prompt(query, context, analysis_type)
    try:
        content = client.generate_text(prompt, system_prompt=SYSTEM_PROMPT)
    except (OpenAIError, RuntimeError) as e:
        logger.warning("LLM call failed (%s), using fallback responder", e)
        return fallback_responder.respond(query, context)

    if not content.strip():
        logger.warning("LLM returned an empty answer, using fallback responder")
        return fallback_responder.respond(query, context)

    return {
        "type": "ai_response",
        "content": content,
        "confidence": "high",
        "model": client.model
    }


def analyze(db: Database, query: str, analysis_type: str = "general") -> Dict[str, Any]:
    """
    Run one analysis request end to end.

    Args:
        db: Mongo database handle
        query: Non-empty question text
        analysis_type: One of ANALYSIS_TYPES

    Returns:
        Response payload with the answer, reports and timing
    """
    start = time.perf_counter()
    simple = is_simple_query(query)
    context = load_database_context(db)

    cache_key = analysis_cache_key(query, analysis_type)
    answer = answer_cache.get(cache_key)
    if answer is not None:
        method = "cached"
        logger.info("Using cached answer for %r", query)
    elif simple:
        method = "fast_fallback"
        answer = fallback_responder.respond(query, context)
        answer_cache[cache_key] = answer
    else:
        answer = generate_ai_response(query, context, analysis_type)
        method = "ai_generated" if answer["type"] == "ai_response" else "fallback"
        # expiry depends on the answer type, see cache_service
        answer_cache[cache_key] = answer

    reports = [] if simple else generate_reports(query, context.students, context.statistics)
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    logger.info("Analysis completed in %dms (%s)", elapsed_ms, method)

    return {
        "success": True,
        "query": query.strip(),
        "analysis_type": analysis_type,
        "response": answer,
        "reports": reports,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "data_context": context.summary(),
        "performance": {"total_time_ms": elapsed_ms, "method": method}
    }
