"""
Fallback Responder

Answers a placement officer's natural-language question from the
in-memory database context when the LLM is unavailable, slow or not
needed (simple list/lookup queries).

The query is matched against an ordered list of intents; the first intent
that produces an answer wins:

1. individual student lookup ("details about Priya", "find 21CS045")
2. placement / statistics overview
3. course list ("all MCA students")
4. department list ("CSE department students")
5. year / batch list ("2025 batch")
6. academic performance ("students with CGPA above 8")
7. companies and jobs
8. help
9. database overview (default)

Every answer is a dict with type/content/confidence/model keys and the
content is markdown. respond() never raises for any string input.
"""

import re
from typing import Any, Callable, Dict, List, Optional

from campus_placement.services.normalizer import COURSE_PATTERNS
from campus_placement.services.report_export import extract_gpa_threshold


RESPONSE_TYPE = "fallback_response"

LOOKUP_TRIGGER = re.compile(
    r"\b(details about|information about|students?|show me|find|search|who is|tell me about)\b"
)

NAME_PATTERNS = [
    re.compile(r"details about\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"information about\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"student\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"show me\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"find\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"search for\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"who is\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"tell me about\s+([a-zA-Z\s]+)", re.IGNORECASE),
    re.compile(r"([a-zA-Z\s]{3,})"),
]

# Roll numbers and emails are not caught by the name patterns above.
IDENTIFIER_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.]+|\b(?=\w*\d)(?=\w*[a-zA-Z])\w{4,}\b")

# Words that only phrase the request; a search term made of these names nobody.
QUERY_WORDS = {
    "student", "students", "show", "me", "list", "all", "find", "search", "for", "give",
    "the", "of", "details", "about", "information", "who", "is", "tell", "get", "display",
}

PLACEMENT_TRIGGER = re.compile(
    r"\b(placements?|placed|statistics|stats|overview|summary|reports?|analysis|data)\b"
)
COURSE_TRIGGER = re.compile(r"\bcourses?\b")
DEPARTMENT_TRIGGER = re.compile(r"\b(departments?|dept|branch(es)?)\b")
YEAR_TRIGGER = re.compile(r"\b(years?|batch(es)?)\b")
YEAR_VALUE = re.compile(r"\b((?:19|20)\d{2})\b")
ACADEMIC_TRIGGER = re.compile(r"\b(c?gpa|grades?|performance|academic|marks|attendance|backlogs?)\b")
COMPANY_TRIGGER = re.compile(r"\b(company|companies|jobs?|recruiters?|recruitment|hiring)\b")
HELP_TRIGGER = re.compile(r"\b(help|capabilities|commands|guide)\b|what can|how to")

COURSE_TERMS = [
    (label, re.compile("|".join(rf"\b{re.escape(s)}\b" for s in substrings)))
    for label, substrings, _ in COURSE_PATTERNS
]

DEPARTMENT_TERMS = [
    ("Computer Science", re.compile(r"\b(cse|computer science)\b", re.IGNORECASE)),
    # "it" is an ordinary English word, so only the upper-case form counts.
    ("Information Technology", re.compile(r"\bIT\b|\binformation technology\b")),
    ("Electronics and Communication", re.compile(r"\b(ece|electronics)\b", re.IGNORECASE)),
    ("Mechanical Engineering", re.compile(r"\bmechanical\b", re.IGNORECASE)),
    ("Civil Engineering", re.compile(r"\bcivil\b", re.IGNORECASE)),
]


def _answer(content: str, confidence: str = "high", model: str = "enhanced_fallback") -> Dict[str, Any]:
    return {"type": RESPONSE_TYPE, "content": content, "confidence": confidence, "model": model}


def _cell(value: Any, suffix: str = "") -> str:
    if value is None or value == "":
        return "N/A"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value}{suffix}".replace("|", "\\|")


def _yes_no(flag: Any) -> str:
    return "Yes" if flag else "No"


def _table(headers: List[str], rows: List[List[str]]) -> str:
    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join("-" * (len(h) + 2) for h in headers) + "|",
    ]
    lines.extend("| " + " | ".join(row) + " |" for row in rows)
    return "\n".join(lines)


# ============================================================
# INDIVIDUAL STUDENT LOOKUP
# ============================================================

def _extract_search_name(query: str) -> str:
    for pattern in NAME_PATTERNS:
        match = pattern.search(query)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return ""


def _is_query_phrasing(term: str) -> bool:
    return all(word in QUERY_WORDS for word in term.lower().split())


def _name_matches(name: str, term: str) -> bool:
    """Exact, substring, every-word or single-token match."""
    if not name or not term:
        return False
    if name == term or term in name:
        return True
    words = term.split()
    if words and all(word in name for word in words):
        return True
    return any(term in part for part in name.split())


def find_students(term: str, students: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Name matches first; if none, students whose email or roll number contains term."""
    term = (term or "").lower().strip()
    if len(term) < 2:
        return []

    by_name = [s for s in students if _name_matches((s.get("name") or "").lower(), term)]
    if by_name:
        return by_name

    return [
        s for s in students
        if term in (s.get("email") or "").lower() or term in (s.get("roll_number") or "").lower()
    ]


def _student_card(student: Dict[str, Any]) -> str:
    details = student.get("placement_details") or {}
    rows = [
        ["**Name**", _cell(student.get("name"))],
        ["**Email**", _cell(student.get("email"))],
        ["**Roll Number**", _cell(student.get("roll_number"))],
        ["**Course**", _cell(student.get("course"))],
        ["**Department**", _cell(student.get("branch"))],
        ["**Year**", _cell(student.get("year"))],
        ["**Section**", _cell(student.get("section"))],
        ["**GPA**", _cell(student.get("gpa"))],
        ["**Attendance**", _cell(student.get("attendance_percentage"), "%")],
        ["**Backlogs**", _cell(student.get("backlogs"))],
        ["**Placed**", _yes_no(student.get("is_placed"))],
        ["**Company**", _cell(details.get("company_name"))],
        ["**Package**", _cell(details.get("ctc"), " LPA")],
        ["**Job Role**", _cell(details.get("job_role"))],
        ["**Status**", "Active" if student.get("is_active") else "Inactive"],
    ]
    return f"## {_cell(student.get('name'))}\n\n" + _table(["Field", "Value"], rows)


def _student_lookup(query: str, query_lower: str, context) -> Optional[Dict[str, Any]]:
    if not LOOKUP_TRIGGER.search(query_lower) and not IDENTIFIER_PATTERN.search(query):
        return None

    candidates = [_extract_search_name(query)]
    candidates.extend(m.group(0) for m in IDENTIFIER_PATTERN.finditer(query))

    for term in candidates:
        if _is_query_phrasing(term):
            continue
        found = find_students(term, context.students)
        if found:
            content = _student_card(found[0])
            if len(found) > 1:
                content += f'\n\n*Found {len(found)} students matching "{term}". Showing first match.*'
            return _answer(content)
    return None


# ============================================================
# OVERVIEW AND LIST INTENTS
# ============================================================

def _breakdown_lines(rows: List[Dict[str, Any]], key: str) -> str:
    if not rows:
        return "- No data available"
    return "\n".join(
        f"- **{r[key]}**: {r['total']} students ({r['placed']} placed, {r['placement_rate']}% rate)"
        for r in rows
    )


def _placement_overview(query: str, query_lower: str, context) -> Optional[Dict[str, Any]]:
    if not PLACEMENT_TRIGGER.search(query_lower):
        return None
    stats = context.statistics
    metrics = [
        ["**Total Students**", _cell(stats["total_students"])],
        ["**Placed Students**", _cell(stats["placed_students"])],
        ["**Placement Rate**", f"{stats['placement_rate']}%"],
        ["**Average GPA**", _cell(stats["academic_performance"]["average_gpa"])],
        ["**Total Jobs**", _cell(stats["total_jobs"])],
        ["**Total Companies**", _cell(stats["total_companies"])],
    ]
    content = (
        "## Placement Overview\n\n"
        + _table(["Metric", "Value"], metrics)
        + "\n\n### Course-wise Breakdown:\n"
        + _breakdown_lines(context.course_breakdown, "course")
        + "\n\n### Department-wise Breakdown:\n"
        + _breakdown_lines(context.department_breakdown, "department")
    )
    return _answer(content)


def _student_list(title: str, students: List[Dict[str, Any]], columns: List[str]) -> Dict[str, Any]:
    getters: Dict[str, Callable[[Dict[str, Any]], str]] = {
        "Name": lambda s: _cell(s.get("name")),
        "Email": lambda s: _cell(s.get("email")),
        "Roll Number": lambda s: _cell(s.get("roll_number")),
        "Branch": lambda s: _cell(s.get("branch")),
        "Department": lambda s: _cell(s.get("branch")),
        "Course": lambda s: _cell(s.get("course")),
        "Year": lambda s: _cell(s.get("year")),
        "Placed": lambda s: _yes_no(s.get("is_placed")),
        "GPA": lambda s: _cell(s.get("gpa")),
        "Company": lambda s: _cell((s.get("placement_details") or {}).get("company_name")),
    }
    if students:
        body = _table(columns, [[getters[c](s) for c in columns] for s in students])
    else:
        body = "No students found."
    return _answer(f"## {title} ({len(students)} students)\n\n{body}")


def _breakdown_table(title: str, rows: List[Dict[str, Any]], key: str, header: str) -> Dict[str, Any]:
    if rows:
        body = _table(
            [header, "Total", "Placed", "Placement Rate", "Active Rate"],
            [
                [_cell(r[key]), str(r["total"]), str(r["placed"]), f"{r['placement_rate']}%", f"{r['active_rate']}%"]
                for r in rows
            ],
        )
    else:
        body = "No students found."
    return _answer(f"## {title}\n\n{body}")


def _course_list(query: str, query_lower: str, context) -> Optional[Dict[str, Any]]:
    course = next((label for label, rx in COURSE_TERMS if rx.search(query_lower)), None)
    if course is None:
        if not COURSE_TRIGGER.search(query_lower):
            return None
        return _breakdown_table("Course-wise Distribution", context.course_breakdown, "course", "Course")

    students = [s for s in context.students if course in (s.get("course"), s.get("branch"))]
    return _student_list(
        f"{course} students", students,
        ["Name", "Email", "Roll Number", "Branch", "Course", "Year", "Placed", "GPA", "Company"],
    )


def _department_list(query: str, query_lower: str, context) -> Optional[Dict[str, Any]]:
    department = next((label for label, rx in DEPARTMENT_TERMS if rx.search(query)), None)
    if department is None:
        if not DEPARTMENT_TRIGGER.search(query_lower):
            return None
        return _breakdown_table(
            "Department-wise Distribution", context.department_breakdown, "department", "Department"
        )

    students = [s for s in context.students if s.get("branch") == department]
    return _student_list(
        f"{department} students", students,
        ["Name", "Email", "Roll Number", "Course", "Year", "Placed", "GPA"],
    )


def _year_list(query: str, query_lower: str, context) -> Optional[Dict[str, Any]]:
    match = YEAR_VALUE.search(query_lower)
    if match is None:
        if not YEAR_TRIGGER.search(query_lower):
            return None
        return _breakdown_table("Year-wise Distribution", context.year_breakdown, "year", "Year")

    year = match.group(1)
    students = [s for s in context.students if str(s.get("year") or "").strip() == year]
    return _student_list(
        f"{year} batch students", students,
        ["Name", "Email", "Roll Number", "Course", "Department", "Placed", "GPA"],
    )


def _academic_performance(query: str, query_lower: str, context) -> Optional[Dict[str, Any]]:
    if not ACADEMIC_TRIGGER.search(query_lower):
        return None

    perf = context.statistics["academic_performance"]
    with_gpa = [s for s in context.students if s.get("gpa") is not None]
    lines = [
        "## Academic Performance Analysis",
        "",
        f"- Students with GPA data: {perf['students_with_gpa']}",
        f"- Average GPA: {perf['average_gpa']}",
        f"- Students with GPA > 8.0: {sum(1 for s in with_gpa if s['gpa'] > 8)}",
        f"- Students with GPA > 7.0: {sum(1 for s in with_gpa if s['gpa'] > 7)}",
        f"- Students with GPA > 6.0: {sum(1 for s in with_gpa if s['gpa'] > 6)}",
        f"- Average attendance: {perf['average_attendance']}%",
        f"- Students with backlogs: {perf['students_with_backlogs']} ({perf['backlog_rate']}%)",
    ]

    threshold = extract_gpa_threshold(query)
    if threshold is not None:
        selected = sorted(
            (s for s in with_gpa if s["gpa"] >= threshold), key=lambda s: s["gpa"], reverse=True
        )
        lines += ["", f"### Students with GPA >= {threshold:g} ({len(selected)})", ""]
        if selected:
            lines.append(_table(
                ["Name", "Email", "Course", "Department", "GPA"],
                [[_cell(s.get("name")), _cell(s.get("email")), _cell(s.get("course")),
                  _cell(s.get("branch")), _cell(s.get("gpa"))] for s in selected],
            ))
        else:
            lines.append("No students found.")
    else:
        top = sorted((s for s in with_gpa if s["gpa"] > 8), key=lambda s: s["gpa"], reverse=True)[:5]
        lines += ["", "### Top Performers (GPA > 8.0)"]
        lines += [
            f"- {_cell(s.get('name'))} ({_cell(s.get('email'))}) - GPA: {_cell(s.get('gpa'))} - {_cell(s.get('course'))}"
            for s in top
        ] or ["- None"]

    return _answer("\n".join(lines), confidence="medium", model="fallback")


def _company_jobs(query: str, query_lower: str, context) -> Optional[Dict[str, Any]]:
    if not COMPANY_TRIGGER.search(query_lower):
        return None

    placed = [s for s in context.students if s.get("is_placed")]
    recruiters = []
    for s in placed:
        name = (s.get("placement_details") or {}).get("company_name")
        if name and name not in recruiters:
            recruiters.append(name)

    metrics = [
        ["**Recruiting Companies**", str(len(recruiters))],
        ["**Registered Companies**", str(context.statistics["total_companies"])],
        ["**Total Jobs**", str(context.statistics["total_jobs"])],
        ["**Placed Students**", str(len(placed))],
    ]
    lines = [
        "## Company & Job Information", "", _table(["Metric", "Value"], metrics), "",
        "### Companies that recruited students:",
    ]
    lines += [f"- {_cell(c)}" for c in recruiters] or ["No company data available"]
    lines += ["", "### Placed Students:"]
    for s in placed[:10]:
        details = s.get("placement_details") or {}
        lines.append(
            f"- {_cell(s.get('name'))} - {details.get('company_name') or 'Unknown Company'}"
            f" - {_cell(details.get('ctc'), ' LPA')}"
        )
    if len(placed) > 10:
        lines.append(f"... and {len(placed) - 10} more")
    return _answer("\n".join(lines))


HELP_TEXT = """## AI Assistant Capabilities

### Data Analysis
- Placement statistics and overview
- Course-wise and department-wise breakdowns
- Year-wise student analysis
- Academic performance metrics

### Student Information
- Individual student details
- Search by name, email, or roll number

### Lists & Reports
- Course-specific student lists (MCA, BTech, MTech, BCA, MBA, BBA, MCOM)
- Department-wise student lists (CSE, IT, ECE, Mechanical, Civil)
- Batch-wise student lists (e.g. 2025)

### Sample Queries
- "Show me all MCA students"
- "Details about John Doe"
- "Placement statistics"
- "Students with GPA above 8.0"
- "2025 batch students"
- "CSE department students"
- "Company recruitment data"
"""


def _help(query: str, query_lower: str, context) -> Optional[Dict[str, Any]]:
    if not HELP_TRIGGER.search(query_lower):
        return None
    stats = context.statistics
    content = HELP_TEXT + (
        "\n**Current Database:**\n"
        f"- {stats['total_students']} students\n"
        f"- {stats['placed_students']} placed ({stats['placement_rate']}% rate)\n"
        f"- {len(context.course_breakdown)} courses\n"
        f"- {len(context.department_breakdown)} departments"
    )
    return _answer(content)


def _database_overview(context) -> Dict[str, Any]:
    stats = context.statistics
    metrics = [
        ["**Total Students**", str(stats["total_students"])],
        ["**Placed Students**", str(stats["placed_students"])],
        ["**Placement Rate**", f"{stats['placement_rate']}%"],
        ["**Average GPA**", _cell(stats["academic_performance"]["average_gpa"])],
        ["**Total Jobs**", str(stats["total_jobs"])],
        ["**Total Companies**", str(stats["total_companies"])],
    ]
    courses = "\n".join(
        f"- **{c['course']}**: {c['total']} students ({c['placed']} placed)" for c in context.course_breakdown
    ) or "- None"
    departments = "\n".join(
        f"- **{d['department']}**: {d['total']} students ({d['placed']} placed)" for d in context.department_breakdown
    ) or "- None"
    content = (
        "## Database Overview\n\n"
        + _table(["Metric", "Value"], metrics)
        + f"\n\n### Available Courses:\n{courses}"
        + f"\n\n### Available Departments:\n{departments}"
        + "\n\n**Try asking:**\n"
        '- "Show me all [course] students"\n'
        '- "Details about [student name]"\n'
        '- "Placement statistics"\n'
        '- "Students with GPA above 8.0"\n'
        '- "Help" for more options'
    )
    return _answer(content, confidence="medium")


INTENTS = [
    _student_lookup,
    _placement_overview,
    _course_list,
    _department_list,
    _year_list,
    _academic_performance,
    _company_jobs,
    _help,
]


def respond(query: str, context) -> Dict[str, Any]:
    """
    Answer a query from the database context without calling the LLM.

    Args:
        query: Free-text question from a placement officer
        context: DatabaseContext (students, statistics and breakdowns)

    Returns:
        {"type", "content", "confidence", "model"}
    """
    if not isinstance(query, str):
        query = "" if query is None else str(query)
    query_lower = query.lower()

    for intent in INTENTS:
        answer = intent(query, query_lower, context)
        if answer is not None:
            return answer
    return _database_overview(context)
