"""
Report export for the analysis endpoint.

- CSV: flat, fully-quoted student rows with a fixed column set
- HTML: one-page placement summary (rendered to PDF by the client)

Both take normalized students (see normalizer.normalize_student).
"""

import csv
import html
import io
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from campus_placement.services.normalizer import COURSE_PATTERNS


CSV_COLUMNS = [
    "Name", "Email", "Roll Number", "Branch", "Course", "Year", "Section",
    "Program Type", "Status", "Placed", "CGPA", "Attendance %", "Backlogs",
    "Company", "Designation", "CTC", "Work Location", "Joining Date",
]

GPA_THRESHOLD_PATTERN = re.compile(
    r"(?:cgpa|gpa)\s*(?:above|>=|>|greater than|more than|over)\s*(\d+(?:\.\d+)?)",
    re.IGNORECASE
)


def extract_gpa_threshold(query: str) -> Optional[float]:
    """'students with CGPA above 8.0' -> 8.0"""
    match = GPA_THRESHOLD_PATTERN.search(query or "")
    return float(match.group(1)) if match else None


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    return str(value)


def _row(student: Dict[str, Any]) -> List[str]:
    details = student.get("placement_details") or {}
    return [
        _cell(student.get("name")),
        _cell(student.get("email")),
        _cell(student.get("roll_number")),
        _cell(student.get("branch")),
        _cell(student.get("course")),
        _cell(student.get("year")),
        _cell(student.get("section")),
        _cell(student.get("program_type")),
        "Active" if student.get("is_active") else "Inactive",
        "Yes" if student.get("is_placed") else "No",
        _cell(student.get("gpa")),
        _cell(student.get("attendance_percentage")),
        _cell(student.get("backlogs")),
        _cell(details.get("company_name")),
        _cell(details.get("designation")),
        _cell(details.get("ctc")),
        _cell(details.get("work_location")),
        _cell(details.get("joining_date")),
    ]


def students_to_csv(students: List[Dict[str, Any]]) -> str:
    """Render students as CSV with every field quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for student in students or []:
        writer.writerow(_row(student))
    return buffer.getvalue().rstrip("\n")


def filter_students_for_query(query: str, students: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Narrow a student list by the course, placement and GPA hints in a query."""
    query_lower = (query or "").lower()
    filtered = list(students or [])

    for label, substrings, _ in COURSE_PATTERNS:
        if any(re.search(rf"\b{re.escape(s)}\b", query_lower) for s in substrings):
            filtered = [s for s in filtered if label in (s.get("course"), s.get("branch"))]
            break

    if re.search(r"\bplaced\b", query_lower) and not re.search(r"\b(un|not\s+)placed\b", query_lower):
        filtered = [s for s in filtered if s.get("is_placed")]

    threshold = extract_gpa_threshold(query)
    if threshold is not None:
        filtered = [s for s in filtered if s.get("gpa") is not None and s["gpa"] >= threshold]

    return filtered


def generate_csv_report(query: str, students: List[Dict[str, Any]]) -> Dict[str, Any]:
    filtered = filter_students_for_query(query, students)
    now = datetime.now(timezone.utc)
    return {
        "type": "csv",
        "filename": f"student_analysis_{now:%Y%m%d%H%M%S}.csv",
        "content": students_to_csv(filtered),
        "record_count": len(filtered),
        "generated_at": now.isoformat(),
    }


def generate_html_report(query: str, students: List[Dict[str, Any]], statistics: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    safe_query = html.escape(query or "")
    content = f"""<!DOCTYPE html>
<html>
<head>
  <title>Placement Analysis Report</title>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 20px; }}
    .header {{ text-align: center; margin-bottom: 30px; }}
    .stats {{ display: flex; justify-content: space-around; margin: 20px 0; }}
    .stat-box {{ background: #f5f5f5; padding: 15px; border-radius: 5px; text-align: center; }}
  </style>
</head>
<body>
  <div class="header">
    <h1>Placement Analysis Report</h1>
    <p>Generated on: {now:%Y-%m-%d}</p>
    <p>Query: "{safe_query}"</p>
  </div>
  <div class="stats">
    <div class="stat-box"><h3>{statistics.get("total_students", 0)}</h3><p>Total Students</p></div>
    <div class="stat-box"><h3>{statistics.get("placed_students", 0)}</h3><p>Placed Students</p></div>
    <div class="stat-box"><h3>{statistics.get("placement_rate", 0)}%</h3><p>Placement Rate</p></div>
  </div>
  <h2>Summary</h2>
  <p>This report contains analysis based on the query: "{safe_query}"</p>
  <p>Total records analyzed: {len(students or [])}</p>
</body>
</html>"""
    return {
        "type": "pdf",
        "filename": f"placement_analysis_{now:%Y%m%d%H%M%S}.pdf",
        "content": content,
        "record_count": len(students or []),
        "generated_at": now.isoformat(),
    }


def generate_reports(query: str, students: List[Dict[str, Any]], statistics: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Attach downloadable reports to an analysis answer.

    "list" / "report" / "export" -> CSV; "comprehensive" / "detailed" / "full" -> HTML summary.
    """
    query_lower = (query or "").lower()
    reports = []
    if re.search(r"\b(list|report|export)\b", query_lower):
        reports.append(generate_csv_report(query, students))
    if re.search(r"\b(comprehensive|detailed|full)\b", query_lower):
        reports.append(generate_html_report(query, students, statistics))
    return reports
