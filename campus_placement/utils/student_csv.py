"""
Student CSV import - parse an uploaded roster into StudentCreate records.

Expected columns (header row, any order, case-insensitive):
    name, email, roll_number/rollNumber, branch/department, course, year,
    section, program_type, phone, cgpa/gpa, attendance, backlogs, skills

Skills may be separated by ';', ',' or '|'. Unknown columns are ignored.
Rows that fail validation are reported with their line number instead of
aborting the whole import.
"""

import csv
import io
import re
from typing import Any, Dict, List, Tuple

from fastapi import HTTPException
from pydantic import ValidationError

from campus_placement.schemas.schemas import StudentCreate
from campus_placement.utils.file_upload import MAX_FILE_SIZE_BYTES, MAX_FILE_SIZE_MB, get_file_extension


HEADER_ALIASES = {
    "rollnumber": "roll_number",
    "rollno": "roll_number",
    "cgpa": "gpa",
    "attendance": "attendance_percentage",
    "attendancepercentage": "attendance_percentage",
    "programtype": "program_type",
    "department": "branch",
}
REQUIRED_COLUMNS = {"name", "email"}
SKILL_SEPARATOR = re.compile(r"[;,|]")


def _column(header: str) -> str:
    key = re.sub(r"[\s\-]+", "_", (header or "").strip().lower())
    return HEADER_ALIASES.get(key.replace("_", ""), key)


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def _row_values(row: Dict[str, Any]) -> Dict[str, Any]:
    values = {}
    for header, value in row.items():
        if header is None or value is None:
            continue
        value = value.strip()
        if value:
            values[_column(header)] = value
    if "skills" in values:
        values["skills"] = [s.strip() for s in SKILL_SEPARATOR.split(values["skills"]) if s.strip()]
    return values


def read_student_csv(filename: str, content: bytes) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Validate every row of a student CSV.

    Returns:
        (records ready for StudentService.bulk_import, [{"row": line, "errors": [...]}, ...])

    Raises:
        HTTPException 400 (not a CSV / missing columns) / 413 (size)
    """
    if get_file_extension(filename or "") != ".csv":
        raise HTTPException(status_code=400, detail="A .csv file is required")
    if len(content) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(status_code=413, detail=f"File too large. Maximum size: {MAX_FILE_SIZE_MB}MB")

    reader = csv.DictReader(io.StringIO(_decode(content)))
    columns = {_column(h) for h in reader.fieldnames or []}
    missing = REQUIRED_COLUMNS - columns
    if missing:
        raise HTTPException(status_code=400, detail=f"CSV is missing columns: {', '.join(sorted(missing))}")

    records, errors = [], []
    # line 1 is the header
    for line, row in enumerate(reader, start=2):
        values = _row_values(row)
        if not values:
            continue
        try:
            student = StudentCreate.model_validate(values)
        except ValidationError as e:
            errors.append({
                "row": line,
                "errors": [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            })
            continue
        records.append(student.model_dump(mode="json", exclude_none=True))
    return records, errors
