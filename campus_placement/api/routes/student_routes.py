"""
Student Routes

Officer:
GET /students - List students (filters + pagination)
POST /students - Create student record
POST /students/bulk - Bulk import student records (JSON)
POST /students/bulk-upload - Bulk import from a CSV file with per-row errors
GET /students/{student_id} - Get student
PUT /students/{student_id} - Update student
DELETE /students/{student_id} - Deactivate student (soft delete)

Student:
GET /students/me - Get own profile
PUT /students/me - Update own contact details and skills
GET /students/me/jobs - Open jobs ranked by match score
"""

import logging

from fastapi import APIRouter, HTTPException, Depends, Query, UploadFile, File
from pymongo.database import Database
from typing import Optional

from campus_placement.db.mongodb import get_database
from campus_placement.core.auth import get_current_officer, get_current_student
from campus_placement.services.mongo_service import JobService, StudentService
from campus_placement.services.matching_service import rank_jobs_for_student
from campus_placement.services.normalizer import normalize_student
from campus_placement.utils.student_csv import read_student_csv
from campus_placement.schemas.schemas import (
    StudentCreate, StudentUpdate, StudentSelfUpdate,
    BulkImportRequest, BulkImportResponse, MessageResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])


# ============================================================
# STUDENT (SELF) ENDPOINTS
# ============================================================

@router.get("/me")
async def get_my_profile(student: dict = Depends(get_current_student)):
    """Get current student's profile."""
    return student["student"]


@router.put("/me")
async def update_my_profile(
    data: StudentSelfUpdate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_database)
):
    """Students may only edit their phone number and skills."""
    updates = data.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    return StudentService(db).update(student["student_id"], updates)


@router.get("/me/jobs")
async def get_jobs_for_me(
    eligible_only: bool = Query(False, description="Hide jobs below the student's CGPA"),
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_database)
):
    """
    Active jobs ranked by match score (skills, branch, CGPA).
    """
    profile = normalize_student(student["student"])
    jobs = JobService(db).all_active()
    ranked = rank_jobs_for_student(profile, jobs, eligible_only=eligible_only)
    return {"jobs": ranked, "total": len(ranked)}


# ============================================================
# OFFICER ENDPOINTS
# ============================================================

@router.get("")
async def list_students(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    branch: Optional[str] = Query(None),
    course: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    section: Optional[str] = Query(None),
    is_placed: Optional[bool] = Query(None),
    is_active: Optional[bool] = Query(None),
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    """List student records with filters and pagination."""
    filters = {
        "branch": branch, "course": course, "year": year, "section": section,
        "is_placed": is_placed, "is_active": is_active
    }
    students, total = StudentService(db).list(filters, skip=(page - 1) * page_size, limit=page_size)
    return {"students": students, "total": total, "page": page, "page_size": page_size}


@router.post("", status_code=201)
async def create_student(
    data: StudentCreate,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    """Create a student record."""
    service = StudentService(db)
    if service.get_by_email(data.email):
        raise HTTPException(status_code=409, detail="A student with this email already exists")
    return service.create(data.model_dump(mode="json", exclude_none=True))


@router.post("/bulk", response_model=BulkImportResponse, status_code=201)
async def bulk_import_students(
    data: BulkImportRequest,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    """Import many students at once; existing emails are skipped."""
    records = [s.model_dump(mode="json", exclude_none=True) for s in data.students]
    result = StudentService(db).bulk_import(records)
    return BulkImportResponse(**result)


@router.post("/bulk-upload", response_model=BulkImportResponse, status_code=201)
async def bulk_upload_students(
    file: UploadFile = File(...),
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    """
    Import a student roster CSV. Valid rows are inserted, existing emails
    skipped, and invalid rows reported with their line number.
    """
    content = await file.read()
    records, errors = read_student_csv(file.filename, content)

    result = {"inserted": 0, "skipped": []}
    if records:
        result = StudentService(db).bulk_import(records)

    logger.info("CSV import %s: %d inserted, %d skipped, %d invalid rows",
                file.filename, result["inserted"], len(result["skipped"]), len(errors))
    return BulkImportResponse(**result, errors=errors)


@router.get("/{student_id}")
async def get_student(
    student_id: str,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    student = StudentService(db).get(student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.put("/{student_id}")
async def update_student(
    student_id: str,
    data: StudentUpdate,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    updates = data.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    student = StudentService(db).update(student_id, updates)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.delete("/{student_id}", response_model=MessageResponse)
async def deactivate_student(
    student_id: str,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    """Soft delete: the student stays in statistics as inactive."""
    if not StudentService(db).deactivate(student_id):
        raise HTTPException(status_code=404, detail="Student not found")
    return MessageResponse(message="Student deactivated")
