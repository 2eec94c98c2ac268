"""
Job Routes

POST /jobs - Create job posting (officer)
GET /jobs - List jobs with filters (defaults to active jobs)
GET /jobs/{job_id} - Get job details with resolved minimum CGPA
PUT /jobs/{job_id} - Update job (officer)
DELETE /jobs/{job_id} - Delete job (officer)
GET /jobs/{job_id}/eligible-students - Candidate pool for a job (officer)
POST /jobs/{job_id}/apply - Apply to job (student)
"""

import logging

from fastapi import APIRouter, HTTPException, Depends, Query
from pymongo.database import Database
from typing import Optional

from campus_placement.db.mongodb import get_database
from campus_placement.core.auth import get_current_officer, get_current_student, get_current_user
from campus_placement.core.config import get_settings
from campus_placement.services.eligibility import eligible_students, is_eligible, resolve_min_cgpa
from campus_placement.services.matching_service import compute_match
from campus_placement.services.mongo_service import (
    ApplicationService, DriveService, JobService, ResumeService, StudentService
)
from campus_placement.services.normalizer import normalize_student
from campus_placement.schemas.schemas import (
    JobCreate, JobUpdate, JobStatus, ApplicationCreate, MessageResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _with_min_cgpa(job: dict) -> dict:
    job["resolved_min_cgpa"] = resolve_min_cgpa(job)
    return job


def _get_job_or_404(db: Database, job_id: str) -> dict:
    job = JobService(db).get(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post("", status_code=201)
async def create_job(
    job: JobCreate,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    """Create a new job posting, optionally attached to a placement drive."""
    if job.drive_id and not DriveService(db).get(job.drive_id):
        raise HTTPException(status_code=404, detail="Placement drive not found")

    created = JobService(db).create(job.model_dump(mode="json", exclude_none=True), created_by=officer["user_id"])
    return _with_min_cgpa(created)


@router.get("")
async def list_jobs(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    status: Optional[JobStatus] = Query(JobStatus.active),
    company: Optional[str] = Query(None, description="Search in company name"),
    drive_id: Optional[str] = Query(None),
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_database)
):
    """List job postings with filters and pagination."""
    jobs, total = JobService(db).list(
        status=status.value if status else None,
        company=company,
        drive_id=drive_id,
        skip=(page - 1) * page_size,
        limit=page_size
    )
    return {"jobs": [_with_min_cgpa(j) for j in jobs], "total": total, "page": page, "page_size": page_size}


@router.get("/{job_id}")
async def get_job(job_id: str, user: dict = Depends(get_current_user), db: Database = Depends(get_database)):
    """Get job details. Students viewing a job also get their eligibility."""
    job = _with_min_cgpa(_get_job_or_404(db, job_id))
    JobService(db).increment_views(job_id)

    if user["role"] == "student":
        profile = StudentService(db).get_by_user(user["user_id"])
        if profile:
            student = normalize_student(profile)
            job["eligible"] = is_eligible(student, job)
            job["match_score"] = compute_match(student, job)
    return job


@router.put("/{job_id}")
async def update_job(
    job_id: str,
    data: JobUpdate,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    updates = data.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    job = JobService(db).update(job_id, updates)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return _with_min_cgpa(job)


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(
    job_id: str,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    if not JobService(db).delete(job_id):
        raise HTTPException(status_code=404, detail="Job not found")
    return MessageResponse(message="Job deleted successfully")


@router.get("/{job_id}/eligible-students")
async def get_eligible_students(
    job_id: str,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    """Active students meeting the job's minimum CGPA, best matches first."""
    job = _get_job_or_404(db, job_id)
    students = [normalize_student(s) for s in StudentService(db).all_active()]

    pool = []
    for student in eligible_students(students, job):
        student["match_score"] = compute_match(student, job)
        pool.append(student)
    pool.sort(key=lambda s: s["match_score"], reverse=True)

    return {
        "job_id": job["_id"],
        "min_cgpa": resolve_min_cgpa(job),
        "total_active": len(students),
        "eligible_count": len(pool),
        "students": pool
    }


@router.post("/{job_id}/apply", status_code=201)
async def apply_to_job(
    job_id: str,
    application: ApplicationCreate,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_database)
):
    """Apply to a job. Students only. Cannot apply twice to same job."""
    job = _get_job_or_404(db, job_id)
    if job.get("status") != JobStatus.active.value:
        raise HTTPException(status_code=400, detail="Job is not accepting applications")

    applications = ApplicationService(db)
    if applications.exists(student["student_id"], job["_id"]):
        raise HTTPException(status_code=400, detail="Already applied to this job")

    if get_settings().enforce_cgpa_eligibility:
        profile = normalize_student(student["student"])
        if not is_eligible(profile, job):
            logger.info("Rejected application of %s to job %s: below minimum CGPA",
                        student["student_id"], job["_id"])
            raise HTTPException(
                status_code=403,
                detail=f"Minimum CGPA of {resolve_min_cgpa(job):g} required for this job"
            )

    resume = ResumeService(db).get_active(student["student_id"])
    return applications.create(
        student["student_id"], job,
        resume_id=resume["_id"] if resume else None,
        note=application.note
    )
