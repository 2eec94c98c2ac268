"""
Job Application Routes

GET /applications/me - Student's own applications
GET /applications - List applications with filters (officer)
GET /applications/{application_id} - Application details (officer)
PATCH /applications/{application_id}/status - Update status (officer)

Marking an application "hired" also marks the student as placed.
"""

import logging

from fastapi import APIRouter, HTTPException, Depends, Query
from pymongo.database import Database
from typing import Optional

from campus_placement.db.mongodb import get_database
from campus_placement.core.auth import get_current_officer, get_current_student
from campus_placement.services.mongo_service import ApplicationService, JobService, StudentService
from campus_placement.schemas.schemas import ApplicationStatus, ApplicationStatusUpdate
from campus_placement.utils.numbers import parse_ctc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


def _attach_job(db: Database, applications: list) -> list:
    jobs = JobService(db)
    for application in applications:
        job = jobs.get(application["job_id"])
        application["job_title"] = job["title"] if job else None
        application["company"] = job["company"] if job else None
    return applications


@router.get("/me")
async def my_applications(student: dict = Depends(get_current_student), db: Database = Depends(get_database)):
    applications = ApplicationService(db).list_for_student(student["student_id"])
    return {"applications": _attach_job(db, applications), "total": len(applications)}


@router.get("")
async def list_applications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    job_id: Optional[str] = Query(None),
    drive_id: Optional[str] = Query(None),
    student_id: Optional[str] = Query(None),
    status: Optional[ApplicationStatus] = Query(None),
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    filters = {
        "job_id": job_id, "drive_id": drive_id, "student_id": student_id,
        "status": status.value if status else None
    }
    applications, total = ApplicationService(db).list(filters, skip=(page - 1) * page_size, limit=page_size)
    return {"applications": _attach_job(db, applications), "total": total, "page": page, "page_size": page_size}


@router.get("/{application_id}")
async def get_application(
    application_id: str,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    application = ApplicationService(db).get(application_id)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")
    application["student"] = StudentService(db).get(application["student_id"])
    return _attach_job(db, [application])[0]


@router.patch("/{application_id}/status")
async def update_application_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    application = ApplicationService(db).update_status(application_id, data.status.value, data.note)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")

    if data.status == ApplicationStatus.hired:
        job = JobService(db).get(application["job_id"])
        if job:
            StudentService(db).mark_placed(
                application["student_id"], job.get("company"), job.get("title"), parse_ctc(job.get("ctc"))
            )
            logger.info("Student %s marked placed at %s", application["student_id"], job.get("company"))
    return application
