"""
Resume Routes (student only)

POST /resumes - Upload resume (PDF/DOCX/TXT, max 5MB)
GET /resumes/me - List own resumes
PUT /resumes/{resume_id}/activate - Make a resume the active one
DELETE /resumes/{resume_id} - Delete a resume
"""

from fastapi import APIRouter, HTTPException, Depends, UploadFile, File
from pymongo.database import Database

from campus_placement.db.mongodb import get_database
from campus_placement.core.auth import get_current_student
from campus_placement.services.mongo_service import ResumeService
from campus_placement.utils.file_upload import extract_resume, MAX_FILE_SIZE_MB, ALLOWED_EXTENSIONS
from campus_placement.schemas.schemas import ResumeUploadResponse, MessageResponse

router = APIRouter(prefix="/resumes", tags=["Resumes"])


@router.post("", response_model=ResumeUploadResponse, status_code=201)
async def upload_resume(
    file: UploadFile = File(...),
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_database)
):
    """
    Upload a resume. The first resume becomes the active one and is
    attached to future job applications.
    """
    extracted = await extract_resume(file)
    resume = ResumeService(db).create(
        student["student_id"], extracted.filename, extracted.content_type, extracted.size, extracted.text
    )
    return ResumeUploadResponse(
        success=True,
        message="Resume uploaded successfully",
        resume_id=resume["_id"],
        filename=resume["filename"],
        is_active=resume["is_active"],
        characters=len(extracted.text)
    )


@router.get("/formats")
async def supported_formats():
    return {"supported_formats": sorted(ALLOWED_EXTENSIONS), "max_size_mb": MAX_FILE_SIZE_MB}


@router.get("/me")
async def my_resumes(student: dict = Depends(get_current_student), db: Database = Depends(get_database)):
    resumes = ResumeService(db).list_for_student(student["student_id"])
    return {"resumes": resumes, "total": len(resumes)}


@router.put("/{resume_id}/activate", response_model=MessageResponse)
async def activate_resume(
    resume_id: str,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_database)
):
    if not ResumeService(db).activate(student["student_id"], resume_id):
        raise HTTPException(status_code=404, detail="Resume not found")
    return MessageResponse(message="Resume set as active")


@router.delete("/{resume_id}", response_model=MessageResponse)
async def delete_resume(
    resume_id: str,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_database)
):
    if not ResumeService(db).delete(student["student_id"], resume_id):
        raise HTTPException(status_code=404, detail="Resume not found")
    return MessageResponse(message="Resume deleted successfully")
