"""
Placement Drive Routes (officer only)

GET /drives - List drives
POST /drives - Create drive for a company
GET /drives/{drive_id} - Drive details with its jobs
PUT /drives/{drive_id} - Update drive
DELETE /drives/{drive_id} - Delete drive (refused while it has applications)
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from pymongo.database import Database
from typing import Optional

from campus_placement.db.mongodb import get_database
from campus_placement.core.auth import get_current_officer
from campus_placement.services.mongo_service import ApplicationService, CompanyService, DriveService, JobService
from campus_placement.schemas.schemas import DriveCreate, DriveUpdate, DriveStatus, MessageResponse

router = APIRouter(prefix="/drives", tags=["Placement Drives"], dependencies=[Depends(get_current_officer)])


@router.get("")
async def list_drives(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    status: Optional[DriveStatus] = Query(None),
    company_id: Optional[str] = Query(None),
    db: Database = Depends(get_database)
):
    drives, total = DriveService(db).list(
        status=status.value if status else None,
        company_id=company_id,
        skip=(page - 1) * page_size,
        limit=page_size
    )
    return {"drives": drives, "total": total, "page": page, "page_size": page_size}


@router.post("", status_code=201)
async def create_drive(data: DriveCreate, officer: dict = Depends(get_current_officer),
                       db: Database = Depends(get_database)):
    company = CompanyService(db).get(data.company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")

    doc = data.model_dump(mode="json", exclude_none=True)
    doc["company_name"] = company["name"]
    return DriveService(db).create(doc, created_by=officer["user_id"])


@router.get("/{drive_id}")
async def get_drive(drive_id: str, db: Database = Depends(get_database)):
    drive = DriveService(db).get(drive_id)
    if not drive:
        raise HTTPException(status_code=404, detail="Drive not found")

    jobs, _ = JobService(db).list(drive_id=drive_id, limit=100)
    drive["jobs"] = jobs
    drive["application_count"] = ApplicationService(db).count_for_drive(drive_id)
    return drive


@router.put("/{drive_id}")
async def update_drive(drive_id: str, data: DriveUpdate, db: Database = Depends(get_database)):
    updates = data.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    drive = DriveService(db).update(drive_id, updates)
    if not drive:
        raise HTTPException(status_code=404, detail="Drive not found")
    return drive


@router.delete("/{drive_id}", response_model=MessageResponse)
async def delete_drive(drive_id: str, db: Database = Depends(get_database)):
    service = DriveService(db)
    if not service.get(drive_id):
        raise HTTPException(status_code=404, detail="Drive not found")

    if ApplicationService(db).count_for_drive(drive_id) > 0:
        raise HTTPException(
            status_code=409,
            detail="Cannot delete drive with existing applications. Change status to closed instead."
        )

    service.delete(drive_id)
    return MessageResponse(message="Drive deleted successfully")
