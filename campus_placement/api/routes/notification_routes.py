"""
Notification Routes

Officer:
POST /notifications - Send a notification to a target group
POST /notifications/preview - Count recipients for a target
GET /notifications/target-options - Years/departments/sections available
GET /notifications - List sent notifications
PUT /notifications/{notification_id} - Edit title/message/links
DELETE /notifications/{notification_id} - Delete notification and deliveries

Student:
GET /notifications/me - Notifications delivered to me
POST /notifications/{notification_id}/read - Mark as read
"""

import logging

from fastapi import APIRouter, HTTPException, Depends, Query
from pymongo.database import Database

from campus_placement.db.mongodb import get_database
from campus_placement.core.auth import get_current_officer, get_current_student
from campus_placement.services.mongo_service import NotificationService
from campus_placement.schemas.schemas import (
    NotificationCreate, NotificationTarget, NotificationUpdate, MessageResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post("", status_code=201)
async def create_notification(
    data: NotificationCreate,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    """Create a notification; recipients are the active students matching the target."""
    payload = data.model_dump(mode="json")
    notification = NotificationService(db).create(
        payload["title"], payload["message"], payload["target"],
        links=payload["links"], created_by=officer["user_id"]
    )
    logger.info("Notification %s delivered to %d students", notification["_id"], notification["recipient_count"])
    return notification


@router.post("/preview")
async def preview_recipients(
    target: NotificationTarget,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    return {"recipient_count": NotificationService(db).preview_count(target.model_dump())}


@router.get("/target-options")
async def target_options(officer: dict = Depends(get_current_officer), db: Database = Depends(get_database)):
    return NotificationService(db).target_options()


@router.get("/me")
async def my_notifications(student: dict = Depends(get_current_student), db: Database = Depends(get_database)):
    notifications = NotificationService(db).list_for_student(student["student_id"])
    return {"notifications": notifications, "total": len(notifications)}


@router.post("/{notification_id}/read", response_model=MessageResponse)
async def mark_read(
    notification_id: str,
    student: dict = Depends(get_current_student),
    db: Database = Depends(get_database)
):
    if not NotificationService(db).mark_read(notification_id, student["student_id"]):
        raise HTTPException(status_code=404, detail="Notification not found")
    return MessageResponse(message="Marked as read")


@router.get("")
async def list_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    notifications, total = NotificationService(db).list(skip=(page - 1) * page_size, limit=page_size)
    return {"notifications": notifications, "total": total, "page": page, "page_size": page_size}


@router.put("/{notification_id}")
async def update_notification(
    notification_id: str,
    data: NotificationUpdate,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    updates = data.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    notification = NotificationService(db).update(notification_id, updates)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    if not NotificationService(db).delete(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return MessageResponse(message="Notification deleted successfully")
