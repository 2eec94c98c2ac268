"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from campus_placement.api.routes.auth_routes import router as auth_router
from campus_placement.api.routes.student_routes import router as student_router
from campus_placement.api.routes.company_routes import router as company_router
from campus_placement.api.routes.job_routes import router as job_router
from campus_placement.api.routes.drive_routes import router as drive_router
from campus_placement.api.routes.application_routes import router as application_router
from campus_placement.api.routes.resume_routes import router as resume_router
from campus_placement.api.routes.notification_routes import router as notification_router
from campus_placement.api.routes.analysis_routes import router as analysis_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(student_router)
api_router.include_router(company_router)
api_router.include_router(job_router)
api_router.include_router(drive_router)
api_router.include_router(application_router)
api_router.include_router(resume_router)
api_router.include_router(notification_router)
api_router.include_router(analysis_router)
