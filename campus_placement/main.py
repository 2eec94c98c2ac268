"""
Campus Placement Portal - Main Application

FastAPI backend with:
- MongoDB for students, companies, jobs, drives, applications, notifications
- Rule-based + LLM analysis assistant for placement officers
- JWT authentication (student, placement_officer, admin)

Run: uvicorn campus_placement.main:app --reload
"""

import logging

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database
from pymongo.errors import PyMongoError

from campus_placement import __version__
from campus_placement.api.routes import api_router
from campus_placement.core.auth import ensure_bootstrap_admin
from campus_placement.core.config import get_settings
from campus_placement.db.mongodb import get_database, get_mongo_db, init_mongo_indexes, test_mongo_connection

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Campus Placement Portal",
    description="""
    Placement management backend for a college placement office.

    ## Features
    - **Authentication**: JWT-based auth for students and placement officers
    - **Students**: Records, bulk import, self-service profile, ranked job list
    - **Companies / Drives / Jobs**: Recruitment management with CGPA eligibility
    - **Applications**: Apply, review, shortlist, hire
    - **Notifications**: Targeted announcements by year, department or section
    - **Analysis**: Natural-language questions, statistics, breakdowns, CSV export
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    debug=settings.debug
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize MongoDB indexes and the bootstrap admin on startup."""
    try:
        db = get_mongo_db()
        init_mongo_indexes(db)
        if ensure_bootstrap_admin(db):
            logger.info("Bootstrap admin account created for %s", settings.bootstrap_admin_email)
    except PyMongoError as e:
        logger.warning("MongoDB initialization failed: %s", e)


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "Campus Placement Portal", "version": __version__}


@app.get("/health", tags=["Health"])
async def health_check(db: Database = Depends(get_database)):
    """Detailed health check."""
    connected = test_mongo_connection(db)
    return {
        "status": "healthy" if connected else "degraded",
        "mongodb": "connected" if connected else "disconnected"
    }
