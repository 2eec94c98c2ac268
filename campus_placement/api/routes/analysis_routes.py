"""
Analysis Routes (placement officer / admin)

POST /analysis - Answer a free-text question about the placement data
GET /analysis/capabilities - Analysis types and sample queries
POST /analysis/clear-cache - Drop cached context and answers
GET /analysis/statistics - Overall statistics and placement analysis
GET /analysis/breakdown/{key} - Course / department / year breakdown
GET /analysis/export.csv - Student CSV export (optionally filtered by a query)
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import Response
from pymongo.database import Database
from typing import Optional

from campus_placement.db.mongodb import get_database
from campus_placement.core.auth import get_current_officer
from campus_placement.services.analysis_service import CAPABILITIES, analyze, load_database_context
from campus_placement.services.cache_service import invalidate_analysis_caches
from campus_placement.services.report_export import filter_students_for_query, students_to_csv
from campus_placement.services.statistics import breakdown_by
from campus_placement.schemas.schemas import AnalysisRequest, AnalysisResponse, BreakdownKey, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["Analysis"], dependencies=[Depends(get_current_officer)])


@router.post("", response_model=AnalysisResponse)
async def run_analysis(request: AnalysisRequest, db: Database = Depends(get_database)):
    """
    Answer a question such as "Show me all MCA students" or
    "What is the placement rate by department?".
    """
    if not request.query.strip():
        raise HTTPException(status_code=400, detail="Query is required and must be a non-empty string")

    logger.info("Analysis request: %r (type: %s)", request.query, request.analysis_type.value)
    return analyze(db, request.query, request.analysis_type.value)


@router.get("/capabilities")
async def capabilities():
    return {"success": True, "capabilities": CAPABILITIES}


@router.post("/clear-cache", response_model=MessageResponse)
async def clear_cache():
    invalidate_analysis_caches()
    logger.info("Analysis caches cleared")
    return MessageResponse(message="Cache cleared successfully")


@router.get("/statistics")
async def statistics(db: Database = Depends(get_database)):
    context = load_database_context(db)
    return {
        "statistics": context.statistics,
        "placement_analysis": context.placement_analysis
    }


@router.get("/breakdown/{key}")
async def breakdown(key: BreakdownKey, db: Database = Depends(get_database)):
    context = load_database_context(db)
    return {"key": key.value, "rows": breakdown_by(context.students, key.value)}


@router.get("/export.csv")
async def export_csv(
    query: Optional[str] = Query(None, description="Optional query, e.g. 'placed MCA students with CGPA above 8'"),
    db: Database = Depends(get_database)
):
    context = load_database_context(db)
    students = filter_students_for_query(query, context.students) if query else context.students
    filename = f"students_{datetime.now(timezone.utc):%Y%m%d%H%M%S}.csv"
    return Response(
        content=students_to_csv(students),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
