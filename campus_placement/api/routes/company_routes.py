"""
Company Routes

GET /companies - List companies (public)
GET /companies/{company_id} - Company details (public)
POST /companies - Create company (officer)
PUT /companies/{company_id} - Update company (officer)
DELETE /companies/{company_id} - Delete company (officer)
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from pymongo.database import Database
from typing import Optional

from campus_placement.db.mongodb import get_database
from campus_placement.core.auth import get_current_officer
from campus_placement.services.mongo_service import CompanyService
from campus_placement.schemas.schemas import CompanyCreate, CompanyUpdate, CompanyStatus, MessageResponse

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.get("")
async def list_companies(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[CompanyStatus] = Query(None),
    search: Optional[str] = Query(None, description="Search in company name"),
    db: Database = Depends(get_database)
):
    """List recruiting companies with pagination."""
    companies, total = CompanyService(db).list(
        status=status.value if status else None,
        search=search,
        skip=(page - 1) * page_size,
        limit=page_size
    )
    return {"companies": companies, "total": total, "page": page, "page_size": page_size}


@router.get("/{company_id}")
async def get_company(company_id: str, db: Database = Depends(get_database)):
    company = CompanyService(db).get(company_id)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


@router.post("", status_code=201)
async def create_company(
    data: CompanyCreate,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    service = CompanyService(db)
    if service.get_by_email(data.email):
        raise HTTPException(status_code=409, detail="A company with this email already exists")
    return service.create(data.model_dump(mode="json", exclude_none=True))


@router.put("/{company_id}")
async def update_company(
    company_id: str,
    data: CompanyUpdate,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    updates = data.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    company = CompanyService(db).update(company_id, updates)
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


@router.delete("/{company_id}", response_model=MessageResponse)
async def delete_company(
    company_id: str,
    officer: dict = Depends(get_current_officer),
    db: Database = Depends(get_database)
):
    if not CompanyService(db).delete(company_id):
        raise HTTPException(status_code=404, detail="Company not found")
    return MessageResponse(message="Company deleted successfully")
