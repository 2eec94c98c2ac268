"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
Student, job and company documents are returned as plain dicts (Mongo
documents with string ids), so most schemas here validate input.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Any, Dict
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    placement_officer = "placement_officer"
    admin = "admin"


class JobType(str, Enum):
    full_time = "Full-time"
    part_time = "Part-time"
    internship = "Internship"
    contract = "Contract"


class JobStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    closed = "closed"


class CompanyStatus(str, Enum):
    active = "active"
    inactive = "inactive"


class DriveStatus(str, Enum):
    scheduled = "scheduled"
    active = "active"
    completed = "completed"
    closed = "closed"


class ApplicationStatus(str, Enum):
    applied = "applied"
    reviewed = "reviewed"
    shortlisted = "shortlisted"
    rejected = "rejected"
    hired = "hired"


class AnalysisType(str, Enum):
    general = "general"
    student_analysis = "student_analysis"
    placement_analysis = "placement_analysis"
    eligibility_analysis = "eligibility_analysis"
    report_generation = "report_generation"
    trend_analysis = "trend_analysis"
    comparative_analysis = "comparative_analysis"


class BreakdownKey(str, Enum):
    course = "course"
    department = "department"
    year = "year"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: Optional[str] = None
    role: UserRole = UserRole.student

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: str

class UserResponse(BaseModel):
    user_id: str
    email: str
    role: str
    name: Optional[str] = None


# ============================================================
# STUDENT SCHEMAS
# ============================================================

class PlacementDetails(BaseModel):
    company_name: Optional[str] = None
    job_role: Optional[str] = None
    ctc: Optional[float] = Field(None, ge=0)

class StudentCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    roll_number: Optional[str] = None
    branch: Optional[str] = None
    course: Optional[str] = None
    program_type: Optional[str] = None
    year: Optional[str] = None
    section: Optional[str] = None
    phone: Optional[str] = None
    gpa: Optional[float] = Field(None, ge=0, le=10)
    attendance_percentage: Optional[float] = Field(None, ge=0, le=100)
    backlogs: Optional[int] = Field(None, ge=0)
    skills: List[str] = []
    is_placed: bool = False
    placement_details: Optional[PlacementDetails] = None

class StudentUpdate(BaseModel):
    """Officer-side update (all fields optional)."""
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    roll_number: Optional[str] = None
    branch: Optional[str] = None
    course: Optional[str] = None
    program_type: Optional[str] = None
    year: Optional[str] = None
    section: Optional[str] = None
    phone: Optional[str] = None
    gpa: Optional[float] = Field(None, ge=0, le=10)
    attendance_percentage: Optional[float] = Field(None, ge=0, le=100)
    backlogs: Optional[int] = Field(None, ge=0)
    skills: Optional[List[str]] = None
    is_active: Optional[bool] = None
    is_placed: Optional[bool] = None
    placement_details: Optional[PlacementDetails] = None

class StudentSelfUpdate(BaseModel):
    """Fields a student may edit on their own profile."""
    phone: Optional[str] = None
    skills: Optional[List[str]] = None

class BulkImportRequest(BaseModel):
    students: List[StudentCreate] = Field(..., min_length=1)

class BulkRowError(BaseModel):
    row: int
    errors: List[str]

class BulkImportResponse(BaseModel):
    inserted: int
    skipped: List[str] = []
    errors: List[BulkRowError] = []


# ============================================================
# COMPANY SCHEMAS
# ============================================================

class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    founded_year: Optional[int] = Field(None, ge=1800, le=2100)
    employee_count: Optional[int] = Field(None, ge=0)
    contact_person: Optional[str] = None
    status: CompanyStatus = CompanyStatus.active

class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    phone: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    industry: Optional[str] = None
    founded_year: Optional[int] = Field(None, ge=1800, le=2100)
    employee_count: Optional[int] = Field(None, ge=0)
    contact_person: Optional[str] = None
    status: Optional[CompanyStatus] = None


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    company: str = Field(..., min_length=2)
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=1)
    location: str
    job_type: JobType = JobType.full_time
    ctc: Optional[str] = None
    deadline: Optional[str] = None
    status: JobStatus = JobStatus.active
    branches: List[str] = []
    skills: List[str] = []
    min_cgpa: Optional[float] = Field(None, ge=0, le=10)
    drive_id: Optional[str] = None

class JobUpdate(BaseModel):
    company: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    job_type: Optional[JobType] = None
    ctc: Optional[str] = None
    deadline: Optional[str] = None
    status: Optional[JobStatus] = None
    branches: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    min_cgpa: Optional[float] = Field(None, ge=0, le=10)
    drive_id: Optional[str] = None


# ============================================================
# PLACEMENT DRIVE SCHEMAS
# ============================================================

class DriveCreate(BaseModel):
    company_id: str
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    drive_date: Optional[datetime] = None
    venue: Optional[str] = None
    status: DriveStatus = DriveStatus.scheduled

class DriveUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    drive_date: Optional[datetime] = None
    venue: Optional[str] = None
    status: Optional[DriveStatus] = None


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    note: Optional[str] = Field(None, max_length=2000)

class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    note: Optional[str] = None


# ============================================================
# RESUME SCHEMAS
# ============================================================

class ResumeUploadResponse(BaseModel):
    success: bool
    message: str
    resume_id: Optional[str] = None
    filename: Optional[str] = None
    is_active: bool = False
    characters: int = 0


# ============================================================
# NOTIFICATION SCHEMAS
# ============================================================

class NotificationLink(BaseModel):
    label: str
    url: str

class NotificationTarget(BaseModel):
    all: bool = False
    years: List[str] = []
    departments: List[str] = []
    sections: List[str] = []

class NotificationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    links: List[NotificationLink] = []
    target: NotificationTarget = NotificationTarget(all=True)

class NotificationUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    message: Optional[str] = Field(None, min_length=1)
    links: Optional[List[NotificationLink]] = None


# ============================================================
# ANALYSIS SCHEMAS
# ============================================================

class AnalysisRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)
    analysis_type: AnalysisType = AnalysisType.general

class AnalysisAnswer(BaseModel):
    type: str
    content: str
    confidence: str
    model: str

class AnalysisResponse(BaseModel):
    success: bool
    query: str
    analysis_type: str
    response: AnalysisAnswer
    reports: List[Dict[str, Any]] = []
    timestamp: str
    data_context: Dict[str, int]
    performance: Dict[str, Any]


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
