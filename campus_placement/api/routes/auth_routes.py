"""
Authentication Routes

POST /auth/register - Register a student account
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
POST /auth/users - Create an officer/admin account (admin only)
"""

from fastapi import APIRouter, HTTPException, Depends
from pymongo.database import Database

from campus_placement.db.mongodb import get_database
from campus_placement.core.auth import (
    hash_password, verify_password, create_access_token, get_current_user, require_roles
)
from campus_placement.services.mongo_service import StudentService, UserService
from campus_placement.schemas.schemas import (
    RegisterRequest, LoginRequest, TokenResponse, UserResponse, MessageResponse, UserRole
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(request: RegisterRequest, db: Database = Depends(get_database)):
    """
    Register a student account.

    If the placement office already imported a student record with this
    email, the account is linked to it; otherwise a minimal profile is created.
    """
    if request.role != UserRole.student:
        raise HTTPException(status_code=403, detail="Only student accounts can self-register")

    users = UserService(db)
    if users.get_by_email(request.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = users.create(request.email, hash_password(request.password), UserRole.student.value, request.name)

    students = StudentService(db)
    profile = students.get_by_email(request.email)
    if profile:
        students.update(profile["_id"], {"user_id": user["_id"]})
    else:
        students.create({"name": request.name or request.email.split("@")[0], "email": request.email},
                        user_id=user["_id"])

    return MessageResponse(message="Registered successfully as student. Please login.")


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, db: Database = Depends(get_database)):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    user = UserService(db).get_by_email(request.email)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account deactivated")

    if not verify_password(request.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_access_token(data={"sub": user["_id"], "role": user["role"]})

    return TokenResponse(access_token=token, user_id=user["_id"], role=user["role"])


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    """Get current authenticated user's info."""
    return UserResponse(user_id=user["user_id"], email=user["email"], role=user["role"], name=user.get("name"))


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_staff_user(
    request: RegisterRequest,
    admin: dict = Depends(require_roles(UserRole.admin.value)),
    db: Database = Depends(get_database)
):
    """Create a placement officer or admin account."""
    if request.role == UserRole.student:
        raise HTTPException(status_code=400, detail="Use /auth/register for student accounts")

    users = UserService(db)
    if users.get_by_email(request.email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = users.create(request.email, hash_password(request.password), request.role.value, request.name)
    return UserResponse(user_id=user["_id"], email=user["email"], role=user["role"], name=user.get("name"))
