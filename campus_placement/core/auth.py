"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes (per role)
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.database import Database

from campus_placement.core.config import get_settings
from campus_placement.db.mongodb import get_database
from campus_placement.services.mongo_service import StudentService, UserService

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor
bearer_scheme = HTTPBearer()

OFFICER_ROLES = ("placement_officer", "admin")


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Database = Depends(get_database)
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    # Verify user exists
    user = UserService(db).get(user_id)
    if not user:
        raise credentials_exception

    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account deactivated")

    return {"user_id": user["_id"], "email": user["email"], "role": user["role"], "name": user.get("name")}


def require_roles(*roles: str):
    """Dependency factory - allow only the given roles."""
    async def checker(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in roles:
            raise HTTPException(status_code=403, detail="Not authorized for this action")
        return user
    return checker


get_current_officer = require_roles(*OFFICER_ROLES)


async def get_current_student(
    user: dict = Depends(get_current_user),
    db: Database = Depends(get_database)
) -> dict:
    """Dependency - Require student role and attach the student profile."""
    if user["role"] != "student":
        raise HTTPException(status_code=403, detail="Students only")

    student = StudentService(db).get_by_user(user["user_id"])
    if not student:
        raise HTTPException(status_code=404, detail="Student profile not found. Contact the placement office.")

    if not student.get("is_active", True):
        raise HTTPException(status_code=403, detail="Student account is blocked")

    user["student_id"] = student["_id"]
    user["student"] = student
    return user


def ensure_bootstrap_admin(db: Database) -> bool:
    """
    Create the first admin account from settings if it does not exist yet.
    Returns True when an account was created.
    """
    if not (settings.bootstrap_admin_email and settings.bootstrap_admin_password):
        return False

    users = UserService(db)
    if users.get_by_email(settings.bootstrap_admin_email):
        return False

    users.create(settings.bootstrap_admin_email, hash_password(settings.bootstrap_admin_password), "admin", "Administrator")
    return True
