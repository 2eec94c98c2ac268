"""
MongoDB Service - CRUD operations for the placement collections.

Collections in this database:
1. users          - Login accounts (student, placement_officer, admin)
2. students       - Student profiles (academic data, placement status)
3. companies      - Recruiting companies
4. jobs           - Job postings (optionally part of a placement drive)
5. placement_drives - Campus drives grouping jobs of one company
6. job_applications - One application per student per job
7. resumes        - Uploaded resume text and metadata
8. notifications / notification_deliveries - Targeted announcements

Every service takes the database handle so routes can inject it
(and tests can pass an in-memory database). Writes that change students,
jobs or companies invalidate the analysis caches.
"""

import re
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database

from campus_placement.db.mongodb import COLLECTIONS
from campus_placement.services.cache_service import invalidate_analysis_caches


# ============================================================
# HELPERS: ObjectId conversion and JSON serialization
# ============================================================

def serialize_doc(doc: dict) -> dict:
    """Convert MongoDB document to JSON-serializable dict."""
    if doc is None:
        return None
    if "_id" in doc:
        doc["_id"] = str(doc["_id"])
    return doc


def serialize_docs(docs: list) -> list:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse an id string; None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None values and the _id key from an update payload."""
    return {k: v for k, v in data.items() if v is not None and k != "_id"}


class _BaseService:
    collection_key: str = ""

    def __init__(self, db: Database):
        self.db = db
        self.collection: Collection = db[COLLECTIONS[self.collection_key]]

    def get(self, doc_id: str) -> Optional[dict]:
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        return serialize_doc(self.collection.find_one({"_id": oid}))

    def _update(self, doc_id: str, data: Dict[str, Any]) -> Optional[dict]:
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        changes = _clean(data)
        changes["updated_at"] = _now()
        result = self.collection.update_one({"_id": oid}, {"$set": changes})
        if result.matched_count == 0:
            return None
        return self.get(doc_id)

    def _delete(self, doc_id: str) -> bool:
        oid = to_object_id(doc_id)
        if oid is None:
            return False
        return self.collection.delete_one({"_id": oid}).deleted_count > 0

    def _page(self, query: dict, skip: int, limit: int) -> Tuple[List[dict], int]:
        total = self.collection.count_documents(query)
        cursor = self.collection.find(query).sort("created_at", DESCENDING).skip(skip).limit(limit)
        return serialize_docs(list(cursor)), total


# ============================================================
# USERS COLLECTION
# ============================================================

class UserService(_BaseService):
    """Login accounts. Passwords are stored as bcrypt hashes only."""
    collection_key = "users"

    def create(self, email: str, password_hash: str, role: str, name: str = None) -> dict:
        doc = {
            "email": email.lower(),
            "password_hash": password_hash,
            "role": role,
            "name": name,
            "is_active": True,
            "created_at": _now()
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize_doc(doc)

    def get_by_email(self, email: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"email": email.lower()}))


# ============================================================
# STUDENTS COLLECTION
# ============================================================

class StudentService(_BaseService):
    """
    Student profiles. Stored as entered; the analysis layer normalizes
    course/department/program labels on read.
    """
    collection_key = "students"

    def _write(self) -> None:
        invalidate_analysis_caches()

    def list(self, filters: Dict[str, Any] = None, skip: int = 0, limit: int = 50) -> Tuple[List[dict], int]:
        """
        List students with optional filters.

        Args:
            filters: branch, course, year, section, is_placed, is_active
        """
        query = _clean(filters or {})
        return self._page(query, skip, limit)

    def all_active(self) -> List[dict]:
        return serialize_docs(list(self.collection.find({"is_active": True})))

    def get_by_user(self, user_id: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"user_id": user_id}))

    def get_by_email(self, email: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"email": email.lower()}))

    def create(self, data: Dict[str, Any], user_id: str = None) -> dict:
        doc = _clean(data)
        doc["email"] = doc["email"].lower()
        doc.setdefault("is_active", True)
        doc.setdefault("is_placed", False)
        doc["user_id"] = user_id
        doc["created_at"] = _now()
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        self._write()
        return serialize_doc(doc)

    def bulk_import(self, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Insert many students, skipping rows whose email already exists
        (in the database or earlier in the same batch).

        Returns:
            {"inserted": int, "skipped": [email, ...]}
        """
        seen = set()
        docs, skipped = [], []
        for record in records:
            email = record["email"].lower()
            if email in seen or self.collection.find_one({"email": email}, {"_id": 1}):
                skipped.append(email)
                continue
            seen.add(email)
            doc = _clean(record)
            doc["email"] = email
            doc.setdefault("is_active", True)
            doc.setdefault("is_placed", False)
            doc["created_at"] = _now()
            docs.append(doc)

        if docs:
            self.collection.insert_many(docs)
            self._write()
        return {"inserted": len(docs), "skipped": skipped}

    def update(self, student_id: str, data: Dict[str, Any]) -> Optional[dict]:
        doc = self._update(student_id, data)
        if doc is not None:
            self._write()
        return doc

    def deactivate(self, student_id: str) -> bool:
        """Soft delete: the record stays for statistics but is marked inactive."""
        return self.update(student_id, {"is_active": False}) is not None

    def mark_placed(self, student_id: str, company_name: str, job_role: str, ctc: Any = None) -> Optional[dict]:
        return self.update(student_id, {
            "is_placed": True,
            "placement_details": {
                "company_name": company_name,
                "job_role": job_role,
                "designation": job_role,
                "ctc": ctc,
                "placed_at": _now()
            }
        })


# ============================================================
# COMPANIES COLLECTION
# ============================================================

class CompanyService(_BaseService):
    collection_key = "companies"

    def list(self, status: str = None, search: str = None, skip: int = 0, limit: int = 50) -> Tuple[List[dict], int]:
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status
        if search:
            query["name"] = {"$regex": re.escape(search), "$options": "i"}
        return self._page(query, skip, limit)

    def get_by_email(self, email: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"email": email.lower()}))

    def create(self, data: Dict[str, Any]) -> dict:
        doc = _clean(data)
        doc["email"] = doc["email"].lower()
        doc.setdefault("status", "active")
        doc["created_at"] = _now()
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        invalidate_analysis_caches()
        return serialize_doc(doc)

    def update(self, company_id: str, data: Dict[str, Any]) -> Optional[dict]:
        doc = self._update(company_id, data)
        if doc is not None:
            invalidate_analysis_caches()
        return doc

    def delete(self, company_id: str) -> bool:
        deleted = self._delete(company_id)
        if deleted:
            invalidate_analysis_caches()
        return deleted


# ============================================================
# JOBS COLLECTION
# ============================================================

class JobService(_BaseService):
    """
    Job postings. Minimum CGPA may be stored under several legacy field
    names or only in the description; see eligibility.resolve_min_cgpa.
    """
    collection_key = "jobs"

    def list(self, status: str = None, company: str = None, drive_id: str = None,
             skip: int = 0, limit: int = 50) -> Tuple[List[dict], int]:
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status
        if company:
            query["company"] = {"$regex": re.escape(company), "$options": "i"}
        if drive_id:
            query["drive_id"] = drive_id
        return self._page(query, skip, limit)

    def all_active(self) -> List[dict]:
        return serialize_docs(list(self.collection.find({"status": "active"})))

    def create(self, data: Dict[str, Any], created_by: str = None) -> dict:
        doc = _clean(data)
        doc.setdefault("status", "active")
        doc["views"] = 0
        doc["created_by"] = created_by
        doc["created_at"] = _now()
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        invalidate_analysis_caches()
        return serialize_doc(doc)

    def update(self, job_id: str, data: Dict[str, Any]) -> Optional[dict]:
        doc = self._update(job_id, data)
        if doc is not None:
            invalidate_analysis_caches()
        return doc

    def delete(self, job_id: str) -> bool:
        deleted = self._delete(job_id)
        if deleted:
            invalidate_analysis_caches()
        return deleted

    def increment_views(self, job_id: str) -> None:
        oid = to_object_id(job_id)
        if oid is not None:
            self.collection.update_one({"_id": oid}, {"$inc": {"views": 1}})


# ============================================================
# PLACEMENT DRIVES COLLECTION
# ============================================================

class DriveService(_BaseService):
    collection_key = "drives"

    def list(self, status: str = None, company_id: str = None, skip: int = 0, limit: int = 50) -> Tuple[List[dict], int]:
        query: Dict[str, Any] = {}
        if status:
            query["status"] = status
        if company_id:
            query["company_id"] = company_id
        return self._page(query, skip, limit)

    def create(self, data: Dict[str, Any], created_by: str = None) -> dict:
        doc = _clean(data)
        doc.setdefault("status", "scheduled")
        doc["created_by"] = created_by
        doc["created_at"] = _now()
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize_doc(doc)

    def update(self, drive_id: str, data: Dict[str, Any]) -> Optional[dict]:
        return self._update(drive_id, data)

    def delete(self, drive_id: str) -> bool:
        return self._delete(drive_id)


# ============================================================
# JOB APPLICATIONS COLLECTION
# ============================================================

class ApplicationService(_BaseService):
    collection_key = "applications"

    def exists(self, student_id: str, job_id: str) -> bool:
        return self.collection.find_one({"student_id": student_id, "job_id": job_id}, {"_id": 1}) is not None

    def create(self, student_id: str, job: Dict[str, Any], resume_id: str = None, note: str = None) -> dict:
        doc = {
            "student_id": student_id,
            "job_id": job["_id"],
            "drive_id": job.get("drive_id"),
            "resume_id": resume_id,
            "note": note,
            "status": "applied",
            "created_at": _now()
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize_doc(doc)

    def list(self, filters: Dict[str, Any] = None, skip: int = 0, limit: int = 50) -> Tuple[List[dict], int]:
        """Filters: student_id, job_id, drive_id, status."""
        return self._page(_clean(filters or {}), skip, limit)

    def list_for_student(self, student_id: str) -> List[dict]:
        cursor = self.collection.find({"student_id": student_id}).sort("created_at", DESCENDING)
        return serialize_docs(list(cursor))

    def count_for_drive(self, drive_id: str) -> int:
        return self.collection.count_documents({"drive_id": drive_id})

    def update_status(self, application_id: str, status: str, note: str = None) -> Optional[dict]:
        return self._update(application_id, {"status": status, "note": note})


# ============================================================
# RESUMES COLLECTION
# ============================================================

class ResumeService(_BaseService):
    """
    Stores extracted resume text and metadata. File bytes are not kept;
    a storage provider is outside this service.
    """
    collection_key = "resumes"

    def create(self, student_id: str, filename: str, content_type: str, size: int, text: str) -> dict:
        is_first = self.collection.count_documents({"student_id": student_id}) == 0
        doc = {
            "student_id": student_id,
            "filename": filename,
            "content_type": content_type,
            "size": size,
            "resume_text": text,
            "is_active": is_first,
            "uploaded_at": _now()
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize_doc(doc)

    def list_for_student(self, student_id: str) -> List[dict]:
        cursor = self.collection.find({"student_id": student_id}, {"resume_text": 0}).sort("uploaded_at", DESCENDING)
        return serialize_docs(list(cursor))

    def get_active(self, student_id: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"student_id": student_id, "is_active": True}))

    def activate(self, student_id: str, resume_id: str) -> bool:
        """Make one resume the active one; all others of the student become inactive."""
        oid = to_object_id(resume_id)
        if oid is None or self.collection.find_one({"_id": oid, "student_id": student_id}) is None:
            return False
        self.collection.update_many({"student_id": student_id}, {"$set": {"is_active": False}})
        self.collection.update_one({"_id": oid}, {"$set": {"is_active": True}})
        return True

    def delete(self, student_id: str, resume_id: str) -> bool:
        oid = to_object_id(resume_id)
        if oid is None:
            return False
        return self.collection.delete_one({"_id": oid, "student_id": student_id}).deleted_count > 0


# ============================================================
# NOTIFICATIONS + DELIVERIES
# ============================================================

TARGET_FIELDS = {
    "years": "year",
    "departments": "branch",
    "sections": "section"
}


def build_target_query(target: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Translate a notification target into a student query.
    Only active students ever receive notifications.
    """
    query: Dict[str, Any] = {"is_active": True}
    if not target or target.get("all"):
        return query
    for key, student_field in TARGET_FIELDS.items():
        values = target.get(key) or []
        if values:
            query[student_field] = {"$in": list(values)}
    return query


class NotificationService(_BaseService):
    collection_key = "notifications"

    def __init__(self, db: Database):
        super().__init__(db)
        self.students: Collection = db[COLLECTIONS["students"]]
        self.deliveries: Collection = db[COLLECTIONS["deliveries"]]

    def preview_count(self, target: Optional[Dict[str, Any]]) -> int:
        return self.students.count_documents(build_target_query(target))

    def target_options(self) -> Dict[str, List[str]]:
        """Distinct years/departments/sections among active students."""
        options = {}
        for key, student_field in TARGET_FIELDS.items():
            values = self.students.distinct(student_field, {"is_active": True})
            options[key] = sorted({str(v) for v in values if v})
        return options

    def create(self, title: str, message: str, target: Optional[Dict[str, Any]],
               links: List[dict] = None, created_by: str = None) -> dict:
        """Create a notification and one delivery row per resolved recipient."""
        recipients = [str(s["_id"]) for s in self.students.find(build_target_query(target), {"_id": 1})]
        doc = {
            "title": title,
            "message": message,
            "links": links or [],
            "target": target or {"all": True},
            "recipient_count": len(recipients),
            "created_by": created_by,
            "created_at": _now()
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id

        notification_id = str(result.inserted_id)
        if recipients:
            self.deliveries.insert_many([
                {"notification_id": notification_id, "student_id": sid, "read": False, "delivered_at": _now()}
                for sid in recipients
            ])
        return serialize_doc(doc)

    def list(self, skip: int = 0, limit: int = 50) -> Tuple[List[dict], int]:
        return self._page({}, skip, limit)

    def list_for_student(self, student_id: str) -> List[dict]:
        deliveries = list(self.deliveries.find({"student_id": student_id}))
        read_state = {d["notification_id"]: d.get("read", False) for d in deliveries}
        ids = [to_object_id(nid) for nid in read_state]
        cursor = self.collection.find({"_id": {"$in": ids}}).sort("created_at", DESCENDING)
        notifications = serialize_docs(list(cursor))
        for n in notifications:
            n["read"] = read_state.get(n["_id"], False)
        return notifications

    def mark_read(self, notification_id: str, student_id: str) -> bool:
        result = self.deliveries.update_one(
            {"notification_id": notification_id, "student_id": student_id},
            {"$set": {"read": True, "read_at": _now()}}
        )
        return result.matched_count > 0

    def update(self, notification_id: str, data: Dict[str, Any]) -> Optional[dict]:
        """Title, message and links are editable; the target is fixed once sent."""
        allowed = {k: data.get(k) for k in ("title", "message", "links")}
        return self._update(notification_id, allowed)

    def delete(self, notification_id: str) -> bool:
        deleted = self._delete(notification_id)
        if deleted:
            self.deliveries.delete_many({"notification_id": notification_id})
        return deleted
