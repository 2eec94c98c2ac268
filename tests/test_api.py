# tests/test_api.py
import pytest

from campus_placement.services.mongo_service import StudentService


JOB = {
    "company": "Acme",
    "title": "Backend Engineer",
    "description": "Build APIs. Minimum CGPA: 7.5 required.",
    "location": "Pune",
    "ctc": "12",
    "skills": ["react", "node", "sql"],
}


def _create_job(client, headers, **overrides):
    body = dict(JOB)
    body.update(overrides)
    response = client.post("/api/jobs", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _create_student(client, headers, **overrides):
    body = {"name": "Asha Rao", "email": "asha@college.edu", "course": "MCA", "gpa": 8.2}
    body.update(overrides)
    response = client.post("/api/students", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================
# AUTH
# ============================================================

def test_register_login_and_me(client):
    response = client.post("/api/auth/register", json={
        "email": "neha@college.edu", "password": "Student123@", "name": "Neha"
    })
    assert response.status_code == 201

    response = client.post("/api/auth/login", json={"email": "neha@college.edu", "password": "Student123@"})
    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["role"] == "student"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "neha@college.edu"

    profile = client.get("/api/students/me", headers={"Authorization": f"Bearer {token}"})
    assert profile.status_code == 200
    assert profile.json()["name"] == "Neha"


def test_register_links_existing_student_record(client, officer_headers):
    created = _create_student(client, officer_headers, email="ravi@college.edu", name="Ravi Kumar")

    client.post("/api/auth/register", json={"email": "ravi@college.edu", "password": "Student123@"})
    token = client.post("/api/auth/login", json={
        "email": "ravi@college.edu", "password": "Student123@"
    }).json()["access_token"]

    profile = client.get("/api/students/me", headers={"Authorization": f"Bearer {token}"}).json()
    assert profile["_id"] == created["_id"]
    assert profile["gpa"] == 8.2


def test_officer_accounts_cannot_self_register(client):
    response = client.post("/api/auth/register", json={
        "email": "boss@college.edu", "password": "Officer123@", "role": "placement_officer"
    })
    assert response.status_code == 403


def test_duplicate_registration_and_bad_password(client):
    body = {"email": "neha@college.edu", "password": "Student123@"}
    assert client.post("/api/auth/register", json=body).status_code == 201
    assert client.post("/api/auth/register", json=body).status_code == 400

    response = client.post("/api/auth/login", json={"email": "neha@college.edu", "password": "wrong-password"})
    assert response.status_code == 401


def test_admin_creates_officer_accounts(client, admin_headers, officer_headers):
    body = {"email": "tpo@college.edu", "password": "Officer123@", "role": "placement_officer"}
    assert client.post("/api/auth/users", json=body, headers=officer_headers).status_code == 403

    response = client.post("/api/auth/users", json=body, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["role"] == "placement_officer"

    login = client.post("/api/auth/login", json={"email": "tpo@college.edu", "password": "Officer123@"})
    assert login.status_code == 200


def test_protected_routes_require_a_token(client):
    assert client.get("/api/students").status_code in (401, 403)
    assert client.get("/api/students", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


# ============================================================
# STUDENTS
# ============================================================

def test_student_crud(client, officer_headers):
    created = _create_student(client, officer_headers, email="Asha@College.edu")
    assert created["email"] == "asha@college.edu"
    assert created["is_active"] is True
    student_id = created["_id"]

    duplicate = client.post("/api/students", json={"name": "Asha", "email": "asha@college.edu"},
                            headers=officer_headers)
    assert duplicate.status_code == 409

    listing = client.get("/api/students", params={"course": "MCA"}, headers=officer_headers).json()
    assert listing["total"] == 1

    updated = client.put(f"/api/students/{student_id}", json={"gpa": 9.0}, headers=officer_headers)
    assert updated.json()["gpa"] == 9.0
    assert client.put(f"/api/students/{student_id}", json={}, headers=officer_headers).status_code == 400

    assert client.delete(f"/api/students/{student_id}", headers=officer_headers).status_code == 200
    assert client.get(f"/api/students/{student_id}", headers=officer_headers).json()["is_active"] is False

    assert client.get("/api/students/not-an-id", headers=officer_headers).status_code == 404


def test_bulk_import_skips_existing_emails(client, officer_headers):
    _create_student(client, officer_headers, email="asha@college.edu")
    response = client.post("/api/students/bulk", json={"students": [
        {"name": "Asha Rao", "email": "asha@college.edu"},
        {"name": "Vikram Singh", "email": "vikram@college.edu", "course": "B.Tech"},
        {"name": "Meera Iyer", "email": "meera@college.edu", "course": "MCA"},
        {"name": "Meera Again", "email": "MEERA@college.edu"},
    ]}, headers=officer_headers)

    assert response.status_code == 201
    assert response.json() == {"inserted": 2, "skipped": ["asha@college.edu", "meera@college.edu"], "errors": []}
    assert client.get("/api/students", headers=officer_headers).json()["total"] == 3


ROSTER = b"""name,email,rollNumber,branch,year,cgpa,skills
Asha Rao,asha@college.edu,21CS001,CSE,2025,8.4,python;sql
Bad Row,not-an-email,21CS002,CSE,2025,7.0,
Vikram Singh,vikram@college.edu,21CS003,IT,2025,11,java
Meera Iyer,meera@college.edu,,MCA,2024,,
,,,,,,
Ravi Kumar,ravi@college.edu,21CS004,CSE,2025,7.9,
"""


def test_csv_bulk_upload_reports_invalid_rows(client, officer_headers):
    _create_student(client, officer_headers, email="ravi@college.edu", name="Ravi Kumar")

    response = client.post("/api/students/bulk-upload", files={"file": ("roster.csv", ROSTER, "text/csv")},
                           headers=officer_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["inserted"] == 2
    assert body["skipped"] == ["ravi@college.edu"]
    assert [e["row"] for e in body["errors"]] == [3, 4]
    assert body["errors"][0]["errors"][0].startswith("email")
    assert body["errors"][1]["errors"][0].startswith("gpa")

    students = client.get("/api/students", headers=officer_headers).json()
    asha = [s for s in students["students"] if s["email"] == "asha@college.edu"][0]
    assert (asha["roll_number"], asha["gpa"], asha["skills"]) == ("21CS001", 8.4, ["python", "sql"])


@pytest.mark.parametrize("filename, content, status", [
    ("roster.xlsx", b"name,email\nA B,ab@college.edu\n", 400),
    ("roster.csv", b"full_name,mail\nA B,ab@college.edu\n", 400),
])
def test_csv_bulk_upload_rejects_bad_files(client, officer_headers, filename, content, status):
    response = client.post("/api/students/bulk-upload", files={"file": (filename, content, "text/csv")},
                           headers=officer_headers)
    assert response.status_code == status


def test_students_cannot_use_officer_routes(client, make_student):
    headers, _ = make_student()
    assert client.get("/api/students", headers=headers).status_code == 403
    assert client.post("/api/analysis", json={"query": "placement statistics"}, headers=headers).status_code == 403


def test_student_self_update_is_limited(client, make_student):
    headers, _ = make_student(gpa=6.0)

    response = client.put("/api/students/me", json={"skills": ["python", "sql"], "phone": "9876543210"},
                          headers=headers)
    assert response.json()["skills"] == ["python", "sql"]

    assert client.put("/api/students/me", json={"gpa": 10}, headers=headers).status_code == 400
    assert client.get("/api/students/me", headers=headers).json()["gpa"] == 6.0


def test_blocked_student_is_refused(client, db, make_student):
    headers, student = make_student()
    StudentService(db).deactivate(student["_id"])
    assert client.get("/api/students/me", headers=headers).status_code == 403


# ============================================================
# JOBS + APPLICATIONS
# ============================================================

def test_apply_enforces_minimum_cgpa(client, officer_headers, make_student):
    job = _create_job(client, officer_headers)
    assert job["resolved_min_cgpa"] == 7.5

    low_headers, _ = make_student(email="low@college.edu", gpa=7.0)
    response = client.post(f"/api/jobs/{job['_id']}/apply", json={}, headers=low_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Minimum CGPA of 7.5 required for this job"

    ok_headers, ok_student = make_student(email="ok@college.edu", gpa=8.0)
    response = client.post(f"/api/jobs/{job['_id']}/apply", json={"note": "Interested"}, headers=ok_headers)
    assert response.status_code == 201
    assert response.json()["status"] == "applied"
    assert response.json()["student_id"] == ok_student["_id"]

    again = client.post(f"/api/jobs/{job['_id']}/apply", json={}, headers=ok_headers)
    assert again.status_code == 400


def test_cannot_apply_to_closed_or_missing_job(client, officer_headers, make_student):
    job = _create_job(client, officer_headers, status="closed")
    headers, _ = make_student(gpa=9.0)
    assert client.post(f"/api/jobs/{job['_id']}/apply", json={}, headers=headers).status_code == 400
    assert client.post("/api/jobs/64b7f0c2a1b2c3d4e5f60718/apply", json={}, headers=headers).status_code == 404


def test_job_list_defaults_to_active(client, officer_headers, make_student):
    _create_job(client, officer_headers)
    _create_job(client, officer_headers, title="Old Opening", status="closed")
    headers, _ = make_student()

    jobs = client.get("/api/jobs", headers=headers).json()
    assert [j["title"] for j in jobs["jobs"]] == ["Backend Engineer"]

    closed = client.get("/api/jobs", params={"status": "closed"}, headers=headers).json()
    assert closed["total"] == 1


def test_student_sees_eligibility_and_match_score(client, officer_headers, make_student):
    job = _create_job(client, officer_headers, description="Build APIs", min_cgpa=7.0)
    headers, _ = make_student(gpa=8.0, skills=["react", "node"])

    detail = client.get(f"/api/jobs/{job['_id']}", headers=headers).json()
    assert detail["eligible"] is True
    assert detail["match_score"] == 73

    ranked = client.get("/api/students/me/jobs", headers=headers).json()
    assert ranked["total"] == 1
    assert ranked["jobs"][0]["match_score"] == 73
    assert ranked["jobs"][0]["job"]["_id"] == job["_id"]

    assert client.get(f"/api/jobs/{job['_id']}", headers=headers).json()["views"] == 1


def test_eligible_students_for_job(client, officer_headers, make_student):
    job = _create_job(client, officer_headers)
    make_student(email="a@college.edu", name="Low Scorer", gpa=7.0)
    make_student(email="b@college.edu", name="High Scorer", gpa=8.0)
    make_student(email="c@college.edu", name="No Grade")

    pool = client.get(f"/api/jobs/{job['_id']}/eligible-students", headers=officer_headers).json()
    assert pool["min_cgpa"] == 7.5
    assert pool["total_active"] == 3
    assert pool["eligible_count"] == 1
    assert pool["students"][0]["name"] == "High Scorer"


@pytest.mark.parametrize("ctc, expected, band", [
    ("12", 12, "10+ LPA"),
    ("12 LPA", 12, "10+ LPA"),
    ("6-12 LPA", 6, "3-6 LPA"),
])
def test_hiring_marks_student_placed(client, officer_headers, make_student, ctc, expected, band):
    job = _create_job(client, officer_headers, ctc=ctc)
    headers, student = make_student(gpa=8.5)
    application = client.post(f"/api/jobs/{job['_id']}/apply", json={}, headers=headers).json()

    mine = client.get("/api/applications/me", headers=headers).json()
    assert mine["total"] == 1
    assert mine["applications"][0]["job_title"] == "Backend Engineer"

    response = client.patch(f"/api/applications/{application['_id']}/status", json={"status": "hired"},
                            headers=officer_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "hired"

    placed = client.get(f"/api/students/{student['_id']}", headers=officer_headers).json()
    assert placed["is_placed"] is True
    assert placed["placement_details"]["company_name"] == "Acme"
    assert placed["placement_details"]["ctc"] == expected

    analysis = client.get("/api/analysis/statistics", headers=officer_headers).json()["placement_analysis"]
    assert analysis["ctc_ranges"][band] == 1
    assert analysis["top_companies"][0]["avg_ctc"] == expected


# ============================================================
# COMPANIES + DRIVES
# ============================================================

def test_companies_are_public_but_managed_by_officers(client, officer_headers):
    body = {"name": "Acme Corp", "email": "hr@acme.com", "industry": "Software"}
    assert client.post("/api/companies", json=body).status_code in (401, 403)
    created = client.post("/api/companies", json=body, headers=officer_headers)
    assert created.status_code == 201
    assert client.post("/api/companies", json=body, headers=officer_headers).status_code == 409

    listing = client.get("/api/companies", params={"search": "acme"}).json()
    assert listing["total"] == 1
    assert client.get(f"/api/companies/{created.json()['_id']}").json()["industry"] == "Software"


@pytest.mark.parametrize("search, total", [
    ("corp", 1),
    ("Acme (", 0),
    (".*", 0),
    ("[a-z]+", 0),
])
def test_company_search_is_literal(client, officer_headers, search, total):
    client.post("/api/companies", json={"name": "Acme Corp", "email": "hr@acme.com"}, headers=officer_headers)
    response = client.get("/api/companies", params={"search": search})
    assert response.status_code == 200
    assert response.json()["total"] == total


def test_job_company_filter_is_literal(client, officer_headers, make_student):
    _create_job(client, officer_headers, company="Acme (India)")
    headers, _ = make_student()

    assert client.get("/api/jobs", params={"company": "acme (india"}, headers=headers).json()["total"] == 1
    assert client.get("/api/jobs", params={"company": "Acme (Ind"}, headers=headers).json()["total"] == 1
    assert client.get("/api/jobs", params={"company": "A.me"}, headers=headers).json()["total"] == 0


def test_drive_with_applications_cannot_be_deleted(client, officer_headers, make_student):
    company = client.post("/api/companies", json={"name": "Acme Corp", "email": "hr@acme.com"},
                          headers=officer_headers).json()
    assert client.post("/api/drives", json={"company_id": "64b7f0c2a1b2c3d4e5f60718", "title": "Ghost Drive"},
                       headers=officer_headers).status_code == 404

    drive = client.post("/api/drives", json={"company_id": company["_id"], "title": "Acme Campus Drive"},
                        headers=officer_headers).json()
    assert drive["company_name"] == "Acme Corp"
    assert drive["status"] == "scheduled"

    job = _create_job(client, officer_headers, drive_id=drive["_id"])
    headers, _ = make_student(gpa=9.0)
    application = client.post(f"/api/jobs/{job['_id']}/apply", json={}, headers=headers).json()
    assert application["drive_id"] == drive["_id"]

    detail = client.get(f"/api/drives/{drive['_id']}", headers=officer_headers).json()
    assert detail["application_count"] == 1
    assert [j["_id"] for j in detail["jobs"]] == [job["_id"]]

    assert client.delete(f"/api/drives/{drive['_id']}", headers=officer_headers).status_code == 409

    empty = client.post("/api/drives", json={"company_id": company["_id"], "title": "Second Round"},
                        headers=officer_headers).json()
    assert client.delete(f"/api/drives/{empty['_id']}", headers=officer_headers).status_code == 200


def test_job_with_unknown_drive_is_rejected(client, officer_headers):
    response = client.post("/api/jobs", json=dict(JOB, drive_id="64b7f0c2a1b2c3d4e5f60718"), headers=officer_headers)
    assert response.status_code == 404


# ============================================================
# NOTIFICATIONS
# ============================================================

def test_notifications_reach_targeted_active_students(client, db, officer_headers, make_student):
    cse_headers, _ = make_student(email="cse@college.edu", year="2025", branch="CSE")
    it_headers, _ = make_student(email="it@college.edu", year="2024", branch="IT")
    StudentService(db).create({"name": "Gone", "email": "gone@college.edu", "year": "2025",
                               "branch": "CSE", "is_active": False})

    preview = client.post("/api/notifications/preview", json={"years": ["2025"]}, headers=officer_headers)
    assert preview.json() == {"recipient_count": 1}
    everyone = client.post("/api/notifications/preview", json={"all": True}, headers=officer_headers)
    assert everyone.json() == {"recipient_count": 2}

    options = client.get("/api/notifications/target-options", headers=officer_headers).json()
    assert options["years"] == ["2024", "2025"]
    assert options["departments"] == ["CSE", "IT"]

    created = client.post("/api/notifications", json={
        "title": "Acme drive on Friday",
        "message": "Report to the seminar hall at 9 AM.",
        "target": {"departments": ["CSE"]},
    }, headers=officer_headers)
    assert created.status_code == 201
    notification = created.json()
    assert notification["recipient_count"] == 1

    inbox = client.get("/api/notifications/me", headers=cse_headers).json()
    assert inbox["total"] == 1
    assert inbox["notifications"][0]["read"] is False
    assert client.get("/api/notifications/me", headers=it_headers).json()["total"] == 0

    assert client.post(f"/api/notifications/{notification['_id']}/read", headers=cse_headers).status_code == 200
    assert client.get("/api/notifications/me", headers=cse_headers).json()["notifications"][0]["read"] is True
    assert client.post(f"/api/notifications/{notification['_id']}/read", headers=it_headers).status_code == 404

    edited = client.put(f"/api/notifications/{notification['_id']}", json={"title": "Acme drive moved to Monday"},
                        headers=officer_headers).json()
    assert edited["title"] == "Acme drive moved to Monday"
    assert edited["target"]["departments"] == ["CSE"]

    assert client.delete(f"/api/notifications/{notification['_id']}", headers=officer_headers).status_code == 200
    assert client.get("/api/notifications/me", headers=cse_headers).json()["total"] == 0


# ============================================================
# RESUMES
# ============================================================

def test_resume_upload_and_activation(client, make_student):
    headers, _ = make_student()

    first = client.post("/api/resumes", files={"file": ("resume.txt", b"Python developer, SQL, React", "text/plain")},
                        headers=headers)
    assert first.status_code == 201
    assert first.json()["is_active"] is True
    assert first.json()["characters"] == len("Python developer, SQL, React")

    second = client.post("/api/resumes", files={"file": ("resume_v2.txt", b"Updated resume", "text/plain")},
                         headers=headers).json()
    assert second["is_active"] is False

    assert client.put(f"/api/resumes/{second['resume_id']}/activate", headers=headers).status_code == 200
    resumes = client.get("/api/resumes/me", headers=headers).json()["resumes"]
    active = {r["_id"]: r["is_active"] for r in resumes}
    assert active == {first.json()["resume_id"]: False, second["resume_id"]: True}
    assert all("resume_text" not in r for r in resumes)

    assert client.delete(f"/api/resumes/{first.json()['resume_id']}", headers=headers).status_code == 200
    assert client.get("/api/resumes/me", headers=headers).json()["total"] == 1


@pytest.mark.parametrize("filename, content, status", [
    ("resume.exe", b"MZ binary", 400),
    ("resume", b"no extension", 400),
    ("empty.txt", b"   ", 400),
    ("resume.pdf", b"not a pdf", 400),
    ("resume.pdf", b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\n", 400),
    ("huge.txt", b"a" * (5 * 1024 * 1024 + 1), 413),
])
def test_resume_upload_validation(client, make_student, filename, content, status):
    headers, _ = make_student()
    response = client.post("/api/resumes", files={"file": (filename, content, "application/octet-stream")},
                           headers=headers)
    assert response.status_code == status


# ============================================================
# ANALYSIS
# ============================================================

@pytest.fixture
def analysis_data(client, officer_headers):
    _create_student(client, officer_headers, name="Priya Sharma", email="priya@college.edu", course="MCA",
                    branch="MCA", year="2024", gpa=8.6, is_placed=True,
                    placement_details={"company_name": "Acme", "ctc": 9})
    _create_student(client, officer_headers, name="Rahul Verma", email="rahul@college.edu", course="b.tech",
                    branch="CSE", year="2025", gpa=7.4)
    _create_student(client, officer_headers, name="Kiran Das", email="kiran@college.edu", course="B Tech",
                    branch="cse", year="2025", gpa=6.9)
    return officer_headers


def test_analysis_rejects_blank_query(client, analysis_data):
    response = client.post("/api/analysis", json={"query": "   "}, headers=analysis_data)
    assert response.status_code == 400
    assert response.json()["detail"] == "Query is required and must be a non-empty string"
    assert client.post("/api/analysis", json={}, headers=analysis_data).status_code == 422


def test_analysis_lists_course_students(client, analysis_data):
    response = client.post("/api/analysis", json={"query": "Give me the list of all MCA students"},
                           headers=analysis_data)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["performance"]["method"] == "fast_fallback"
    assert "Priya Sharma" in body["response"]["content"]
    assert "Rahul Verma" not in body["response"]["content"]
    assert body["data_context"]["total_students"] == 3


def test_analysis_capabilities(client, analysis_data):
    body = client.get("/api/analysis/capabilities", headers=analysis_data).json()
    assert body["success"] is True
    assert "comparative_analysis" in body["capabilities"]["analysis_types"]
    assert body["capabilities"]["supported_formats"] == ["json", "csv", "pdf"]


def test_analysis_statistics_and_breakdowns(client, analysis_data):
    stats = client.get("/api/analysis/statistics", headers=analysis_data).json()
    assert stats["statistics"]["total_students"] == 3
    assert stats["statistics"]["placed_students"] == 1
    assert stats["statistics"]["placement_rate"] == 33
    assert stats["placement_analysis"]["total_placed"] == 1

    courses = client.get("/api/analysis/breakdown/course", headers=analysis_data).json()
    assert courses["key"] == "course"
    assert {r["course"]: r["total"] for r in courses["rows"]} == {"BTech": 2, "MCA": 1}

    departments = client.get("/api/analysis/breakdown/department", headers=analysis_data).json()
    top = departments["rows"][0]
    assert (top["department"], top["total"], top["placed"]) == ("Computer Science", 2, 0)

    assert client.get("/api/analysis/breakdown/section", headers=analysis_data).status_code == 422


def test_statistics_reflect_writes_immediately(client, analysis_data):
    assert client.get("/api/analysis/statistics", headers=analysis_data).json()["statistics"]["total_students"] == 3
    _create_student(client, analysis_data, name="Meera Iyer", email="meera@college.edu")
    assert client.get("/api/analysis/statistics", headers=analysis_data).json()["statistics"]["total_students"] == 4


def test_analysis_csv_export(client, analysis_data):
    response = client.get("/api/analysis/export.csv", params={"query": "btech students with CGPA above 7"},
                          headers=analysis_data)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]

    lines = response.text.split("\n")
    assert lines[0].startswith('"Name","Email"')
    assert len(lines) == 2
    assert lines[1].startswith('"Rahul Verma"')


def test_clear_cache(client, analysis_data):
    response = client.post("/api/analysis/clear-cache", headers=analysis_data)
    assert response.status_code == 200
    assert response.json()["success"] is True
