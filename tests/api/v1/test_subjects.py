from fastapi.testclient import TestClient
from sqlalchemy import func, select

from app.models.enrollment_model import SubjectStudentModel
from app.models.subject_model import SubjectModel

SUBJECTS_URL = "/api/v1/subjects"


def _subject_payload(**overrides) -> dict:
    payload = {
        "name": "General Mathematics",
        "code": "MATH101",
        "grade_level": "Grade 11",
        "strand": "STEM",
        "description": "Functions and their graphs",
    }
    payload.update(overrides)
    return payload


def test_create_subject(client: TestClient, admin_headers):
    response = client.post(SUBJECTS_URL, json=_subject_payload(), headers=admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    subject = data["subject"]
    assert subject["code"] == "MATH101"
    assert subject["status"] == "Available"
    assert subject["students_count"] == 0


def test_create_subject_with_live_duplicate_code(
    client: TestClient, admin_headers, make_subject
):
    make_subject("MATH101")

    response = client.post(SUBJECTS_URL, json=_subject_payload(), headers=admin_headers)

    assert response.status_code == 422
    data = response.json()
    assert data["success"] is False
    assert data["error_code"] == "DUPLICATE_CODE"
    assert "code" in data["errors"]


def test_code_of_deleted_subject_can_be_reused(
    client: TestClient, admin_headers, make_subject
):
    old = make_subject("MATH101")
    assert client.delete(f"{SUBJECTS_URL}/{old.id}", headers=admin_headers).status_code == 200

    response = client.post(SUBJECTS_URL, json=_subject_payload(), headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["subject"]["id"] != old.id


def test_create_subject_with_invalid_enum(client: TestClient, admin_headers):
    response = client.post(
        SUBJECTS_URL,
        json=_subject_payload(grade_level="Grade 13"),
        headers=admin_headers,
    )

    assert response.status_code == 422
    data = response.json()
    assert data["error_code"] == "INVALID_ENUM"
    assert "grade_level" in data["errors"]


def test_create_subject_missing_fields(client: TestClient, admin_headers):
    response = client.post(SUBJECTS_URL, json={"code": "X1"}, headers=admin_headers)

    assert response.status_code == 422
    data = response.json()
    assert data["error_code"] == "VALIDATION_FAILED"
    assert {"name", "grade_level", "strand"} <= set(data["errors"])


def test_list_subjects_paginates_filtered_rows(
    client: TestClient, admin_headers, make_subject
):
    for i in range(15):
        make_subject(f"G10-{i:02d}", grade_level="Grade 10")
    for i in range(5):
        make_subject(f"G11-{i:02d}", grade_level="Grade 11")

    response = client.get(
        SUBJECTS_URL,
        params={"grade_level": "Grade 10", "page": 1, "limit": 10},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["subjects"]) == 10
    assert all(s["grade_level"] == "Grade 10" for s in data["subjects"])
    assert data["pagination"] == {
        "total": 15,
        "per_page": 10,
        "current_page": 1,
        "last_page": 2,
    }

    second = client.get(
        SUBJECTS_URL,
        params={"grade_level": "Grade 10", "page": 2, "limit": 10},
        headers=admin_headers,
    ).json()
    assert len(second["subjects"]) == 5


def test_list_subjects_newest_first(client: TestClient, admin_headers, make_subject):
    make_subject("OLD1")
    make_subject("NEW1")

    codes = [
        s["code"] for s in client.get(SUBJECTS_URL, headers=admin_headers).json()["subjects"]
    ]

    assert codes == ["NEW1", "OLD1"]


def test_list_subjects_search_and_status_filters(
    client: TestClient, admin_headers, make_subject
):
    make_subject("PHYS1", name="Physics")
    make_subject("CHEM1", name="Chemistry", status="Unavailable")
    make_subject("BIO1", name="Biology", description="Life and physical systems")

    search = client.get(
        SUBJECTS_URL, params={"search": "phys"}, headers=admin_headers
    ).json()
    assert {s["code"] for s in search["subjects"]} == {"PHYS1", "BIO1"}

    unavailable = client.get(
        SUBJECTS_URL, params={"status": "Unavailable"}, headers=admin_headers
    ).json()
    assert [s["code"] for s in unavailable["subjects"]] == ["CHEM1"]


def test_list_subjects_rejects_unknown_strand(client: TestClient, admin_headers):
    response = client.get(SUBJECTS_URL, params={"strand": "MATH"}, headers=admin_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "INVALID_ENUM"


def test_empty_list_has_one_page(client: TestClient, admin_headers):
    data = client.get(SUBJECTS_URL, headers=admin_headers).json()

    assert data["subjects"] == []
    assert data["pagination"]["total"] == 0
    assert data["pagination"]["last_page"] == 1


def test_limit_is_capped(client: TestClient, admin_headers):
    data = client.get(SUBJECTS_URL, params={"limit": 1000}, headers=admin_headers).json()

    assert data["pagination"]["per_page"] == 100


def test_get_subject_lists_enrolled_students(
    client: TestClient, admin_headers, make_subject, make_student
):
    subject = make_subject("MATH101")
    ana = make_student("Ana")
    ben = make_student("Ben")
    client.post(
        f"{SUBJECTS_URL}/{subject.id}/enroll",
        json={"student_ids": [ben.id, ana.id]},
        headers=admin_headers,
    )

    response = client.get(f"{SUBJECTS_URL}/{subject.id}", headers=admin_headers)

    assert response.status_code == 200
    detail = response.json()["subject"]
    assert detail["students_count"] == 2
    assert [s["name"] for s in detail["students"]] == ["Ana", "Ben"]
    assert all(s["enrolled_at"] for s in detail["students"])


def test_get_unknown_subject(client: TestClient, admin_headers):
    response = client.get(f"{SUBJECTS_URL}/999", headers=admin_headers)

    assert response.status_code == 404
    assert response.json()["error_code"] == "NOT_FOUND"


def test_update_subject(client: TestClient, admin_headers, make_subject):
    subject = make_subject("MATH101")

    response = client.put(
        f"{SUBJECTS_URL}/{subject.id}",
        json=_subject_payload(name="Pre-Calculus", status="Unavailable"),
        headers=admin_headers,
    )

    assert response.status_code == 200
    updated = response.json()["subject"]
    assert updated["name"] == "Pre-Calculus"
    assert updated["status"] == "Unavailable"


def test_update_subject_without_status_keeps_it(
    client: TestClient, admin_headers, make_subject
):
    subject = make_subject("MATH101", status="Unavailable")

    response = client.put(
        f"{SUBJECTS_URL}/{subject.id}",
        json=_subject_payload(name="Pre-Calculus"),
        headers=admin_headers,
    )

    assert response.status_code == 200
    updated = response.json()["subject"]
    assert updated["name"] == "Pre-Calculus"
    assert updated["status"] == "Unavailable"


def test_search_treats_wildcards_literally(
    client: TestClient, admin_headers, make_subject
):
    make_subject("MATH_101", name="Algebra")
    make_subject("SCI101", name="Science 100% hands-on")
    make_subject("ENG101", name="English")

    underscore = client.get(
        SUBJECTS_URL, params={"search": "_"}, headers=admin_headers
    ).json()
    percent = client.get(
        SUBJECTS_URL, params={"search": "%"}, headers=admin_headers
    ).json()

    assert [s["code"] for s in underscore["subjects"]] == ["MATH_101"]
    assert [s["code"] for s in percent["subjects"]] == ["SCI101"]


def test_update_subject_keeps_own_code_but_rejects_others(
    client: TestClient, admin_headers, make_subject
):
    subject = make_subject("MATH101")
    make_subject("SCI101")

    same = client.put(
        f"{SUBJECTS_URL}/{subject.id}", json=_subject_payload(), headers=admin_headers
    )
    taken = client.put(
        f"{SUBJECTS_URL}/{subject.id}",
        json=_subject_payload(code="SCI101"),
        headers=admin_headers,
    )

    assert same.status_code == 200
    assert taken.status_code == 422
    assert taken.json()["error_code"] == "DUPLICATE_CODE"


def test_delete_subject_with_enrollments_is_refused(
    client: TestClient, admin_headers, make_subject, make_student, sync_db
):
    subject = make_subject("MATH101")
    student = make_student("Ana")
    client.post(
        f"{SUBJECTS_URL}/{subject.id}/enroll",
        json={"student_ids": [student.id]},
        headers=admin_headers,
    )

    response = client.delete(f"{SUBJECTS_URL}/{subject.id}", headers=admin_headers)

    assert response.status_code == 422
    data = response.json()
    assert data["error_code"] == "HAS_ACTIVE_ENROLLMENTS"
    assert data["details"]["students_count"] == 1
    deleted_at = sync_db.scalar(
        select(SubjectModel.deleted_at).where(SubjectModel.id == subject.id)
    )
    assert deleted_at is None


def test_delete_subject_soft_deletes(
    client: TestClient, admin_headers, make_subject, sync_db
):
    subject = make_subject("MATH101")

    response = client.delete(f"{SUBJECTS_URL}/{subject.id}", headers=admin_headers)

    assert response.status_code == 200
    listed = client.get(SUBJECTS_URL, headers=admin_headers).json()["subjects"]
    assert listed == []
    assert client.get(f"{SUBJECTS_URL}/{subject.id}", headers=admin_headers).status_code == 404
    deleted_at = sync_db.scalar(
        select(SubjectModel.deleted_at).where(SubjectModel.id == subject.id)
    )
    assert deleted_at is not None


def test_enroll_is_idempotent(
    client: TestClient, admin_headers, make_subject, make_student, sync_db
):
    subject = make_subject("MATH101")
    student = make_student("Ana")
    url = f"{SUBJECTS_URL}/{subject.id}/enroll"

    first = client.post(url, json={"student_ids": [student.id]}, headers=admin_headers)
    second = client.post(
        url, json={"student_ids": [student.id, student.id]}, headers=admin_headers
    )

    assert first.json()["subject"]["students_count"] == 1
    assert second.status_code == 200
    assert second.json()["subject"]["students_count"] == 1
    rows = sync_db.scalar(
        select(func.count(SubjectStudentModel.id)).where(
            SubjectStudentModel.subject_id == subject.id
        )
    )
    assert rows == 1


def test_enroll_unknown_student_rejects_whole_batch(
    client: TestClient, admin_headers, make_subject, make_student, sync_db
):
    subject = make_subject("MATH101")
    student = make_student("Ana")

    response = client.post(
        f"{SUBJECTS_URL}/{subject.id}/enroll",
        json={"student_ids": [student.id, 9999]},
        headers=admin_headers,
    )

    assert response.status_code == 422
    data = response.json()
    assert data["error_code"] == "STUDENT_NOT_FOUND"
    assert data["errors"]["student_ids"] == ["Student 9999 does not exist."]
    assert sync_db.scalar(select(func.count(SubjectStudentModel.id))) == 0


def test_enroll_requires_student_ids(client: TestClient, admin_headers, make_subject):
    subject = make_subject("MATH101")
    url = f"{SUBJECTS_URL}/{subject.id}/enroll"

    empty = client.post(url, json={"student_ids": []}, headers=admin_headers)
    bad = client.post(url, json={"student_ids": ["abc"]}, headers=admin_headers)

    assert empty.status_code == 422
    assert "student_ids" in empty.json()["errors"]
    assert bad.status_code == 422
    assert "student_ids.0" in bad.json()["errors"]


def test_enroll_in_deleted_subject(
    client: TestClient, admin_headers, make_subject, make_student
):
    subject = make_subject("MATH101")
    student = make_student("Ana")
    client.delete(f"{SUBJECTS_URL}/{subject.id}", headers=admin_headers)

    response = client.post(
        f"{SUBJECTS_URL}/{subject.id}/enroll",
        json={"student_ids": [student.id]},
        headers=admin_headers,
    )

    assert response.status_code == 404


def test_math101_lifecycle(client: TestClient, admin_headers, make_student):
    s1 = make_student("Student One")
    s2 = make_student("Student Two")

    created = client.post(
        SUBJECTS_URL, json=_subject_payload(), headers=admin_headers
    ).json()["subject"]
    url = f"{SUBJECTS_URL}/{created['id']}"

    enrolled = client.post(
        f"{url}/enroll", json={"student_ids": [s1.id, s2.id]}, headers=admin_headers
    ).json()["subject"]
    assert enrolled["students_count"] == 2

    again = client.post(
        f"{url}/enroll", json={"student_ids": [s1.id]}, headers=admin_headers
    ).json()["subject"]
    assert again["students_count"] == 2

    refused = client.delete(url, headers=admin_headers)
    assert refused.json()["error_code"] == "HAS_ACTIVE_ENROLLMENTS"

    emptied = client.post(
        f"{url}/unenroll", json={"student_ids": [s1.id, s2.id]}, headers=admin_headers
    ).json()["subject"]
    assert emptied["students_count"] == 0

    assert client.delete(url, headers=admin_headers).status_code == 200


def test_unenroll_ignores_students_not_enrolled(
    client: TestClient, admin_headers, make_subject, make_student
):
    subject = make_subject("MATH101")
    student = make_student("Ana")

    response = client.post(
        f"{SUBJECTS_URL}/{subject.id}/unenroll",
        json={"student_ids": [student.id, 4242]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["subject"]["students_count"] == 0


def test_grade_level_and_strand_options(client: TestClient, admin_headers):
    grade_levels = client.get(f"{SUBJECTS_URL}/grade-levels", headers=admin_headers)
    strands = client.get(f"{SUBJECTS_URL}/strands", headers=admin_headers)

    assert grade_levels.status_code == 200
    assert grade_levels.json()["grade_levels"] == [
        "Grade 7",
        "Grade 8",
        "Grade 9",
        "Grade 10",
        "Grade 11",
        "Grade 12",
    ]
    assert strands.status_code == 200
    assert strands.json()["strands"][0] == "No Strand"
    assert "Arts & Design" in strands.json()["strands"]


def test_subjects_require_admin(client: TestClient, student_headers):
    response = client.get(SUBJECTS_URL, headers=student_headers)

    assert response.status_code == 403
    data = response.json()
    assert data["success"] is False
    assert data["error_code"] == "FORBIDDEN"


def test_subjects_require_authentication(client: TestClient):
    response = client.get(SUBJECTS_URL)

    assert response.status_code == 401
    assert response.json()["error_code"] == "UNAUTHORIZED"
