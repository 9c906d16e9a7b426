from fastapi.testclient import TestClient
from sqlalchemy import func, select

from app.models.enrollment_model import SubjectStudentModel
from app.models.student_model import StudentModel

STUDENTS_URL = "/api/v1/students"


def _student_form(**overrides) -> dict:
    form = {
        "name": "Ana Cruz",
        "gender": "Female",
        "grade_level": "Grade 11",
        "strand": "STEM",
        "section": "Rose",
        "subject": "General Mathematics",
        "email": "ana@example.com",
        "guardian_name": "Maria Cruz",
        "guardian_relationship": "Mother",
    }
    form.update(overrides)
    return form


def test_create_student_without_avatar(client: TestClient, admin_headers):
    response = client.post(STUDENTS_URL, data=_student_form(), headers=admin_headers)

    assert response.status_code == 201
    student = response.json()["student"]
    assert student["name"] == "Ana Cruz"
    assert student["is_active"] is True
    assert student["avatar"] is None
    assert student["avatar_url"] is None
    assert student["guardian_relationship"] == "Mother"


def test_create_student_with_avatar(client: TestClient, admin_headers, storage, png_file):
    response = client.post(
        STUDENTS_URL,
        data=_student_form(),
        files={"avatar": png_file()},
        headers=admin_headers,
    )

    assert response.status_code == 201
    student = response.json()["student"]
    assert student["avatar"].startswith("students/avatars/")
    assert student["avatar"].endswith(".png")
    assert student["avatar_url"] == f"http://testserver/storage/{student['avatar']}"
    assert (storage.root / student["avatar"]).exists()


def test_create_student_rejects_non_image(client: TestClient, admin_headers, sync_db):
    response = client.post(
        STUDENTS_URL,
        data=_student_form(),
        files={"avatar": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "avatar" in response.json()["errors"]
    assert sync_db.scalar(select(func.count(StudentModel.id))) == 0


def test_create_student_rejects_large_avatar(
    client: TestClient, admin_headers, png_file
):
    response = client.post(
        STUDENTS_URL,
        data=_student_form(),
        files={"avatar": png_file(size=3 * 1024 * 1024)},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert "avatar" in response.json()["errors"]


def test_create_student_with_invalid_gender(client: TestClient, admin_headers):
    response = client.post(
        STUDENTS_URL, data=_student_form(gender="Other"), headers=admin_headers
    )

    assert response.status_code == 422
    data = response.json()
    assert data["error_code"] == "INVALID_ENUM"
    assert "gender" in data["errors"]


def test_create_student_with_duplicate_email(
    client: TestClient, admin_headers, make_student
):
    make_student("Existing", email="ana@example.com")

    response = client.post(STUDENTS_URL, data=_student_form(), headers=admin_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "DUPLICATE_EMAIL"


def test_list_students_filters(client: TestClient, student_headers, make_student):
    make_student("Ana", grade_level="Grade 11", strand="ABM")
    make_student("Ben", grade_level="Grade 11", strand="STEM")
    make_student("Cid", grade_level="Grade 12", strand="STEM", is_active=False)

    by_grade = client.get(
        STUDENTS_URL, params={"grade_level": "Grade 11"}, headers=student_headers
    ).json()
    inactive = client.get(
        STUDENTS_URL, params={"is_active": "false"}, headers=student_headers
    ).json()
    search = client.get(
        STUDENTS_URL, params={"search": "be"}, headers=student_headers
    ).json()

    assert {s["name"] for s in by_grade["students"]} == {"Ana", "Ben"}
    assert [s["name"] for s in inactive["students"]] == ["Cid"]
    assert [s["name"] for s in search["students"]] == ["Ben"]
    assert by_grade["pagination"]["total"] == 2


def test_get_student(client: TestClient, student_headers, make_student):
    student = make_student("Ana")

    response = client.get(f"{STUDENTS_URL}/{student.id}", headers=student_headers)

    assert response.status_code == 200
    assert response.json()["student"]["id"] == student.id


def test_students_write_requires_admin(client: TestClient, student_headers):
    response = client.post(STUDENTS_URL, data=_student_form(), headers=student_headers)

    assert response.status_code == 403


def test_update_student_replaces_avatar(
    client: TestClient, admin_headers, storage, png_file
):
    created = client.post(
        STUDENTS_URL,
        data=_student_form(),
        files={"avatar": png_file("first.png")},
        headers=admin_headers,
    ).json()["student"]

    response = client.put(
        f"{STUDENTS_URL}/{created['id']}",
        data=_student_form(name="Ana Cruz-Reyes", notes="Transferred"),
        files={"avatar": png_file("second.png")},
        headers=admin_headers,
    )

    assert response.status_code == 200
    updated = response.json()["student"]
    assert updated["name"] == "Ana Cruz-Reyes"
    assert updated["notes"] == "Transferred"
    assert updated["avatar"] != created["avatar"]
    assert (storage.root / updated["avatar"]).exists()
    assert not (storage.root / created["avatar"]).exists()


def test_update_student_without_new_avatar_keeps_old(
    client: TestClient, admin_headers, storage, png_file
):
    created = client.post(
        STUDENTS_URL,
        data=_student_form(),
        files={"avatar": png_file()},
        headers=admin_headers,
    ).json()["student"]

    updated = client.put(
        f"{STUDENTS_URL}/{created['id']}",
        data=_student_form(section="Lily"),
        headers=admin_headers,
    ).json()["student"]

    assert updated["section"] == "Lily"
    assert updated["avatar"] == created["avatar"]
    assert (storage.root / created["avatar"]).exists()


def test_update_student_without_active_flag_keeps_it(
    client: TestClient, admin_headers, make_student
):
    student = make_student("Ana", is_active=False)

    response = client.put(
        f"{STUDENTS_URL}/{student.id}",
        data=_student_form(name="Ana Cruz"),
        headers=admin_headers,
    )

    assert response.status_code == 200
    updated = response.json()["student"]
    assert updated["name"] == "Ana Cruz"
    assert updated["is_active"] is False

    reactivated = client.put(
        f"{STUDENTS_URL}/{student.id}",
        data=_student_form(is_active="true"),
        headers=admin_headers,
    ).json()["student"]
    assert reactivated["is_active"] is True


def test_delete_student_removes_enrollments_and_avatar(
    client: TestClient,
    admin_headers,
    make_subject,
    storage,
    png_file,
    sync_db,
):
    math = make_subject("MATH101")
    science = make_subject("SCI101")
    student = client.post(
        STUDENTS_URL,
        data=_student_form(),
        files={"avatar": png_file()},
        headers=admin_headers,
    ).json()["student"]
    for subject in (math, science):
        client.post(
            f"/api/v1/subjects/{subject.id}/enroll",
            json={"student_ids": [student["id"]]},
            headers=admin_headers,
        )

    response = client.delete(f"{STUDENTS_URL}/{student['id']}", headers=admin_headers)

    assert response.status_code == 200
    orphans = sync_db.scalar(
        select(func.count(SubjectStudentModel.id)).where(
            SubjectStudentModel.student_id == student["id"]
        )
    )
    assert orphans == 0
    for subject in (math, science):
        detail = client.get(
            f"/api/v1/subjects/{subject.id}", headers=admin_headers
        ).json()["subject"]
        assert detail["students_count"] == 0
    assert not (storage.root / student["avatar"]).exists()
    assert client.get(f"{STUDENTS_URL}/{student['id']}", headers=admin_headers).status_code == 404

    # The row is kept as a soft-deleted record
    deleted_at = sync_db.scalar(
        select(StudentModel.deleted_at).where(StudentModel.id == student["id"])
    )
    assert deleted_at is not None


def test_deleted_student_email_can_be_reused(
    client: TestClient, admin_headers, make_student
):
    old = make_student("Old Ana", email="ana@example.com")
    client.delete(f"{STUDENTS_URL}/{old.id}", headers=admin_headers)

    response = client.post(STUDENTS_URL, data=_student_form(), headers=admin_headers)

    assert response.status_code == 201
