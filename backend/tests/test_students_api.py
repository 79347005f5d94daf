import uuid
from datetime import date

from marksboard.services.semester import current_semester

SUBMITTED_FIELDS = (
    "student_reg", "student_name", "student_branch",
    "student_graduation_year", "student_batch", "student_rollno",
)


def test_create_then_list_round_trip(client, student_payload):
    payload = student_payload()
    resp = client.post("/api/students", json=payload)
    assert resp.status_code == 201
    assert resp.json()["message"] == "Student created successfully"

    students = client.get("/api/students").json()["students"]
    assert len(students) == 1
    listed = students[0]
    assert {field: listed[field] for field in SUBMITTED_FIELDS} == payload
    assert uuid.UUID(listed["id"])
    assert listed["current_semester"] == current_semester(payload["student_graduation_year"])


def test_string_fields_are_trimmed(client, student_payload):
    resp = client.post("/api/students", json=student_payload(student_name="  Asha Patil  "))
    assert resp.json()["student"]["student_name"] == "Asha Patil"


def test_duplicate_registration_number_is_rejected(client, create_student, student_payload):
    create_student()
    resp = client.post("/api/students", json=student_payload(student_rollno=999))
    assert resp.status_code == 409
    assert "registration number" in resp.json()["detail"]
    assert len(client.get("/api/students").json()["students"]) == 1


def test_duplicate_roll_number_is_rejected(client, create_student, student_payload):
    create_student()
    resp = client.post("/api/students", json=student_payload(student_reg="2023CS999"))
    assert resp.status_code == 409
    assert "roll number" in resp.json()["detail"]


def test_missing_field_is_a_400(client, student_payload):
    payload = student_payload()
    del payload["student_name"]
    resp = client.post("/api/students", json=payload)
    assert resp.status_code == 400
    assert "student_name" in resp.json()["detail"]


def test_graduation_year_bounds(client, student_payload):
    too_early = client.post("/api/students", json=student_payload(student_graduation_year=2023))
    too_late = client.post("/api/students",
                           json=student_payload(student_graduation_year=date.today().year + 11))
    assert too_early.status_code == 400
    assert too_late.status_code == 400
    assert "graduation year" in too_early.json()["detail"]


def test_unknown_batch_is_rejected(client, student_payload):
    resp = client.post("/api/students", json=student_payload(student_batch="B9"))
    assert resp.status_code == 400


def test_list_filters(client, create_student):
    year = date.today().year
    create_student(student_reg="A1", student_rollno=1, student_graduation_year=year + 1)
    create_student(student_reg="A2", student_rollno=2, student_graduation_year=year + 3,
                   student_batch="B2")
    create_student(student_reg="A3", student_rollno=3, student_branch="Mechanical")

    cse = client.get("/api/students", params={"branch": "Computer Science and Engineering"})
    assert [s["student_reg"] for s in cse.json()["students"]] == ["A1", "A2"]

    b2 = client.get("/api/students", params={"batch": "B2"})
    assert [s["student_reg"] for s in b2.json()["students"]] == ["A2"]

    semester = current_semester(year + 1)
    by_semester = client.get("/api/students", params={"semester": semester})
    assert {s["student_reg"] for s in by_semester.json()["students"]} == {"A1", "A3"}


def test_get_single_student(client, create_student):
    student = create_student()
    resp = client.get(f"/api/students/{student['id']}")
    assert resp.status_code == 200
    assert resp.json()["student"]["student_reg"] == student["student_reg"]


def test_update_student(client, create_student):
    student = create_student()
    resp = client.put(f"/api/students/{student['id']}",
                      json={"student_name": "Asha P.", "student_batch": "B3"})
    assert resp.status_code == 200
    updated = resp.json()["student"]
    assert updated["student_name"] == "Asha P."
    assert updated["student_batch"] == "B3"
    assert updated["student_reg"] == student["student_reg"]


def test_update_rejects_taken_roll_number(client, create_student):
    create_student()
    other = create_student(student_reg="2023CS002", student_rollno=102)
    resp = client.put(f"/api/students/{other['id']}", json={"student_rollno": 101})
    assert resp.status_code == 409


def test_update_rejects_null(client, create_student):
    student = create_student()
    resp = client.put(f"/api/students/{student['id']}", json={"student_name": None})
    assert resp.status_code == 400


def test_invalid_id_format_is_400(client):
    for method in ("get", "put", "delete"):
        kwargs = {"json": {"student_name": "X"}} if method == "put" else {}
        resp = getattr(client, method)("/api/students/not-an-id", **kwargs)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid student ID format."


def test_unknown_id_is_404(client):
    missing = str(uuid.uuid4())
    assert client.get(f"/api/students/{missing}").status_code == 404
    assert client.put(f"/api/students/{missing}", json={"student_name": "X"}).status_code == 404
    assert client.delete(f"/api/students/{missing}").status_code == 404


def test_lookup_accepts_other_uuid_spellings(client, create_student):
    student = create_student()
    for spelling in (student["id"].upper(), student["id"].replace("-", ""),
                     "urn:uuid:" + student["id"]):
        resp = client.get(f"/api/students/{spelling}")
        assert resp.status_code == 200
        assert resp.json()["student"]["id"] == student["id"]


def test_delete_student(client, create_student):
    student = create_student()
    resp = client.delete(f"/api/students/{student['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Student deleted successfully"}
    assert client.get("/api/students").json()["students"] == []
