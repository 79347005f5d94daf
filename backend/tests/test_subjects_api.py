import uuid


def test_create_and_list_subjects(client, create_subject):
    created = create_subject()
    resp = client.get("/api/subjects")
    assert resp.status_code == 200
    subjects = resp.json()["subjects"]
    assert len(subjects) == 1
    assert subjects[0]["id"] == created["id"]
    assert subjects[0]["subject_code"] == "CS501"
    assert subjects[0]["semester"] == 5


def test_filters_by_branch_and_semester(client, create_subject):
    create_subject(subject_code="CS501")
    create_subject(subject_code="CS301", semester=3)
    create_subject(subject_code="ME501", branch="Mechanical")

    resp = client.get("/api/subjects",
                      params={"branch": "Computer Science and Engineering", "semester": 5})
    assert [s["subject_code"] for s in resp.json()["subjects"]] == ["CS501"]

    resp = client.get("/api/subjects", params={"semester": 5})
    assert {s["subject_code"] for s in resp.json()["subjects"]} == {"CS501", "ME501"}


def test_duplicate_subject_code_is_409(client, create_subject):
    create_subject()
    resp = client.post("/api/subjects", json={
        "subject_name": "Other", "branch": "IT", "semester": 2, "subject_code": "CS501"
    })
    assert resp.status_code == 409


def test_semester_out_of_range_is_400(client):
    resp = client.post("/api/subjects", json={
        "subject_name": "Capstone", "branch": "IT", "semester": 9, "subject_code": "IT901"
    })
    assert resp.status_code == 400


def test_update_subject(client, create_subject):
    subject = create_subject()
    resp = client.put(f"/api/subjects/{subject['id']}", json={"semester": 6})
    assert resp.status_code == 200
    assert resp.json()["subject"]["semester"] == 6
    assert resp.json()["message"] == "Subject updated successfully"


def test_update_to_taken_code_is_409(client, create_subject):
    create_subject(subject_code="CS501")
    other = create_subject(subject_code="CS502")
    resp = client.put(f"/api/subjects/{other['id']}", json={"subject_code": "CS501"})
    assert resp.status_code == 409


def test_invalid_and_unknown_ids(client):
    assert client.delete("/api/subjects/123").status_code == 400
    assert client.delete("/api/subjects/123").json()["detail"] == "Invalid subject ID format."
    assert client.delete(f"/api/subjects/{uuid.uuid4()}").status_code == 404
    assert client.put(f"/api/subjects/{uuid.uuid4()}", json={"semester": 2}).status_code == 404


def test_delete_subject(client, create_subject):
    subject = create_subject()
    assert client.delete(f"/api/subjects/{subject['id']}").status_code == 200
    assert client.get("/api/subjects").json()["subjects"] == []


def test_storage_failure_is_500_with_message(client):
    from sqlalchemy.exc import SQLAlchemyError

    from marksboard.database import get_db
    from marksboard.main import app

    class BrokenSession:
        def query(self, *args, **kwargs):
            raise SQLAlchemyError("database is unreachable")

    def broken_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = broken_db
    try:
        resp = client.get("/api/subjects")
    finally:
        app.dependency_overrides.pop(get_db, None)

    assert resp.status_code == 500
    assert resp.json() == {"detail": "Server error", "error": "database is unreachable"}
