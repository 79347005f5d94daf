from datetime import date

import pytest

from marksboard.services.semester import current_semester

CSE = "Computer Science and Engineering"


@pytest.fixture
def populated(client, create_student, create_subject):
    year = date.today().year
    asha = create_student(student_reg="A1", student_rollno=1, student_graduation_year=year + 1)
    rohan = create_student(student_reg="A2", student_rollno=2, student_graduation_year=year + 1,
                           student_batch="B2")
    senior = create_student(student_reg="A3", student_rollno=3, student_graduation_year=year)
    kabir = create_student(student_reg="I1", student_rollno=4, student_branch="Information Technology")

    semester = current_semester(year + 1)
    os_ = create_subject(subject_code="CS501", subject_name="Operating Systems", semester=semester)
    db = create_subject(subject_code="CS502", subject_name="Database Systems", semester=semester)
    net = create_subject(subject_code="IT501", subject_name="Networks",
                         branch="Information Technology", semester=semester)

    def record(student, subject, *entries):
        resp = client.post("/api/marks", json={
            "studentId": student["id"], "subjectId": subject["id"],
            "marks": [{"examType": e, "score": s} for e, s in entries]
        })
        assert resp.status_code == 201, resp.text

    record(asha, os_, ("IA1", 10), ("IA2", 20))   # mean 15
    record(asha, db, ("Semester", 70))           # mean 70
    record(rohan, os_, ("IA1", 20))              # mean 20
    record(kabir, net, ("IA1", 12))              # mean 12

    return {
        "semester": semester,
        "students": {"asha": asha, "rohan": rohan, "senior": senior, "kabir": kabir},
        "subjects": {"os": os_, "db": db, "net": net},
    }


def test_dashboard_statistics(client, populated):
    resp = client.get("/api/stats/dashboard")
    assert resp.status_code == 200
    stats = resp.json()

    assert stats["total_students"] == 4
    assert stats["total_subjects"] == 3
    assert stats["total_marks_records"] == 4
    assert stats["branch_distribution"] == {CSE: 3, "Information Technology": 1}
    assert stats["batch_distribution"] == {"B1": 3, "B2": 1}
    assert stats["branch_average"] == {CSE: 35.0, "Information Technology": 12.0}
    assert stats["branch_performance"][CSE] == {"average": 35.0, "highest": 70.0, "lowest": 15.0}

    by_code = {s["subject_code"]: s for s in stats["subject_average"]}
    assert by_code["CS501"]["average"] == pytest.approx(50 / 3)
    assert by_code["CS501"]["subject_name"] == "Operating Systems"
    assert by_code["CS502"]["average"] == 70.0


def test_dashboard_on_empty_store(client):
    stats = client.get("/api/stats/dashboard").json()
    assert stats["total_students"] == 0
    assert stats["branch_average"] == {}
    assert stats["branch_performance"] == {}
    assert stats["subject_average"] == []


def test_results_grid_marks_missing_scores(client, populated):
    resp = client.get("/api/stats/results", params={
        "branch": CSE, "semester": populated["semester"], "exam_type": "IA1"
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["max_score"] == 20
    assert [s["subject_code"] for s in body["subjects"]] == ["CS501", "CS502"]

    os_id = populated["subjects"]["os"]["id"]
    db_id = populated["subjects"]["db"]["id"]
    # The senior student is in a different semester and is filtered out
    assert len(body["rows"]) == 2
    asha = body["rows"][0]
    assert asha["student_id"] == populated["students"]["asha"]["id"]
    assert asha["scores"] == {os_id: 10, db_id: "N/A"}
    assert body["rows"][1]["scores"] == {os_id: 20, db_id: "N/A"}


def test_results_grid_by_exam_type_and_batch(client, populated):
    resp = client.get("/api/stats/results", params={
        "branch": CSE, "semester": populated["semester"], "exam_type": "Semester", "batch": "B1"
    })
    body = resp.json()
    assert body["max_score"] == 80
    assert len(body["rows"]) == 1
    db_id = populated["subjects"]["db"]["id"]
    os_id = populated["subjects"]["os"]["id"]
    assert body["rows"][0]["scores"] == {os_id: "N/A", db_id: 70}


def test_results_grid_requires_filters(client):
    assert client.get("/api/stats/results", params={"branch": CSE}).status_code == 400
    assert client.get("/api/stats/results", params={
        "branch": CSE, "semester": 3, "exam_type": "Final"
    }).status_code == 400
