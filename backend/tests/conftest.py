import os

# Must be set before marksboard.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import date

import pytest
from fastapi.testclient import TestClient

from marksboard.database import Base, engine, SessionLocal
from marksboard.main import app


@pytest.fixture(autouse=True)
def clean_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def student_payload():
    def build(**overrides):
        payload = {
            "student_reg": "2023CS001",
            "student_name": "Asha Patil",
            "student_branch": "Computer Science and Engineering",
            "student_graduation_year": date.today().year + 1,
            "student_batch": "B1",
            "student_rollno": 101,
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def create_student(client, student_payload):
    def create(**overrides):
        resp = client.post("/api/students", json=student_payload(**overrides))
        assert resp.status_code == 201, resp.text
        return resp.json()["student"]
    return create


@pytest.fixture
def create_subject(client):
    def create(**overrides):
        payload = {
            "subject_name": "Operating Systems",
            "branch": "Computer Science and Engineering",
            "semester": 5,
            "subject_code": "CS501",
        }
        payload.update(overrides)
        resp = client.post("/api/subjects", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()["subject"]
    return create
