"""
Data Loader Script - seeds sample_data.json into Marksboard via the API.

Creates the sample students and subjects, then records each exam's scores
through the atomic batch endpoint. Records that already exist (409) are
counted as skipped, so the script can be re-run safely.

Usage:
    python load_data.py                              # Uses default URL
    python load_data.py http://localhost:8000        # Custom API URL
"""

import json
import os
import sys

import httpx

DEFAULT_DATA_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "sample_data.json")


def load_sample_data(path: str = DEFAULT_DATA_FILE) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _post(client: httpx.Client, url: str, payload: dict, summary: dict, kind: str):
    resp = client.post(url, json=payload)
    if resp.status_code == 409:
        summary["skipped"] += 1
        return None
    resp.raise_for_status()
    summary[kind] += 1
    return resp.json()


def seed(client: httpx.Client, data: dict) -> dict:
    """
    Push students, subjects and marks to the API behind ``client``.

    Marks reference students by registration number and subjects by code;
    ids are resolved from the API after the records exist.
    """
    summary = {"students": 0, "subjects": 0, "exam_submissions": 0, "skipped": 0}

    for student in data.get("students", []):
        _post(client, "/api/students", student, summary, "students")
    for subject in data.get("subjects", []):
        _post(client, "/api/subjects", subject, summary, "subjects")

    students_resp = client.get("/api/students")
    students_resp.raise_for_status()
    student_ids = {s["student_reg"]: s["id"] for s in students_resp.json()["students"]}

    subjects_resp = client.get("/api/subjects")
    subjects_resp.raise_for_status()
    subject_ids = {s["subject_code"]: s["id"] for s in subjects_resp.json()["subjects"]}

    for submission in data.get("marks", []):
        payload = {
            "studentId": student_ids[submission["student_reg"]],
            "examType": submission["exam_type"],
            "scores": [
                {"subjectId": subject_ids[code], "score": score}
                for code, score in submission["scores"].items()
            ]
        }
        _post(client, "/api/marks/batch", payload, summary, "exam_submissions")

    return summary


def main():
    api_url = sys.argv[1] if len(sys.argv) > 1 else os.getenv("API_URL", "http://localhost:8000")

    print(f"Loading data from: {DEFAULT_DATA_FILE}")
    data = load_sample_data()
    print(f"Sending to: {api_url}")
    print()

    with httpx.Client(base_url=api_url, timeout=30.0) as client:
        summary = seed(client, data)

    print("=" * 60)
    print("SEED SUMMARY")
    print("=" * 60)
    print(f"  Students created:      {summary['students']}")
    print(f"  Subjects created:      {summary['subjects']}")
    print(f"  Exam submissions:      {summary['exam_submissions']}")
    print(f"  Skipped (existing):    {summary['skipped']}")
    print("=" * 60)


if __name__ == "__main__":
    main()
