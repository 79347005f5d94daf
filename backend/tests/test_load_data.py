import load_data


def test_seed_populates_the_api(client):
    summary = load_data.seed(client, load_data.load_sample_data())
    assert summary == {"students": 5, "subjects": 4, "exam_submissions": 6, "skipped": 0}

    stats = client.get("/api/stats/dashboard").json()
    assert stats["total_students"] == 5
    assert stats["total_marks_records"] == 8


def test_seed_is_rerunnable(client):
    data = load_data.load_sample_data()
    load_data.seed(client, data)
    summary = load_data.seed(client, data)
    assert summary == {"students": 0, "subjects": 0, "exam_submissions": 0, "skipped": 15}
