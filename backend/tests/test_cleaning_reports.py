DAY = "2026-03-02"


def _second_room(client, headers):
    response = client.post(
        "/api/rooms/",
        json={"name": "Biology Lab", "code": "BIO-1", "capacity": 24, "floor": 2},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def _generate(client, headers, day=DAY):
    return client.post("/api/cleaning-reports/generate", json={"cleaning_date": day}, headers=headers)


def _reports(client, headers, day=DAY):
    response = client.get("/api/cleaning-reports/", params={"cleaning_date": day}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_daily_reports_are_generated_once_per_room(client, users, room):
    admin = users["admin"]["headers"]
    _second_room(client, admin)

    first = _generate(client, admin)
    second = _generate(client, admin)
    other_day = _generate(client, admin, day="2026-03-03")

    assert first.json() == {"cleaning_date": DAY, "created": 2, "existing": 0}
    assert second.json() == {"cleaning_date": DAY, "created": 0, "existing": 2}
    assert other_day.json()["created"] == 2

    reports = _reports(client, users["student"]["headers"])
    assert [item["room"]["code"] for item in reports] == ["BIO-1", "LH-A"]
    assert all(item["is_cleaned"] is False and item["observations"] == [] for item in reports)

    logs = client.get("/api/activity/logs", params={"entity_type": "cleaning_report"}, headers=admin).json()
    assert [row["action"] for row in logs] == ["cleaning.generate", "cleaning.generate"]


def test_only_managers_generate_reports(client, users, room):
    assert _generate(client, users["professor"]["headers"]).status_code == 403
    assert _reports(client, users["admin"]["headers"]) == []


def test_marking_a_room_cleaned(client, users, room):
    admin = users["admin"]["headers"]
    _generate(client, admin)
    report_id = _reports(client, admin)[0]["id"]

    anonymous = client.post(f"/api/cleaning-reports/{report_id}/status", json={"is_cleaned": True}, headers=admin)
    cleaned = client.post(
        f"/api/cleaning-reports/{report_id}/status",
        json={"is_cleaned": True, "cleaned_by": " Maria Lopez "},
        headers=admin,
    )

    assert anonymous.status_code == 422
    assert cleaned.status_code == 200
    assert cleaned.json()["is_cleaned"] is True
    assert cleaned.json()["cleaned_by"] == "Maria Lopez"
    assert cleaned.json()["cleaned_at"] is not None

    summary = client.get("/api/cleaning-reports/summary", params={"cleaning_date": DAY}, headers=admin).json()
    assert summary == {"cleaning_date": DAY, "total": 1, "completed": 1, "pending": 0, "with_observations": 0}

    reopened = client.post(f"/api/cleaning-reports/{report_id}/status", json={"is_cleaned": False}, headers=admin)
    assert reopened.json()["is_cleaned"] is False
    assert reopened.json()["cleaned_at"] is None
    assert reopened.json()["cleaned_by"] == "Maria Lopez"


def test_recording_observations(client, users, room):
    admin = users["admin"]["headers"]
    observation = client.post(
        "/api/cleaning-reports/observation-types",
        json={"name": "Broken chair", "category": "furniture"},
        headers=admin,
    )
    assert observation.status_code == 201
    observation_id = observation.json()["id"]

    _generate(client, admin)
    report_id = _reports(client, admin)[0]["id"]

    updated = client.put(
        f"/api/cleaning-reports/{report_id}/observations",
        json={"observations": [observation_id, observation_id], "notes": " Row 3 "},
        headers=admin,
    )
    unknown = client.put(
        f"/api/cleaning-reports/{report_id}/observations",
        json={"observations": ["missing"]},
        headers=admin,
    )

    assert updated.status_code == 200
    assert updated.json()["observations"] == [observation_id]
    assert updated.json()["notes"] == "Row 3"
    assert unknown.status_code == 400

    summary = client.get("/api/cleaning-reports/summary", params={"cleaning_date": DAY}, headers=admin).json()
    assert summary["with_observations"] == 1
    assert client.get(f"/api/cleaning-reports/{report_id}", headers=admin).json()["observations"] == [observation_id]


def test_observation_types_can_be_retired(client, users):
    admin = users["admin"]["headers"]
    created = client.post("/api/cleaning-reports/observation-types", json={"name": "Graffiti"}, headers=admin).json()

    retired = client.put(
        f"/api/cleaning-reports/observation-types/{created['id']}",
        json={"is_active": False},
        headers=admin,
    )

    assert retired.json()["is_active"] is False
    assert client.get("/api/cleaning-reports/observation-types", headers=admin).json() == []
    everything = client.get(
        "/api/cleaning-reports/observation-types",
        params={"active_only": False},
        headers=admin,
    ).json()
    assert [item["name"] for item in everything] == ["Graffiti"]


def test_missing_cleaning_report(client, users):
    admin = users["admin"]["headers"]

    assert client.get("/api/cleaning-reports/missing", headers=admin).status_code == 404
    assert (
        client.post(
            "/api/cleaning-reports/missing/status",
            json={"is_cleaned": True, "cleaned_by": "Maria"},
            headers=admin,
        ).status_code
        == 404
    )
