from conftest import make_csv, make_event


def _write_csv(tmp_path, records):
    path = tmp_path / "bank.csv"
    path.write_text(make_csv(records), encoding="utf-8")
    return str(path)


RECORDS = [
    make_event(age=33, contact_channel="cellular", deposit_result="yes"),
    make_event(age=33, contact_channel="cellular", day=2, deposit_result="no"),
    make_event(age=58, marital="single", contact_channel="telephone", deposit_result="no"),
]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["service"] == "depositlens"


def test_run_pipeline_then_read_reports(client, tmp_path):
    response = client.post("/run-pipeline", json={"csv_path": _write_csv(tmp_path, RECORDS)})

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["result"]["summary"]["outcomes"] == 3

    contact = client.get("/reports/contact").json()
    assert contact == [
        {"contact": "cellular", "total_contacts": 2, "successful_deposits": 1, "success_rate": 50.0},
        {"contact": "telephone", "total_contacts": 1, "successful_deposits": 0, "success_rate": 0.0},
    ]
    assert client.get("/reports/marital").json() == [{"marital": "married", "deposit": 1}]
    assert [r["age_group"] for r in client.get("/reports/age-group").json()] == ["30-39", "50-59"]
    assert len(client.get("/reports/job").json()) == 1
    assert len(client.get("/reports/month").json()) == 1

    latest = client.get("/reports/latest").json()
    assert latest["status"] == "success"
    assert latest["id"] == body["result"]["report_id"]


def test_rerun_without_reset_conflicts(client, tmp_path):
    client.post("/run-pipeline", json={"csv_path": _write_csv(tmp_path, RECORDS)})

    response = client.post("/run-pipeline", json={})
    assert response.status_code == 409

    assert client.post("/reset").json()["cleared"]["outcomes"] == 3
    response = client.post("/run-pipeline", json={"relink_strategy": "rejoin"})
    assert response.status_code == 200
    assert response.json()["result"]["summary"]["relink_strategy"] == "rejoin"

    assert client.get("/reports").json()["count"] == 2


def test_schema_error_is_a_bad_request(client, tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("age\n30\n", encoding="utf-8")

    response = client.post("/run-pipeline", json={"csv_path": str(path)})

    assert response.status_code == 400
    assert "Missing required columns" in response.json()["detail"]


def test_missing_file_is_a_bad_request(client, tmp_path):
    response = client.post("/run-pipeline", json={"csv_path": str(tmp_path / "nope.csv")})

    assert response.status_code == 400


def test_legacy_age_labels_via_query(client, tmp_path):
    records = [make_event(age=42)]
    client.post("/run-pipeline", json={"csv_path": _write_csv(tmp_path, records)})

    rows = client.get("/reports/age-group", params={"age_label_mode": "legacy"}).json()

    assert rows[0]["age_group"] == "30-49"


def test_latest_without_runs(client):
    assert client.get("/reports/latest").json()["status"] == "no_data"
