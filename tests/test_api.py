from conftest import AMAZON, ASOS, DAY

PARCEL = {
    "barcode": "h00ab12cd34ef56g",
    "round_id": "1",
    "courier_id": "C001",
    "sorter_team_member_id": "TM001",
    "client_id": AMAZON,
    "sub_depot_id": 71,
    "drop_number": 12,
    "time_scanned": "2026-03-02T09:30:00Z",
}


def _parcel(**overrides):
    data = dict(PARCEL)
    data.update(overrides)
    return data


def test_registry_listing(client):
    res = client.get("/api/clients")
    assert res.status_code == 200
    assert [c["name"] for c in res.get_json()["data"]] == ["Amazon", "ASOS"]

    res = client.get("/api/rounds?sub_depot_id=71")
    assert [r["id"] for r in res.get_json()["data"]] == ["1", "2"]


def test_batch_post_reports_skipped(client):
    res = client.post("/api/missing-parcels", json=[_parcel(), _parcel(barcode="short")])

    assert res.status_code == 201
    body = res.get_json()
    assert body["skipped"] == 1
    assert body["data"][0]["barcode"] == "H00AB12CD34EF56G"

    listed = client.get(f"/api/missing-parcels?date={DAY.isoformat()}").get_json()["data"]
    assert listed[0]["client_name"] == "Amazon"


def test_gated_add_over_http(client):
    res = client.post("/api/workflows/desk-1/parcels", json=_parcel(client_id=ASOS))
    assert res.status_code == 202
    checklist = res.get_json()["data"]["checklist"]
    assert checklist["step"] == 0
    assert checklist["phase"] == "ACTIVE"

    res = client.post("/api/workflows/desk-1/checklist/answer", json={"yes": False})
    assert res.get_json()["data"]["checklist"]["alert"] == "Please check cages before approving this missing parcel."

    for _ in range(5):
        res = client.post("/api/workflows/desk-1/checklist/answer", json={"yes": True})

    data = res.get_json()["data"]
    assert data["checklist"]["phase"] == "COMPLETED"
    assert data["result"]["client_id"] == ASOS

    res = client.post("/api/workflows/desk-1/checklist/answer", json={"yes": True})
    assert res.status_code == 409


def test_invalid_single_add_is_a_400(client):
    res = client.post("/api/workflows/desk-1/parcels", json=_parcel(courier_id=""))
    assert res.status_code == 400
    assert "Courier is required" in res.get_json()["error"]


def test_recovery_endpoint_toggles(client):
    created = client.post("/api/missing-parcels", json=[_parcel()]).get_json()["data"][0]

    res = client.post(f"/api/missing-parcels/{created['id']}/recovery", json={"recovered": True})
    assert res.get_json()["data"]["is_recovered"] is True
    assert res.get_json()["data"]["recovery_date"] is not None

    res = client.post(f"/api/missing-parcels/{created['id']}/recovery", json={})
    assert res.get_json()["data"]["recovery_date"] is None


def test_unknown_parcel_is_a_404(client):
    assert client.get("/api/missing-parcels/missing-id").status_code == 404


def test_put_edit_of_amazon_parcel_applies_directly(client):
    created = client.post("/api/missing-parcels", json=[_parcel()]).get_json()["data"][0]

    res = client.put(f"/api/missing-parcels/{created['id']}", json={"notes": "driver called"})

    assert res.status_code == 200
    assert res.get_json()["data"]["notes"] == "driver called"


def test_tracking_refresh_throttle(client):
    client.post("/api/missing-parcels", json=[_parcel()])

    assert client.post("/api/missing-parcels/tracking/refresh").status_code == 200
    assert client.post("/api/missing-parcels/tracking/refresh").status_code == 429


def test_cage_return_round_trip(client):
    client.post(
        "/api/missing-parcels",
        json=[_parcel(), _parcel(barcode="H00AB12CD34EF56H", round_id="2")],
    )

    sheet = client.get(f"/api/cage-return-reports/sheet?date={DAY.isoformat()}&sub_depot_id=71").get_json()["data"]
    assert [(p["round_id"], p["not_returned"]) for p in sheet["pairs"]] == [("1", False), ("2", False)]

    res = client.post(
        "/api/cage-return-reports",
        json={
            "date": DAY.isoformat(),
            "sub_depot_id": 71,
            "submitted_by_team_member_id": "TM001",
            "not_returned": [{"round_id": "1", "courier_id": "C001"}],
        },
    )
    assert res.status_code == 201
    assert res.get_json()["data"]["non_returned_cages"] == [
        {"round_id": "1", "courier_id": "C001", "courier_name": "John Smith"}
    ]


def test_cage_return_rejects_pairs_not_on_the_sheet(client):
    client.post("/api/missing-parcels", json=[_parcel()])

    res = client.post(
        "/api/cage-return-reports",
        json={
            "date": DAY.isoformat(),
            "sub_depot_id": 71,
            "submitted_by_team_member_id": "TM001",
            "not_returned": [{"round_id": "2", "courier_id": "C002"}],
        },
    )

    assert res.status_code == 400
    assert "round 2 / C002" in res.get_json()["error"]


def test_duc_requires_imported_summary(client):
    client.post("/api/missing-parcels", json=[_parcel()])
    payload = {"date": DAY.isoformat(), "submitted_by_team_member_id": "TM001"}

    assert client.post("/api/duc-final-reports", json=payload).status_code == 400

    summary = client.get(f"/api/duc-final-reports/missing-summary?date={DAY.isoformat()}").get_json()["data"]
    payload["missing_parcels_summary"] = summary
    res = client.post("/api/duc-final-reports", json=payload)

    assert res.status_code == 201
    assert res.get_json()["data"]["missing_parcels_summary"]["total_missing"] == 1


def test_duc_submission_ignores_client_supplied_numbers(client):
    payload = {
        "date": DAY.isoformat(),
        "submitted_by_team_member_id": "TM001",
        "missing_parcels_summary": {"total_missing": 3, "unrecovered": 0, "recovery_rate": 7, "parcels": ["x"]},
    }

    res = client.post("/api/duc-final-reports", json=payload)

    assert res.status_code == 201
    assert res.get_json()["data"]["missing_parcels_summary"] == {
        "total_missing": 0,
        "unrecovered": 0,
        "recovery_rate": 0,
        "parcels": [],
    }


def test_missort_generate_without_audits_is_a_400(client):
    res = client.post("/api/daily-missort-summary-reports/generate", json={"date": DAY.isoformat()})
    assert res.status_code == 400


def test_courier_stats_endpoint(client):
    client.post("/api/missing-parcels", json=[_parcel()])

    stats = client.get(f"/api/reports/courier-stats?date={DAY.isoformat()}").get_json()["data"]

    assert stats[0]["courier_id"] == "C001"
    assert stats[0]["recovery_rate"] == 0


def test_weekly_missing_summary_over_http(client):
    client.post("/api/missing-parcels", json=[_parcel(), _parcel(barcode="H00AB12CD34EF56H", client_id=ASOS)])

    preview = client.post("/api/weekly-missing-summary-reports/generate", json={"week": "2026-W10"}).get_json()["data"]
    assert preview["total_missing"] == 2
    assert (preview["week_start_date"], preview["week_end_date"]) == ("2026-03-02", "2026-03-08")

    res = client.post(
        "/api/weekly-missing-summary-reports", json={"week": "2026-W10", "submitted_by_team_member_id": "TM001"}
    )
    assert res.status_code == 201
    assert res.get_json()["data"]["id"] == "WMS-2026-W10"
    assert len(client.get("/api/weekly-missing-summary-reports").get_json()["data"]) == 1

    assert client.post("/api/weekly-missing-summary-reports/generate", json={"week": "2026-W11"}).status_code == 400
    assert client.post("/api/weekly-missing-summary-reports/generate", json={"week": "week ten"}).status_code == 400


def test_client_league_over_http(client):
    client.post("/api/missing-parcels", json=[_parcel(), _parcel(barcode="H00AB12CD34EF56H", client_id=ASOS)])
    client.post("/api/missing-parcels", json=[_parcel(barcode="H00AB12CD34EF56J", client_id=ASOS)])

    res = client.post("/api/client-missing-league-reports/generate", json={"period_type": "month", "month": "2026-03"})
    league = res.get_json()["data"]
    assert (league["start_date"], league["end_date"]) == ("2026-03-01", "2026-03-31")
    assert [(c["rank"], c["client_name"], c["total_missing"]) for c in league["clients"]] == [
        (1, "ASOS", 2),
        (2, "Amazon", 1),
    ]

    saved = client.post("/api/client-missing-league-reports", json={"period_type": "week", "week": "2026-W10"})
    assert saved.status_code == 201
    assert saved.get_json()["data"]["id"] == "CML-week-2026-W10"
    assert saved.get_json()["data"]["generated_by"] == "System"

    assert client.post("/api/client-missing-league-reports/generate", json={"period_type": "year"}).status_code == 400
