from sqlalchemy.exc import OperationalError

from behavior_api.config import get_settings
from behavior_api.routers import risk


def test_risk_scan_counts(client, seeded):
    body = client.get("/risk-scan").json()
    assert body["totalLogs"] == 5
    assert (body["highCount"], body["mediumCount"], body["lowCount"]) == (2, 1, 2)
    assert body["studentCount"] == 3
    assert body["classCount"] == 2
    # B12 (class room), Gym (row room) and the unknown-room bucket
    assert body["roomCount"] == 3
    assert body["rangeLabel"] == "Last 30 days"
    assert body["lastLogAt"].endswith("Z")


def test_risk_scan_for_one_student(client, seeded):
    body = client.get("/risk-scan", params={"student_id": "stu-2", "range": "90d"}).json()
    assert body["totalLogs"] == 2
    assert body["highCount"] == 1
    assert body["rangeLabel"] == "Last 90 days"


def test_risk_scan_degrades_to_zero_on_store_error(client, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("timeout"))

    monkeypatch.setattr(risk, "fetch_behavior_rows", broken)
    resp = client.get("/risk-scan", params={"range": "7d"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["totalLogs"] == 0
    assert body["roomCount"] == 0
    assert body["rangeLabel"] == "Last 7 days"
    assert body["lastLogAt"] is None


def test_risk_dashboard_all_time(client, seeded):
    body = client.get("/risk", params={"range": "all"}).json()
    assert body["range"] == {"key": "all", "from_iso": None, "label": "All time"}
    assert body["summary"]["totalLogs"] == 6
    top = body["by_student"][0]
    assert top["key"] == "stu-1"
    assert top["risk_score"] == 7
    assert top["display_name"] == "Ada Lovelace (AL1)"
    assert [c["key"] for c in body["by_class"]] == ["cls-1", "cls-2"]
    assert body["student_bands"] == {"high": 0, "medium": 1, "low": 2}
    assert body["error"] is None


def test_risk_dashboard_store_error(client, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("timeout"))

    monkeypatch.setattr(risk, "fetch_behavior_rows", broken)
    body = client.get("/risk").json()
    assert body["summary"]["totalLogs"] == 0
    assert body["by_student"] == []
    assert body["error"]


def test_default_range_comes_from_settings(client, seeded, monkeypatch):
    monkeypatch.setenv("DEFAULT_RANGE", "7d")
    get_settings.cache_clear()
    body = client.get("/risk-scan", params={"range": "junk"}).json()
    assert body["rangeLabel"] == "Last 7 days"
    assert body["totalLogs"] == 4

    monkeypatch.setenv("DEFAULT_RANGE", "all")
    get_settings.cache_clear()
    assert client.get("/risk-scan").json()["rangeLabel"] == "Last 30 days"
    assert client.get("/risk").json()["range"]["key"] == "all"
