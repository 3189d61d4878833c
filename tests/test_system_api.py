def test_health_reports_counts(client, clock):
    client.post("/api/session-token")
    client.post("/api/session-token")

    r = client.get("/api/health")

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "online"
    assert body["entries"] == 0
    assert body["max_slots"] == 10
    assert body["outstanding_tokens"] == 2
    assert body["token_reaper_running"] is False


def test_logs_open_without_admin_token(client):
    r = client.get("/api/logs?lines=5")
    assert r.status_code == 200
    assert isinstance(r.json()["logs"], list)


def test_logs_require_admin_token_when_configured(client, monkeypatch):
    monkeypatch.setenv("LEADERBOARD_ADMIN_TOKEN", "secret")

    assert client.get("/api/logs").status_code == 401
    assert client.get("/api/logs", headers={"X-Admin-Token": "wrong"}).status_code == 401
    assert client.get("/api/logs", headers={"X-Admin-Token": "secret"}).status_code == 200


def test_logs_rejects_out_of_range_lines(client):
    r = client.get("/api/logs?lines=0")
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid request parameters"


def test_logs_return_newest_lines_first(client):
    from app.logger import logger

    logger.info("log tail marker one")
    logger.info("log tail marker two")

    logs = client.get("/api/logs?lines=2").json()["logs"]

    assert len(logs) == 2
    assert "log tail marker two" in logs[0]
    assert "log tail marker one" in logs[1]
