import pytest
from fastapi.testclient import TestClient

import main

FRONTAL = {
    "11": {"x": 0.4, "y": 0.5, "z": 0.0, "visibility": 0.99},
    "12": {"x": 0.6, "y": 0.5, "z": 0.0, "visibility": 0.99},
    "0": {"x": 0.5, "y": 0.3, "z": -0.2},
}


@pytest.fixture
def client():
    main.sessions.clear()
    with TestClient(main.app) as c:
        yield c
    main.sessions.clear()


def _new_session(client) -> str:
    res = client.post("/api/sessions")
    assert res.status_code == 200
    return res.json()["session_id"]


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_stream_session_lifecycle(client):
    sid = _new_session(client)

    res = client.post(f"/api/sessions/{sid}/frames", json={"landmarks": FRONTAL})
    assert res.status_code == 200
    body = res.json()
    assert body["detected"] is True
    assert body["scores"]["horizontalScore"] == pytest.approx(1.0)
    assert body["averaged"]["shoulderTiltScore"] == pytest.approx(1.0)

    res = client.post(f"/api/sessions/{sid}/frames", json={"landmarks": None})
    assert res.json()["detected"] is False

    status = client.get(f"/api/sessions/{sid}").json()
    assert status["frames_seen"] == 2
    assert status["means"]["horizontalScore"] == pytest.approx(1.0)

    res = client.post(f"/api/sessions/{sid}/reset")
    assert res.json() == {"session_id": sid, "frames_seen": 0, "means": {}}

    assert client.delete(f"/api/sessions/{sid}").status_code == 200
    assert client.get(f"/api/sessions/{sid}").status_code == 404


def test_sessions_are_isolated(client):
    a = _new_session(client)
    b = _new_session(client)
    client.post(f"/api/sessions/{a}/frames", json={"landmarks": FRONTAL})

    assert client.get(f"/api/sessions/{b}").json()["means"] == {}


def test_unknown_session_is_404(client):
    res = client.post("/api/sessions/nope/frames", json={"landmarks": FRONTAL})
    assert res.status_code == 404
    assert client.delete("/api/sessions/nope").status_code == 404


def test_session_limit(client, monkeypatch):
    monkeypatch.setattr(main.settings, "MAX_SESSIONS", 1)
    _new_session(client)
    assert client.post("/api/sessions").status_code == 429


def test_evaluate_still_image_with_list_landmarks(client):
    landmarks = [{"x": 0.0, "y": 0.0, "z": 0.0}] * 33
    landmarks[11] = {"x": 0.4, "y": 0.5, "z": 0.0}
    landmarks[12] = {"x": 0.6, "y": 0.5, "z": 0.0}

    res = client.post("/api/evaluate", json={"landmarks": landmarks, "manual_score": 0.9})
    assert res.status_code == 200
    body = res.json()
    assert body["scores"] == {"horizontalScore": pytest.approx(1.0), "shoulderTiltScore": pytest.approx(1.0)}
    assert body["abs_error"] == pytest.approx(0.1)
    assert body["within_tolerance"] is True


def test_evaluate_degenerate_pose_returns_blank_debug(client):
    res = client.post("/api/evaluate", json={"landmarks": {"11": FRONTAL["11"]}})
    assert res.status_code == 200
    debug = res.json()["debug"]
    assert debug["score"] == 0.0
    assert debug["angle_deg"] == 90.0
    assert debug["left"] == {"x": None, "y": None, "z": None, "v": 0.0}


def test_evaluate_without_detection_is_422(client):
    assert client.post("/api/evaluate", json={"landmarks": None}).status_code == 422


def test_manual_score_out_of_range_is_rejected(client):
    res = client.post("/api/evaluate", json={"landmarks": FRONTAL, "manual_score": 1.5})
    assert res.status_code == 422


def test_batch_skips_images_without_detection(client):
    res = client.post(
        "/api/evaluate/batch",
        json={"images": [{"landmarks": FRONTAL}, {"landmarks": None}, {"landmarks": FRONTAL, "manual_score": 0.0}]},
    )
    assert res.status_code == 200
    body = res.json()
    assert len(body) == 2
    assert body[1]["agreement"] == "mismatch"


def test_idle_session_is_evicted_to_make_room(client, monkeypatch):
    monkeypatch.setattr(main.settings, "MAX_SESSIONS", 1)
    stale = _new_session(client)
    main.sessions[stale].last_used -= main.settings.SESSION_IDLE_SECONDS + 1

    fresh = client.post("/api/sessions")
    assert fresh.status_code == 200
    assert client.get(f"/api/sessions/{stale}").status_code == 404
    assert client.get(f"/api/sessions/{fresh.json()['session_id']}").status_code == 200


def test_session_in_use_is_not_evicted(client, monkeypatch):
    monkeypatch.setattr(main.settings, "MAX_SESSIONS", 1)
    sid = _new_session(client)
    main.sessions[sid].last_used -= main.settings.SESSION_IDLE_SECONDS + 1
    client.post(f"/api/sessions/{sid}/frames", json={"landmarks": FRONTAL})

    assert client.post("/api/sessions").status_code == 429
    assert sid in main.sessions


def test_mapping_with_null_entries_is_accepted(client):
    res = client.post("/api/evaluate", json={"landmarks": {**FRONTAL, "2": None, "5": None}})
    assert res.status_code == 200
    assert res.json()["scores"]["horizontalScore"] == pytest.approx(1.0)
