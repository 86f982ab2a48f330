"""
Tests for the web API (session control, frame upload, history).
"""

import asyncio

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from counting.classifier import FrameClassifier
from detection import DetectorAdapter, StaticBackend
from export import HEADER
from session.controller import SessionController
from storage.history import HistoryStore
from web.app import create_app

RAW = [
    {"class": "person", "score": 0.9, "bbox": [10, 10, 50, 100]},
    {"class": "person", "score": 0.8, "bbox": [100, 10, 50, 100]},
    {"class": "car", "score": 0.7, "bbox": [200, 200, 120, 60]},
]


def png_bytes(width=320, height=240):
    ok, buf = cv2.imencode(".png", np.zeros((height, width, 3), dtype=np.uint8))
    assert ok
    return buf.tobytes()


def make_controller(store, raw=RAW):
    detector = DetectorAdapter.from_backend(StaticBackend(raw))
    return SessionController(detector, store, classifier=FrameClassifier())


@pytest.fixture
def client(history_store):
    app = create_app(make_controller(history_store), history_store)
    with TestClient(app) as test_client:
        yield test_client


def upload(client):
    return client.post(
        "/api/session/frame",
        files={"file": ("frame.png", png_bytes(), "image/png")},
    )


class TestSessionEndpoints:
    """Tests for /api/session/*."""

    def test_status_starts_idle(self, client):
        body = client.get("/api/session/status").json()

        assert body["state"] == "idle"
        assert body["running"] is False
        assert body["counts"] == {"person": 0, "car": 0, "truck": 0, "bus": 0}
        assert body["confidence_threshold"] == 0.5

    def test_start_frame_stop_round_trip(self, client):
        start = client.post("/api/session/start")
        assert start.status_code == 200
        assert start.json()["running"] is True

        frame = upload(client)
        assert frame.status_code == 200
        body = frame.json()
        assert body["applied"] is True
        assert body["counts"] == {"person": 2, "car": 1, "truck": 0, "bus": 0}
        assert body["annotations"][0]["label"] == "person 90.0%"
        assert body["annotations"][0]["class"] == "person"

        stop = client.post("/api/session/stop")
        assert stop.status_code == 200
        assert stop.json()["saved"] is True
        assert stop.json()["status"]["state"] == "idle"

        history = client.get("/api/history").json()
        assert len(history) == 1
        assert history[0]["id"] == stop.json()["record_id"]
        assert history[0]["total"] == 3

    def test_stop_while_idle(self, client):
        body = client.post("/api/session/stop").json()

        assert body["saved"] is False
        assert body["record_id"] is None
        assert client.get("/api/history").json() == []

    def test_frame_requires_running_session(self, client):
        assert upload(client).status_code == 409

    def test_frame_rejects_non_image(self, client):
        client.post("/api/session/start")

        resp = client.post(
            "/api/session/frame",
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )

        assert resp.status_code == 400

    def test_settings_update(self, client):
        resp = client.put(
            "/api/session/settings",
            json={"confidence_threshold": 0.85, "classes": ["car", "person"]},
        )

        assert resp.status_code == 200
        assert resp.json()["confidence_threshold"] == 0.85
        assert resp.json()["selected_classes"] == ["person", "car"]

        client.post("/api/session/start")
        body = upload(client).json()
        assert body["counts"] == {"person": 1, "car": 0, "truck": 0, "bus": 0}

    def test_settings_reject_out_of_range(self, client):
        resp = client.put("/api/session/settings", json={"confidence_threshold": 1.5})

        assert resp.status_code == 422

    def test_start_with_unavailable_detector(self, history_store):
        def no_model():
            raise OSError("weights missing")

        controller = SessionController(DetectorAdapter(no_model), history_store)
        with TestClient(create_app(controller, history_store)) as client:
            resp = client.post("/api/session/start")
            assert resp.status_code == 503
            assert client.get("/api/session/status").json()["state"] == "idle"


class TestHistoryEndpoints:
    """Tests for /api/history*."""

    def _save_sessions(self, client, n):
        for _ in range(n):
            client.post("/api/session/start")
            upload(client)
            client.post("/api/session/stop")

    def test_history_newest_first(self, client):
        self._save_sessions(client, 3)

        ids = [r["id"] for r in client.get("/api/history").json()]

        assert ids == sorted(ids, reverse=True)
        assert len(client.get("/api/history?limit=2").json()) == 2

    def test_trend_series(self, client):
        self._save_sessions(client, 2)

        body = client.get("/api/history/trend?limit=10").json()

        assert body["people"] == [2, 2]
        assert body["cars"] == [1, 1]
        assert len(body["labels"]) == 2

    def test_export_csv(self, client):
        self._save_sessions(client, 1)

        resp = client.get("/api/history/export.csv")

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert "attachment" in resp.headers["content-disposition"]
        lines = resp.text.splitlines()
        assert lines[0] == ",".join(HEADER)
        assert lines[1].endswith(",2,1,0,0,3")

    def test_export_csv_oldest_first(self, client, history_store):
        """Rows follow save order even though the history list is newest first."""
        asyncio.run(history_store.insert({"person": 2, "car": 1}, 10))
        asyncio.run(history_store.insert({"truck": 1, "bus": 1}, 5))

        lines = client.get("/api/history/export.csv").text.splitlines()

        assert len(lines) == 3
        assert lines[1].endswith(",10,2,1,0,0,3")
        assert lines[2].endswith(",5,0,0,1,1,2")
        assert [r["total"] for r in client.get("/api/history").json()] == [2, 3]

    def test_clear(self, client):
        self._save_sessions(client, 2)

        resp = client.delete("/api/history")

        assert resp.json() == {"deleted": 2}
        assert client.get("/api/history").json() == []


class TestDegradedStore:
    """History endpoints when the store never initialized."""

    @pytest.fixture
    def degraded_client(self, temp_db):
        store = HistoryStore.from_path(temp_db)
        app = create_app(make_controller(store), store)
        with TestClient(app) as test_client:
            yield test_client

    def test_list_is_empty(self, degraded_client):
        assert degraded_client.get("/api/history").json() == []

    def test_export_is_header_only(self, degraded_client):
        resp = degraded_client.get("/api/history/export.csv")

        assert resp.text == ",".join(HEADER) + "\n"

    def test_clear_unavailable(self, degraded_client):
        assert degraded_client.delete("/api/history").status_code == 503

    def test_stop_reports_save_failure(self, degraded_client):
        degraded_client.post("/api/session/start")

        body = degraded_client.post("/api/session/stop").json()

        assert body["saved"] is False
        assert body["status"]["state"] == "idle"
        assert "save_failed" in body["status"]["alerts"]
        assert body["status"]["last_error"]


def test_missing_store_is_tolerated():
    controller = make_controller(None)
    with TestClient(create_app(controller, None)) as client:
        assert client.get("/api/history").json() == []
        assert client.get("/api/history/trend").json()["labels"] == []
