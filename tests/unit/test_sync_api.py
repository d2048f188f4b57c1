"""Unit tests for sync endpoints."""

from datetime import datetime
from types import SimpleNamespace
from typing import Any

from fastapi.testclient import TestClient

import sync_worker.main
from shared.constants import SYNC_QUEUE


def test_trigger_sync_queues_task(client: TestClient, monkeypatch) -> None:
    sent: list[tuple[str, dict[str, Any]]] = []

    def fake_send_task(name: str, **kwargs: Any) -> SimpleNamespace:
        sent.append((name, kwargs))
        return SimpleNamespace(id="task-123")

    monkeypatch.setattr(sync_worker.main.app, "send_task", fake_send_task)

    response = client.post("/api/v1/sync")

    assert response.status_code == 202
    assert response.json() == {"status": "Product sync started", "task_id": "task-123"}
    assert sent == [(sync_worker.main.SYNC_TASK_NAME, {"queue": SYNC_QUEUE})]


def test_sync_status_before_first_pass(client: TestClient) -> None:
    assert client.get("/api/v1/sync/status").status_code == 404


def test_sync_status_after_pass(client: TestClient, repository) -> None:
    repository.sync_statuses["products"] = {
        "id": "products",
        "status": "completed",
        "records_synced": 9,
        "records_failed": 1,
        "last_sync_at": datetime(2026, 3, 1, 12, 0),
        "error_message": None,
    }

    response = client.get("/api/v1/sync/status")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["records_synced"] == 9
    assert data["records_failed"] == 1
    assert data["last_sync_at"] == "2026-03-01T12:00:00"
