import pytest
from fastapi.testclient import TestClient

from src.api.utils.metrics import StepMetrics
from src.app import create_app
from src.core.service.chat.telegram_client import TelegramClient
from src.core.service.steps.engine import StepsEngine
from src.infra.repository.memory_step_repository import MemoryStepStore


@pytest.fixture
def client():
    """Test client over an in-memory engine; replies to Telegram are only logged"""
    app = create_app(
        steps_engine=StepsEngine(MemoryStepStore(), metrics=StepMetrics()),
        telegram_client=TelegramClient(token="")
    )
    with TestClient(app) as test_client:
        yield test_client


def assert_error_envelope(response, status_code: int, code: str):
    assert response.status_code == status_code
    data = response.json()
    assert data["success"] is False
    assert data["error"]["code"] == code
    assert isinstance(data["error"]["message"], str)
    assert "timestamp" in data["error"]


def test_register_contract(client):
    response = client.post("/api/v1/users/alice")
    assert response.status_code == 201
    assert response.json() == {"user_id": "alice", "registered": True, "created": True}

    again = client.post("/api/v1/users/alice")
    assert again.status_code == 201
    assert again.json()["created"] is False

    assert client.get("/api/v1/users/alice").json()["registered"] is True
    assert client.get("/api/v1/users/bob").json()["registered"] is False


def test_report_and_stats_contract(client):
    client.post("/api/v1/users/alice")

    first = client.post("/api/v1/users/alice/steps", json={"steps": 1000, "day": "2024-03-25"})
    assert first.status_code == 200
    assert first.json() == {"user_id": "alice", "day": "2024-03-25", "steps": 1000}

    client.put("/api/v1/users/alice/steps/2024-03-26", json={"steps": 2000})

    response = client.get("/api/v1/users/alice/stats", params={"as_of": "2024-03-27"})
    assert response.status_code == 200
    data = response.json()
    assert data["as_of"] == "2024-03-27"
    assert data["today"] == 0
    assert data["this_week"] == 3000
    assert data["this_month"] == 3000
    assert data["total"] == 3000
    assert data["average_per_active_day"] == 1500
    assert data["active_day_count"] == 2


def test_report_without_day_uses_today(client):
    client.post("/api/v1/users/alice")

    response = client.post("/api/v1/users/alice/steps", json={"steps": 42})

    assert response.status_code == 200
    assert response.json()["steps"] == 42


def test_reset_and_list_entries(client):
    client.post("/api/v1/users/alice")
    client.post("/api/v1/users/alice/steps", json={"steps": 700, "day": "2024-03-25"})

    reset = client.post("/api/v1/users/alice/steps/reset", json={"day": "2024-03-25"})
    assert reset.json()["steps"] == 0

    entries = client.get("/api/v1/users/alice/steps").json()
    assert entries == {"user_id": "alice", "entries": [{"user_id": "alice", "day": "2024-03-25", "steps": 0}]}


def test_delete_contract(client):
    client.post("/api/v1/users/alice")
    client.post("/api/v1/users/alice/steps", json={"steps": 700, "day": "2024-03-25"})

    response = client.delete("/api/v1/users/alice")
    assert response.json() == {"user_id": "alice", "deleted": True}

    assert client.get("/api/v1/users/alice/steps").json()["entries"] == []
    assert_error_envelope(client.delete("/api/v1/users/alice"), 404, "UNKNOWN_USER")


def test_leaderboard_contract(client):
    for user, steps in (("alice", 500), ("bob", 900), ("carol", 0)):
        client.post(f"/api/v1/users/{user}")
        client.post(f"/api/v1/users/{user}/steps", json={"steps": steps, "day": "2024-03-26"})

    response = client.get("/api/v1/leaderboard/weekly", params={"as_of": "2024-03-31"})

    assert response.status_code == 200
    data = response.json()
    assert data["window"] == "weekly"
    assert (data["start"], data["end"]) == ("2024-03-25", "2024-03-31")
    assert data["entries"] == [
        {"position": 0, "user_id": "bob", "steps": 900},
        {"position": 1, "user_id": "alice", "steps": 500},
    ]


def test_unknown_user_envelope(client):
    response = client.post("/api/v1/users/ghost/steps", json={"steps": 10, "day": "2024-03-25"})
    assert_error_envelope(response, 404, "UNKNOWN_USER")
    assert response.json()["error"]["details"] == {"user_id": "ghost"}

    assert_error_envelope(client.get("/api/v1/users/ghost/stats"), 404, "UNKNOWN_USER")


@pytest.mark.parametrize("body", [{"steps": -5}, {"steps": "many"}, {}, {"steps": 10, "day": "31/03/2024"}])
def test_invalid_report_envelope(client, body):
    client.post("/api/v1/users/alice")

    response = client.post("/api/v1/users/alice/steps", json=body)

    assert_error_envelope(response, 422, "INVALID_INPUT")
    assert "validation_errors" in response.json()["error"]["details"]


def test_oversized_steps_rejected(client):
    client.post("/api/v1/users/alice")

    response = client.post("/api/v1/users/alice/steps", json={"steps": 10 ** 20, "day": "2024-03-25"})

    assert_error_envelope(response, 422, "INVALID_INPUT")
    assert client.get("/api/v1/users/alice/steps").json()["entries"] == []


def test_unknown_window_is_rejected(client):
    assert_error_envelope(client.get("/api/v1/leaderboard/yearly"), 422, "INVALID_INPUT")


def test_request_id_is_echoed_in_errors(client):
    response = client.get("/api/v1/users/ghost/stats", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.json()["error"]["request_id"] == "req-123"


def test_health_contract(client):
    response = client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] in ["healthy", "degraded", "unhealthy"]
    assert data["service"] == "StepsChallenge"
    assert data["services"]["storage"] == "healthy"
    assert data["services"]["telegram_bot"] in ["healthy", "not_configured"]
    assert data["storage"]["backend"] == "memory"


def test_health_unhealthy_when_metrics_unhealthy(client, monkeypatch):
    failing = StepMetrics()
    for _ in range(10):
        failing.record_operation("report", success=False)
    monkeypatch.setattr("src.api.router.health.get_metrics", lambda: failing)

    data = client.get("/api/v1/health").json()

    assert data["services"]["storage"] == "healthy"
    assert data["services"]["metrics"] == "unhealthy"
    assert data["status"] == "unhealthy"


def test_metrics_contract(client):
    data = client.get("/api/v1/metrics").json()

    assert set(data) >= {"timestamp", "overall", "last_hour", "by_operation", "leaderboards_by_window"}
    assert "report" in data["by_operation"]


def test_telegram_webhook(client):
    update = {
        "update_id": 1,
        "message": {
            "message_id": 10,
            "chat": {"id": 77, "type": "private"},
            "from": {"id": 77, "first_name": "Ann"},
            "text": "/register",
        },
    }

    response = client.post("/webhook/telegram", json=update)
    assert response.json() == {"ok": True, "handled": True}
    assert client.get("/api/v1/users/77").json()["registered"] is True

    update["message"]["text"] = "just chatting"
    assert client.post("/webhook/telegram", json=update).json() == {"ok": True, "handled": False}
