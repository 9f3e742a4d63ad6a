"""Integration tests for API endpoints"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from reel_ledger.api.dependencies import get_webhook_client
from reel_ledger.infrastructure.clients.webhook import ExpenseWebhookClient

DANA = {"X-Actor-Id": "dana"}
PRODUCER = {"X-Actor-Id": "producer"}


def create_budget(client: TestClient, total: int = 1000, **extra) -> dict:
    response = client.post("/v1/budgets", json={"total_budget_cents": total, **extra})
    assert response.status_code == 201
    return response.json()


def create_camera(client: TestClient, budget_id: str, allocation: int = 200) -> dict:
    response = client.post(
        f"/v1/budgets/{budget_id}/categories",
        json={"id": "Camera", "name": "Camera", "allocation_cents": allocation},
    )
    assert response.status_code == 201
    return response.json()


def submit_expense(client: TestClient, budget_id: str, amount: int = 150, expense_id: str = "exp-1", **extra):
    body = {
        "id": expense_id,
        "category_id": "Camera",
        "description": "Lens rental",
        "amount_cents": amount,
        "date": "2025-03-03",
        **extra,
    }
    return client.post(f"/v1/budgets/{budget_id}/expenses", json=body, headers=DANA)


@pytest.fixture
def budget_id(client: TestClient) -> str:
    return create_budget(client)["id"]


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, budget_id: str):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "ledger_operations_total" in response.text


def test_request_id_header(client: TestClient):
    """Test each response carries a request ID, reusing the caller's"""
    assert client.get("/health").headers["X-Request-ID"]
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


def test_create_budget(client: TestClient):
    response = client.post("/v1/budgets", json={"total_budget_cents": 1000, "currency": "EUR"})

    assert response.status_code == 201
    data = response.json()
    assert data["version"] == 1
    assert data["currency"] == "EUR"
    assert data["allocated_budget_cents"] == 0
    assert data["remaining_budget_cents"] == 1000
    assert response.headers["ETag"] == '"1"'


def test_create_budget_defaults_currency(client: TestClient):
    assert create_budget(client)["currency"] == "USD"


@pytest.mark.parametrize("body", [{"total_budget_cents": -5}, {"total_budget_cents": 10, "currency": "usd"}, {}])
def test_create_budget_validation(client: TestClient, body):
    assert client.post("/v1/budgets", json=body).status_code == 422


def test_get_budget_not_found(client: TestClient):
    response = client.get("/v1/budgets/does-not-exist")
    assert response.status_code == 404


def test_ledger_scenario_through_api(client: TestClient, budget_id: str):
    """Test add category, add expense, reject, blocked delete end to end"""
    data = create_camera(client, budget_id)
    assert data["allocated_budget_cents"] == 200
    assert data["remaining_budget_cents"] == 1200
    assert data["categories"][0] == {
        "id": "Camera",
        "name": "Camera",
        "allocation_cents": 200,
        "spent_cents": 0,
        "remaining_cents": 200,
        "notes": "",
    }

    response = submit_expense(client, budget_id)
    assert response.status_code == 201
    data = response.json()
    assert data["categories"][0]["spent_cents"] == 150
    assert data["categories"][0]["remaining_cents"] == 50
    assert data["remaining_budget_cents"] == 1050
    assert data["expenses"][0]["submitted_by"] == "dana"
    assert data["expenses"][0]["status"] == "pending"

    response = client.post(f"/v1/budgets/{budget_id}/expenses/exp-1/reject", headers=PRODUCER)
    assert response.status_code == 200
    data = response.json()
    assert data["categories"][0]["spent_cents"] == 0
    assert data["categories"][0]["remaining_cents"] == 200
    assert data["remaining_budget_cents"] == 1200
    assert data["expenses"][0]["status"] == "rejected"
    assert data["expenses"][0]["approved_by"] == "producer"

    response = client.delete(f"/v1/budgets/{budget_id}/categories/Camera")
    assert response.status_code == 409
    assert response.json()["detail"]["reason"] == "category_has_expenses"

    stored = client.get(f"/v1/budgets/{budget_id}").json()
    assert [c["id"] for c in stored["categories"]] == ["Camera"]
    assert stored["version"] == 4


def test_delete_expense_then_category(client: TestClient, budget_id: str):
    create_camera(client, budget_id)
    submit_expense(client, budget_id)

    response = client.delete(f"/v1/budgets/{budget_id}/expenses/exp-1")
    assert response.status_code == 200
    assert response.json()["remaining_budget_cents"] == 1200

    response = client.delete(f"/v1/budgets/{budget_id}/categories/Camera")
    assert response.status_code == 200
    data = response.json()
    assert data["categories"] == []
    assert data["allocated_budget_cents"] == 0
    assert data["remaining_budget_cents"] == 1000


def test_approve_is_idempotent_and_keeps_version(client: TestClient, budget_id: str):
    """Test a repeated approval succeeds without writing a new version"""
    create_camera(client, budget_id)
    submit_expense(client, budget_id)

    first = client.post(f"/v1/budgets/{budget_id}/expenses/exp-1/approve", headers=PRODUCER)
    second = client.post(f"/v1/budgets/{budget_id}/expenses/exp-1/approve", headers=PRODUCER)

    assert first.status_code == second.status_code == 200
    assert first.json()["expenses"] == second.json()["expenses"]
    assert second.json()["version"] == first.json()["version"]
    assert second.json()["expenses"][0]["status"] == "approved"


def test_reject_after_approve_conflicts(client: TestClient, budget_id: str):
    create_camera(client, budget_id)
    submit_expense(client, budget_id)
    client.post(f"/v1/budgets/{budget_id}/expenses/exp-1/approve", headers=PRODUCER)

    response = client.post(f"/v1/budgets/{budget_id}/expenses/exp-1/reject", headers=PRODUCER)

    assert response.status_code == 409
    assert response.json()["detail"]["reason"] == "invalid_transition"


def test_expense_requires_actor_header(client: TestClient, budget_id: str):
    """Test submission and decisions refuse requests without X-Actor-Id"""
    create_camera(client, budget_id)
    body = {"category_id": "Camera", "description": "Gels", "amount_cents": 40, "date": "2025-03-03"}

    assert client.post(f"/v1/budgets/{budget_id}/expenses", json=body).status_code == 422
    assert client.post(f"/v1/budgets/{budget_id}/expenses/exp-1/approve").status_code == 422


def test_expense_unknown_category(client: TestClient, budget_id: str):
    response = submit_expense(client, budget_id)

    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "unknown_category"
    assert client.get(f"/v1/budgets/{budget_id}").json()["expenses"] == []


def test_expense_cannot_be_submitted_rejected(client: TestClient, budget_id: str):
    create_camera(client, budget_id)

    response = submit_expense(client, budget_id, status="rejected")

    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "invalid_input"


def test_missing_expense_returns_404(client: TestClient, budget_id: str):
    response = client.post(f"/v1/budgets/{budget_id}/expenses/nope/approve", headers=PRODUCER)
    assert response.status_code == 404
    assert client.delete(f"/v1/budgets/{budget_id}/expenses/nope").status_code == 404


def test_duplicate_category_id(client: TestClient, budget_id: str):
    create_camera(client, budget_id)

    response = client.post(
        f"/v1/budgets/{budget_id}/categories",
        json={"id": "Camera", "name": "Second camera", "allocation_cents": 10},
    )

    assert response.status_code == 409


def test_if_match_stale_version_conflicts(client: TestClient, budget_id: str):
    """Test a writer holding an old version is refused"""
    create_camera(client, budget_id)  # budget now at version 2

    response = client.post(
        f"/v1/budgets/{budget_id}/categories",
        json={"name": "Sound", "allocation_cents": 100},
        headers={"If-Match": '"1"'},
    )

    assert response.status_code == 409
    names = [c["name"] for c in client.get(f"/v1/budgets/{budget_id}").json()["categories"]]
    assert names == ["Camera"]


def test_if_match_current_version_succeeds(client: TestClient, budget_id: str):
    created = create_camera(client, budget_id)

    response = client.post(
        f"/v1/budgets/{budget_id}/categories",
        json={"name": "Sound", "allocation_cents": 100},
        headers={"If-Match": f'"{created["version"]}"'},
    )

    assert response.status_code == 201
    assert response.json()["version"] == created["version"] + 1


def test_if_match_garbage(client: TestClient, budget_id: str):
    response = client.post(
        f"/v1/budgets/{budget_id}/categories",
        json={"name": "Sound", "allocation_cents": 100},
        headers={"If-Match": "abc"},
    )
    assert response.status_code == 400


def test_list_expenses_with_filters(client: TestClient, budget_id: str):
    create_camera(client, budget_id, allocation=1000)
    submit_expense(client, budget_id, amount=100, expense_id="a", date="2025-03-01")
    submit_expense(client, budget_id, amount=200, expense_id="b", date="2025-03-04", notes="steadicam")
    submit_expense(client, budget_id, amount=300, expense_id="c", date="2025-03-08")
    client.post(f"/v1/budgets/{budget_id}/expenses/c/reject", headers=PRODUCER)

    everything = client.get(f"/v1/budgets/{budget_id}/expenses").json()["expenses"]
    assert [e["id"] for e in everything] == ["c", "b", "a"]

    pending = client.get(f"/v1/budgets/{budget_id}/expenses", params={"status": "pending"}).json()
    assert [e["id"] for e in pending["expenses"]] == ["b", "a"]

    window = client.get(
        f"/v1/budgets/{budget_id}/expenses",
        params={"date_from": "2025-03-02", "date_to": "2025-03-08"},
    ).json()
    assert [e["id"] for e in window["expenses"]] == ["c", "b"]

    search = client.get(f"/v1/budgets/{budget_id}/expenses", params={"q": "STEADI"}).json()
    assert [e["id"] for e in search["expenses"]] == ["b"]


def test_list_expenses_inverted_dates(client: TestClient, budget_id: str):
    response = client.get(
        f"/v1/budgets/{budget_id}/expenses",
        params={"date_from": "2025-03-09", "date_to": "2025-03-01"},
    )
    assert response.status_code == 400


def test_summary_endpoint(client: TestClient, budget_id: str):
    create_camera(client, budget_id)
    submit_expense(client, budget_id, amount=50)

    response = client.get(f"/v1/budgets/{budget_id}/summary")

    assert response.status_code == 200
    data = response.json()
    assert data["total_spent_cents"] == 50
    assert data["utilization_percent"] == 5
    assert data["expense_counts"]["pending"] == 1
    assert data["categories"][0]["spent_percent"] == 25


@patch("reel_ledger.infrastructure.clients.webhook.ExpenseWebhookClient.send_expense_event")
def test_approval_schedules_webhook(mock_send: AsyncMock, client: TestClient, budget_id: str):
    """Test an approval posts one event; a repeated approval posts none"""
    mock_send.return_value = None
    client.app.dependency_overrides[get_webhook_client] = lambda: ExpenseWebhookClient("http://hooks.test")
    create_camera(client, budget_id)
    submit_expense(client, budget_id)

    client.post(f"/v1/budgets/{budget_id}/expenses/exp-1/approve", headers=PRODUCER)
    client.post(f"/v1/budgets/{budget_id}/expenses/exp-1/approve", headers=PRODUCER)

    assert mock_send.await_count == 1
    payload = mock_send.await_args.args[0]
    assert payload["event"] == "EXPENSE_APPROVED"
    assert payload["expense_id"] == "exp-1"
    assert payload["actor_id"] == "producer"


@patch("reel_ledger.infrastructure.clients.webhook.ExpenseWebhookClient.send_expense_event")
def test_no_webhook_without_configuration(mock_send: AsyncMock, client: TestClient, budget_id: str):
    create_camera(client, budget_id)
    submit_expense(client, budget_id)

    client.post(f"/v1/budgets/{budget_id}/expenses/exp-1/reject", headers=PRODUCER)

    mock_send.assert_not_called()
