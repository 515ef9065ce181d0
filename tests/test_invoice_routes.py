from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from admin_console.config import Settings, get_settings
from admin_console.main import app
from admin_console.services.mock_store import get_mock_store, reset_mock_store

PREFIX = "/tools/invoice"


@pytest.fixture
def client(tmp_path):
    reset_mock_store()
    app.dependency_overrides[get_settings] = lambda: Settings(
        download_dir=tmp_path, use_mock_data=True
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_mock_store()


def _open(client: TestClient) -> dict:
    response = client.post(f"{PREFIX}/sessions")
    assert response.status_code == 201
    return response.json()


def _patch(client: TestClient, session_id: str, index: int, update: dict) -> dict:
    response = client.patch(
        f"{PREFIX}/sessions/{session_id}/services/{index}", json={"update": update}
    )
    assert response.status_code == 200
    return response.json()


def test_open_session_loads_reference_data(client) -> None:
    view = _open(client)

    assert [option["label"] for option in view["clients"]] == [
        "Northwind",
        "Blue Harbor",
        "Sakura Wellness",
    ]
    assert view["products"][1]["label"] == "Search Engine Optimisation - Unit Price - 12500.50"
    assert view["services"] == []
    assert view["submission_state"] == "idle"


def test_full_invoice_flow_downloads_slip(client, tmp_path) -> None:
    session_id = _open(client)["session_id"]

    view = client.put(
        f"{PREFIX}/sessions/{session_id}/client", json={"client_id": "c-1002"}
    ).json()
    assert view["selected_client"] == {
        "client_id": "CL-1002",
        "client_name": "daniel okafor",
        "company_name": "Blue Harbor Logistics",
    }
    client.put(f"{PREFIX}/sessions/{session_id}/tax-rate", json={"value": "18"})
    client.post(f"{PREFIX}/sessions/{session_id}/services")

    _patch(client, session_id, 0, {"op": "set_product", "product_id": "p-2003"})
    _patch(client, session_id, 0, {"op": "set_description", "value": "Monthly upkeep"})
    _patch(client, session_id, 0, {"op": "set_start_date", "value": "2024-04-01"})
    view = _patch(client, session_id, 0, {"op": "set_end_date", "value": "30/06/2024"})
    assert view["services"][0]["submittable"] is True
    assert view["services"][0]["end_date"] == "2024-06-30"

    outcome = client.post(f"{PREFIX}/sessions/{session_id}/submit").json()

    assert outcome["status"] == "succeeded"
    saved = tmp_path / session_id / "invoice_slip.pdf"
    assert saved.read_bytes().startswith(b"%PDF-")
    view = client.get(f"{PREFIX}/sessions/{session_id}").json()
    assert view["submission_state"] == "succeeded"
    assert [n["message"] for n in view["notifications"]] == [
        "Invoice Slip is downloaded successfully."
    ]


def _draft_invoice(client: TestClient, client_id: str) -> str:
    session_id = _open(client)["session_id"]
    client.put(f"{PREFIX}/sessions/{session_id}/client", json={"client_id": client_id})
    client.put(f"{PREFIX}/sessions/{session_id}/tax-rate", json={"value": "5"})
    client.post(f"{PREFIX}/sessions/{session_id}/services")
    _patch(client, session_id, 0, {"op": "set_product", "product_id": "p-2001"})
    _patch(client, session_id, 0, {"op": "set_start_date", "value": "2024-01-01"})
    _patch(client, session_id, 0, {"op": "set_end_date", "value": "2024-01-31"})
    return session_id


def test_each_session_downloads_its_own_slip(client, tmp_path) -> None:
    first = _draft_invoice(client, "c-1001")
    second = _draft_invoice(client, "c-1002")

    assert client.post(f"{PREFIX}/sessions/{first}/submit").json()["status"] == "succeeded"
    assert client.post(f"{PREFIX}/sessions/{second}/submit").json()["status"] == "succeeded"

    first_slip = client.get(f"{PREFIX}/sessions/{first}/slip")
    second_slip = client.get(f"{PREFIX}/sessions/{second}/slip")

    assert first_slip.status_code == 200
    assert first_slip.headers["content-type"] == "application/pdf"
    assert "invoice_slip.pdf" in first_slip.headers["content-disposition"]
    assert b"CL-1001" in first_slip.content
    assert b"CL-1002" not in first_slip.content
    assert b"CL-1002" in second_slip.content
    assert (tmp_path / first / "invoice_slip.pdf").read_bytes() == first_slip.content


def test_closing_a_session_removes_its_slip(client, tmp_path) -> None:
    session_id = _draft_invoice(client, "c-1001")
    client.post(f"{PREFIX}/sessions/{session_id}/submit")
    assert (tmp_path / session_id / "invoice_slip.pdf").exists()

    client.delete(f"{PREFIX}/sessions/{session_id}")

    assert not (tmp_path / session_id).exists()


def test_validation_failure_keeps_draft(client, tmp_path) -> None:
    session_id = _open(client)["session_id"]
    client.post(f"{PREFIX}/sessions/{session_id}/services")
    _patch(client, session_id, 0, {"op": "set_duration", "value": "6 weeks"})

    outcome = client.post(f"{PREFIX}/sessions/{session_id}/submit").json()

    assert outcome["status"] == "failed"
    assert outcome["error_kind"] == "validation"
    view = client.get(f"{PREFIX}/sessions/{session_id}").json()
    assert view["services"][0]["duration"] == "6 weeks"
    assert view["notifications"][0]["level"] == "error"
    assert list(tmp_path.rglob("*.pdf")) == []
    assert client.get(f"{PREFIX}/sessions/{session_id}/slip").status_code == 404


def test_remove_service_and_out_of_range_index(client) -> None:
    session_id = _open(client)["session_id"]
    for _ in range(3):
        client.post(f"{PREFIX}/sessions/{session_id}/services")
    _patch(client, session_id, 2, {"op": "set_quantity", "value": 5})

    view = client.delete(f"{PREFIX}/sessions/{session_id}/services/0").json()
    assert [item["quantity"] for item in view["services"]] == [1, 5]

    view = client.delete(f"{PREFIX}/sessions/{session_id}/services/7").json()
    assert len(view["services"]) == 2


def test_reload_does_not_touch_captured_prices(client) -> None:
    session_id = _open(client)["session_id"]
    client.post(f"{PREFIX}/sessions/{session_id}/services")
    _patch(client, session_id, 0, {"op": "set_product", "product_id": "p-2004"})

    get_mock_store().catalog.set_unit_price("p-2004", Decimal("9999"))
    view = client.post(f"{PREFIX}/sessions/{session_id}/reference-data/reload").json()

    assert view["products"][3]["unit_price"] == 9999
    assert view["services"][0]["product"]["unitPrice"] == 8000


def test_invalid_update_is_rejected(client) -> None:
    session_id = _open(client)["session_id"]
    client.post(f"{PREFIX}/sessions/{session_id}/services")

    response = client.patch(
        f"{PREFIX}/sessions/{session_id}/services/0",
        json={"update": {"op": "set_quantity", "value": 0}},
    )

    assert response.status_code == 422


def test_unknown_session_returns_404(client) -> None:
    response = client.get(f"{PREFIX}/sessions/nope")

    assert response.status_code == 404
    assert response.json()["detail"] == "Unknown invoice session"


def test_closed_session_is_forgotten(client) -> None:
    session_id = _open(client)["session_id"]

    assert client.delete(f"{PREFIX}/sessions/{session_id}").json()["status"] == "closed"
    assert client.get(f"{PREFIX}/sessions/{session_id}").status_code == 404


def test_health_reports_mode(client) -> None:
    assert client.get("/health").json() == {"ok": True, "mode": "mock"}
