from pathlib import Path

import pytest

from engagement_dashboard.services.loader import DataLoader
from engagement_dashboard.web import create_app


@pytest.fixture
def client(sample_data: Path):
    app = create_app({"TESTING": True, "DATA_URL": str(sample_data)})
    return app.test_client()


def test_index_renders(client) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert b"Dashboard de Engajamento" in response.data
    assert b'id="report-general"' in response.data


def test_switch_report_does_not_refetch(client, monkeypatch: pytest.MonkeyPatch) -> None:
    async def _fail(self, report_type):  # noqa: ANN001
        raise AssertionError("switching must not fetch")

    monkeypatch.setattr(DataLoader, "fetch_all_data", _fail)
    response = client.get("/reports/blome")
    assert response.status_code == 200
    assert b'class="report active" id="report-blome"' in response.data


def test_switch_report_is_scoped_to_the_request(client) -> None:
    assert b'class="report active" id="report-blome"' in client.get("/reports/blome").data
    index = client.get("/").data
    assert b'class="report active" id="report-general"' in index
    assert b'class="report " id="report-blome"' in index
    assert client.get("/api/summary").get_json()["current_report"] == "general"


def test_unknown_report_type_is_404(client) -> None:
    assert client.get("/reports/premium").status_code == 404
    assert client.get("/api/reports/premium").status_code == 404


def test_report_metrics_api(client) -> None:
    response = client.get("/api/reports/general")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["report_type"] == "general"
    assert payload["total_studied"] == 1299
    assert payload["inactive_users"] == 2
    assert len(payload["top_users"]) == 5

    blome = client.get("/api/reports/BLOME").get_json()
    assert blome["total_flashcards"] == 65
    assert blome["top_users"][0]["day_value"] == 4
