"""Document service routes through FastAPI's TestClient."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from polyedit_api.adapters.documents import get_store
from polyedit_api.main import app


@pytest.fixture
def client():
    get_store().clear()
    with TestClient(app) as test_client:
        yield test_client
    get_store().clear()


@pytest.fixture
def doc_id(client):
    body = {"name": "demo", "document": {"polylines": [[[0, 0], [10, 0]], [[0, 0], [10, 0], [10, 10], [0, 10]]]}}
    response = client.post("/documents", json=body)
    assert response.status_code == 201
    return response.json()["id"]


class TestDocuments:
    def test_create_and_list(self, client, doc_id):
        listing = client.get("/documents").json()
        assert [doc["id"] for doc in listing] == [doc_id]
        doc = client.get(f"/documents/{doc_id}").json()
        assert doc["name"] == "demo"
        assert doc["stats"]["items"] == 2

    def test_unusable_document_is_rejected(self, client):
        response = client.post("/documents", json={"document": [[[0, 0]]]})
        assert response.status_code == 400

    def test_oversized_numbers_do_not_fail_the_request(self, client):
        body = {"document": [[[0, 0], [1, 1]], [[10 ** 400, 0], [1, 1]]]}
        response = client.post("/documents", json=body)
        assert response.status_code == 201
        assert response.json()["stats"]["items"] == 1
        normalized = client.post("/normalize", json=body).json()
        assert normalized["count"] == 1

    def test_missing_document(self, client):
        assert client.get("/documents/nope").status_code == 404
        assert client.delete("/documents/nope").status_code == 404

    def test_delete(self, client, doc_id):
        assert client.delete(f"/documents/{doc_id}").status_code == 204
        assert client.get(f"/documents/{doc_id}").status_code == 404


class TestEditing:
    def test_select_then_move(self, client, doc_id):
        selected = client.post(f"/documents/{doc_id}/select", json={"itemId": "P0001"})
        assert selected.status_code == 200
        assert selected.json()["itemId"] == "P0001"
        result = client.post(f"/documents/{doc_id}/commands", json={"command": "move 1 2"}).json()
        assert result["status"] == "ok"
        assert result["document"]["polylines"][0]["points"] == [[1.0, 2.0], [11.0, 2.0]]

    def test_failed_command_reports_fail(self, client, doc_id):
        result = client.post(f"/documents/{doc_id}/commands", json={"command": "rotate 45"}).json()
        assert result["status"] == "fail"

    def test_select_bad_point(self, client, doc_id):
        response = client.post(f"/documents/{doc_id}/select", json={"itemId": "P0001", "pointIndex": 7})
        assert response.status_code == 400


class TestExportAndNormalize:
    @pytest.mark.parametrize("fmt,marker", [("json", '"polylines"'), ("dxf", "LWPOLYLINE"), ("svg", "<svg")])
    def test_export(self, client, doc_id, fmt, marker):
        response = client.get(f"/documents/{doc_id}/export/{fmt}")
        assert response.status_code == 200
        assert marker in response.text

    def test_export_unknown_format(self, client, doc_id):
        assert client.get(f"/documents/{doc_id}/export/png").status_code == 400

    def test_normalize(self, client):
        response = client.post("/normalize", json={"document": [[[0, 0], ["1", "2"]], "junk"]})
        data = response.json()
        assert data["count"] == 1
        assert data["polylines"][0]["points"] == [[0.0, 0.0], [1.0, 2.0]]
