"""
API tests for the quote session endpoints.
"""
import io

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient

from app.api.endpoints.quotes import _read_upload
from app.core.config import settings


def _upload(client: TestClient, session_id: str, *entries):
    return client.post(f"/api/v1/quotes/{session_id}/files", files=list(entries))


class TestQuoteSessionLifecycle:
    @pytest.mark.api
    def test_create_session_returns_empty_quote(self, client):
        response = client.post("/api/v1/quotes")

        assert response.status_code == 201
        body = response.json()
        assert body["sessionId"]
        assert body["results"]["workflows"] == []
        assert body["results"]["summary"]["totalNodes"] == 0
        assert body["results"]["summary"]["totalPrice"] == 0
        assert body["results"]["groupedWorkflows"] == {"make": [], "zapier": [], "n8n": []}
        assert body["pendingZapierWorkflows"] == []

    @pytest.mark.api
    def test_get_unknown_session(self, client):
        response = client.get("/api/v1/quotes/not-a-session")

        assert response.status_code == 404

    @pytest.mark.api
    def test_delete_session(self, client, quote_session_id):
        response = client.delete(f"/api/v1/quotes/{quote_session_id}")

        assert response.status_code == 204
        assert client.get(f"/api/v1/quotes/{quote_session_id}").status_code == 404

    @pytest.mark.api
    def test_delete_unknown_session(self, client):
        assert client.delete("/api/v1/quotes/not-a-session").status_code == 404


class TestFileUpload:
    @pytest.mark.api
    def test_upload_make_export(self, client, quote_session_id, export_factory):
        export = {"flow": [
            {"id": "1", "module": "http"},
            {"id": "2", "module": "http", "routes": [{"flow": [{"id": "3", "module": "set"}]}]},
        ]}

        response = _upload(client, quote_session_id, export_factory.upload("scenario.json", export))

        assert response.status_code == 200
        body = response.json()
        assert body["processed"] == 1
        assert body["total"] == 1
        assert body["requiresZapierSelection"] is False
        assert body["files"][0]["status"] == "accepted"
        assert body["results"]["summary"]["totalNodes"] == 3
        assert body["results"]["summary"]["totalPrice"] == 60
        assert body["results"]["workflows"][0]["platform"] == "make"

    @pytest.mark.api
    def test_upload_mixed_batch(self, client, quote_session_id, export_factory):
        response = _upload(
            client,
            quote_session_id,
            export_factory.upload("leads.json", export_factory.make_scenario()),
            export_factory.upload("zaps.json", export_factory.zapier_export()),
            export_factory.upload("digest.json", export_factory.n8n_workflow()),
            ("files", ("broken.json", b"{oops", "application/json")),
            export_factory.upload("other.json", {"foo": "bar"}),
        )

        assert response.status_code == 200
        body = response.json()
        statuses = {f["fileName"]: f["status"] for f in body["files"]}
        assert statuses == {
            "leads.json": "accepted",
            "zaps.json": "pending_selection",
            "digest.json": "accepted",
            "broken.json": "rejected",
            "other.json": "warning",
        }
        assert body["processed"] == 3
        assert body["total"] == 5
        assert body["requiresZapierSelection"] is True
        assert len(body["pendingZapierWorkflows"]) == 2
        # zaps are not billed until selected
        assert body["results"]["summary"]["totalNodes"] == 8
        assert body["results"]["summary"]["countsByPlatform"] == {"make": 1, "zapier": 0, "n8n": 1}

    @pytest.mark.api
    def test_rejected_file_reports_error_kind(self, client, quote_session_id):
        response = _upload(client, quote_session_id, ("files", ("notes.txt", b"hello", "text/plain")))

        file_outcome = response.json()["files"][0]
        assert file_outcome["status"] == "rejected"
        assert file_outcome["errorKind"] == "unsupported_file_type"

    @pytest.mark.api
    def test_empty_zapier_export_needs_no_selection(self, client, quote_session_id, export_factory):
        response = _upload(client, quote_session_id, export_factory.upload("none.json", export_factory.zapier_export(zaps=[])))

        body = response.json()
        assert body["files"][0]["status"] == "warning"
        assert body["requiresZapierSelection"] is False
        assert body["pendingZapierWorkflows"] == []

    @pytest.mark.api
    def test_oversized_upload_is_rejected(self, client, quote_session_id, export_factory, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILE_SIZE", 100)

        response = _upload(
            client,
            quote_session_id,
            export_factory.upload("leads.json", export_factory.make_scenario()),
            export_factory.upload("tiny.json", {"flow": []}),
        )

        statuses = {f["fileName"]: (f["status"], f["errorKind"]) for f in response.json()["files"]}
        assert statuses["leads.json"] == ("rejected", "file_too_large")
        assert statuses["tiny.json"] == ("accepted", None)

    @pytest.mark.asyncio
    async def test_upload_read_stops_past_size_limit(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILE_SIZE", 100)
        upload = UploadFile(file=io.BytesIO(b"x" * 5000), filename="big.json")

        content = await _read_upload(upload)

        assert len(content) == 101

    @pytest.mark.api
    def test_upload_to_unknown_session(self, client, export_factory):
        response = _upload(client, "not-a-session", export_factory.upload("a.json", {"flow": []}))

        assert response.status_code == 404

    @pytest.mark.api
    def test_remove_file(self, client, quote_session_id, export_factory):
        _upload(
            client,
            quote_session_id,
            export_factory.upload("leads.json", export_factory.make_scenario()),
            export_factory.upload("digest.json", export_factory.n8n_workflow()),
        )

        response = client.delete(f"/api/v1/quotes/{quote_session_id}/files/leads.json")

        assert response.status_code == 200
        workflows = response.json()["results"]["workflows"]
        assert [w["fileName"] for w in workflows] == ["digest.json"]
        assert response.json()["results"]["summary"]["totalNodes"] == 3


class TestZapierSelectionEndpoints:
    @pytest.mark.api
    def test_select_one_zap(self, client, quote_session_id, export_factory):
        _upload(client, quote_session_id, export_factory.upload("zaps.json", export_factory.zapier_export()))

        pending = client.get(f"/api/v1/quotes/{quote_session_id}/zapier/pending").json()
        assert [z["nodeCount"] for z in pending] == [2, 1]
        assert [z["price"] for z in pending] == [40, 20]

        response = client.put(
            f"/api/v1/quotes/{quote_session_id}/zapier/selection",
            json={"zapIds": ["a"]},
        )

        assert response.status_code == 200
        summary = response.json()["results"]["summary"]
        assert summary["totalNodes"] == 2
        assert summary["totalPrice"] == 40
        # pending zaps stay editable
        assert len(response.json()["pendingZapierWorkflows"]) == 2

    @pytest.mark.api
    def test_reselect_replaces(self, client, quote_session_id, export_factory):
        _upload(client, quote_session_id, export_factory.upload("zaps.json", export_factory.zapier_export()))
        url = f"/api/v1/quotes/{quote_session_id}/zapier/selection"

        client.put(url, json={"zapIds": ["a", "b"]})
        response = client.put(url, json={"zapIds": ["b"]})

        workflows = response.json()["results"]["groupedWorkflows"]["zapier"]
        assert [w["workflowName"] for w in workflows] == ["Zap B"]

    @pytest.mark.api
    def test_unknown_zap_id(self, client, quote_session_id, export_factory):
        _upload(client, quote_session_id, export_factory.upload("zaps.json", export_factory.zapier_export()))

        response = client.put(
            f"/api/v1/quotes/{quote_session_id}/zapier/selection",
            json={"zapIds": ["zzz"]},
        )

        assert response.status_code == 422

    @pytest.mark.api
    def test_clear_zapier(self, client, quote_session_id, export_factory):
        _upload(
            client,
            quote_session_id,
            export_factory.upload("zaps.json", export_factory.zapier_export()),
            export_factory.upload("digest.json", export_factory.n8n_workflow()),
        )
        client.put(f"/api/v1/quotes/{quote_session_id}/zapier/selection", json={"zapIds": ["a"]})

        response = client.delete(f"/api/v1/quotes/{quote_session_id}/zapier")

        assert response.status_code == 200
        assert response.json()["results"]["summary"]["countsByPlatform"]["zapier"] == 0
        assert response.json()["results"]["summary"]["totalNodes"] == 3


class TestQuoteActions:
    @pytest.mark.api
    def test_reset(self, client, quote_session_id, export_factory):
        _upload(client, quote_session_id, export_factory.upload("leads.json", export_factory.make_scenario()))

        response = client.post(f"/api/v1/quotes/{quote_session_id}/reset")

        assert response.status_code == 200
        assert response.json()["results"]["workflows"] == []
        assert response.json()["results"]["summary"]["totalPrice"] == 0

    @pytest.mark.api
    def test_savings(self, client, quote_session_id, export_factory):
        _upload(client, quote_session_id, export_factory.upload("digest.json", export_factory.n8n_workflow()))

        response = client.get(f"/api/v1/quotes/{quote_session_id}/savings")

        assert response.status_code == 200
        body = response.json()
        assert body["totalNodes"] == 3
        assert body["workflowCount"] == 1
        assert body["migrationPrice"] == 60
        assert set(body["scenarios"]) == {"conservative", "average", "active"}
        assert body["headline"] == body["scenarios"]["average"]
        assert body["headline"]["breakEvenMonths"] >= 0

    @pytest.mark.api
    def test_checkout_applies_minimum_price(self, client, quote_session_id, export_factory):
        _upload(client, quote_session_id, export_factory.upload("digest.json", export_factory.n8n_workflow()))

        response = client.get(f"/api/v1/quotes/{quote_session_id}/checkout")

        assert response.status_code == 200
        body = response.json()
        assert body["amount"] == 20000
        assert body["totalNodes"] == 3
        assert len(body["workflows"]) == 1

    @pytest.mark.api
    def test_checkout_empty_quote(self, client, quote_session_id):
        response = client.get(f"/api/v1/quotes/{quote_session_id}/checkout")

        assert response.status_code == 400
