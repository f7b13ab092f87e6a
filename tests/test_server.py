"""HTTP tests for the FastAPI app, run through Starlette's TestClient."""

import pytest
from fastapi.testclient import TestClient

from form_reconciler.store import find_repo_root
from form_reconciler_server.app import create_app
from form_reconciler_server.config import ServerSettings, load_settings

API = "/api/v1"


@pytest.fixture
def client():
    settings = ServerSettings(forms_dir=str(find_repo_root() / "forms"), placeholder_seed=42)
    with TestClient(create_app(settings)) as c:
        yield c


def _by_id(nodes):
    """Flatten a JSON response tree into {linkId: answer}."""
    out = {}
    for node in nodes:
        if "answer" in node:
            out[node["linkId"]] = node["answer"]
        out.update(_by_id(node.get("children") or []))
    return out


# =====================================================================
# Health and forms
# =====================================================================


class TestForms:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "forms": 3}

    def test_list_forms(self, client):
        resp = client.get(f"{API}/forms")
        assert resp.status_code == 200
        assert [f["id"] for f in resp.json()] == ["imaging-order", "medication-request", "patient-intake"]

    def test_get_form_uses_camel_case(self, client):
        body = client.get(f"{API}/forms/imaging-order").json()
        assert body["id"] == "imaging-order"
        assert body["items"][1]["linkId"] == "patient-info"

    def test_unknown_form_is_404(self, client):
        resp = client.get(f"{API}/forms/nope")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Resource not found"}

    def test_reconcile_bundled_form(self, client):
        resp = client.post(
            f"{API}/forms/imaging-order/reconcile",
            json={
                "partial": [{"linkId": "insurance", "answer": "Aetna"}],
                "context": {"patientName": "Jane Doe", "urgency": "stat", "clinicalContext": "head trauma"},
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        answers = _by_id(body["response"])

        assert answers["patientName"] == "Jane Doe"
        assert answers["insurance"] == "Aetna"
        assert answers["priority"] == {"code": "stat", "display": "STAT"}
        assert answers["examType"] == "CT Brain (non-contrast)"
        assert answers["contrastAllergy"] is False
        assert body["completeness"]["complete"] is True
        assert body["statistics"]["alreadyFilled"] == 1
        assert body["provenance"]["patientName"] == "context"

    def test_reconcile_unknown_form_is_404(self, client):
        resp = client.post(f"{API}/forms/nope/reconcile", json={})
        assert resp.status_code == 404


# =====================================================================
# Inline and FHIR reconciliation
# =====================================================================


class TestReconcileEndpoints:

    def test_inline_schema(self, client):
        resp = client.post(
            f"{API}/reconcile",
            json={
                "schema": [
                    {"linkId": "examType", "kind": "string"},
                    {
                        "linkId": "priority",
                        "kind": "choice",
                        "options": [{"code": "routine", "display": "Routine"}, {"code": "stat", "display": "STAT"}],
                    },
                ],
                "context": {"urgency": "stat"},
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["response"] == [
            {"linkId": "examType", "answer": ""},
            {"linkId": "priority", "answer": {"code": "stat", "display": "STAT"}},
        ]
        assert body["statistics"]["autoFilled"] == 2

    def test_seeded_placeholders_are_reproducible(self, client):
        payload = {"schema": [{"linkId": "patientName", "kind": "string"}, {"linkId": "patientPhone", "kind": "string"}]}
        first = client.post(f"{API}/reconcile", json=payload).json()
        second = client.post(f"{API}/reconcile", json=payload).json()
        assert first["response"] == second["response"]

    def test_missing_schema_is_422(self, client):
        resp = client.post(f"{API}/reconcile", json={"partial": []})
        assert resp.status_code == 422

    def test_fhir_round_trip(self, client):
        questionnaire = {
            "resourceType": "Questionnaire",
            "id": "q",
            "item": [
                {"linkId": "patientName", "type": "string", "text": "Name"},
                {"linkId": "hasAllergies", "type": "boolean"},
            ],
        }
        resp = client.post(
            f"{API}/fhir/reconcile",
            json={
                "questionnaire": questionnaire,
                "questionnaireResponse": {"resourceType": "QuestionnaireResponse", "id": "qr", "item": []},
                "context": {"patientName": "Jane Doe"},
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        items = body["questionnaireResponse"]["item"]
        assert items[0] == {"linkId": "patientName", "text": "Name", "answer": [{"valueString": "Jane Doe"}]}
        assert items[1]["answer"] == [{"valueBoolean": False}]
        assert body["statistics"]["autoFilled"] == 2

    def test_fhir_malformed_input_degrades(self, client):
        resp = client.post(f"{API}/fhir/reconcile", json={"questionnaire": {"resourceType": "Patient"}})
        assert resp.status_code == 200
        assert resp.json()["statistics"]["warnings"]


# =====================================================================
# Settings
# =====================================================================


class TestSettings:

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SERVER_PORT", "9000")
        monkeypatch.setenv("SERVER_CORS_ORIGINS", "http://a.test, http://b.test")
        monkeypatch.setenv("SERVER_LOG_LEVEL", "debug")
        monkeypatch.setenv("PLACEHOLDER_SEED", "7")
        settings = load_settings()

        assert settings.port == 9000
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.log_level == "DEBUG"
        assert settings.placeholder_seed == 7

    def test_defaults(self, monkeypatch):
        for name in ("SERVER_PORT", "SERVER_FORMS_DIR", "PLACEHOLDER_SEED"):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.port == 8080
        assert settings.forms_dir is None
        assert settings.placeholder_seed is None
