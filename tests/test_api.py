"""Tests for the redaction session endpoints.

Sessions are built with a scripted detector, so no LLM calls are made.
"""

import fitz  # PyMuPDF
import pytest
from fastapi.testclient import TestClient

from conftest import FakeDetector, detection, make_pdf_bytes, make_png
from api.main import app
from api.rate_limit import limiter
from api.storage.session_registry import SessionRegistry, session_registry
from secure_redact.errors import DetectionConfigError, DetectionRateLimitError
from secure_redact.factory import build_session
from secure_redact.models.entities import PiiCategory

API = "/api/v1"


@pytest.fixture
def detector():
    return FakeDetector(
        script={
            1: [detection("Jan", PiiCategory.NAME, (100, 100, 150, 300))],
            2: [detection("jan@example.com", PiiCategory.EMAIL, (200, 200, 250, 600))],
        }
    )


@pytest.fixture
def client(monkeypatch, detector):
    monkeypatch.setattr(limiter, "enabled", False)
    monkeypatch.setattr(
        session_registry,
        "factory",
        lambda: build_session(detector=detector, render_scale=1.0),
    )
    yield TestClient(app)
    session_registry.clear()


@pytest.fixture
def session_id(client, two_page_pdf):
    resp = client.post(
        f"{API}/sessions", files={"file": ("report.pdf", two_page_pdf, "application/pdf")}
    )
    assert resp.status_code == 201
    return resp.json()["session_id"]


class TestCreateSession:
    def test_returns_pages(self, client, two_page_pdf):
        resp = client.post(
            f"{API}/sessions",
            files={"file": ("report.pdf", two_page_pdf, "application/pdf")},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["filename"] == "report.pdf"
        assert [p["page_number"] for p in body["pages"]] == [1, 2]
        assert body["pages"][1]["orientation"] == "landscape"
        assert body["state"]["kind"] == "idle"
        assert body["mark_count"] == 0
        assert body["settings"]["categories"] == ["NAME", "SURNAME", "NATIONAL_ID", "EMAIL"]

    def test_rejects_wrong_extension(self, client):
        resp = client.post(
            f"{API}/sessions", files={"file": ("photo.png", make_png(5, 5), "image/png")}
        )
        assert resp.status_code == 400

    def test_rejects_non_pdf_content(self, client):
        resp = client.post(
            f"{API}/sessions", files={"file": ("fake.pdf", make_png(5, 5), "application/pdf")}
        )
        assert resp.status_code == 400
        assert len(session_registry) == 0

    def test_page_image(self, client, session_id):
        resp = client.get(f"{API}/sessions/{session_id}/pages/1/image")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/png"
        assert client.get(f"{API}/sessions/{session_id}/pages/9/image").status_code == 404

    def test_unknown_session(self, client):
        assert client.get(f"{API}/sessions/deadbeef").status_code == 404

    def test_replace_document_resets_marks(self, client, session_id):
        client.post(f"{API}/sessions/{session_id}/run")
        resp = client.put(
            f"{API}/sessions/{session_id}/document",
            files={"file": ("other.pdf", make_pdf_bytes((100, 100)), "application/pdf")},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["filename"] == "other.pdf"
        assert len(body["pages"]) == 1
        assert body["mark_count"] == 0

    def test_delete_session(self, client, session_id):
        assert client.delete(f"{API}/sessions/{session_id}").status_code == 204
        assert client.get(f"{API}/sessions/{session_id}").status_code == 404


class TestSettings:
    def test_put_settings(self, client, session_id):
        resp = client.put(
            f"{API}/sessions/{session_id}/settings",
            json={"categories": ["EMAIL", "NAME"], "custom_keywords": ["Acme", "  "]},
        )
        assert resp.status_code == 200
        assert resp.json() == {"categories": ["NAME", "EMAIL"], "custom_keywords": ["Acme"]}

    def test_toggle_category(self, client, session_id):
        url = f"{API}/sessions/{session_id}/categories/PHONE/toggle"
        assert "PHONE" in client.post(url).json()["categories"]
        assert "PHONE" not in client.post(url).json()["categories"]

    def test_keywords(self, client, session_id):
        url = f"{API}/sessions/{session_id}/keywords"
        client.post(url, json={"keyword": "Acme"})
        client.post(url, json={"keyword": "Acme"})
        assert client.post(url, json={"keyword": "   "}).status_code == 400

        resp = client.delete(f"{url}/Acme")
        assert resp.json()["custom_keywords"] == []

    def test_keywords_reach_detector(self, client, session_id, detector):
        client.post(f"{API}/sessions/{session_id}/keywords", json={"keyword": "Acme"})
        client.post(f"{API}/sessions/{session_id}/run")
        assert all(keywords == ["Acme"] for _, keywords in detector.requests)


class TestRun:
    def test_run_returns_marks_with_overlay(self, client, session_id):
        resp = client.post(f"{API}/sessions/{session_id}/run")
        assert resp.status_code == 200
        body = resp.json()
        assert body["mark_count"] == 2
        first = body["marks"][0]
        assert first["page_number"] == 1
        assert first["confidence"] == 0.9
        assert first["overlay"] == {"top": 10.0, "left": 10.0, "height": 5.0, "width": 20.0}

    def test_rate_limit_maps_to_429_and_keeps_marks(self, client, session_id, detector):
        client.post(f"{API}/sessions/{session_id}/run")
        detector.script[2] = DetectionRateLimitError("slow down")

        resp = client.post(f"{API}/sessions/{session_id}/run")

        assert resp.status_code == 429
        assert len(client.get(f"{API}/sessions/{session_id}/marks").json()["marks"]) == 2
        state = client.get(f"{API}/sessions/{session_id}").json()
        assert state["state"]["kind"] == "failed"
        assert state["error"] == "slow down"

    def test_config_error_maps_to_503(self, client, session_id, detector):
        detector.script[1] = DetectionConfigError("no key")
        assert client.post(f"{API}/sessions/{session_id}/run").status_code == 503

    def test_abort_accepted(self, client, session_id):
        assert client.post(f"{API}/sessions/{session_id}/abort").status_code == 202


class TestMarks:
    def test_filter_and_remove(self, client, session_id):
        client.post(f"{API}/sessions/{session_id}/run")
        url = f"{API}/sessions/{session_id}/marks"

        page_two = client.get(url, params={"page": 2}).json()["marks"]
        assert [m["category"] for m in page_two] == ["EMAIL"]
        names = client.get(url, params={"category": ["NAME"]}).json()["marks"]
        assert [m["source_text"] for m in names] == ["Jan"]

        assert client.delete(f"{url}/{names[0]['id']}").status_code == 204
        # removing again is a no-op
        assert client.delete(f"{url}/{names[0]['id']}").status_code == 204
        assert len(client.get(url).json()["marks"]) == 1

        assert client.delete(url).json() == {"removed": 1}


class TestExport:
    def test_download(self, client, session_id):
        client.post(f"{API}/sessions/{session_id}/run")
        resp = client.get(f"{API}/sessions/{session_id}/export")

        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        assert "report_redacted.pdf" in resp.headers["content-disposition"]
        with fitz.open(stream=resp.content, filetype="pdf") as doc:
            assert doc.page_count == 2
            assert len(doc[0].get_drawings()) == 1


class TestSessionRegistry:
    def test_evicts_oldest(self):
        registry = SessionRegistry(
            factory=lambda: build_session(detector=FakeDetector()), max_sessions=2
        )
        first = registry.create()
        registry.create()
        registry.create()
        assert len(registry) == 2
        assert registry.get(first.session_id) is None
