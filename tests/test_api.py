"""Tests for the HTTP API.

The app runs through ``TestClient`` (lifespan included); the orchestrator and
converter on ``app.state`` are swapped for ones backed by stubs so no external
service is contacted.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from backend.api.app import create_app
from backend.config import settings
from backend.converter.pipeline import MarkdownConverter
from backend.crawler.orchestrator import CrawlOrchestrator


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _firecrawl_stub(records: list[dict] | None = None, status: str = "completed") -> MagicMock:
    stub = MagicMock()
    stub.start_crawl = AsyncMock(return_value="job-1")
    stub.get_crawl_status = AsyncMock(return_value={"status": status, "data": records or []})
    stub.get_next = AsyncMock(return_value={"data": []})
    return stub


def _record(n: int) -> dict:
    return {
        "markdown": f"raw {n}",
        "metadata": {"title": f"Page {n}", "sourceURL": f"https://docs.example.com/{n}"},
    }


def _llm(*outputs) -> MagicMock:
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=list(outputs))
    return llm


def _install(client: TestClient, firecrawl: MagicMock, llm: MagicMock) -> None:
    client.app.state.orchestrator = CrawlOrchestrator(firecrawl, poll_interval=0)
    client.app.state.converter = MarkdownConverter(llm=llm, delay=0)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    app = create_app()
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# POST /api/crawl-and-convert
# ---------------------------------------------------------------------------

class TestCrawlAndConvert:
    def test_success(self, client: TestClient) -> None:
        firecrawl = _firecrawl_stub([_record(1), _record(2)])
        _install(client, firecrawl, _llm(SimpleNamespace(content="# One"), SimpleNamespace(content="# Two")))

        resp = client.post("/api/crawl-and-convert", json={"url": "https://docs.example.com"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["totalPages"] == 2
        assert body["sourceUrl"] == "https://docs.example.com"
        assert body["results"][0] == {
            "title": "Page 1",
            "url": "https://docs.example.com/1",
            "originalContent": "raw 1",
            "markdown": "# One",
        }
        firecrawl.start_crawl.assert_awaited_once_with("https://docs.example.com")

    def test_partial_failure_still_200(self, client: TestClient) -> None:
        _install(
            client,
            _firecrawl_stub([_record(1), _record(2)]),
            _llm(RuntimeError("boom"), SimpleNamespace(content="# Two")),
        )
        resp = client.post("/api/crawl-and-convert", json={"url": "https://docs.example.com"})

        assert resp.status_code == 200
        results = resp.json()["results"]
        assert "Error:" in results[0]["markdown"]
        assert results[1]["markdown"] == "# Two"

    def test_missing_url_is_400(self, client: TestClient) -> None:
        resp = client.post("/api/crawl-and-convert", json={})
        assert resp.status_code == 400
        assert resp.json() == {
            "error": "URL is required",
            "category": "validation",
            "message": "Please provide a valid documentation URL",
            "retryable": False,
        }

    def test_ftp_url_is_400_without_crawling(self, client: TestClient) -> None:
        firecrawl = _firecrawl_stub([_record(1)])
        _install(client, firecrawl, _llm())

        resp = client.post("/api/crawl-and-convert", json={"url": "ftp://example.com"})

        assert resp.status_code == 400
        assert resp.json()["category"] == "validation"
        firecrawl.start_crawl.assert_not_called()

    def test_malformed_body_is_400(self, client: TestClient) -> None:
        resp = client.post(
            "/api/crawl-and-convert",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json()["category"] == "validation"

    def test_empty_crawl_is_422(self, client: TestClient) -> None:
        _install(client, _firecrawl_stub([]), _llm())
        resp = client.post("/api/crawl-and-convert", json={"url": "https://docs.example.com"})

        assert resp.status_code == 422
        body = resp.json()
        assert body["category"] == "no_content"
        assert body["stage"] == "crawl"

    def test_crawl_failure_is_500_with_stage(self, client: TestClient) -> None:
        firecrawl = _firecrawl_stub()
        firecrawl.start_crawl = AsyncMock(side_effect=RuntimeError("403 Forbidden"))
        _install(client, firecrawl, _llm())

        resp = client.post("/api/crawl-and-convert", json={"url": "https://docs.example.com"})

        assert resp.status_code == 500
        assert resp.json() == {
            "error": "Crawl failed",
            "category": "forbidden",
            "message": "Access denied. The website blocks automated crawling.",
            "retryable": False,
            "stage": "crawl",
        }

    def test_missing_llm_key_is_conversion_auth(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "llm_provider", "openai")
        monkeypatch.setattr(settings, "openai_api_key", "")
        client.app.state.orchestrator = CrawlOrchestrator(_firecrawl_stub([_record(1)]), poll_interval=0)
        client.app.state.converter = MarkdownConverter(delay=0)

        resp = client.post("/api/crawl-and-convert", json={"url": "https://docs.example.com"})

        assert resp.status_code == 500
        assert resp.json()["category"] == "auth"
        assert resp.json()["stage"] == "conversion"


# ---------------------------------------------------------------------------
# Health, 404, UI
# ---------------------------------------------------------------------------

class TestMisc:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["version"] == settings.app_version
        assert body["environment"] == settings.environment
        assert "timestamp" in body

    def test_unknown_route_is_404(self, client: TestClient) -> None:
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.json() == {
            "error": "Not found",
            "message": "The requested resource was not found",
        }

    def test_index_serves_ui(self, client: TestClient) -> None:
        resp = client.get("/")
        assert resp.status_code == 200
        assert "DocForge" in resp.text

    def test_production_sets_security_headers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "environment", "production")
        with TestClient(create_app()) as c:
            resp = c.get("/api/health")
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert resp.headers["X-Content-Type-Options"] == "nosniff"

    def test_production_unhandled_error_keeps_headers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "environment", "production")
        app = create_app()

        @app.get("/api/boom")
        def boom() -> None:
            raise RuntimeError("secret detail")

        with TestClient(app, raise_server_exceptions=False) as c:
            resp = c.get("/api/boom")

        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error", "message": "Something went wrong"}
        assert resp.headers["X-Frame-Options"] == "DENY"
        assert resp.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"

    def test_development_has_no_security_headers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "environment", "development")
        with TestClient(create_app()) as c:
            resp = c.get("/api/health")
        assert "X-Frame-Options" not in resp.headers
