"""Integration tests for deckflow.api.main — FastAPI REST API endpoints.

All tests use the FastAPI TestClient with a mocked completion client so that
no network access occurs.  Tests cover every endpoint:

- ``POST /preview-ppt`` — Slide outline generation.
- ``POST /generate-mermaid`` — Mermaid diagram generation.
- ``GET /health`` — Liveness probe.
- ``GET /api-docs`` — OpenAPI documentation.

Disconnect handling is exercised directly through ``_run_while_connected``.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from deckflow.api.main import _run_while_connected, create_app
from deckflow.core.errors import ShapeMismatch
from deckflow.core.pipeline import outline_use_case, run_pipeline

SOLAR = "Create a presentation about solar energy benefits"

# ---------------------------------------------------------------------------
# Outline endpoint tests.
# ---------------------------------------------------------------------------


class TestPreviewPpt:
    """Test POST /preview-ppt — slide outline generation."""

    def test_success(self, test_client, mock_client, make_completion, sample_slides_json, sample_slides):
        """Four well-formed slides come back unchanged and in order."""
        mock_client.chat.completions.create.return_value = make_completion(sample_slides_json)
        resp = test_client.post("/preview-ppt", json={"requirements": SOLAR, "slideCount": 4})
        assert resp.status_code == 200
        assert resp.json() == {"slides": sample_slides}

    def test_short_requirements(self, test_client, mock_client):
        resp = test_client.post("/preview-ppt", json={"requirements": "short"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Requirements must be a string with at least 10 characters"}
        mock_client.chat.completions.create.assert_not_called()

    @pytest.mark.parametrize(
        "field,value,label",
        [("slideCount", 5, "Slide count"), ("tone", "angry", "Tone"), ("audience", "pets", "Audience")],
    )
    def test_invalid_option(self, test_client, field, value, label):
        resp = test_client.post("/preview-ppt", json={"requirements": SOLAR, field: value})
        assert resp.status_code == 400
        assert resp.json()["error"].startswith(f"{label} must be one of:")

    def test_invalid_json_body(self, test_client):
        resp = test_client.post(
            "/preview-ppt",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Request body must be valid JSON"}

    def test_shape_mismatch(self, test_client, mock_client, make_completion, sample_slides):
        mock_client.chat.completions.create.return_value = make_completion(
            json.dumps(sample_slides + [sample_slides[0]])
        )
        resp = test_client.post("/preview-ppt", json={"requirements": SOLAR, "slideCount": 4})
        assert resp.status_code == 500
        assert "expected 4, got 5" in resp.json()["error"]

    def test_malformed_output_hides_raw_text(self, test_client, mock_client, make_completion):
        mock_client.chat.completions.create.return_value = make_completion("I cannot do that, Dave.")
        resp = test_client.post("/preview-ppt", json={"requirements": SOLAR})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to parse slide data"}
        assert "Dave" not in resp.text

    def test_upstream_timeout(self, test_client, mock_client):
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        mock_client.chat.completions.create.side_effect = openai.APITimeoutError(request=request)
        resp = test_client.post("/preview-ppt", json={"requirements": SOLAR})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to reach the language model"}

    def test_upstream_auth_error_not_leaked(self, test_client, mock_client):
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        mock_client.chat.completions.create.side_effect = openai.AuthenticationError(
            "bad key sk-or-v1-secret",
            response=httpx.Response(401, request=request),
            body=None,
        )
        resp = test_client.post("/preview-ppt", json={"requirements": SOLAR})
        assert resp.status_code == 500
        assert "sk-or-v1-secret" not in resp.text

    def test_referer_header_from_config(self, test_client, mock_client, make_completion, sample_slides_json):
        mock_client.chat.completions.create.return_value = make_completion(sample_slides_json)
        test_client.post("/preview-ppt", json={"requirements": SOLAR, "slideCount": 4})
        headers = mock_client.chat.completions.create.call_args.kwargs["extra_headers"]
        assert headers["HTTP-Referer"] == "http://testserver"


# ---------------------------------------------------------------------------
# Diagram endpoint tests.
# ---------------------------------------------------------------------------


class TestGenerateMermaid:
    """Test POST /generate-mermaid — diagram generation."""

    def test_success_strips_fence(self, test_client, mock_client, make_completion):
        mock_client.chat.completions.create.return_value = make_completion(
            "```mermaid\ngraph TD\n  A[Start] --> B[End]\n```"
        )
        resp = test_client.post(
            "/generate-mermaid",
            json={"requirements": "Create a flowchart for a user login process"},
        )
        assert resp.status_code == 200
        assert resp.json() == {"mermaidCode": "graph TD\n  A[Start] --> B[End]"}

    def test_missing_requirements(self, test_client):
        resp = test_client.post("/generate-mermaid", json={})
        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_empty_answer(self, test_client, mock_client, make_completion):
        mock_client.chat.completions.create.return_value = make_completion("   ")
        resp = test_client.post(
            "/generate-mermaid",
            json={"requirements": "Create a flowchart for a user login process"},
        )
        assert resp.status_code == 500

    def test_uses_configured_model(self, test_client, mock_client, make_completion, test_config):
        mock_client.chat.completions.create.return_value = make_completion("graph TD\n  A --> B")
        test_client.post(
            "/generate-mermaid",
            json={"requirements": "Create a flowchart for a user login process"},
        )
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == test_config.diagram_model


# ---------------------------------------------------------------------------
# Health and docs tests.
# ---------------------------------------------------------------------------


class TestHealth:
    """Test GET /health — liveness probe."""

    def test_health(self, test_client):
        resp = test_client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert datetime.fromisoformat(data["timestamp"]).tzinfo is not None


class TestDocs:
    """Test the OpenAPI documentation."""

    def test_openapi_lists_routes(self, test_client):
        resp = test_client.get("/openapi.json")
        assert resp.status_code == 200
        paths = resp.json()["paths"]
        assert "/preview-ppt" in paths
        assert "/generate-mermaid" in paths
        assert "/health" in paths

    def test_request_bodies_documented(self, test_client):
        paths = test_client.get("/openapi.json").json()["paths"]
        outline = paths["/preview-ppt"]["post"]["requestBody"]["content"]["application/json"]["schema"]
        diagram = paths["/generate-mermaid"]["post"]["requestBody"]["content"]["application/json"]["schema"]

        assert outline["properties"]["requirements"]["minLength"] == 10
        assert outline["properties"]["slideCount"]["enum"] == [4, 6, 8]
        assert outline["properties"]["tone"]["default"] == "persuasive"
        assert "general public" in outline["properties"]["audience"]["enum"]
        assert diagram["required"] == ["requirements"]

    def test_slide_schema_documented(self, test_client):
        schemas = test_client.get("/openapi.json").json()["components"]["schemas"]
        slide = next(schema for name, schema in schemas.items() if name.split("-")[0] == "Slide")
        assert set(slide["properties"]) == {"title", "content", "layout", "notes"}

    def test_docs_page(self, test_client):
        resp = test_client.get("/api-docs")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]


# ---------------------------------------------------------------------------
# Lifecycle tests.
# ---------------------------------------------------------------------------


class TestLifecycle:
    """Injected clients are not closed by the app; owned clients are."""

    def test_injected_client_not_closed(self, test_config, mock_client):
        with TestClient(create_app(test_config, client=mock_client)):
            pass
        mock_client.close.assert_not_called()

    def test_owned_client_closed(self, test_config, monkeypatch, mock_client):
        monkeypatch.setattr("deckflow.api.main.build_client", lambda config: mock_client)
        with TestClient(create_app(test_config)):
            pass
        mock_client.close.assert_awaited_once()


# ---------------------------------------------------------------------------
# Disconnect tests.
# ---------------------------------------------------------------------------


def _fake_request(disconnected: bool) -> SimpleNamespace:
    return SimpleNamespace(
        url=SimpleNamespace(path="/preview-ppt"),
        is_disconnected=AsyncMock(return_value=disconnected),
    )


class TestDisconnect:
    """Generation is cancelled when the caller goes away."""

    def test_work_cancelled_after_disconnect(self):
        state = {"cancelled": False}

        async def slow_generation():
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                state["cancelled"] = True
                raise

        result = asyncio.run(
            _run_while_connected(_fake_request(True), slow_generation(), poll_interval=0.01)
        )
        assert result is None
        assert state["cancelled"] is True

    def test_result_returned_while_connected(self):
        async def quick_generation():
            await asyncio.sleep(0.02)
            return "deck"

        request = _fake_request(False)
        result = asyncio.run(_run_while_connected(request, quick_generation(), poll_interval=0.005))
        assert result == "deck"
        request.is_disconnected.assert_awaited()

    def test_pipeline_error_propagates(self):
        async def failing_generation():
            raise ShapeMismatch("Shape mismatch: expected 4, got 5 slides")

        with pytest.raises(ShapeMismatch):
            asyncio.run(_run_while_connected(_fake_request(False), failing_generation()))

    def test_disconnect_cancels_model_call(self, invoker, mock_client):
        """The in-flight completion request is what gets cancelled."""
        state = {"cancelled": False}

        async def hanging_create(**kwargs):
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                state["cancelled"] = True
                raise

        mock_client.chat.completions.create.side_effect = hanging_create
        work = run_pipeline({"requirements": SOLAR}, outline_use_case("m"), invoker)
        result = asyncio.run(_run_while_connected(_fake_request(True), work, poll_interval=0.01))

        assert result is None
        assert state["cancelled"] is True
