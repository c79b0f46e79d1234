"""Integration tests for the JSON-RPC tool-calling endpoint."""

import base64
import json

import pytest
from conftest import PNG_BYTES, make_judgement
from sqlalchemy.exc import OperationalError

from screensift.db.repositories import ScreenshotRepository

PNG_B64 = base64.b64encode(PNG_BYTES).decode("ascii")


async def _rpc(client, method: str, params: dict | None = None, request_id: int = 1) -> dict:
    payload = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        payload["params"] = params
    response = await client.post("/mcp", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


async def _call(client, name: str, arguments: dict | None = None) -> dict:
    body = await _rpc(client, "tools/call", {"name": name, "arguments": arguments or {}})
    return body["result"]


class TestProtocol:
    @pytest.mark.asyncio
    async def test_initialize(self, client):
        body = await _rpc(client, "initialize", {})

        assert body["jsonrpc"] == "2.0"
        assert body["id"] == 1
        assert body["result"]["serverInfo"]["name"] == "screensift-mcp"
        assert "tools" in body["result"]["capabilities"]

    @pytest.mark.asyncio
    async def test_tools_list(self, client):
        body = await _rpc(client, "tools/list")

        tools = {t["name"]: t for t in body["result"]["tools"]}
        assert set(tools) == {
            "analyze_screenshot",
            "search_screenshots",
            "cleanup_clutter",
            "get_screenshot_stats",
            "classify_screenshot",
            "extract_text",
        }
        schema = tools["analyze_screenshot"]["inputSchema"]
        assert set(schema["required"]) == {"imageData", "filename"}
        assert set(schema["properties"]) == {"imageData", "mimeType", "filename"}

    @pytest.mark.asyncio
    async def test_unknown_method(self, client):
        body = await _rpc(client, "resources/list")

        assert body["error"]["code"] == -32601

    @pytest.mark.asyncio
    async def test_unknown_tool(self, client):
        body = await _rpc(client, "tools/call", {"name": "format_disk", "arguments": {}})

        assert body["error"]["code"] == -32602

    @pytest.mark.asyncio
    async def test_invalid_arguments(self, client):
        body = await _rpc(
            client, "tools/call", {"name": "cleanup_clutter", "arguments": {"confidence_threshold": 2}}
        )

        assert body["error"]["code"] == -32602

    @pytest.mark.asyncio
    async def test_parse_error(self, client):
        response = await client.post(
            "/mcp", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.json()["error"]["code"] == -32700

    @pytest.mark.asyncio
    async def test_invalid_request(self, client):
        response = await client.post("/mcp", json={"jsonrpc": "2.0", "id": 7})

        body = response.json()
        assert body["id"] == 7
        assert body["error"]["code"] == -32600

    @pytest.mark.asyncio
    async def test_notification_has_no_body(self, client):
        response = await client.post(
            "/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"}
        )

        assert response.status_code == 202
        assert response.content == b""


class TestTools:
    @pytest.mark.asyncio
    async def test_analyze_then_search_and_stats(self, client):
        result = await _call(
            client,
            "analyze_screenshot",
            {"image_data": PNG_B64, "filename": "a.png", "mime_type": "image/png"},
        )
        assert result["isError"] is False
        assert "Screenshot analyzed successfully" in result["content"][0]["text"]

        search = await _call(client, "search_screenshots", {"category": "Dev"})
        assert search["content"][0]["text"].startswith("Found 1 screenshots:")
        assert "a.png" in search["content"][0]["text"]

        stats = await _call(client, "get_screenshot_stats")
        text = stats["content"][0]["text"]
        assert "Total Screenshots: 1" in text
        assert "Dev: 1" in text

    @pytest.mark.asyncio
    async def test_analyze_accepts_data_url(self, client, classifier):
        await _call(
            client,
            "analyze_screenshot",
            {"image_data": f"data:image/png;base64,{PNG_B64}", "filename": "a.png"},
        )

        assert classifier.calls[0][0] == PNG_BYTES
        assert classifier.calls[0][1] == "image/jpeg"

    @pytest.mark.asyncio
    async def test_invalid_base64_is_tool_error(self, client):
        result = await _call(
            client, "analyze_screenshot", {"image_data": "!!not-base64!!", "filename": "a.png"}
        )

        assert result["isError"] is True
        assert result["content"][0]["text"].startswith("analyze_screenshot failed:")

    @pytest.mark.asyncio
    async def test_cleanup_clutter_dry_run_and_execute(self, client, classifier, blob_store):
        classifier.judgements = [make_judgement(is_important=False, confidence=0.95)]
        await _call(client, "analyze_screenshot", {"image_data": PNG_B64, "filename": "a.png"})

        preview = await _call(client, "cleanup_clutter", {})
        assert preview["content"][0]["text"] == (
            "Found 1 screenshots that could be deleted:\na.png (Confidence: 0.95)"
        )
        assert len(blob_store.blobs) == 1

        executed = await _call(client, "cleanup_clutter", {"dry_run": False})
        assert executed["content"][0]["text"] == "Successfully deleted 1 clutter screenshots"
        assert blob_store.blobs == {}

    @pytest.mark.asyncio
    async def test_classify_screenshot_stores_nothing(self, client, blob_store):
        result = await _call(client, "classify_screenshot", {"image_data": PNG_B64})

        judgement = json.loads(result["content"][0]["text"])
        assert judgement["categories"] == ["Dev"]
        assert blob_store.blobs == {}

    @pytest.mark.asyncio
    async def test_extract_text(self, client):
        result = await _call(client, "extract_text", {"image_data": PNG_B64})

        assert result["content"][0]["text"] == "$ pytest"

    @pytest.mark.asyncio
    async def test_camel_case_arguments(self, client, classifier, blob_store):
        classifier.judgements = [make_judgement(is_important=False, confidence=0.95)]
        analyzed = await _call(
            client,
            "analyze_screenshot",
            {"imageData": PNG_B64, "filename": "a.png", "mimeType": "image/png"},
        )
        assert analyzed["isError"] is False
        assert classifier.calls[0][1] == "image/png"

        search = await _call(client, "search_screenshots", {"importantOnly": True})
        assert search["content"][0]["text"].startswith("Found 0 screenshots:")

        kept = await _call(client, "cleanup_clutter", {"dryRun": False, "confidenceThreshold": 0.99})
        assert kept["content"][0]["text"] == "Successfully deleted 0 clutter screenshots"

        executed = await _call(client, "cleanup_clutter", {"dryRun": False, "confidenceThreshold": 0.9})
        assert executed["content"][0]["text"] == "Successfully deleted 1 clutter screenshots"
        assert blob_store.blobs == {}

    @pytest.mark.asyncio
    async def test_database_error_is_tool_error(self, client, monkeypatch):
        async def broken_stats(self):
            raise OperationalError("SELECT count(*) FROM screenshots", {}, Exception("disk I/O error"))

        monkeypatch.setattr(ScreenshotRepository, "get_stats", broken_stats)

        body = await _rpc(client, "tools/call", {"name": "get_screenshot_stats", "arguments": {}})

        assert body["jsonrpc"] == "2.0"
        assert body["result"]["isError"] is True
        assert body["result"]["content"][0]["text"] == "get_screenshot_stats failed: internal error"
        assert "disk I/O" not in json.dumps(body)
