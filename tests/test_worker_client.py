# tests/test_worker_client.py
import json

import httpx
import pytest

from bcalm.services.analysis_worker import AnalysisWorkerClient

def _client(test_settings, handler, **overrides):
    cfg = test_settings.model_copy(update={"ANALYSIS_WEBHOOK_URL": "http://worker.test/analyze", **overrides})
    return AnalysisWorkerClient(cfg, transport=httpx.MockTransport(handler))

@pytest.mark.asyncio
async def test_dispatch_posts_json(test_settings):
    captured = []

    def handler(request):
        captured.append(request)
        return httpx.Response(200, json={"ok": True})

    client = _client(test_settings, handler)
    assert client.configured is True
    await client.dispatch({"jobId": "j1", "cvText": "hello"})

    assert len(captured) == 1
    req = captured[0]
    assert req.method == "POST"
    assert json.loads(req.content) == {"jobId": "j1", "cvText": "hello"}
    assert req.headers["content-type"] == "application/json"
    assert "authorization" not in req.headers

@pytest.mark.asyncio
async def test_dispatch_sends_api_key(test_settings):
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(204)

    await _client(test_settings, handler, ANALYSIS_WEBHOOK_API_KEY="k-123").dispatch({"jobId": "j"})
    assert seen["auth"] == "Bearer k-123"

@pytest.mark.asyncio
async def test_dispatch_raises_on_error_status_without_retry(test_settings):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(502)

    with pytest.raises(httpx.HTTPStatusError):
        await _client(test_settings, handler).dispatch({"jobId": "j"})
    assert len(calls) == 1

@pytest.mark.asyncio
async def test_dispatch_raises_on_timeout(test_settings):
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(httpx.HTTPError):
        await _client(test_settings, handler).dispatch({"jobId": "j"})

@pytest.mark.asyncio
async def test_unconfigured_client_refuses_dispatch(test_settings):
    client = AnalysisWorkerClient(test_settings)
    assert client.configured is False
    with pytest.raises(RuntimeError):
        await client.dispatch({"jobId": "j"})
