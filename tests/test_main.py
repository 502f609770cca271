"""Tests for the moderation proxy endpoints."""

import json

import pytest
from fastapi.testclient import TestClient

from safeguard.config import Settings
from safeguard.main import create_app, get_engine
from safeguard.moderation_engine import ModerationEngine, ModerationEngineError


class FakeEngine:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.received = []

    async def moderate(self, content):
        self.received.append(content)
        if self.error is not None:
            raise self.error
        return self.result


def _client(engine=None, api_key="test-key"):
    app = create_app(Settings(gemini_api_key=api_key, gemini_model="gemini-test"))
    if engine is not None:
        app.dependency_overrides[get_engine] = lambda: engine
    return TestClient(app)


def test_health():
    response = _client().get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "model": "gemini-test"}


def test_moderate_returns_model_json_verbatim(worthless_result):
    engine = FakeEngine(result=worthless_result)
    response = _client(engine).post("/api/moderate", json={"text": "You are worthless"})

    assert response.status_code == 200
    assert response.json() == worthless_result
    assert engine.received[0].text == "You are worthless"
    assert engine.received[0].image is None


def test_moderate_passes_image(worthless_result, png_data_url):
    engine = FakeEngine(result=worthless_result)
    response = _client(engine).post("/api/moderate", json={"image": png_data_url})
    assert response.status_code == 200
    assert engine.received[0].image == png_data_url


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_non_post_is_method_not_allowed(method):
    engine = FakeEngine(result={})
    response = getattr(_client(engine), method)("/api/moderate")
    assert response.status_code == 405
    assert response.json() == {"error": "Method Not Allowed"}
    assert engine.received == []


@pytest.mark.parametrize("body", [{}, {"text": ""}, {"text": None, "image": ""}])
def test_empty_content_is_rejected_without_model_call(body):
    engine = FakeEngine(result={})
    response = _client(engine).post("/api/moderate", json=body)
    assert response.status_code == 400
    assert "error" in response.json()
    assert engine.received == []


def test_malformed_body_is_rejected():
    engine = FakeEngine(result={})
    response = _client(engine).post("/api/moderate", json={"text": 123})
    assert response.status_code == 422
    assert response.json()["error"].startswith("Invalid request body")
    assert engine.received == []


def test_missing_credential_is_internal_error():
    response = _client(api_key=None).post("/api/moderate", json={"text": "hi"})
    assert response.status_code == 500
    assert response.json() == {"error": "GEMINI_API_KEY environment variable not set"}


def test_empty_model_output_is_internal_error():
    engine = FakeEngine(error=ModerationEngineError("Moderation engine failed to produce a valid response."))
    response = _client(engine).post("/api/moderate", json={"text": "hi"})
    assert response.status_code == 500
    assert response.json() == {"error": "Moderation engine failed to produce a valid response."}


def test_upstream_failure_message_is_relayed():
    engine = FakeEngine(error=ConnectionError("upstream unreachable"))
    response = _client(engine).post("/api/moderate", json={"text": "hi"})
    assert response.status_code == 500
    assert response.json() == {"error": "upstream unreachable"}


def test_failure_without_message_uses_generic_error():
    engine = FakeEngine(error=RuntimeError())
    response = _client(engine).post("/api/moderate", json={"text": "hi"})
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_unparseable_model_output_is_internal_error(fake_gemini):
    engine = ModerationEngine(api_key="k", model_name="gemini-test", client=fake_gemini(text="{not json"))
    response = _client(engine).post("/api/moderate", json={"text": "hi"})

    assert response.status_code == 500
    message = response.json()["error"]
    with pytest.raises(json.JSONDecodeError) as exc_info:
        json.loads("{not json")
    assert message == str(exc_info.value)


def test_bad_image_payload_is_internal_error(fake_gemini):
    client = fake_gemini(text="{}")
    engine = ModerationEngine(api_key="k", model_name="gemini-test", client=client)
    response = _client(engine).post("/api/moderate", json={"image": "not-a-data-url"})
    assert response.status_code == 500
    assert response.json() == {"error": "Image must be a base64 data URL"}
    assert client.calls == []


def test_engine_is_created_once_per_app(monkeypatch):
    created = []

    class RecordingEngine(FakeEngine):
        def __init__(self, api_key, model_name):
            super().__init__(result={"ok": True})
            created.append((api_key, model_name))

    monkeypatch.setattr("safeguard.main.ModerationEngine", RecordingEngine)
    client = _client(api_key="secret-key")
    client.post("/api/moderate", json={"text": "a"})
    client.post("/api/moderate", json={"text": "b"})

    assert created == [("secret-key", "gemini-test")]


def test_key_never_leaks_into_responses(worthless_result):
    client = _client(FakeEngine(result=worthless_result), api_key="super-secret")
    assert "super-secret" not in client.post("/api/moderate", json={"text": "x"}).text
    assert "super-secret" not in client.get("/health").text


@pytest.mark.parametrize("constant", ["NaN", "Infinity"])
def test_non_finite_model_output_keeps_error_body(fake_gemini, constant):
    engine = ModerationEngine(
        api_key="k", model_name="gemini-test",
        client=fake_gemini(text=f'{{"overallScore": {constant}}}')
    )
    response = _client(engine).post("/api/moderate", json={"text": "hi"})

    assert response.status_code == 500
    assert response.json() == {"error": f"Invalid JSON value in model output: {constant}"}
