"""Tests for the Gemini moderation engine (no network; fake client)."""

import asyncio
import base64
import json

import pytest

from safeguard.models import AnalysisContent
from safeguard.moderation_engine import (
    IMAGE_INSTRUCTION,
    IMAGE_MIME_TYPE,
    SYSTEM_INSTRUCTION,
    ModerationEngine,
    ModerationEngineError,
    decode_data_url,
)


def _engine(client):
    return ModerationEngine(api_key="test-key", model_name="gemini-test", client=client)


def test_requires_api_key(fake_gemini):
    with pytest.raises(ValueError):
        ModerationEngine(api_key="", model_name="gemini-test", client=fake_gemini())


def test_text_part_is_quoted(fake_gemini):
    parts = _engine(fake_gemini()).build_parts(AnalysisContent(text="You are worthless"))
    assert len(parts) == 1
    assert parts[0].text == 'Content for moderation: "You are worthless"'


def test_image_parts(fake_gemini, png_bytes, png_data_url):
    parts = _engine(fake_gemini()).build_parts(AnalysisContent(image=png_data_url))
    assert len(parts) == 2
    assert parts[0].inline_data.mime_type == IMAGE_MIME_TYPE == "image/jpeg"
    assert parts[0].inline_data.data == png_bytes
    assert parts[1].text == IMAGE_INSTRUCTION


def test_text_then_image_order(fake_gemini, png_data_url):
    parts = _engine(fake_gemini()).build_parts(AnalysisContent(text="hello", image=png_data_url))
    assert parts[0].text.startswith("Content for moderation:")
    assert parts[1].inline_data is not None
    assert parts[2].text == IMAGE_INSTRUCTION


def test_decode_data_url():
    payload = base64.b64encode(b"abc").decode()
    assert decode_data_url(f"data:image/png;base64,{payload}") == b"abc"


@pytest.mark.parametrize("bad", ["no-comma-here", "data:image/png;base64,@@@not-base64@@@"])
def test_decode_data_url_rejects_bad_input(bad):
    with pytest.raises(ValueError):
        decode_data_url(bad)


def test_moderate_returns_parsed_json(fake_gemini, worthless_result):
    client = fake_gemini(text=json.dumps(worthless_result))
    result = asyncio.run(_engine(client).moderate(AnalysisContent(text="You are worthless")))
    assert result == worthless_result


def test_moderate_sends_schema_and_instruction(fake_gemini, worthless_result):
    client = fake_gemini(text=json.dumps(worthless_result))
    asyncio.run(_engine(client).moderate(AnalysisContent(text="hi")))

    assert len(client.calls) == 1
    call = client.calls[0]
    assert call["model"] == "gemini-test"
    config = call["config"]
    assert config.system_instruction == SYSTEM_INSTRUCTION
    assert config.response_mime_type == "application/json"
    schema = config.response_schema
    assert set(schema.required) == {
        "overallScore", "metrics", "reasoning",
        "flaggedPhrases", "recommendation", "detectedLanguage",
    }
    assert schema.properties["recommendation"].enum == ["ALLOW", "FLAG", "BLOCK"]
    assert schema.properties["metrics"].items.required == ["category", "score"]


def test_system_instruction_thresholds():
    assert '"ALLOW" (0-0.39), "FLAG" (0.4-0.69), "BLOCK" (0.7-1.0)' in SYSTEM_INSTRUCTION
    assert SYSTEM_INSTRUCTION.endswith("YOU MUST RETURN VALID JSON.")


@pytest.mark.parametrize("empty", [None, ""])
def test_empty_output_raises(fake_gemini, empty):
    engine = _engine(fake_gemini(text=empty))
    with pytest.raises(ModerationEngineError, match="failed to produce a valid response"):
        asyncio.run(engine.moderate(AnalysisContent(text="hi")))


def test_unparseable_output_raises(fake_gemini):
    engine = _engine(fake_gemini(text="definitely not json"))
    with pytest.raises(json.JSONDecodeError):
        asyncio.run(engine.moderate(AnalysisContent(text="hi")))


def test_client_error_propagates_without_retry(fake_gemini):
    client = fake_gemini(error=ConnectionError("network down"))
    with pytest.raises(ConnectionError):
        asyncio.run(_engine(client).moderate(AnalysisContent(text="hi")))
    assert len(client.calls) == 1


@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
def test_non_finite_numbers_are_rejected(fake_gemini, constant):
    engine = _engine(fake_gemini(text=f'{{"overallScore": {constant}}}'))
    with pytest.raises(ValueError, match=constant):
        asyncio.run(engine.moderate(AnalysisContent(text="hi")))
