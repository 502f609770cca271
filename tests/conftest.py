"""Shared fixtures for the test suite."""

import base64
import io
from types import SimpleNamespace

import pytest
from PIL import Image


class FakeGeminiClient:
    """Stands in for google.genai.Client; records generate_content calls."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []
        self.models = SimpleNamespace(generate_content=self._generate_content)

    def _generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


@pytest.fixture
def worthless_result():
    return {
        "overallScore": 0.55,
        "metrics": [{"category": "Insult", "score": 0.8}],
        "reasoning": "Direct personal insult",
        "flaggedPhrases": ["worthless"],
        "recommendation": "FLAG",
        "detectedLanguage": "English",
    }


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(255, 0, 0)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_data_url(png_bytes):
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode()


@pytest.fixture
def fake_gemini():
    """Factory for fake Gemini clients: fake_gemini(text=...) or fake_gemini(error=...)."""
    return FakeGeminiClient
