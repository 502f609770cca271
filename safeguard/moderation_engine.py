"""
Gemini Moderation Engine

Sends text and/or an image to Google's Gemini API with a fixed moderation
instruction and a strict response schema, and returns the parsed verdict.
"""

import asyncio
import base64
import json
import logging
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from safeguard.models import AnalysisContent

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTION = """You are a world-class AI Content Moderator and Forensic Linguist. 
Analyze the input (text and/or image) for potential safety violations.

CATEGORIES TO EVALUATE:
1. Hate Speech: Attacks on protected groups.
2. Harassment: Targeted bullying or sexual advances.
3. Sexually Explicit: Gratuitous or non-consensual sexual content.
4. Dangerous Content: Promotion of self-harm, violence, or illegal acts.
5. Toxicity: General rudeness or inflammatory language.
6. Insult: Targeted disparagement.

DIRECTIONS:
- Identify the language and provide cultural context.
- Toxicity scores must be 0.0 to 1.0.
- Extract the exact problematic phrases (tokens) in their original language.
- Recommendation: "ALLOW" (0-0.39), "FLAG" (0.4-0.69), "BLOCK" (0.7-1.0).
- Reasoning must be concise and objective.

YOU MUST RETURN VALID JSON."""

IMAGE_INSTRUCTION = "Examine this image for visual abuse or embedded text that violates safety policies."

# Uploaded images are always forwarded under this MIME type
IMAGE_MIME_TYPE = "image/jpeg"

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "overallScore": types.Schema(type=types.Type.NUMBER, description="Normalized score 0-1"),
        "metrics": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "category": types.Schema(type=types.Type.STRING),
                    "score": types.Schema(type=types.Type.NUMBER),
                },
                required=["category", "score"],
            ),
        ),
        "reasoning": types.Schema(type=types.Type.STRING),
        "flaggedPhrases": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
        ),
        "recommendation": types.Schema(type=types.Type.STRING, enum=["ALLOW", "FLAG", "BLOCK"]),
        "detectedLanguage": types.Schema(type=types.Type.STRING),
    },
    required=[
        "overallScore", "metrics", "reasoning",
        "flaggedPhrases", "recommendation", "detectedLanguage"
    ],
)


class ModerationEngineError(Exception):
    """Raised when the model does not produce a usable response."""


def _reject_constant(name: str):
    # Strict JSON has no NaN or Infinity
    raise ValueError(f"Invalid JSON value in model output: {name}")


def decode_data_url(data_url: str) -> bytes:
    """
    Strip the data-URL prefix and decode the base64 payload.

    Raises:
        ValueError: If the string is not a data URL or the payload is not valid base64
    """
    _, sep, payload = data_url.partition(",")
    if not sep:
        raise ValueError("Image must be a base64 data URL")
    return base64.b64decode(payload, validate=True)


class ModerationEngine:
    """Moderates content using the Gemini API."""

    def __init__(self, api_key: str, model_name: str, client: Optional[Any] = None):
        """
        Initialize Gemini API client.

        Args:
            api_key: Google Generative AI API key
            model_name: Gemini model to call
            client: Pre-built client exposing ``models.generate_content`` (used in tests)
        """
        if not api_key:
            raise ValueError("Gemini API key is required")

        self.client = client if client is not None else genai.Client(api_key=api_key)
        self.model_name = model_name
        logger.info(f"ModerationEngine initialized with model {model_name}")

    async def moderate(self, content: AnalysisContent) -> Dict[str, Any]:
        """
        Run one moderation request.

        A single attempt is made; the caller decides whether to resubmit.

        Args:
            content: Text and/or image to evaluate

        Returns:
            The model's JSON verdict, parsed but otherwise unchanged

        Raises:
            ModerationEngineError: If the model returns empty output
            ValueError: If the image is not a decodable data URL or the output is not JSON
        """
        parts = self.build_parts(content)

        # The SDK call is blocking; keep it off the event loop
        loop = asyncio.get_running_loop()
        text_out = await loop.run_in_executor(None, self._call_gemini_sync, parts)

        if not text_out:
            raise ModerationEngineError("Moderation engine failed to produce a valid response.")

        return json.loads(text_out, parse_constant=_reject_constant)

    def build_parts(self, content: AnalysisContent) -> List[types.Part]:
        """
        Build the multimodal request parts.

        Args:
            content: Text and/or image to evaluate

        Returns:
            Parts in request order: quoted text, then image data and its instruction
        """
        parts: List[types.Part] = []

        if content.text:
            parts.append(types.Part.from_text(text=f'Content for moderation: "{content.text}"'))

        if content.image:
            image_bytes = decode_data_url(content.image)
            parts.append(types.Part.from_bytes(data=image_bytes, mime_type=IMAGE_MIME_TYPE))
            parts.append(types.Part.from_text(text=IMAGE_INSTRUCTION))
            logger.debug(f"Including image in Gemini request ({len(image_bytes)} bytes)")

        return parts

    def _call_gemini_sync(self, parts: List[types.Part]) -> Optional[str]:
        """
        Synchronous Gemini API call (runs in executor).

        Args:
            parts: Request parts from build_parts()

        Returns:
            Response text, or None when the model produced nothing
        """
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=[types.Content(role="user", parts=parts)],
            config=types.GenerateContentConfig(
                system_instruction=SYSTEM_INSTRUCTION,
                response_mime_type="application/json",
                response_schema=RESPONSE_SCHEMA,
            ),
        )
        return response.text
