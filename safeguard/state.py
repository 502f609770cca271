"""
Analysis State

UI state for one dashboard session: input text, optional image, the latest
verdict, and loading/error flags.
"""

import base64
import io
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from PIL import Image

from safeguard.models import AnalysisContent, AnalysisResult

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024

# Raster formats Pillow can open; SVG is not accepted
ACCEPTED_IMAGE_TYPES = [
    "png", "jpg", "jpeg", "gif", "webp", "bmp", "tif", "tiff", "ico", "avif",
]

IMAGE_TOO_LARGE_MESSAGE = "Image size exceeds 5MB limit."
UNSUPPORTED_IMAGE_MESSAGE = "Unsupported image file."
DEFAULT_ERROR_MESSAGE = "Linguistic analysis failed. Please check your connection."

IDLE = "idle"
ANALYZING = "analyzing"
RESULT_READY = "result-ready"
ERROR = "error"


class ContentAnalyzer(Protocol):
    def analyze_content(self, content: AnalysisContent) -> AnalysisResult:
        ...


def to_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode()}"


@dataclass
class AnalysisState:
    """
    State machine over idle / analyzing / result-ready / error.

    Attributes:
        text_input: Text as typed by the user
        image_preview: Attached image as a data URL
        is_analyzing: A scan request is in flight
        result: Latest verdict
        error: Latest user-visible error message
    """
    text_input: str = ""
    image_preview: Optional[str] = None
    is_analyzing: bool = False
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None

    @property
    def status(self) -> str:
        if self.is_analyzing:
            return ANALYZING
        if self.error:
            return ERROR
        if self.result is not None:
            return RESULT_READY
        return IDLE

    @property
    def can_submit(self) -> bool:
        """Whether the scan button is enabled."""
        return not self.is_analyzing and bool(self.text_input or self.image_preview)

    def attach_image(self, data: bytes, mime_type: Optional[str] = None) -> bool:
        """
        Attach an uploaded image.

        The size check runs before the bytes are decoded. On rejection the
        current preview is left untouched and ``error`` is set.

        Args:
            data: Raw file bytes
            mime_type: MIME type reported by the uploader; detected when missing

        Returns:
            True if the image was attached
        """
        if len(data) > MAX_IMAGE_BYTES:
            logger.info(f"Rejected image upload of {len(data)} bytes")
            self.error = IMAGE_TOO_LARGE_MESSAGE
            return False

        try:
            with Image.open(io.BytesIO(data)) as img:
                detected = img.format
                img.verify()
        except Exception as e:
            logger.info(f"Rejected unreadable image upload: {e}")
            self.error = UNSUPPORTED_IMAGE_MESSAGE
            return False

        if not mime_type:
            mime_type = f"image/{detected.lower()}" if detected else "image/jpeg"

        self.image_preview = to_data_url(data, mime_type)
        return True

    def remove_image(self):
        self.image_preview = None

    def clear(self):
        """Reset everything to idle."""
        self.text_input = ""
        self.image_preview = None
        self.is_analyzing = False
        self.result = None
        self.error = None

    def begin_analysis(self) -> Optional[AnalysisContent]:
        """
        Move to analyzing.

        Returns:
            The content to submit, or None when there is nothing to analyze
        """
        if not self.text_input.strip() and not self.image_preview:
            return None
        self.is_analyzing = True
        self.error = None
        return AnalysisContent(
            text=self.text_input or None,
            image=self.image_preview or None
        )

    def complete(self, result: AnalysisResult):
        self.result = result
        self.is_analyzing = False

    def fail(self, exc: Exception):
        self.error = str(exc) or DEFAULT_ERROR_MESSAGE
        self.is_analyzing = False

    def run_analysis(self, analyzer: ContentAnalyzer) -> bool:
        """
        Run one scan through the gateway and record the outcome.

        Every failure is caught here and turned into ``error``; nothing is retried.

        Returns:
            True if a result was stored
        """
        content = self.begin_analysis()
        if content is None:
            return False
        return self.resolve(analyzer, content)

    def resolve(self, analyzer: ContentAnalyzer, content: AnalysisContent) -> bool:
        """Send content prepared by begin_analysis() and record the outcome."""
        try:
            result = analyzer.analyze_content(content)
        except Exception as e:
            logger.warning(f"Analysis failed: {e}")
            self.fail(e)
            return False

        self.complete(result)
        return True
