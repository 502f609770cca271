"""
Client for the moderation proxy.

Used by the dashboard; it never sees the Gemini key, only the proxy URL.
"""

import logging
from typing import Optional

import httpx

from safeguard.models import AnalysisContent, AnalysisResult

logger = logging.getLogger(__name__)

MODERATE_PATH = "/api/moderate"


class ModerationAPIError(Exception):
    """Non-2xx response from the moderation proxy."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Moderation API error: {status_code} {body}")


class ModerationClient:
    """Posts content to the moderation proxy and returns the verdict."""

    def __init__(self, base_url: str, http_client: Optional[httpx.Client] = None):
        """
        Args:
            base_url: Proxy base URL, e.g. http://localhost:8000
            http_client: Optional pre-configured httpx client (not closed by this object)
        """
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        # No client-side timeout: a scan waits for the proxy to answer or fail
        self._http = http_client if http_client is not None else httpx.Client(timeout=None)

    def analyze_content(self, content: AnalysisContent) -> AnalysisResult:
        """
        Submit one scan.

        Args:
            content: Text and/or image data URL

        Returns:
            AnalysisResult built from the proxy response as-is

        Raises:
            ValueError: If the content is empty (no request is made)
            ModerationAPIError: If the proxy answers with a non-2xx status
            httpx.HTTPError: On transport failures
        """
        if content.is_empty():
            raise ValueError("Nothing to analyze: provide text or an image")

        response = self._http.post(f"{self.base_url}{MODERATE_PATH}", json=content.to_dict())

        if not response.is_success:
            logger.warning(f"Moderation proxy returned {response.status_code}")
            raise ModerationAPIError(response.status_code, response.text)

        return AnalysisResult.from_dict(response.json())

    def close(self):
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "ModerationClient":
        return self

    def __exit__(self, *exc_info):
        self.close()
