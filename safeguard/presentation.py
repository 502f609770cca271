"""
Presentation Rules

Color thresholds, verdict badges and report export for the dashboard.

The severity ring and the category bars use separate threshold pairs
(0.3/0.6 and 0.4/0.7). They are configured independently and must not be merged.
"""

import json
import math
import time
from dataclasses import dataclass
from typing import Dict, Optional, Union

from safeguard.models import AnalysisResult, Recommendation

EMERALD = "#10b981"
AMBER = "#fbbf24"
ROSE = "#f43f5e"

# Severity ring geometry (2 * pi * r, r = 76)
RING_CIRCUMFERENCE = 477

TEXT_REPORT_TEMPLATE = (
    "SAFEGUARD AI MODERATION REPORT\n"
    "============================\n"
    "VERDICT: {recommendation}\n"
    "SEVERITY: {severity}\n"
    "LANGUAGE: {language}\n"
    "REASONING: {reasoning}\n"
    "FLAGGED PHRASES: {phrases}"
)

EXPORT_MIME_TYPES = {
    "json": "application/json",
    "text": "text/plain",
}


@dataclass(frozen=True)
class ThresholdPalette:
    """Three-tier color scale: low <= medium_threshold < medium <= high_threshold < high."""
    medium_threshold: float
    high_threshold: float
    low_color: str = EMERALD
    medium_color: str = AMBER
    high_color: str = ROSE

    def color_for(self, score: float) -> str:
        if score > self.high_threshold:
            return self.high_color
        if score > self.medium_threshold:
            return self.medium_color
        return self.low_color


SEVERITY_RING_PALETTE = ThresholdPalette(medium_threshold=0.3, high_threshold=0.6)
CATEGORY_BAR_PALETTE = ThresholdPalette(medium_threshold=0.4, high_threshold=0.7)


@dataclass(frozen=True)
class StatusBadge:
    label: str
    background: str
    foreground: str
    border: str
    icon: str


STATUS_BADGES: Dict[str, StatusBadge] = {
    Recommendation.ALLOW.value: StatusBadge("Safe Content", "#ecfdf5", "#047857", "#d1fae5", "✅"),
    Recommendation.FLAG.value: StatusBadge("Review Required", "#fffbeb", "#b45309", "#fef3c7", "⚠️"),
    Recommendation.BLOCK.value: StatusBadge("Policy Violation", "#fff1f2", "#be123c", "#ffe4e6", "🛑"),
}


def ring_color(score: float) -> str:
    """Severity ring color for an overall score."""
    return SEVERITY_RING_PALETTE.color_for(score)


def bar_color(score: float) -> str:
    """Category bar color for a metric score."""
    return CATEGORY_BAR_PALETTE.color_for(score)


def badge_for(recommendation: str) -> StatusBadge:
    # Unknown verdicts render as ALLOW
    return STATUS_BADGES.get(recommendation, STATUS_BADGES[Recommendation.ALLOW.value])


def severity_percent(score: float) -> str:
    """Overall score as a whole percentage, e.g. 0.55 -> "55%"."""
    return f"{math.floor(score * 100 + 0.5):.0f}%"


def ring_dash_offset(score: float) -> float:
    return RING_CIRCUMFERENCE * (1 - score)


def format_number(value: Union[int, float, None]) -> str:
    """Render a number like a JavaScript string conversion (1.0 -> "1")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass
class ExportedReport:
    filename: str
    content: str
    mime_type: str


def render_text_report(result: AnalysisResult) -> str:
    return TEXT_REPORT_TEMPLATE.format(
        recommendation=result.recommendation,
        severity=format_number(result.overall_score),
        language=result.detected_language,
        reasoning=result.reasoning,
        phrases=", ".join(result.flagged_phrases),
    )


def build_export(result: AnalysisResult, fmt: str, now_ms: Optional[int] = None) -> ExportedReport:
    """
    Build a downloadable report.

    Args:
        result: Verdict to export
        fmt: "json" (pretty-printed wire JSON) or "text" (fixed template)
        now_ms: Epoch milliseconds for the filename; defaults to the current time

    Returns:
        ExportedReport named guard-report-<epoch-ms>.<fmt>
    """
    if fmt not in EXPORT_MIME_TYPES:
        raise ValueError(f"Unsupported export format: {fmt}")

    if now_ms is None:
        now_ms = int(time.time() * 1000)

    if fmt == "json":
        content = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
    else:
        content = render_text_report(result)

    return ExportedReport(
        filename=f"guard-report-{now_ms}.{fmt}",
        content=content,
        mime_type=EXPORT_MIME_TYPES[fmt],
    )
