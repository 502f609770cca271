"""
Data Models for Moderation Requests and Results

Structured data classes shared by the proxy, the client gateway and the dashboard.
Wire keys are camelCase; attribute names are snake_case.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class ContentCategory(str, Enum):
    """Risk categories the moderation model is instructed to evaluate."""
    HATE_SPEECH = "Hate Speech"
    HARASSMENT = "Harassment"
    SEXUALLY_EXPLICIT = "Sexually Explicit"
    DANGEROUS_CONTENT = "Dangerous Content"
    TOXICITY = "Toxicity"
    INSULT = "Insult"


class Recommendation(str, Enum):
    ALLOW = "ALLOW"
    FLAG = "FLAG"
    BLOCK = "BLOCK"


@dataclass
class AnalysisContent:
    """
    Content submitted for a single moderation scan.

    Attributes:
        text: Free-form text to evaluate
        image: Image encoded as a data URL (data:<mime>;base64,<payload>)
    """
    text: Optional[str] = None
    image: Optional[str] = None

    def is_empty(self) -> bool:
        return not self.text and not self.image

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the request body, omitting absent fields."""
        body: Dict[str, Any] = {}
        if self.text:
            body["text"] = self.text
        if self.image:
            body["image"] = self.image
        return body


@dataclass
class Metric:
    """One risk category and its score (0-1)."""
    category: str
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "score": self.score}


@dataclass
class AnalysisResult:
    """
    Complete verdict for one submission.

    Attributes:
        overall_score: Normalized severity (0-1)
        metrics: Per-category scores, in the order the model returned them
        reasoning: Short explanation of the verdict
        flagged_phrases: Problematic excerpts in their original language
        recommendation: ALLOW, FLAG or BLOCK
        detected_language: Language name or code reported by the model
    """
    overall_score: float
    metrics: List[Metric] = field(default_factory=list)
    reasoning: str = ""
    flagged_phrases: List[str] = field(default_factory=list)
    recommendation: str = Recommendation.ALLOW.value
    detected_language: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisResult":
        """
        Build a result from the wire shape.

        Values are taken as-is; the proxy response is trusted and not re-validated.
        """
        metrics = [
            Metric(category=m.get("category"), score=m.get("score"))
            for m in data.get("metrics") or []
        ]
        return cls(
            overall_score=data.get("overallScore"),
            metrics=metrics,
            reasoning=data.get("reasoning"),
            flagged_phrases=list(data.get("flaggedPhrases") or []),
            recommendation=data.get("recommendation"),
            detected_language=data.get("detectedLanguage"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert AnalysisResult to dictionary for JSON serialization."""
        return {
            "overallScore": self.overall_score,
            "metrics": [m.to_dict() for m in self.metrics],
            "reasoning": self.reasoning,
            "flaggedPhrases": self.flagged_phrases,
            "recommendation": self.recommendation,
            "detectedLanguage": self.detected_language
        }
