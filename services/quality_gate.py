"""Confidence threshold check for generated content."""
from dataclasses import dataclass
from typing import Optional

from services.response_parser import GenerationResult

DEFAULT_QUALITY_THRESHOLD = 0.6


@dataclass
class QualityDecision:
    accept: bool
    reason: Optional[str] = None


def decide(result: GenerationResult, threshold: Optional[float] = DEFAULT_QUALITY_THRESHOLD) -> QualityDecision:
    """Accept unless the result is invalid or strictly below the threshold."""
    if threshold is None:
        threshold = DEFAULT_QUALITY_THRESHOLD

    if not result.valid:
        return QualityDecision(accept=False, reason=result.reason or "Content rejected by AI")

    score = result.confidence_score
    if score is not None and score < threshold:
        return QualityDecision(
            accept=False,
            reason=f"Below quality threshold ({score * 100:.0f}% < {threshold * 100:.0f}%)",
        )

    return QualityDecision(accept=True)
