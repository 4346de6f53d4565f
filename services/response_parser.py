"""Normalize raw LLM output into a GenerationResult.

Model output drifts between vendors and prompt revisions, so parsing is a
chain of independent parsers tried in order; the first one that returns a
result wins and the last one always succeeds.
"""
import json
import math
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

SEGMENT_MARKER = re.compile(r"\[gpt\]", re.IGNORECASE)
REJECTION_PHRASES = ("invalid_content", "not a valid", "cannot process")

DEFAULT_CONFIDENCE = 0.8
PASSTHROUGH_CONFIDENCE = 0.7
EXCERPT_LENGTH = 160

RESULT_KEYS = ("valid", "title", "content", "confidence_score", "excerpt", "reason")


@dataclass
class GenerationResult:
    valid: bool
    title: str
    excerpt: str = ""
    content: str = ""
    confidence_score: Optional[float] = None
    deadline: Optional[str] = None
    prize_value: Optional[str] = None
    location: Optional[str] = None
    reason: Optional[str] = None


def _optional_str(value) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _confidence(value) -> float:
    """Coerce a model-reported score into [0, 1]; unusable values get the default."""
    if value is None or value == "" or isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    try:
        score = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if not math.isfinite(score):
        return DEFAULT_CONFIDENCE
    return min(max(score, 0.0), 1.0)


def _first_json_object(text: str) -> Optional[dict]:
    """First decodable object carrying at least one result field.

    Objects without any result field (e.g. JSON quoted inside a delimited
    article body) are skipped so the other parsers get a chance.
    """
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", text):
        try:
            parsed, _ = decoder.raw_decode(text, match.start())
        except ValueError:
            continue
        if isinstance(parsed, dict) and any(key in parsed for key in RESULT_KEYS):
            return parsed
    return None


def parse_json(text: str, fallback_title: str) -> Optional[GenerationResult]:
    parsed = _first_json_object(text)
    if parsed is None:
        return None

    valid = parsed.get("valid") is not False
    reason = _optional_str(parsed.get("reason"))
    if not valid and not reason:
        reason = "Content rejected by AI"

    return GenerationResult(
        valid=valid,
        title=_optional_str(parsed.get("title")) or fallback_title,
        excerpt=_optional_str(parsed.get("excerpt")) or "",
        content=_optional_str(parsed.get("content")) or text,
        confidence_score=_confidence(parsed.get("confidence_score")),
        deadline=_optional_str(parsed.get("deadline")),
        prize_value=_optional_str(parsed.get("prize_value")),
        location=_optional_str(parsed.get("location")),
        reason=reason,
    )


def parse_segments(text: str, fallback_title: str) -> Optional[GenerationResult]:
    """Parse ``excerpt [gpt] title [gpt] content`` output."""
    segments = [s.strip() for s in SEGMENT_MARKER.split(text) if s.strip()]
    if len(segments) < 3:
        return None

    return GenerationResult(
        valid=True,
        excerpt=segments[0][:EXCERPT_LENGTH],
        title=segments[1] or fallback_title,
        content=segments[2],
        confidence_score=DEFAULT_CONFIDENCE,
    )


def parse_rejection(text: str, fallback_title: str) -> Optional[GenerationResult]:
    lowered = text.lower()
    if any(phrase in lowered for phrase in REJECTION_PHRASES):
        return GenerationResult(
            valid=False,
            title=fallback_title,
            reason="Content not suitable for processing",
        )
    return None


def parse_passthrough(text: str, fallback_title: str) -> GenerationResult:
    return GenerationResult(
        valid=True,
        title=fallback_title,
        content=text,
        confidence_score=PASSTHROUGH_CONFIDENCE,
    )


PARSERS: List[Callable[[str, str], Optional[GenerationResult]]] = [
    parse_json,
    parse_segments,
    parse_rejection,
    parse_passthrough,
]


def parse_ai_response(text: str, fallback_title: str) -> GenerationResult:
    """Interpret raw model output; never raises."""
    text = text or ""
    for parser in PARSERS:
        result = parser(text, fallback_title)
        if result is not None:
            return result
    return parse_passthrough(text, fallback_title)
