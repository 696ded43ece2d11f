"""Field parsing shared by the response decoders."""

from __future__ import annotations

from typing import Any

from ecomarine.domain.assessment import (
    calculate_risk_score,
    default_recommendations,
    round_half_up,
)
from ecomarine.domain.enums import PollutionLevel
from ecomarine.domain.records import Classification


def parse_level(raw: Any) -> PollutionLevel:
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError("response missing classification label")
    return PollutionLevel.parse(raw)


def parse_confidence(raw: Any) -> int:
    """Accept an integer percentage, or a 0–1 fraction from probability-style models."""
    if raw is None or isinstance(raw, bool):
        raise ValueError("response missing 'confidence'")
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"non-numeric confidence: {raw!r}") from exc
    if isinstance(raw, float) and 0.0 <= value <= 1.0:
        value *= 100
    value = round_half_up(value)
    if not 0 <= value <= 100:
        raise ValueError(f"confidence out of range: {raw!r}")
    return value


def finish_classification(
    level: PollutionLevel,
    confidence: int,
    *,
    risk_score: Any = None,
    recommendations: list[Any] | None = None,
    analysis_data: dict[str, Any] | None = None,
) -> Classification:
    """Fill in derived fields the service left out and validate."""
    if risk_score is None:
        risk_score = calculate_risk_score(level, confidence)
    if not recommendations:
        recommendations = default_recommendations(level)
    return Classification(
        pollution_level=level,
        confidence=confidence,
        risk_score=float(risk_score),
        recommendations=[str(r) for r in recommendations],
        analysis_data=analysis_data,
    )
