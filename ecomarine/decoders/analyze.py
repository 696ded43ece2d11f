"""AnalyzeResponseDecoder — the JSON ``/analyze`` endpoint's answer.

Expected raw format:
{
    "pollution_level": "kirli",
    "confidence": 82,
    "risk_score": 5.7,
    "recommendations": ["..."],
    "analysis_data": {"ai_model": "EcoMarineAI-v1.0", ...}
}
"""

from __future__ import annotations

from typing import Any

from ecomarine.decoders.base import ResponseDecoder
from ecomarine.decoders.common import finish_classification, parse_confidence, parse_level
from ecomarine.domain.records import Classification


class AnalyzeResponseDecoder(ResponseDecoder):
    """Maps ``{pollution_level, confidence, ...}`` bodies to Classifications."""

    @property
    def format_name(self) -> str:
        return "analyze"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return "pollution_level" in raw or "label" in raw

    def decode(self, raw: dict[str, Any]) -> Classification:
        level = parse_level(raw.get("pollution_level", raw.get("label")))
        confidence = parse_confidence(raw.get("confidence"))

        recommendations = raw.get("recommendations")
        if recommendations is not None and not isinstance(recommendations, list):
            raise ValueError("'recommendations' must be a list")

        analysis_data = raw.get("analysis_data")
        if analysis_data is not None and not isinstance(analysis_data, dict):
            raise ValueError("'analysis_data' must be an object")

        return finish_classification(
            level,
            confidence,
            risk_score=raw.get("risk_score"),
            recommendations=recommendations,
            analysis_data=analysis_data,
        )
