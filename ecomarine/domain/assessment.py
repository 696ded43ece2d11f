"""Derived assessments: risk score, operator recommendations, alarm text.

Used to fill in what the classification service leaves out.  Pure
functions, no I/O.
"""

from __future__ import annotations

import math

from ecomarine.domain.enums import PollutionLevel

_BASE_RISK: dict[PollutionLevel, int] = {
    PollutionLevel.CLEAN: 1,
    PollutionLevel.MODERATE: 3,
    PollutionLevel.POLLUTED: 7,
    PollutionLevel.CRITICAL: 10,
}

_RECOMMENDATIONS: dict[PollutionLevel, tuple[str, ...]] = {
    PollutionLevel.CLEAN: (
        "Area is clean",
        "Continue routine monitoring",
        "Maintain environmental protection measures",
    ),
    PollutionLevel.MODERATE: (
        "Moderate pollution detected",
        "Close follow-up required",
        "Keep response teams on standby",
    ),
    PollutionLevel.POLLUTED: (
        "High pollution detected",
        "Immediate intervention required",
        "Notify the relevant authorities",
    ),
    PollutionLevel.CRITICAL: (
        "Critical pollution detected",
        "Deploy emergency response teams",
        "Take public health precautions",
    ),
}


def round_half_up(value: float) -> int:
    """Nearest integer with .5 going up, unlike the built-in round()."""
    return math.floor(value + 0.5)


def calculate_risk_score(level: PollutionLevel, confidence: int) -> float:
    """Base risk for the level scaled by confidence, one decimal place."""
    return round_half_up(_BASE_RISK[level] * (confidence / 100) * 10) / 10


def default_recommendations(level: PollutionLevel) -> list[str]:
    return list(_RECOMMENDATIONS[level])


def alarm_message(location: str, level: PollutionLevel, confidence: int) -> str:
    return f"{level.value.capitalize()} pollution detected at {location} ({confidence}% confidence)"
