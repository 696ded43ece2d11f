"""PredictionResponseDecoder — the multipart ``/v1/predict_file`` answer.

Expected raw format:
{
    "prediction": {
        "label": "kirli",
        "probs": {"temiz": 0.18, "kirli": 0.82}
    }
}

Confidence is the highest class probability as an integer percentage.
"""

from __future__ import annotations

from typing import Any

from ecomarine.decoders.base import ResponseDecoder
from ecomarine.decoders.common import finish_classification, parse_level
from ecomarine.domain.assessment import round_half_up
from ecomarine.domain.records import Classification


class PredictionResponseDecoder(ResponseDecoder):
    """Maps ``{prediction: {label, probs}}`` bodies to Classifications."""

    @property
    def format_name(self) -> str:
        return "prediction"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return isinstance(raw.get("prediction"), dict)

    def decode(self, raw: dict[str, Any]) -> Classification:
        prediction = raw["prediction"]
        level = parse_level(prediction.get("label"))

        probs = prediction.get("probs") or {}
        if not isinstance(probs, dict) or not probs:
            raise ValueError("prediction missing 'probs'")
        try:
            best = max(float(p) for p in probs.values())
        except (TypeError, ValueError) as exc:
            raise ValueError(f"non-numeric probability in 'probs': {probs}") from exc
        if not 0.0 <= best <= 1.0:
            raise ValueError(f"probability out of range: {best}")

        return finish_classification(
            level,
            round_half_up(best * 100),
            analysis_data={"probabilities": dict(probs), "raw_label": prediction.get("label")},
        )
