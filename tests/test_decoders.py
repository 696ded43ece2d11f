"""Tests for classifier response decoding.

Covers decoder selection, label/confidence normalisation, derived
fields, and rejection of malformed responses.
"""

from __future__ import annotations

import pytest

from ecomarine.decoders.analyze import AnalyzeResponseDecoder
from ecomarine.decoders.prediction import PredictionResponseDecoder
from ecomarine.decoders.registry import (
    ClassificationError,
    DecodeError,
    NoDecoderFoundError,
    default_registry,
)
from ecomarine.domain.enums import PollutionLevel


def _analyze_payload(**overrides) -> dict:
    base = {
        "pollution_level": "kirli",
        "confidence": 82,
        "risk_score": 5.7,
        "recommendations": ["Immediate intervention required"],
        "analysis_data": {"ai_model": "EcoMarineAI-v1.0"},
    }
    base.update(overrides)
    return base


def _prediction_payload(label: str = "kirli", probs: dict | None = None) -> dict:
    return {"prediction": {"label": label, "probs": probs or {"temiz": 0.18, "kirli": 0.82}}}


class TestAnalyzeDecoder:
    def test_full_payload(self) -> None:
        c = AnalyzeResponseDecoder().decode(_analyze_payload())
        assert c.pollution_level == PollutionLevel.POLLUTED
        assert c.confidence == 82
        assert c.risk_score == 5.7
        assert c.recommendations == ["Immediate intervention required"]
        assert c.analysis_data == {"ai_model": "EcoMarineAI-v1.0"}

    def test_label_key_accepted(self) -> None:
        c = AnalyzeResponseDecoder().decode({"label": "polluted", "confidence": 82})
        assert c.pollution_level == PollutionLevel.POLLUTED

    def test_missing_extras_are_derived(self) -> None:
        c = AnalyzeResponseDecoder().decode({"pollution_level": "critical", "confidence": 100})
        assert c.risk_score == 10.0
        assert len(c.recommendations) == 3

    def test_fractional_confidence_becomes_percentage(self) -> None:
        c = AnalyzeResponseDecoder().decode({"pollution_level": "clean", "confidence": 0.91})
        assert c.confidence == 91

    def test_half_percentage_rounds_up(self) -> None:
        c = AnalyzeResponseDecoder().decode({"pollution_level": "clean", "confidence": 62.5})
        assert c.confidence == 63
        assert c.risk_score == 0.6

    def test_missing_confidence_rejected(self) -> None:
        with pytest.raises(ValueError):
            AnalyzeResponseDecoder().decode({"pollution_level": "clean"})

    def test_confidence_out_of_range_rejected(self) -> None:
        with pytest.raises(ValueError):
            AnalyzeResponseDecoder().decode(_analyze_payload(confidence=140))

    def test_negative_risk_score_rejected(self) -> None:
        with pytest.raises(ValueError):
            AnalyzeResponseDecoder().decode(_analyze_payload(risk_score=-1))

    def test_payload_not_mutated(self) -> None:
        payload = _analyze_payload()
        snapshot = dict(payload)
        AnalyzeResponseDecoder().decode(payload)
        assert payload == snapshot


class TestPredictionDecoder:
    def test_confidence_is_top_probability(self) -> None:
        c = PredictionResponseDecoder().decode(_prediction_payload())
        assert c.pollution_level == PollutionLevel.POLLUTED
        assert c.confidence == 82
        assert c.analysis_data["probabilities"] == {"temiz": 0.18, "kirli": 0.82}

    def test_half_probability_rounds_up(self) -> None:
        c = PredictionResponseDecoder().decode(_prediction_payload(probs={"temiz": 0.375, "kirli": 0.625}))
        assert c.confidence == 63

    def test_empty_probs_rejected(self) -> None:
        with pytest.raises(ValueError):
            PredictionResponseDecoder().decode({"prediction": {"label": "kirli", "probs": {}}})

    def test_missing_label_rejected(self) -> None:
        with pytest.raises(ValueError):
            PredictionResponseDecoder().decode({"prediction": {"probs": {"kirli": 0.9}}})


class TestRegistry:
    def test_prediction_format_selected(self) -> None:
        registry = default_registry()
        c = registry.decode(_prediction_payload("temiz", {"temiz": 0.7, "kirli": 0.3}))
        assert c.pollution_level == PollutionLevel.CLEAN
        assert c.confidence == 70

    def test_analyze_format_selected(self) -> None:
        registry = default_registry()
        c = registry.decode(_analyze_payload(pollution_level="kritik"))
        assert c.pollution_level == PollutionLevel.CRITICAL

    def test_unrecognised_response_raises(self) -> None:
        with pytest.raises(NoDecoderFoundError):
            default_registry().decode({"status": "ok"})

    def test_non_object_response_raises(self) -> None:
        with pytest.raises(NoDecoderFoundError):
            default_registry().decode(["kirli", 82])

    def test_unknown_label_is_decode_error(self) -> None:
        with pytest.raises(DecodeError) as info:
            default_registry().decode(_analyze_payload(pollution_level="unknown"))
        assert info.value.format_name == "analyze"

    def test_errors_are_classification_errors(self) -> None:
        assert issubclass(DecodeError, ClassificationError)
        assert issubclass(NoDecoderFoundError, ClassificationError)

    def test_stats_track_outcomes(self) -> None:
        registry = default_registry()
        registry.decode(_analyze_payload())
        with pytest.raises(DecodeError):
            registry.decode(_analyze_payload(confidence=None))
        stats = {s["format_name"]: s for s in registry.stats}
        assert stats["analyze"]["accepted_count"] == 1
        assert stats["analyze"]["rejected_count"] == 1
        assert stats["prediction"]["accepted_count"] == 0
