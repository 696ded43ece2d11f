"""Decoder Registry — selects a response decoder for a classifier answer.

The registry holds a list of registered ResponseDecoders.  When a raw
response arrives, it iterates through decoders in registration order
and selects the first one whose can_handle() returns True.

No guessing.  A response nobody recognises is a decode failure, never
a silent "unknown" label.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from ecomarine.decoders.base import ResponseDecoder
from ecomarine.domain.records import Classification

logger = logging.getLogger(__name__)


class ClassificationError(Exception):
    """Raised when the classification service cannot produce a usable result."""


class NoDecoderFoundError(ClassificationError):
    """Raised when no registered decoder can handle a response."""


class DecodeError(ClassificationError):
    """Raised when a matched decoder fails to translate the response."""

    def __init__(self, format_name: str, reason: str) -> None:
        self.format_name = format_name
        self.reason = reason
        super().__init__(f"Decoder '{format_name}' failed: {reason}")




class DecoderRegistry:
    """Ordered decoders plus accepted/rejected counts for /api/health.

    Decoders are tried in registration order, so register the format with
    the most specific ``can_handle()`` first.
    """

    def __init__(self) -> None:
        self._decoders: list[ResponseDecoder] = []
        self._accepted: Counter[str] = Counter()
        self._rejected: Counter[str] = Counter()

    def register(self, decoder: ResponseDecoder) -> None:
        self._decoders.append(decoder)
        logger.debug("Registered decoder: %s", decoder.format_name)

    def decode(self, raw: Any) -> Classification:
        """Decode *raw* with the first decoder that recognises it.

        Raises:
            NoDecoderFoundError: *raw* is not an object, or no decoder matches.
            DecodeError: The matching decoder rejected the content.
        """
        if not isinstance(raw, dict):
            raise NoDecoderFoundError(
                f"Classifier response is {type(raw).__name__}, expected an object"
            )

        decoder = next((d for d in self._decoders if d.can_handle(raw)), None)
        if decoder is None:
            raise NoDecoderFoundError(
                f"No decoder can handle response with keys: {sorted(raw.keys())}"
            )

        name = decoder.format_name
        try:
            classification = decoder.decode(raw)
        except (ValueError, KeyError, TypeError) as exc:
            self._rejected[name] += 1
            logger.warning("Classifier response rejected by %s decoder: %s", name, exc)
            raise DecodeError(name, str(exc)) from exc
        self._accepted[name] += 1
        return classification

    @property
    def format_names(self) -> list[str]:
        return [d.format_name for d in self._decoders]

    @property
    def stats(self) -> list[dict]:
        return [
            {
                "format_name": name,
                "accepted_count": self._accepted[name],
                "rejected_count": self._rejected[name],
            }
            for name in self.format_names
        ]


def default_registry() -> DecoderRegistry:
    """Registry with every built-in decoder, most specific first."""
    from ecomarine.decoders.analyze import AnalyzeResponseDecoder
    from ecomarine.decoders.prediction import PredictionResponseDecoder

    registry = DecoderRegistry()
    registry.register(PredictionResponseDecoder())
    registry.register(AnalyzeResponseDecoder())
    return registry
