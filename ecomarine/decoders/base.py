"""Abstract base for classification response decoders.

Decoders normalise the raw JSON bodies returned by heterogeneous
classification endpoints into the canonical Classification model.

Architectural rules:
    1. Decoders must NOT mutate the incoming payload dict.
    2. decode() must return a fully valid Classification or raise ValueError.
    3. No decoder may call storage or the network.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ecomarine.domain.records import Classification


class ResponseDecoder(ABC):
    """Base class for converting raw classifier responses into Classifications."""

    @abstractmethod
    def can_handle(self, raw: dict[str, Any]) -> bool:
        """Return True if this decoder knows how to translate *raw*.

        Must be a fast, non-destructive check (e.g. key presence).
        """
        ...

    @abstractmethod
    def decode(self, raw: dict[str, Any]) -> Classification:
        """Translate a raw response dict into a validated Classification.

        Raises:
            ValueError: If the payload cannot be normalised.
        """
        ...

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Human-readable name of the response format this decoder handles."""
        ...
