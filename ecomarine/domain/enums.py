"""Controlled enumerations for the ecomarine domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class PollutionLevel(str, Enum):
    """Classification labels a stored record may carry."""

    CLEAN = "clean"
    MODERATE = "moderate"
    POLLUTED = "polluted"
    CRITICAL = "critical"

    @property
    def is_severe(self) -> bool:
        return self in HIGH_SEVERITY_LEVELS

    @classmethod
    def parse(cls, raw: str) -> "PollutionLevel":
        """Map a classifier label (English or Turkish) onto the enum.

        Raises:
            ValueError: If the label is not recognised.
        """
        key = raw.strip().lower()
        try:
            return cls(key)
        except ValueError:
            pass
        if key in _ALIASES:
            return _ALIASES[key]
        raise ValueError(f"unknown pollution label: {raw!r}")


# Labels emitted by the original Turkish-language classifier
_ALIASES: dict[str, PollutionLevel] = {
    "temiz": PollutionLevel.CLEAN,
    "orta": PollutionLevel.MODERATE,
    "orta_kirlilik": PollutionLevel.MODERATE,
    "kirli": PollutionLevel.POLLUTED,
    "kritik": PollutionLevel.CRITICAL,
}

HIGH_SEVERITY_LEVELS: frozenset[PollutionLevel] = frozenset(
    {PollutionLevel.POLLUTED, PollutionLevel.CRITICAL}
)


class Priority(str, Enum):
    """Monitoring priority of a coastal location."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MessageType(str, Enum):
    """Tags for messages pushed over the dashboard WebSocket."""

    NEW_ANALYSIS = "new_analysis"
    SATELLITE_UPDATE = "satellite_update"


class WorkSource(str, Enum):
    """Where the ingestion cycle draws its work items from."""

    CATALOG = "catalog"
    STORAGE = "storage"
