"""
Schema and Configuration
========================

Input record shape, configuration dictionary and the shared helpers every
stage uses to read reflections (soft-delete filter, timestamp parsing,
chronological ordering).

Reflections are owned by the host application. The pipeline only reads them.
"""

from typing import Any, Dict, List, Optional, Tuple, TypedDict, Union
from datetime import datetime, timezone


# =============================================================================
# Input Records
# =============================================================================

class _ReflectionRequired(TypedDict):
    id: str
    created_at: Union[str, datetime]
    plaintext: str


class ReflectionRecord(_ReflectionRequired, total=False):
    """
    One journal entry as provided by the storage/sync layer.

    ``deleted_at`` marks a soft-deleted record; such records are excluded
    from every stage.
    """
    deleted_at: Optional[Union[str, datetime]]


# =============================================================================
# Configuration
# =============================================================================

DISTANCE_METHODS = ("dijkstra", "csgraph")


class Config(TypedDict):
    divergence_threshold: float
    distance_threshold: float
    novelty_threshold: float
    distance_method: str


def default_config() -> Config:
    """
    Default pipeline configuration.

    Returns
    -------
    Config with:
        divergence_threshold : minimum divergence for a lineage link (0.2)
        distance_threshold : maximum distance for a neighbor (0.5)
        novelty_threshold : minimum novelty score to reinforce (0.4)
        distance_method : "dijkstra" (reference) or "csgraph" (scipy)
    """
    return {
        "divergence_threshold": 0.2,
        "distance_threshold": 0.5,
        "novelty_threshold": 0.4,
        "distance_method": "dijkstra",
    }


def validate_config(config: Dict[str, Any]) -> Config:
    """Fill missing keys from the defaults and reject invalid values."""
    merged = default_config()
    merged.update(config)

    for key in ("divergence_threshold", "distance_threshold", "novelty_threshold"):
        value = merged[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{key} must be a number, got {value!r}")
        if value < 0:
            raise ValueError(f"{key} must be non-negative, got {value}")

    if merged["distance_method"] not in DISTANCE_METHODS:
        raise ValueError(
            f"distance_method must be one of {DISTANCE_METHODS}, "
            f"got {merged['distance_method']!r}"
        )

    return merged


# =============================================================================
# Record Helpers
# =============================================================================

def is_live(record: ReflectionRecord) -> bool:
    """A record is live unless it carries a deletion timestamp."""
    return not record.get("deleted_at")


def live_reflections(records: List[ReflectionRecord]) -> List[ReflectionRecord]:
    return [r for r in records if is_live(r)]


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO-8601 timestamp (``Z`` suffix accepted).

    Naive datetimes are treated as UTC so that mixed inputs still compare.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Invalid timestamp: {value!r}") from exc
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def chronological_key(record: ReflectionRecord) -> Tuple[datetime, str]:
    # id breaks ties so equal timestamps still order deterministically
    return parse_timestamp(record["created_at"]), record["id"]


def sort_chronologically(records: List[ReflectionRecord]) -> List[ReflectionRecord]:
    return sorted(records, key=chronological_key)


def format_timestamp(value: Union[str, datetime]) -> str:
    if isinstance(value, str):
        return value
    return value.isoformat()


def latest_timestamp(records: List[ReflectionRecord]) -> Optional[str]:
    """ISO timestamp of the most recent live record, or None when empty."""
    live = live_reflections(records)
    if not live:
        return None
    return format_timestamp(max(live, key=chronological_key)["created_at"])
