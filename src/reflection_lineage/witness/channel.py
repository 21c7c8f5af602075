"""
Witness snapshot of the presence marker.

The snapshot is instantaneous: no timestamp, no session id, no wallet, no
accumulation. It is never stored and never passed back into the pipeline.
"""

from typing import Optional
from dataclasses import dataclass

from ..presence import PresenceMarker


@dataclass(frozen=True)
class WitnessSnapshot:
    witnessed: bool


def witness_emergence(marker: Optional[PresenceMarker]) -> Optional[WitnessSnapshot]:
    """
    Observe the presence marker.

    Returns None when there is no marker to observe.
    """
    if marker is None:
        return None
    return WitnessSnapshot(witnessed=marker.is_present)
