"""
Emergence Presence Marker
=========================

Passive record that emergence is present in the current session. It is a
verbatim copy of the boundary detector's result: no recomputation, no new
thresholds, no response.

The witness channel (reflection_lineage.witness) depends on this module and
nothing else.
"""

from typing import Optional
from dataclasses import dataclass

from .emergence import EmergenceBoundaryState


@dataclass(frozen=True)
class PresenceMarker:
    is_present: bool
    session_id: str = ""
    created_at: Optional[str] = None


def mark_emergence_presence(state: EmergenceBoundaryState) -> PresenceMarker:
    return PresenceMarker(
        is_present=state.is_emergent,
        session_id=state.session_id,
        created_at=state.created_at,
    )
