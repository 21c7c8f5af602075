"""
Structural Neighborhood Index
=============================

For each reflection, the unordered set of other reflections within a fixed
structural distance D. No ranking, no "closest first", no center node.

The threshold D is a fixed constant, independent of the divergence threshold
used to build the lineage graph. Symmetry follows from the symmetric matrix.
"""

from typing import Dict, FrozenSet, List, Optional, Tuple
from dataclasses import dataclass, field

import numpy as np

from .distance import DistanceMatrix


DEFAULT_DISTANCE_THRESHOLD = 0.5


@dataclass(frozen=True, eq=False)
class NeighborhoodIndex:
    reflections: Tuple[str, ...] = ()
    neighborhoods: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD
    session_id: str = ""
    created_at: Optional[str] = None


def build_neighborhood_index(
    matrix: DistanceMatrix,
    distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD,
) -> NeighborhoodIndex:
    """
    Build the neighborhood index from a distance matrix.

    Neighbors of x are the other ids y with finite d(x, y) <= threshold.
    """
    reflections = matrix.reflections
    if not reflections:
        return NeighborhoodIndex(
            distance_threshold=distance_threshold,
            session_id=matrix.session_id,
            created_at=matrix.created_at,
        )

    d = matrix.distances
    within = np.isfinite(d) & (d <= distance_threshold)
    np.fill_diagonal(within, False)

    neighborhoods = {
        rid: frozenset(reflections[j] for j in np.flatnonzero(within[i]))
        for i, rid in enumerate(reflections)
    }

    return NeighborhoodIndex(
        reflections=reflections,
        neighborhoods=neighborhoods,
        distance_threshold=distance_threshold,
        session_id=matrix.session_id,
        created_at=matrix.created_at,
    )


def get_neighbors(index: NeighborhoodIndex, reflection_id: str) -> List[str]:
    """Neighbor ids of a reflection, in chronological order of the session."""
    members = index.neighborhoods.get(reflection_id, frozenset())
    return [rid for rid in index.reflections if rid in members]


def are_neighbors(index: NeighborhoodIndex, id_a: str, id_b: str) -> bool:
    return id_b in index.neighborhoods.get(id_a, frozenset())
