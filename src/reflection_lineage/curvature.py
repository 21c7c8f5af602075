"""
Structural Curvature Index
==========================

Whether a reflection's neighborhood is locally uniform or bent.

For each reflection x with neighbor distances d_1..d_k:

    cv(x)        = Var(d) / mean(d)²        (population variance)
    curvature(x) = max(0, 0.7 · cv(x) + 0.3 · gradient(x))

cv is 0 when x has no neighbors or the mean distance is 0. Only finite
distances are used. Unsigned magnitude; no inward/outward semantics and no
global reference frame.

This is the only stage that blends two upstream derivatives (distance
non-uniformity and density gradient).
"""

from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field

import numpy as np

from .distance import DistanceMatrix
from .neighborhood import NeighborhoodIndex
from .density import DensityGradient


DISTANCE_WEIGHT = 0.7
GRADIENT_WEIGHT = 0.3


@dataclass(frozen=True, eq=False)
class CurvatureIndex:
    reflections: Tuple[str, ...] = ()
    curvatures: Dict[str, float] = field(default_factory=dict)
    session_id: str = ""
    created_at: Optional[str] = None


def coefficient_of_variation(values: List[float]) -> float:
    """Var / mean², guarded against empty input and zero mean."""
    if len(values) == 0:
        return 0.0
    arr = np.asarray(values, dtype=float)
    mean = float(arr.mean())
    if mean <= 0.0:
        return 0.0
    variance = float(((arr - mean) ** 2).mean())
    return variance / (mean * mean)


def compute_curvature_index(
    matrix: DistanceMatrix,
    index: NeighborhoodIndex,
    gradient: DensityGradient,
) -> CurvatureIndex:
    position = matrix.index
    curvatures: Dict[str, float] = {}

    for rid in index.reflections:
        members = index.neighborhoods.get(rid, frozenset())
        neighbor_distances: List[float] = []
        if rid in position:
            row = matrix.distances[position[rid]]
            for other in index.reflections:
                if other in members and other in position:
                    d = float(row[position[other]])
                    if np.isfinite(d):
                        neighbor_distances.append(d)

        cv = coefficient_of_variation(neighbor_distances)
        blended = DISTANCE_WEIGHT * cv + GRADIENT_WEIGHT * gradient.gradients.get(rid, 0.0)
        curvatures[rid] = max(0.0, blended)

    return CurvatureIndex(
        reflections=index.reflections,
        curvatures=curvatures,
        session_id=index.session_id,
        created_at=index.created_at,
    )
