"""
Structural Density and Density Gradient
=======================================

Density: how many reflections sit in a reflection's neighborhood.
    density(x) = |N(x)|
    An absolute count. Never normalized, ranked or labelled.

Gradient: how much density varies across a neighborhood.
    gradient(x) = mean_{y ∈ N(x)} |density(x) - density(y)|
    Unsigned magnitude only; 0 for an isolated reflection.

Each is a separate immutable value produced by its own function. Neither
reads or alters the other's intermediate state.
"""

from typing import Dict, Optional, Tuple
from dataclasses import dataclass, field

import numpy as np

from .neighborhood import NeighborhoodIndex


@dataclass(frozen=True, eq=False)
class DensityMap:
    reflections: Tuple[str, ...] = ()
    densities: Dict[str, int] = field(default_factory=dict)
    session_id: str = ""
    created_at: Optional[str] = None


@dataclass(frozen=True, eq=False)
class DensityGradient:
    reflections: Tuple[str, ...] = ()
    gradients: Dict[str, float] = field(default_factory=dict)
    session_id: str = ""
    created_at: Optional[str] = None


def compute_density_map(index: NeighborhoodIndex) -> DensityMap:
    densities = {
        rid: len(index.neighborhoods.get(rid, frozenset()))
        for rid in index.reflections
    }
    return DensityMap(
        reflections=index.reflections,
        densities=densities,
        session_id=index.session_id,
        created_at=index.created_at,
    )


def compute_density_gradient(index: NeighborhoodIndex, density_map: DensityMap) -> DensityGradient:
    """
    Mean absolute density difference between each reflection and its
    neighbors. Missing density entries count as 0.
    """
    gradients: Dict[str, float] = {}
    for rid in index.reflections:
        own = density_map.densities.get(rid, 0)
        # chronological order keeps the float sum order fixed
        neighbors = [n for n in index.reflections if n in index.neighborhoods.get(rid, frozenset())]
        if not neighbors:
            gradients[rid] = 0.0
            continue
        diffs = np.array([abs(own - density_map.densities.get(n, 0)) for n in neighbors], dtype=float)
        gradients[rid] = float(diffs.mean())

    return DensityGradient(
        reflections=index.reflections,
        gradients=gradients,
        session_id=index.session_id,
        created_at=index.created_at,
    )
