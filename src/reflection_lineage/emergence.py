"""
Emergence Boundary Detection
============================

A single binary classification of the whole reflection set: is the
structure emergent or not? Emergence is detected, not encouraged.

Emergence Criteria (fixed, non-adaptive):
-----------------------------------------
CONCENTRATION:
  - >= 30% of reflections have density strictly above mean density
VARIATION:
  - mean density-gradient magnitude > 0.3
BENDING:
  - mean curvature magnitude > 0.2
CONNECTIVITY:
  - >= 40% of reflections have >= 3 neighbors

All four must hold at once. There is no partial state, no score, no
smoothing, no hysteresis and no memory of prior sessions.
"""

from typing import Optional
from dataclasses import dataclass

import numpy as np

from .neighborhood import NeighborhoodIndex
from .density import DensityMap, DensityGradient
from .curvature import CurvatureIndex


@dataclass(frozen=True)
class EmergenceBoundaryState:
    is_emergent: bool
    session_id: str = ""
    created_at: Optional[str] = None


@dataclass(frozen=True)
class EmergenceConditions:
    """Which of the four criteria held for a structure."""
    concentration: bool = False
    variation: bool = False
    bending: bool = False
    connectivity: bool = False

    @property
    def all_met(self) -> bool:
        return self.concentration and self.variation and self.bending and self.connectivity


@dataclass(frozen=True)
class EmergenceCriteria:
    """Thresholds for declaring emergence."""
    min_above_mean_density_ratio: float = 0.3
    min_mean_gradient: float = 0.3
    min_mean_curvature: float = 0.2
    min_connected_ratio: float = 0.4
    min_neighbors: int = 3

    def evaluate(
        self,
        density_map: DensityMap,
        gradient: DensityGradient,
        curvature: CurvatureIndex,
        index: NeighborhoodIndex,
    ) -> EmergenceConditions:
        densities = np.array(list(density_map.densities.values()), dtype=float)
        gradients = np.array(list(gradient.gradients.values()), dtype=float)
        curvatures = np.array(list(curvature.curvatures.values()), dtype=float)
        neighbor_counts = np.array(
            [len(index.neighborhoods.get(rid, frozenset())) for rid in index.reflections],
            dtype=float,
        )

        if min(len(densities), len(gradients), len(curvatures), len(neighbor_counts)) == 0:
            return EmergenceConditions()

        mean_density = densities.mean()
        above_ratio = np.count_nonzero(densities > mean_density) / len(densities)
        connected_ratio = np.count_nonzero(neighbor_counts >= self.min_neighbors) / len(neighbor_counts)

        return EmergenceConditions(
            concentration=bool(above_ratio >= self.min_above_mean_density_ratio),
            variation=bool(gradients.mean() > self.min_mean_gradient),
            bending=bool(curvatures.mean() > self.min_mean_curvature),
            connectivity=bool(connected_ratio >= self.min_connected_ratio),
        )


def detect_emergence_boundary(
    density_map: DensityMap,
    gradient: DensityGradient,
    curvature: CurvatureIndex,
    index: NeighborhoodIndex,
    session_id: str,
    created_at: Optional[str] = None,
    criteria: Optional[EmergenceCriteria] = None,
) -> EmergenceBoundaryState:
    """
    Detect whether the session's structure crosses the emergence boundary.

    Parameters
    ----------
    density_map, gradient, curvature, index
        Upstream structures for one session.
    session_id : str
    created_at : str, optional
        Defaults to the density map's timestamp.
    criteria : EmergenceCriteria, optional
        Fixed thresholds; the defaults are the canonical ones.

    Returns
    -------
    EmergenceBoundaryState; ``is_emergent`` is False for empty input.
    """
    if criteria is None:
        criteria = EmergenceCriteria()
    if created_at is None:
        created_at = density_map.created_at

    conditions = criteria.evaluate(density_map, gradient, curvature, index)
    return EmergenceBoundaryState(
        is_emergent=conditions.all_met,
        session_id=session_id,
        created_at=created_at,
    )
