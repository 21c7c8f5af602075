"""
Session Observation
===================

Runs the structural pipeline for one session snapshot, leaves first:

    reflections → lineage graph → distance matrix → neighborhood index
                → density → gradient → curvature → emergence → presence

Each stage is a pure function of the stages before it. Nothing downstream
is passed back upstream, and the witness channel is not part of the run:
callers that need it read the returned presence marker themselves.

Novelty is an independent consumer of features/divergence and is computed
by observe_novelty, not by the structural run.
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass

from .schema import ReflectionRecord, validate_config, latest_timestamp
from .lineage import LineageGraph, build_lineage_graph
from .distance import DistanceMatrix, compute_distance_matrix
from .neighborhood import NeighborhoodIndex, build_neighborhood_index
from .density import DensityMap, DensityGradient, compute_density_map, compute_density_gradient
from .curvature import CurvatureIndex, compute_curvature_index
from .emergence import EmergenceBoundaryState, detect_emergence_boundary
from .presence import PresenceMarker, mark_emergence_presence
from .novelty import NoveltyScore, detect_reflection_novelty, split_newest


@dataclass(frozen=True, eq=False)
class SessionObservation:
    """Every structure derived for one session, each stored separately."""
    session_id: str
    lineage_graph: LineageGraph
    distance_matrix: DistanceMatrix
    neighborhood_index: NeighborhoodIndex
    density_map: DensityMap
    density_gradient: DensityGradient
    curvature_index: CurvatureIndex
    emergence_state: EmergenceBoundaryState
    presence_marker: PresenceMarker


def observe_session(
    reflections: List[ReflectionRecord],
    session_id: str,
    config: Optional[Dict[str, Any]] = None,
    observed_at: Optional[str] = None,
    verbose: bool = False,
) -> SessionObservation:
    """
    Recompute every structural derivative from the full live snapshot.

    Parameters
    ----------
    reflections : list of ReflectionRecord
        Snapshot for the active session; soft-deleted records are ignored.
    session_id : str
        Carried on every derived structure.
    config : dict, optional
        Overrides for default_config().
    observed_at : str, optional
        Timestamp stamped on every structure. Defaults to the newest live
        reflection's created_at; the wall clock is never read.
    verbose : bool
        Print progress.

    Returns
    -------
    SessionObservation
    """
    config = validate_config(config or {})
    if observed_at is None:
        observed_at = latest_timestamp(reflections)

    if verbose:
        print(f"Observing session {session_id} ({len(reflections)} reflections)")

    graph = build_lineage_graph(
        reflections,
        session_id=session_id,
        divergence_threshold=config["divergence_threshold"],
        observed_at=observed_at,
    )
    if verbose:
        print(f"  Lineage: {len(graph.reflections)} live reflections, {len(graph.links)} links")

    matrix = compute_distance_matrix(graph, method=config["distance_method"], verbose=verbose)
    index = build_neighborhood_index(matrix, distance_threshold=config["distance_threshold"])
    density_map = compute_density_map(index)
    gradient = compute_density_gradient(index, density_map)
    curvature = compute_curvature_index(matrix, index, gradient)
    if verbose:
        connected = sum(1 for n in index.neighborhoods.values() if n)
        print(f"  Neighborhoods: {connected}/{len(index.reflections)} reflections with neighbors")

    emergence = detect_emergence_boundary(
        density_map, gradient, curvature, index,
        session_id=session_id,
        created_at=observed_at,
    )
    marker = mark_emergence_presence(emergence)

    return SessionObservation(
        session_id=session_id,
        lineage_graph=graph,
        distance_matrix=matrix,
        neighborhood_index=index,
        density_map=density_map,
        density_gradient=gradient,
        curvature_index=curvature,
        emergence_state=emergence,
        presence_marker=marker,
    )


def observe_novelty(
    reflections: List[ReflectionRecord],
    config: Optional[Dict[str, Any]] = None,
) -> Optional[NoveltyScore]:
    """
    Novelty of the newest live reflection against everything before it.

    Returns None for a snapshot with no live reflections.
    """
    config = validate_config(config or {})
    split = split_newest(reflections)
    if split is None:
        return None
    newest, priors = split
    return detect_reflection_novelty(newest, priors, config["novelty_threshold"])
