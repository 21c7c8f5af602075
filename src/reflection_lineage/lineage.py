"""
Structural Lineage Graph
========================

Records how reflections differ from one another over time without
introducing causality, narrative, or hierarchy.

Nodes: live reflection ids in chronological order
Edges: undirected links between any earlier/later pair whose structural
       divergence is at least the threshold (links represent difference,
       not influence)

Construction is deterministic: the same reflection set and threshold always
produce the same graph. No probabilistic edges, no adaptive rewiring.
"""

from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass

from .schema import (
    ReflectionRecord,
    live_reflections,
    sort_chronologically,
    latest_timestamp,
)
from .features import StructuralFeatures, extract_structural_features
from .divergence import compute_divergence


DEFAULT_DIVERGENCE_THRESHOLD = 0.2


@dataclass(frozen=True)
class StructuralLink:
    """Undirected link; ``from_id`` is the earlier reflection."""
    from_id: str
    to_id: str
    divergence: float


@dataclass(frozen=True)
class LineageGraph:
    reflections: Tuple[str, ...] = ()
    links: Tuple[StructuralLink, ...] = ()
    session_id: str = ""
    created_at: Optional[str] = None
    divergence_threshold: float = DEFAULT_DIVERGENCE_THRESHOLD

    def adjacency(self) -> Dict[str, Dict[str, float]]:
        """Symmetric adjacency map: id -> {neighbor_id -> divergence}."""
        adj: Dict[str, Dict[str, float]] = {rid: {} for rid in self.reflections}
        for link in self.links:
            if link.from_id in adj and link.to_id in adj:
                adj[link.from_id][link.to_id] = link.divergence
                adj[link.to_id][link.from_id] = link.divergence
        return adj


def should_link(divergence: float, threshold: float) -> bool:
    """Link iff divergence >= threshold (inclusive boundary)."""
    return divergence >= threshold


def build_lineage_graph(
    reflections: List[ReflectionRecord],
    session_id: str,
    divergence_threshold: float = DEFAULT_DIVERGENCE_THRESHOLD,
    observed_at: Optional[str] = None,
) -> LineageGraph:
    """
    Build the structural lineage graph for one session snapshot.

    Parameters
    ----------
    reflections : list of ReflectionRecord
        Full snapshot; soft-deleted records are dropped.
    session_id : str
        Session identifier carried on the result.
    divergence_threshold : float
        Minimum divergence for a link (default 0.2).
    observed_at : str, optional
        Timestamp for the result. Defaults to the newest live reflection's
        ``created_at`` so that repeated runs stay identical.

    Returns
    -------
    LineageGraph
    """
    if observed_at is None:
        observed_at = latest_timestamp(reflections)

    ordered = sort_chronologically(live_reflections(reflections))
    if not ordered:
        return LineageGraph(
            session_id=session_id,
            created_at=observed_at,
            divergence_threshold=divergence_threshold,
        )

    features: List[StructuralFeatures] = [
        extract_structural_features(r["plaintext"]) for r in ordered
    ]

    links: List[StructuralLink] = []
    for i in range(1, len(ordered)):
        for j in range(i):
            divergence = compute_divergence(features[i], features[j])
            if should_link(divergence, divergence_threshold):
                links.append(StructuralLink(
                    from_id=ordered[j]["id"],
                    to_id=ordered[i]["id"],
                    divergence=divergence,
                ))

    return LineageGraph(
        reflections=tuple(r["id"] for r in ordered),
        links=tuple(links),
        session_id=session_id,
        created_at=observed_at,
        divergence_threshold=divergence_threshold,
    )
