"""
Structural Distance Matrix
==========================

All-pairs shortest-path metric over the lineage graph.

d(a, b) = minimum accumulated divergence over paths a → b

Metric properties (by construction):
- Deterministic: same lineage graph → same distances
- Symmetric: d(a, b) = d(b, a)
- Non-negative, with d(a, a) = 0
- Unreachable pairs are +inf

Two backends compute the same metric:
- "dijkstra": binary-heap Dijkstra from every source (reference)
- "csgraph": scipy.sparse.csgraph.dijkstra over all sources at once

Path sums accumulated from a and from b can differ in the last ulp, so the
matrix is symmetrized by averaging d(a, b) and d(b, a). A mismatch larger than
floating-point tolerance would mean the graph is not undirected; that case is
reported with a warning instead of being absorbed silently.
"""

from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, field
import heapq
import warnings

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import dijkstra

from .lineage import LineageGraph


SYMMETRY_RTOL = 1e-9
SYMMETRY_ATOL = 1e-12


class AsymmetricDistanceWarning(UserWarning):
    """Shortest-path distances disagree between the two directions."""


@dataclass(frozen=True, eq=False)
class DistanceMatrix:
    """
    Dense symmetric distance matrix indexed by reflection id.

    ``distances[i, j]`` is the distance between ``reflections[i]`` and
    ``reflections[j]``.
    """
    reflections: Tuple[str, ...] = ()
    distances: np.ndarray = field(default_factory=lambda: np.zeros((0, 0)))
    session_id: str = ""
    created_at: Optional[str] = None

    @property
    def index(self) -> Dict[str, int]:
        return {rid: i for i, rid in enumerate(self.reflections)}

    def as_dict(self) -> Dict[str, Dict[str, float]]:
        """Nested mapping id -> id -> distance."""
        return {
            a: {b: float(self.distances[i, j]) for j, b in enumerate(self.reflections)}
            for i, a in enumerate(self.reflections)
        }


# =============================================================================
# Shortest Paths
# =============================================================================

def single_source_dijkstra(
    adjacency: Dict[str, Dict[str, float]],
    order: List[str],
    source: str,
) -> Dict[str, float]:
    """
    Shortest accumulated divergence from ``source`` to every node.

    Ties on the heap are broken by chronological position, so the visit order
    never depends on dict or hash ordering.
    """
    position = {rid: i for i, rid in enumerate(order)}
    dist = {rid: np.inf for rid in order}
    dist[source] = 0.0
    visited = set()
    heap = [(0.0, position[source], source)]

    while heap:
        d, _, node = heapq.heappop(heap)
        if node in visited:
            continue
        visited.add(node)

        for neighbor, weight in adjacency.get(node, {}).items():
            if neighbor in visited:
                continue
            candidate = d + weight
            if candidate < dist[neighbor]:
                dist[neighbor] = candidate
                heapq.heappush(heap, (candidate, position[neighbor], neighbor))

    return dist


def _all_pairs_reference(graph: LineageGraph) -> np.ndarray:
    order = list(graph.reflections)
    adjacency = graph.adjacency()
    n = len(order)
    raw = np.full((n, n), np.inf)
    for i, source in enumerate(order):
        dist = single_source_dijkstra(adjacency, order, source)
        for j, target in enumerate(order):
            raw[i, j] = dist[target]
    return raw


def _all_pairs_csgraph(graph: LineageGraph) -> np.ndarray:
    order = list(graph.reflections)
    n = len(order)
    position = {rid: i for i, rid in enumerate(order)}

    rows, cols, weights = [], [], []
    for link in graph.links:
        if link.from_id in position and link.to_id in position:
            rows.append(position[link.from_id])
            cols.append(position[link.to_id])
            weights.append(link.divergence)

    # Explicit zero weights stay edges in sparse input
    sparse = csr_matrix(
        (np.asarray(weights, dtype=float), (np.asarray(rows, dtype=int), np.asarray(cols, dtype=int))),
        shape=(n, n),
    )
    return dijkstra(sparse, directed=False)


def symmetrize(raw: np.ndarray) -> np.ndarray:
    """
    Average d(a, b) and d(b, a); force the diagonal to exactly 0.

    Emits AsymmetricDistanceWarning when the two directions disagree beyond
    floating-point tolerance.
    """
    transposed = raw.T
    both_inf = np.isinf(raw) & np.isinf(transposed)
    close = np.isclose(raw, transposed, rtol=SYMMETRY_RTOL, atol=SYMMETRY_ATOL) | both_inf
    if not np.all(close):
        mismatches = int(np.count_nonzero(~close)) // 2
        warnings.warn(
            f"{mismatches} reflection pair(s) have direction-dependent distances",
            AsymmetricDistanceWarning,
            stacklevel=3,
        )

    with np.errstate(invalid="ignore"):
        symmetric = (raw + transposed) / 2.0
    symmetric[both_inf] = np.inf
    np.fill_diagonal(symmetric, 0.0)
    return symmetric


def compute_distance_matrix(
    graph: LineageGraph,
    method: str = "dijkstra",
    verbose: bool = False,
) -> DistanceMatrix:
    """
    Compute the structural distance matrix from a lineage graph.

    Parameters
    ----------
    graph : LineageGraph
        Output of build_lineage_graph.
    method : str
        "dijkstra" (sequential reference) or "csgraph" (scipy, vectorized).
        Both must agree within IEEE-754 tolerance.
    verbose : bool
        Print progress.

    Returns
    -------
    DistanceMatrix
    """
    n = len(graph.reflections)
    if n == 0:
        return DistanceMatrix(session_id=graph.session_id, created_at=graph.created_at)

    if method == "dijkstra":
        raw = _all_pairs_reference(graph)
    elif method == "csgraph":
        raw = _all_pairs_csgraph(graph)
    else:
        raise ValueError(f"Unknown distance method: {method!r}")

    if verbose:
        print(f"  Distances: {n}x{n} via {method}, "
              f"{int(np.count_nonzero(np.isinf(raw)))} unreachable entries")

    distances = symmetrize(raw)
    distances.setflags(write=False)

    return DistanceMatrix(
        reflections=graph.reflections,
        distances=distances,
        session_id=graph.session_id,
        created_at=graph.created_at,
    )


# =============================================================================
# Lookups
# =============================================================================

def get_structural_distance(matrix: DistanceMatrix, id_a: str, id_b: str) -> float:
    """Distance between two reflections; 0 for the same id, inf if unknown."""
    if id_a == id_b:
        return 0.0
    index = matrix.index
    if id_a not in index or id_b not in index:
        return float("inf")
    return float(matrix.distances[index[id_a], index[id_b]])


def distances_from(matrix: DistanceMatrix, reflection_id: str) -> Dict[str, float]:
    """All distances from one reflection (empty if unknown)."""
    index = matrix.index
    if reflection_id not in index:
        return {}
    row = matrix.distances[index[reflection_id]]
    return {rid: float(row[j]) for j, rid in enumerate(matrix.reflections)}
