"""
Tests for the lineage graph builder and the distance matrix.
"""
import math

import numpy as np
import pytest

from conftest import make_reflection
from reflection_lineage import (
    LineageGraph,
    StructuralLink,
    AsymmetricDistanceWarning,
    build_lineage_graph,
    compute_distance_matrix,
    compute_text_divergence,
    get_structural_distance,
    distances_from,
)
from reflection_lineage.distance import symmetrize


def triangle_graph():
    """a-b (0.3), b-c (0.4), a-c (0.9), plus an isolated node d."""
    return LineageGraph(
        reflections=("a", "b", "c", "d"),
        links=(
            StructuralLink("a", "b", 0.3),
            StructuralLink("b", "c", 0.4),
            StructuralLink("a", "c", 0.9),
        ),
        session_id="s",
        created_at="2024-01-01T00:00:00Z",
    )


# =============================================================================
# Lineage Graph
# =============================================================================

def test_empty_input_gives_empty_graph():
    graph = build_lineage_graph([], session_id="s")

    assert graph.reflections == ()
    assert graph.links == ()
    assert graph.created_at is None


def test_deleted_reflections_are_excluded(sample_reflections):
    graph = build_lineage_graph(sample_reflections, session_id="s")

    assert "r6" not in graph.reflections
    assert all("r6" not in (l.from_id, l.to_id) for l in graph.links)


def test_reflections_sorted_chronologically(sample_reflections):
    shuffled = list(reversed(sample_reflections))
    graph = build_lineage_graph(shuffled, session_id="s")

    assert graph.reflections == ("r1", "r2", "r3", "r4", "r5")


def test_equal_timestamps_ordered_by_id():
    reflections = [
        make_reflection("z", "One.", "2024-01-01T00:00:00Z"),
        make_reflection("m", "Two words.", "2024-01-01T00:00:00Z"),
    ]
    graph = build_lineage_graph(reflections, session_id="s")

    assert graph.reflections == ("m", "z")


def test_links_point_from_earlier_to_later(sample_reflections):
    graph = build_lineage_graph(sample_reflections, session_id="s")
    position = {rid: i for i, rid in enumerate(graph.reflections)}

    assert graph.links
    for link in graph.links:
        assert position[link.from_id] < position[link.to_id]
        assert link.divergence >= graph.divergence_threshold


def test_created_at_defaults_to_latest_live_reflection(sample_reflections):
    graph = build_lineage_graph(sample_reflections, session_id="s")

    assert graph.created_at == "2024-01-06T23:59:00Z"


def test_identical_text_produces_no_link(identical_reflections):
    graph = build_lineage_graph(identical_reflections, session_id="s", divergence_threshold=0.2)

    assert graph.links == ()


def test_link_threshold_boundary():
    """Link iff divergence >= threshold, exactly at the boundary."""
    text_a = "I woke up early. The light was soft."
    text_b = "why does everything feel heavy today, like every small thing"
    reflections = [
        make_reflection("a", text_a, "2024-01-01T00:00:00Z"),
        make_reflection("b", text_b, "2024-01-02T00:00:00Z"),
    ]
    d = compute_text_divergence(text_b, text_a)

    at = build_lineage_graph(reflections, "s", divergence_threshold=d)
    above = build_lineage_graph(reflections, "s", divergence_threshold=math.nextafter(d, 1.0))
    below = build_lineage_graph(reflections, "s", divergence_threshold=math.nextafter(d, 0.0))

    assert len(at.links) == 1
    assert at.links[0].divergence == d
    assert len(above.links) == 0
    assert len(below.links) == 1


def test_lineage_is_deterministic(sample_reflections):
    first = build_lineage_graph(sample_reflections, session_id="s")
    second = build_lineage_graph(list(reversed(sample_reflections)), session_id="s")

    assert first == second


# =============================================================================
# Distance Matrix
# =============================================================================

def test_empty_graph_distance():
    matrix = compute_distance_matrix(LineageGraph(session_id="s"))

    assert matrix.reflections == ()
    assert matrix.distances.shape == (0, 0)


def test_shortest_path_accumulates_divergence():
    matrix = compute_distance_matrix(triangle_graph())

    assert get_structural_distance(matrix, "a", "b") == pytest.approx(0.3)
    assert get_structural_distance(matrix, "a", "c") == pytest.approx(0.7)
    assert get_structural_distance(matrix, "c", "a") == pytest.approx(0.7)


def test_unreachable_pairs_are_infinite():
    matrix = compute_distance_matrix(triangle_graph())

    assert math.isinf(get_structural_distance(matrix, "a", "d"))
    assert math.isinf(get_structural_distance(matrix, "a", "unknown"))
    assert get_structural_distance(matrix, "d", "d") == 0.0


def test_distances_from_row():
    matrix = compute_distance_matrix(triangle_graph())
    row = distances_from(matrix, "b")

    assert row["b"] == 0.0
    assert row["a"] == pytest.approx(0.3)
    assert row["c"] == pytest.approx(0.4)
    assert distances_from(matrix, "missing") == {}


def test_matrix_is_symmetric_non_negative(sample_reflections):
    graph = build_lineage_graph(sample_reflections, session_id="s")
    matrix = compute_distance_matrix(graph)
    d = matrix.distances

    assert np.array_equal(d, d.T)
    assert np.all(d >= 0)
    assert np.all(np.diag(d) == 0)

    nested = matrix.as_dict()
    assert list(nested) == list(graph.reflections)
    for a in graph.reflections:
        assert nested[a][a] == 0.0
        for b in graph.reflections:
            assert nested[a][b] == nested[b][a] == get_structural_distance(matrix, a, b)


def test_matrix_is_read_only():
    matrix = compute_distance_matrix(triangle_graph())

    with pytest.raises(ValueError):
        matrix.distances[0, 1] = 5.0


def test_csgraph_matches_reference(sample_reflections):
    graph = build_lineage_graph(sample_reflections, session_id="s")

    reference = compute_distance_matrix(graph, method="dijkstra").distances
    vectorized = compute_distance_matrix(graph, method="csgraph").distances

    assert np.allclose(reference, vectorized, rtol=1e-12, atol=1e-12)


def test_csgraph_matches_reference_with_unreachable():
    reference = compute_distance_matrix(triangle_graph(), method="dijkstra").distances
    vectorized = compute_distance_matrix(triangle_graph(), method="csgraph").distances

    assert np.array_equal(np.isinf(reference), np.isinf(vectorized))
    assert np.allclose(reference, vectorized)


def test_unknown_method_rejected():
    with pytest.raises(ValueError):
        compute_distance_matrix(triangle_graph(), method="floyd")


def test_symmetrize_warns_on_asymmetry():
    raw = np.array([
        [0.0, 0.3, np.inf],
        [0.5, 0.0, 0.2],
        [np.inf, 0.2, 0.0],
    ])

    with pytest.warns(AsymmetricDistanceWarning):
        result = symmetrize(raw)

    assert result[0, 1] == result[1, 0] == pytest.approx(0.4)
    assert math.isinf(result[0, 2])


@pytest.mark.slow
def test_csgraph_matches_reference_large():
    rng = np.random.default_rng(7)
    words = ["alpha", "Beta", "gamma,", "delta.", "Epsilon!", "zeta;", "eta"]
    reflections = []
    for i in range(120):
        length = int(rng.integers(1, 40))
        text = " ".join(rng.choice(words, size=length))
        reflections.append(make_reflection(f"r{i:03d}", text, f"2024-01-01T00:{i // 60:02d}:{i % 60:02d}Z"))

    graph = build_lineage_graph(reflections, session_id="s")
    reference = compute_distance_matrix(graph, method="dijkstra").distances
    vectorized = compute_distance_matrix(graph, method="csgraph").distances

    assert np.allclose(reference, vectorized, rtol=1e-12, atol=1e-12)
