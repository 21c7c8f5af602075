"""
Tests for the session pipeline and storage serialization.
"""
import json
import math

import numpy as np
import pytest

from reflection_lineage import (
    observe_session,
    build_lineage_graph,
    compute_distance_matrix,
    build_neighborhood_index,
    detect_reflection_novelty,
    to_dict,
    from_dict,
    dumps,
    loads,
    ReconstructionError,
    IrreversibilityGate,
    IrreversibilitySignals,
    InterpretiveLoad,
    EmergencePersistence,
    Regime,
    ObservationClosure,
    FeedbackMode,
    LineageGraph,
    StructuralLink,
)
from reflection_lineage.serialization import observation_payloads
from reflection_lineage.witness import witness_emergence


# =============================================================================
# Pipeline
# =============================================================================

def test_observe_session_is_deterministic(sample_reflections):
    first = observe_session(sample_reflections, session_id="s1")
    second = observe_session(list(reversed(sample_reflections)), session_id="s1")

    assert observation_payloads(first) == observation_payloads(second)
    assert np.array_equal(first.distance_matrix.distances, second.distance_matrix.distances)


def test_every_structure_carries_session_metadata(sample_reflections):
    observation = observe_session(sample_reflections, session_id="s1")

    for payload in observation_payloads(observation).values():
        assert payload["session_id"] == "s1"
        assert payload["created_at"] == "2024-01-06T23:59:00Z"


def test_observed_at_is_stamped(sample_reflections):
    observation = observe_session(sample_reflections, session_id="s1", observed_at="2024-02-01T00:00:00Z")

    assert observation.lineage_graph.created_at == "2024-02-01T00:00:00Z"
    assert observation.presence_marker.created_at == "2024-02-01T00:00:00Z"


def test_observe_session_matches_stage_calls(sample_reflections):
    config = {"divergence_threshold": 0.1, "distance_threshold": 0.3}
    observation = observe_session(sample_reflections, session_id="s1", config=config)

    graph = build_lineage_graph(sample_reflections, "s1", divergence_threshold=0.1)
    index = build_neighborhood_index(compute_distance_matrix(graph), distance_threshold=0.3)

    assert observation.lineage_graph == graph
    assert to_dict(observation.neighborhood_index) == to_dict(index)


def test_csgraph_method_gives_same_observation(sample_reflections):
    reference = observe_session(sample_reflections, session_id="s1")
    vectorized = observe_session(sample_reflections, session_id="s1", config={"distance_method": "csgraph"})

    assert np.allclose(
        reference.distance_matrix.distances, vectorized.distance_matrix.distances,
        rtol=1e-12, atol=1e-12,
    )
    assert to_dict(reference.neighborhood_index) == to_dict(vectorized.neighborhood_index)


def test_invalid_config_rejected(sample_reflections):
    with pytest.raises(ValueError):
        observe_session(sample_reflections, session_id="s1", config={"distance_threshold": -1})


def test_empty_snapshot():
    observation = observe_session([], session_id="s1")

    assert observation.lineage_graph.reflections == ()
    assert observation.emergence_state.is_emergent is False
    assert observation.presence_marker.is_present is False
    assert observation.presence_marker.created_at is None


def test_verbose_prints_progress(sample_reflections, capsys):
    observe_session(sample_reflections, session_id="s1", verbose=True)

    out = capsys.readouterr().out
    assert "Observing session s1" in out
    assert "Lineage:" in out


def test_witness_does_not_change_observation(sample_reflections):
    first = observe_session(sample_reflections, session_id="s1")
    witness_emergence(first.presence_marker)
    second = observe_session(sample_reflections, session_id="s1")

    assert observation_payloads(first) == observation_payloads(second)


# =============================================================================
# Serialization
# =============================================================================

def test_structures_survive_storage(sample_reflections):
    observation = observe_session(sample_reflections, session_id="s1")

    for kind, payload in observation_payloads(observation).items():
        restored = loads(json.dumps(payload))
        assert to_dict(restored) == payload, kind
        assert restored.session_id == "s1"
        assert restored.created_at == "2024-01-06T23:59:00Z"


def test_infinite_distance_is_encoded_as_null():
    graph = LineageGraph(
        reflections=("a", "b", "c"),
        links=(StructuralLink("a", "b", 0.3),),
        session_id="s",
        created_at="2024-01-01T00:00:00Z",
    )
    matrix = compute_distance_matrix(graph)

    payload = to_dict(matrix)
    restored = loads(dumps(matrix))

    assert payload["distances"][0][2] is None
    assert math.isinf(restored.distances[0, 2])
    assert restored.distances[0, 1] == pytest.approx(0.3)
    assert not restored.distances.flags.writeable


def test_missing_created_at_is_an_error(sample_reflections):
    payload = to_dict(build_lineage_graph(sample_reflections, session_id="s1"))
    del payload["created_at"]

    with pytest.raises(ReconstructionError, match="created_at"):
        from_dict(payload)


def test_missing_session_id_is_an_error(sample_reflections):
    observation = observe_session(sample_reflections, session_id="s1")
    payload = to_dict(observation.presence_marker)
    del payload["session_id"]

    with pytest.raises(ReconstructionError):
        from_dict(payload)


def test_unknown_kind_and_bad_json():
    with pytest.raises(ReconstructionError):
        from_dict({"kind": "journal_summary"})
    with pytest.raises(ReconstructionError):
        from_dict(["not", "a", "dict"])
    with pytest.raises(ReconstructionError):
        loads("{not json")


def test_witness_snapshot_is_not_storable(sample_reflections):
    observation = observe_session(sample_reflections, session_id="s1")

    with pytest.raises(TypeError):
        to_dict(witness_emergence(observation.presence_marker))


def test_novelty_score_round_trip(sample_reflections):
    score = detect_reflection_novelty(sample_reflections[1], sample_reflections[:1])

    assert loads(dumps(score)) == score


def test_gate_state_survives_storage():
    gate = IrreversibilityGate()
    collapsed = IrreversibilitySignals(
        current_load=InterpretiveLoad.CONSTRAINED,
        current_persistence=EmergencePersistence.COLLAPSED,
        regime=Regime.TRANSITIONAL,
        closure=ObservationClosure.OPEN,
        feedback_mode=FeedbackMode.COUPLED,
    )
    gate.evaluate(collapsed, is_new_session=True)
    gate.evaluate(collapsed)

    restored = loads(dumps(gate))

    assert restored == gate
    assert restored.evaluate(collapsed) == gate.evaluate(collapsed)
