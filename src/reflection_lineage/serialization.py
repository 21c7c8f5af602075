"""
Serialization for the Storage Collaborator
==========================================

Every derived structure can be turned into a JSON-compatible dict and back.
Encryption, key derivation and the storage medium belong to the host; this
module only fixes the plaintext payload shape.

Each payload carries its ``kind`` together with the ``session_id``
and ``created_at``. Reconstruction never substitutes the wall clock for
missing metadata: a payload missing a required field raises
ReconstructionError.

Witness snapshots are deliberately not serializable.
"""

from typing import Any, Callable, Dict, List
import json
import math

import numpy as np

from .lineage import LineageGraph, StructuralLink
from .distance import DistanceMatrix
from .neighborhood import NeighborhoodIndex
from .density import DensityMap, DensityGradient
from .curvature import CurvatureIndex
from .emergence import EmergenceBoundaryState
from .presence import PresenceMarker
from .novelty import NoveltyScore
from .session import SessionObservation
from .irreversibility import (
    IrreversibilityGate,
    IrreversibilityState,
    PeriodRecord,
    EmergencePersistence,
    InterpretiveLoad,
    Regime,
    ObservationClosure,
)


class ReconstructionError(ValueError):
    """A structurally required field is missing from a decrypted payload."""


def _require(payload: Dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if k not in payload]
    if missing:
        kind = payload.get("kind", "<unknown>")
        raise ReconstructionError(f"{kind} payload is missing required field(s): {', '.join(missing)}")


def _encode_distance(value: float) -> Any:
    return None if math.isinf(value) else float(value)


def _decode_distance(value: Any) -> float:
    return float("inf") if value is None else float(value)


# =============================================================================
# Encoding
# =============================================================================

def to_dict(structure: Any) -> Dict[str, Any]:
    """
    Encode a derived structure as a JSON-compatible dict.

    Raises
    ------
    TypeError
        For types that are not storable (including witness snapshots).
    """
    if isinstance(structure, LineageGraph):
        return {
            "kind": "lineage_graph",
            "session_id": structure.session_id,
            "created_at": structure.created_at,
            "divergence_threshold": structure.divergence_threshold,
            "reflections": list(structure.reflections),
            "links": [
                {"from_id": l.from_id, "to_id": l.to_id, "divergence": l.divergence}
                for l in structure.links
            ],
        }
    if isinstance(structure, DistanceMatrix):
        return {
            "kind": "distance_matrix",
            "session_id": structure.session_id,
            "created_at": structure.created_at,
            "reflections": list(structure.reflections),
            "distances": [
                [_encode_distance(v) for v in row] for row in structure.distances.tolist()
            ],
        }
    if isinstance(structure, NeighborhoodIndex):
        return {
            "kind": "neighborhood_index",
            "session_id": structure.session_id,
            "created_at": structure.created_at,
            "distance_threshold": structure.distance_threshold,
            "reflections": list(structure.reflections),
            "neighborhoods": {
                rid: [n for n in structure.reflections if n in structure.neighborhoods.get(rid, ())]
                for rid in structure.reflections
            },
        }
    if isinstance(structure, (DensityMap, DensityGradient, CurvatureIndex)):
        kind, values = {
            DensityMap: ("density_map", "densities"),
            DensityGradient: ("density_gradient", "gradients"),
            CurvatureIndex: ("curvature_index", "curvatures"),
        }[type(structure)]
        return {
            "kind": kind,
            "session_id": structure.session_id,
            "created_at": structure.created_at,
            "reflections": list(structure.reflections),
            values: dict(getattr(structure, values)),
        }
    if isinstance(structure, EmergenceBoundaryState):
        return {
            "kind": "emergence_state",
            "session_id": structure.session_id,
            "created_at": structure.created_at,
            "is_emergent": structure.is_emergent,
        }
    if isinstance(structure, PresenceMarker):
        return {
            "kind": "presence_marker",
            "session_id": structure.session_id,
            "created_at": structure.created_at,
            "is_present": structure.is_present,
        }
    if isinstance(structure, NoveltyScore):
        return {
            "kind": "novelty_score",
            "score": structure.score,
            "is_novel": structure.is_novel,
            "structural_divergence": structure.structural_divergence,
        }
    if isinstance(structure, IrreversibilityGate):
        return {
            "kind": "irreversibility",
            "state": structure.state.value if structure.state is not None else None,
            "history": [
                {
                    "persistence": p.persistence.value,
                    "load": p.load.value,
                    "regime": p.regime.value,
                    "closure": p.closure.value,
                }
                for p in structure.history
            ],
        }
    raise TypeError(f"{type(structure).__name__} is not a storable structure")


# =============================================================================
# Decoding
# =============================================================================

def _lineage_graph(payload: Dict[str, Any]) -> LineageGraph:
    _require(payload, "session_id", "created_at", "divergence_threshold", "reflections", "links")
    links = []
    for link in payload["links"]:
        _require({"kind": "lineage_graph link", **link}, "from_id", "to_id", "divergence")
        links.append(StructuralLink(link["from_id"], link["to_id"], float(link["divergence"])))
    return LineageGraph(
        reflections=tuple(payload["reflections"]),
        links=tuple(links),
        session_id=payload["session_id"],
        created_at=payload["created_at"],
        divergence_threshold=float(payload["divergence_threshold"]),
    )


def _distance_matrix(payload: Dict[str, Any]) -> DistanceMatrix:
    _require(payload, "session_id", "created_at", "reflections", "distances")
    reflections = tuple(payload["reflections"])
    n = len(reflections)
    rows = payload["distances"]
    if len(rows) != n or any(len(row) != n for row in rows):
        raise ReconstructionError(f"distance_matrix payload is not {n}x{n}")
    distances = np.array([[_decode_distance(v) for v in row] for row in rows], dtype=float).reshape(n, n)
    distances.setflags(write=False)
    return DistanceMatrix(
        reflections=reflections,
        distances=distances,
        session_id=payload["session_id"],
        created_at=payload["created_at"],
    )


def _neighborhood_index(payload: Dict[str, Any]) -> NeighborhoodIndex:
    _require(payload, "session_id", "created_at", "distance_threshold", "reflections", "neighborhoods")
    reflections = tuple(payload["reflections"])
    missing = [rid for rid in reflections if rid not in payload["neighborhoods"]]
    if missing:
        raise ReconstructionError(f"neighborhood_index payload has no entry for: {', '.join(missing)}")
    return NeighborhoodIndex(
        reflections=reflections,
        neighborhoods={rid: frozenset(payload["neighborhoods"][rid]) for rid in reflections},
        distance_threshold=float(payload["distance_threshold"]),
        session_id=payload["session_id"],
        created_at=payload["created_at"],
    )


def _scalar_map(cls: type, field_name: str, cast: Callable[[Any], Any]) -> Callable[[Dict[str, Any]], Any]:
    def decode(payload: Dict[str, Any]) -> Any:
        _require(payload, "session_id", "created_at", "reflections", field_name)
        values = payload[field_name]
        missing = [rid for rid in payload["reflections"] if rid not in values]
        if missing:
            raise ReconstructionError(
                f"{payload['kind']} payload has no value for: {', '.join(missing)}"
            )
        return cls(**{
            "reflections": tuple(payload["reflections"]),
            field_name: {rid: cast(values[rid]) for rid in payload["reflections"]},
            "session_id": payload["session_id"],
            "created_at": payload["created_at"],
        })
    return decode


def _emergence_state(payload: Dict[str, Any]) -> EmergenceBoundaryState:
    _require(payload, "session_id", "created_at", "is_emergent")
    return EmergenceBoundaryState(
        is_emergent=bool(payload["is_emergent"]),
        session_id=payload["session_id"],
        created_at=payload["created_at"],
    )


def _presence_marker(payload: Dict[str, Any]) -> PresenceMarker:
    _require(payload, "session_id", "created_at", "is_present")
    return PresenceMarker(
        is_present=bool(payload["is_present"]),
        session_id=payload["session_id"],
        created_at=payload["created_at"],
    )


def _novelty_score(payload: Dict[str, Any]) -> NoveltyScore:
    _require(payload, "score", "is_novel", "structural_divergence")
    return NoveltyScore(
        score=float(payload["score"]),
        is_novel=bool(payload["is_novel"]),
        structural_divergence=float(payload["structural_divergence"]),
    )


def _irreversibility(payload: Dict[str, Any]) -> IrreversibilityGate:
    _require(payload, "state", "history")
    history: List[PeriodRecord] = []
    try:
        state = IrreversibilityState(payload["state"]) if payload["state"] is not None else None
        for period in payload["history"]:
            history.append(PeriodRecord(
                persistence=EmergencePersistence(period["persistence"]),
                load=InterpretiveLoad(period["load"]),
                regime=Regime(period["regime"]),
                closure=ObservationClosure(period["closure"]),
            ))
    except (KeyError, ValueError) as exc:
        raise ReconstructionError(f"irreversibility payload is malformed: {exc}") from exc
    return IrreversibilityGate(state=state, history=history)


DECODERS: Dict[str, Callable[[Dict[str, Any]], Any]] = {
    "lineage_graph": _lineage_graph,
    "distance_matrix": _distance_matrix,
    "neighborhood_index": _neighborhood_index,
    "density_map": _scalar_map(DensityMap, "densities", int),
    "density_gradient": _scalar_map(DensityGradient, "gradients", float),
    "curvature_index": _scalar_map(CurvatureIndex, "curvatures", float),
    "emergence_state": _emergence_state,
    "presence_marker": _presence_marker,
    "novelty_score": _novelty_score,
    "irreversibility": _irreversibility,
}


def from_dict(payload: Dict[str, Any]) -> Any:
    """
    Rebuild a structure from a payload produced by to_dict.

    Raises
    ------
    ReconstructionError
        If the payload is not a dict, has an unknown kind, or lacks a
        required field.
    """
    if not isinstance(payload, dict):
        raise ReconstructionError(f"Expected a dict payload, got {type(payload).__name__}")
    _require(payload, "kind")
    decoder = DECODERS.get(payload["kind"])
    if decoder is None:
        raise ReconstructionError(f"Unknown structure kind: {payload['kind']!r}")
    return decoder(payload)


def dumps(structure: Any) -> str:
    return json.dumps(to_dict(structure), sort_keys=True)


def loads(text: str) -> Any:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReconstructionError(f"Payload is not valid JSON: {exc}") from exc
    return from_dict(payload)


def observation_payloads(observation: SessionObservation) -> Dict[str, Dict[str, Any]]:
    """Separate payloads for each structure of a session, keyed by kind."""
    structures = [
        observation.lineage_graph,
        observation.distance_matrix,
        observation.neighborhood_index,
        observation.density_map,
        observation.density_gradient,
        observation.curvature_index,
        observation.emergence_state,
        observation.presence_marker,
    ]
    payloads = [to_dict(s) for s in structures]
    return {p["kind"]: p for p in payloads}
