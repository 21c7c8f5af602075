"""
reflection_lineage: deterministic structural observation of journal entries
==========================================================================

Measures relationships among reflections using structural (non-semantic)
text features, derives a graph metric space over them, and gates whether
accumulated interpretation may still change.

The witness channel is intentionally not re-exported here; see
reflection_lineage.witness.
"""

from .schema import (
    ReflectionRecord,
    Config,
    default_config,
    validate_config,
)
from .features import StructuralFeatures, extract_structural_features
from .divergence import DIVERGENCE_WEIGHTS, compute_divergence, compute_text_divergence
from .lineage import StructuralLink, LineageGraph, build_lineage_graph
from .distance import (
    DistanceMatrix,
    AsymmetricDistanceWarning,
    compute_distance_matrix,
    get_structural_distance,
    distances_from,
)
from .neighborhood import (
    NeighborhoodIndex,
    build_neighborhood_index,
    get_neighbors,
    are_neighbors,
)
from .density import (
    DensityMap,
    DensityGradient,
    compute_density_map,
    compute_density_gradient,
)
from .curvature import CurvatureIndex, compute_curvature_index
from .emergence import (
    EmergenceBoundaryState,
    EmergenceConditions,
    EmergenceCriteria,
    detect_emergence_boundary,
)
from .presence import PresenceMarker, mark_emergence_presence
from .novelty import NoveltyScore, detect_reflection_novelty, has_reinforcing_novelty
from .irreversibility import (
    Regime,
    ObservationClosure,
    FeedbackMode,
    EmergencePersistence,
    InterpretiveLoad,
    IrreversibilityState,
    PeriodRecord,
    IrreversibilitySignals,
    PresentationPermissions,
    GateDecision,
    IrreversibilityGate,
    infer_irreversibility,
)
from .firewall import (
    EmergenceFirewallError,
    assert_emergence_firewall,
    block_emergence_influence,
)
from .session import SessionObservation, observe_session, observe_novelty
from .serialization import ReconstructionError, to_dict, from_dict, dumps, loads

__version__ = "0.1.0"
