"""
Interpretive Irreversibility Gate
=================================

Once meaning collapses or is suppressed, it cannot be reintroduced later
without genuinely stronger evidence. This prevents retroactive
reinterpretation.

States: OPEN < HARDENED < LOCKED

Rules (evaluated in order):
---------------------------
NEW SESSION (fresh initial conditions):
  - HARDENED if closure is closed or persistence is collapsed, else OPEN

LOCKED:
  - closure is closed
  - persistence collapsed AND a prior period shows collapse/closure
  - regime deterministic AND a prior period shows collapse/closure
  - two or more prior periods show collapse/closure

HARDENED:
  - persistence collapsed (first occurrence)
  - regime deterministic with no prior collapse
  - exactly one prior collapse/closure
  - a prior period had minimal load and the current load is minimal
    (sticky silence; prevents oscillation between silence and meaning)

OPEN otherwise.

Within one session the state never regresses: the stateful gate keeps the
maximum of its current state and the newly inferred one. Only a new session
resets it.

Permissions travel beside the state rather than inside it:
  - OPEN: interpretation allowed
  - HARDENED: interpretation allowed only under extreme evidence
  - LOCKED: narrative, multiplicity, spatial layout and interpretation all
    suppressed
"""

from typing import List, Optional
from dataclasses import dataclass, field
from enum import Enum


# =============================================================================
# Signal Types (produced by sibling inference modules)
# =============================================================================

class Regime(str, Enum):
    DETERMINISTIC = "deterministic"
    TRANSITIONAL = "transitional"
    EMERGENT = "emergent"


class ObservationClosure(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class FeedbackMode(str, Enum):
    ENVIRONMENT_DOMINANT = "ENVIRONMENT_DOMINANT"
    COUPLED = "COUPLED"
    OBSERVER_DOMINANT = "OBSERVER_DOMINANT"


class EmergencePersistence(str, Enum):
    NONE = "none"
    TRANSIENT = "transient"
    PERSISTENT = "persistent"
    COLLAPSED = "collapsed"


class InterpretiveLoad(str, Enum):
    MINIMAL = "minimal"
    CONSTRAINED = "constrained"
    SATURATED = "saturated"


class IrreversibilityState(str, Enum):
    OPEN = "open"
    HARDENED = "hardened"
    LOCKED = "locked"

    @property
    def rank(self) -> int:
        return _STATE_ORDER.index(self)


_STATE_ORDER = [IrreversibilityState.OPEN, IrreversibilityState.HARDENED, IrreversibilityState.LOCKED]

EXTREME_DEVIATION = 0.6


@dataclass(frozen=True)
class PeriodRecord:
    """The part of a past period the gate needs to remember."""
    persistence: EmergencePersistence
    load: InterpretiveLoad
    regime: Regime
    closure: ObservationClosure

    @property
    def shows_collapse(self) -> bool:
        return (self.persistence == EmergencePersistence.COLLAPSED
                or self.closure == ObservationClosure.CLOSED)


@dataclass(frozen=True)
class IrreversibilitySignals:
    current_load: InterpretiveLoad
    current_persistence: EmergencePersistence
    regime: Regime
    closure: ObservationClosure
    feedback_mode: FeedbackMode
    structural_deviation_magnitude: float = 0.0
    continuity_note: Optional[str] = None

    def as_period(self) -> PeriodRecord:
        return PeriodRecord(
            persistence=self.current_persistence,
            load=self.current_load,
            regime=self.regime,
            closure=self.closure,
        )


@dataclass(frozen=True)
class PresentationPermissions:
    narrative: bool
    multiplicity: bool
    spatial_layout: bool
    interpretation: bool


@dataclass(frozen=True)
class GateDecision:
    state: IrreversibilityState
    allow_interpretation: bool

    def permissions(self) -> PresentationPermissions:
        if self.state == IrreversibilityState.LOCKED:
            return PresentationPermissions(False, False, False, False)
        return PresentationPermissions(
            narrative=self.allow_interpretation,
            multiplicity=self.allow_interpretation,
            spatial_layout=True,
            interpretation=self.allow_interpretation,
        )


# =============================================================================
# Rules
# =============================================================================

def has_extreme_evidence(signals: IrreversibilitySignals) -> bool:
    """All five extreme-evidence conditions hold."""
    return (
        signals.current_persistence == EmergencePersistence.PERSISTENT
        and signals.structural_deviation_magnitude > EXTREME_DEVIATION
        and signals.continuity_note is not None
        and signals.feedback_mode == FeedbackMode.OBSERVER_DOMINANT
        and signals.current_load != InterpretiveLoad.MINIMAL
    )


def initial_state(signals: IrreversibilitySignals) -> IrreversibilityState:
    """State at the start of a new session."""
    if (signals.closure == ObservationClosure.CLOSED
            or signals.current_persistence == EmergencePersistence.COLLAPSED):
        return IrreversibilityState.HARDENED
    return IrreversibilityState.OPEN


def infer_irreversibility(
    signals: IrreversibilitySignals,
    previous_periods: Optional[List[PeriodRecord]] = None,
) -> IrreversibilityState:
    """
    Stateless rule evaluation for one period given prior periods.

    Parameters
    ----------
    signals : IrreversibilitySignals
        Current-period signals.
    previous_periods : list of PeriodRecord, optional
        Earlier periods of the same session, oldest first.

    Returns
    -------
    IrreversibilityState
    """
    previous = previous_periods or []
    prior_collapses = sum(1 for p in previous if p.shows_collapse)

    if signals.closure == ObservationClosure.CLOSED:
        return IrreversibilityState.LOCKED

    if signals.current_persistence == EmergencePersistence.COLLAPSED:
        if prior_collapses > 0:
            return IrreversibilityState.LOCKED
        return IrreversibilityState.HARDENED

    if signals.regime == Regime.DETERMINISTIC:
        if prior_collapses > 0:
            return IrreversibilityState.LOCKED
        return IrreversibilityState.HARDENED

    if prior_collapses >= 2:
        return IrreversibilityState.LOCKED

    if prior_collapses == 1:
        # Extreme evidence permits interpretation but the label stays hardened
        return IrreversibilityState.HARDENED

    if (signals.current_load == InterpretiveLoad.MINIMAL
            and any(p.load == InterpretiveLoad.MINIMAL for p in previous)):
        return IrreversibilityState.HARDENED

    return IrreversibilityState.OPEN


def decide(state: IrreversibilityState, signals: IrreversibilitySignals) -> GateDecision:
    """Attach the interpretation capability to a state."""
    if state == IrreversibilityState.OPEN:
        allow = True
    elif state == IrreversibilityState.HARDENED:
        allow = has_extreme_evidence(signals)
    else:
        allow = False
    return GateDecision(state=state, allow_interpretation=allow)


# =============================================================================
# Stateful Gate (one per session)
# =============================================================================

@dataclass
class IrreversibilityGate:
    """
    Session-scoped gate. Holds the current state and the history of periods
    evaluated so far.

    Example
    -------
    >>> gate = IrreversibilityGate()
    >>> decision = gate.evaluate(signals, is_new_session=True)
    >>> decision.state
    <IrreversibilityState.OPEN: 'open'>
    """
    state: Optional[IrreversibilityState] = None
    history: List[PeriodRecord] = field(default_factory=list)

    def reset(self) -> None:
        """Forget everything; the next evaluation applies the initial check."""
        self.state = None
        self.history = []

    def evaluate(self, signals: IrreversibilitySignals, is_new_session: bool = False) -> GateDecision:
        if is_new_session:
            self.reset()

        if self.state is None:
            new_state = initial_state(signals)
        else:
            inferred = infer_irreversibility(signals, self.history)
            new_state = max(self.state, inferred, key=lambda s: s.rank)

        self.state = new_state
        self.history.append(signals.as_period())
        return decide(new_state, signals)
