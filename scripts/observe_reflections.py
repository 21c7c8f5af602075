#!/usr/bin/env python3
"""
Observe a Journal Session
=========================

Runs the structural pipeline over a set of reflections and reports only
what may reach presentation: the witness snapshot of the emergence marker
and the interpretive gate decision for one period of signals. Derived
structures stay internal; --export hands them to storage as payloads.

Usage:
    python observe_reflections.py                         # Built-in example
    python observe_reflections.py reflections.json        # Reflections from JSON
    python observe_reflections.py --export payloads.json  # Store structures
    python observe_reflections.py --persistence collapsed --closure closed

Expected JSON format:
    {
        "reflections": [
            {"id": "r1", "created_at": "2024-01-01T08:00:00Z", "plaintext": "..."},
            {"id": "r2", "created_at": "...", "plaintext": "...", "deleted_at": "..."},
            ...
        ]
    }

    OR a bare list of reflection objects.

Output:
    - Witness snapshot (emergence witnessed or not)
    - Irreversibility state and presentation permissions
    - Optional: JSON payloads for every derived structure
"""

import argparse
import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))

# =============================================================================
# EXAMPLE JOURNAL
# =============================================================================

EXAMPLE_REFLECTIONS = [
    {"id": "r1", "created_at": "2024-01-01T08:00:00Z",
     "plaintext": "I woke up early. The light was soft."},
    {"id": "r2", "created_at": "2024-01-02T21:15:00Z",
     "plaintext": "why does everything feel heavy today, like every small thing, "
                  "every errand, every message, is a weight i keep carrying"},
    {"id": "r3", "created_at": "2024-01-03T22:00:00Z",
     "plaintext": "Walked. Ate. Slept."},
    {"id": "r4", "created_at": "2024-01-05T18:30:00Z",
     "plaintext": "The meeting went better than I expected! Maria asked good questions; "
                  "Tom stayed quiet. Still, I think the plan holds."},
    {"id": "r5", "created_at": "2024-01-06T07:45:00Z",
     "plaintext": "Up early again. The light was grey."},
    {"id": "r6", "created_at": "2024-01-06T23:59:00Z",
     "plaintext": "nothing much"},
]


def load_reflections(path):
    with open(path, "r") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("reflections", [])
    return data


def parse_args():
    from reflection_lineage import (
        Regime, ObservationClosure, FeedbackMode, EmergencePersistence, InterpretiveLoad,
    )

    parser = argparse.ArgumentParser(
        description="Structural observation of a journal session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("input", nargs="?", help="Path to reflections JSON (default: built-in example)")
    parser.add_argument("--session-id", default="example-session")
    parser.add_argument("--divergence-threshold", type=float, default=None)
    parser.add_argument("--distance-threshold", type=float, default=None)
    parser.add_argument("--method", choices=["dijkstra", "csgraph"], default=None,
                        help="All-pairs shortest path backend")
    parser.add_argument("--export", metavar="PATH", help="Write structure payloads as JSON")
    parser.add_argument("--verbose", action="store_true")

    signals = parser.add_argument_group("gate signals")
    signals.add_argument("--load", choices=[m.value for m in InterpretiveLoad], default="constrained")
    signals.add_argument("--persistence", choices=[m.value for m in EmergencePersistence], default="transient")
    signals.add_argument("--regime", choices=[m.value for m in Regime], default="transitional")
    signals.add_argument("--closure", choices=[m.value for m in ObservationClosure], default="open")
    signals.add_argument("--feedback", choices=[m.value for m in FeedbackMode], default="COUPLED")
    signals.add_argument("--deviation", type=float, default=0.0)
    signals.add_argument("--note", default=None, help="Continuity note")
    return parser.parse_args()


# =============================================================================
# MAIN
# =============================================================================

def main():
    args = parse_args()

    from reflection_lineage import (
        default_config,
        observe_session,
        IrreversibilityGate,
        IrreversibilitySignals,
        Regime,
        ObservationClosure,
        FeedbackMode,
        EmergencePersistence,
        InterpretiveLoad,
    )
    from reflection_lineage.serialization import observation_payloads
    from reflection_lineage.witness import witness_emergence

    print("=" * 72)
    print("STRUCTURAL OBSERVATION OF A JOURNAL SESSION")
    print("=" * 72)
    print()

    if args.input:
        print(f"Loading reflections from: {args.input}")
        reflections = load_reflections(args.input)
    else:
        print("Using built-in example journal")
        reflections = EXAMPLE_REFLECTIONS
    print(f"Reflections: {len(reflections)}")
    print()

    config = default_config()
    if args.divergence_threshold is not None:
        config["divergence_threshold"] = args.divergence_threshold
    if args.distance_threshold is not None:
        config["distance_threshold"] = args.distance_threshold
    if args.method is not None:
        config["distance_method"] = args.method

    print("Configuration:")
    for key, value in config.items():
        print(f"  {key}: {value}")
    print()

    observation = observe_session(
        reflections,
        session_id=args.session_id,
        config=config,
        verbose=args.verbose,
    )

    snapshot = witness_emergence(observation.presence_marker)
    print(f"Witnessed: {snapshot.witnessed}")
    print()

    signals = IrreversibilitySignals(
        current_load=InterpretiveLoad(args.load),
        current_persistence=EmergencePersistence(args.persistence),
        regime=Regime(args.regime),
        closure=ObservationClosure(args.closure),
        feedback_mode=FeedbackMode(args.feedback),
        structural_deviation_magnitude=args.deviation,
        continuity_note=args.note,
    )
    gate = IrreversibilityGate()
    decision = gate.evaluate(signals, is_new_session=True)
    permissions = decision.permissions()

    print(f"Irreversibility: {decision.state.value}")
    print(f"  interpretation: {permissions.interpretation}")
    print(f"  narrative:      {permissions.narrative}")
    print(f"  multiplicity:   {permissions.multiplicity}")
    print(f"  spatial layout: {permissions.spatial_layout}")

    if args.export:
        with open(args.export, "w") as f:
            json.dump(observation_payloads(observation), f, indent=2, sort_keys=True)
        print(f"\nStructures exported to: {args.export}")

    print()
    print("=" * 72)


if __name__ == "__main__":
    main()
