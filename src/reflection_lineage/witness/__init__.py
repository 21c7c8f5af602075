"""
Emergence Witness Channel
=========================

Strictly read-only observer of the emergence presence marker.

One-way awareness: the witness may read the presence marker; nothing may read
the witness. No other module in reflection_lineage imports this package, and
the package root does not re-export it. Callers outside the pipeline import it
explicitly:

    >>> from reflection_lineage.witness import witness_emergence
"""

from .channel import WitnessSnapshot, witness_emergence

__all__ = ["WitnessSnapshot", "witness_emergence"]
