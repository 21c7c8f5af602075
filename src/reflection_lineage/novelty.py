"""
Reflection Novelty Detection
============================

Decides whether a new reflection is structurally new enough to reinforce
accumulated meaning. Novelty is structural difference, never semantic
agreement: paraphrase, repetition and confirmation do not count.

score = 0.6 · min_i divergence(new, prior_i) + 0.4 · mean_i divergence(new, prior_i)

A reflection must differ from its closest prior AND from the priors on
average. The first reflection ever (no live priors) is always novel.

This module depends only on feature extraction and divergence; it never
reads the lineage graph or anything derived from it.
"""

from typing import List, Optional, Tuple
from dataclasses import dataclass

import numpy as np

from .schema import ReflectionRecord, is_live, live_reflections, sort_chronologically
from .features import extract_structural_features
from .divergence import compute_divergence


DEFAULT_NOVELTY_THRESHOLD = 0.4
MIN_WEIGHT = 0.6
MEAN_WEIGHT = 0.4


@dataclass(frozen=True)
class NoveltyScore:
    score: float
    is_novel: bool
    structural_divergence: float


def detect_reflection_novelty(
    new_reflection: ReflectionRecord,
    prior_reflections: List[ReflectionRecord],
    novelty_threshold: float = DEFAULT_NOVELTY_THRESHOLD,
) -> NoveltyScore:
    """
    Score a new reflection against prior reflections.

    Parameters
    ----------
    new_reflection : ReflectionRecord
    prior_reflections : list of ReflectionRecord
        Soft-deleted priors are ignored.
    novelty_threshold : float
        ``is_novel`` is ``score >= novelty_threshold`` (default 0.4).

    Returns
    -------
    NoveltyScore with ``structural_divergence`` = mean divergence.
    """
    priors = [p for p in prior_reflections if is_live(p)]
    if not priors:
        return NoveltyScore(score=1.0, is_novel=True, structural_divergence=1.0)

    new_features = extract_structural_features(new_reflection["plaintext"])
    divergences = np.array([
        compute_divergence(new_features, extract_structural_features(p["plaintext"]))
        for p in priors
    ])

    min_divergence = float(divergences.min())
    mean_divergence = float(divergences.mean())
    score = MIN_WEIGHT * min_divergence + MEAN_WEIGHT * mean_divergence

    return NoveltyScore(
        score=score,
        is_novel=score >= novelty_threshold,
        structural_divergence=mean_divergence,
    )


def has_reinforcing_novelty(
    new_reflections: List[ReflectionRecord],
    prior_reflections: List[ReflectionRecord],
    novelty_threshold: float = DEFAULT_NOVELTY_THRESHOLD,
) -> bool:
    """True if at least one live new reflection is novel."""
    for reflection in new_reflections:
        if not is_live(reflection):
            continue
        if detect_reflection_novelty(reflection, prior_reflections, novelty_threshold).is_novel:
            return True
    return False


def split_newest(
    reflections: List[ReflectionRecord],
) -> Optional[Tuple[ReflectionRecord, List[ReflectionRecord]]]:
    """
    Split a snapshot into (newest live reflection, earlier reflections).

    Returns None when there is no live reflection.
    """
    ordered = sort_chronologically(live_reflections(reflections))
    if not ordered:
        return None
    return ordered[-1], ordered[:-1]
