"""
Structural Divergence
=====================

Symmetric distance in [0, 1] between two feature vectors.

divergence(a, b) = Σ_f w_f · |a_f - b_f| / norm_f

Count-like features (word count, sentence count, average sentence length)
are normalized by max(a_f + b_f, 1); ratio features are already in [0, 1]
and are used as-is.
"""

from typing import Dict

from .features import StructuralFeatures, extract_structural_features


DIVERGENCE_WEIGHTS: Dict[str, float] = {
    "word_count": 0.2,
    "unique_word_ratio": 0.25,
    "sentence_count": 0.15,
    "avg_sentence_length": 0.15,
    "punctuation_density": 0.1,
    "capitalization_ratio": 0.15,
}

# Normalized by the pair's combined magnitude
SCALED_FEATURES = ("word_count", "sentence_count", "avg_sentence_length")


def _feature_difference(a: StructuralFeatures, b: StructuralFeatures, name: str) -> float:
    va = getattr(a, name)
    vb = getattr(b, name)
    diff = abs(va - vb)
    if name in SCALED_FEATURES:
        return diff / max(va + vb, 1)
    return diff


def compute_divergence(a: StructuralFeatures, b: StructuralFeatures) -> float:
    """
    Compute structural divergence between two feature vectors.

    Returns
    -------
    float in [0, 1]; 0 for identical structure.
    """
    divergence = sum(
        weight * _feature_difference(a, b, name)
        for name, weight in DIVERGENCE_WEIGHTS.items()
    )
    return min(1.0, max(0.0, divergence))


def compute_text_divergence(text_a: str, text_b: str) -> float:
    """Divergence between two raw texts."""
    return compute_divergence(
        extract_structural_features(text_a),
        extract_structural_features(text_b),
    )
