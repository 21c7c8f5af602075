"""
Tests for structural feature extraction and divergence.
"""
import math

import pytest

from reflection_lineage import (
    StructuralFeatures,
    extract_structural_features,
    compute_divergence,
    compute_text_divergence,
    DIVERGENCE_WEIGHTS,
)


def test_empty_text_is_all_zero():
    features = extract_structural_features("")

    assert features == StructuralFeatures()
    for value in vars(features).values():
        assert not math.isnan(value)


def test_whitespace_only_text():
    features = extract_structural_features("   \n\t  ")

    assert features.word_count == 0
    assert features.sentence_count == 0
    assert features.unique_word_ratio == 0.0
    assert features.punctuation_density == 0.0


def test_basic_features():
    text = "Hello world. Bye!"
    features = extract_structural_features(text)

    assert features.word_count == 3
    assert features.unique_word_ratio == 1.0
    assert features.sentence_count == 2
    assert features.avg_sentence_length == pytest.approx(1.5)
    assert features.punctuation_density == pytest.approx(2 / len(text))
    assert features.capitalization_ratio == pytest.approx(2 / 3)


def test_unique_ratio_ignores_case():
    features = extract_structural_features("Again again AGAIN")

    assert features.unique_word_ratio == pytest.approx(1 / 3)


def test_dashes_count_as_punctuation():
    features = extract_structural_features("well—maybe – not-quite")

    assert features.punctuation_density == pytest.approx(3 / len("well—maybe – not-quite"))


def test_weights_sum_to_one():
    assert sum(DIVERGENCE_WEIGHTS.values()) == pytest.approx(1.0)


def test_identical_text_has_zero_divergence():
    text = "The same sentence, twice over."
    assert compute_text_divergence(text, text) == 0.0


def test_divergence_is_symmetric_and_bounded():
    a = extract_structural_features("I woke up early. The light was soft.")
    b = extract_structural_features("why does everything feel heavy today, like every small thing")

    d_ab = compute_divergence(a, b)
    d_ba = compute_divergence(b, a)

    assert d_ab == d_ba
    assert 0.0 <= d_ab <= 1.0


def test_divergence_against_empty_text():
    d = compute_text_divergence("", "Some words here. And more words there!")

    assert 0.0 < d <= 1.0


def test_divergence_ignores_meaning():
    """Different words with identical structure do not diverge."""
    d = compute_text_divergence("The cat sat down.", "The dog ran away.")

    assert d == 0.0
