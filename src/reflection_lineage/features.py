"""
Structural Feature Extraction
=============================

Turns one reflection's text into a fixed vector of structural measurements.
Nothing here looks at meaning: tokenization is whitespace and punctuation
based only, with no locale rules, stemming or vocabulary.

Features:
- word_count: whitespace-separated tokens
- unique_word_ratio: distinct lowercased words / words
- sentence_count: non-blank pieces between runs of . ! ?
- avg_sentence_length: mean words per sentence
- punctuation_density: punctuation marks / characters
- capitalization_ratio: words starting with an uppercase letter / words
"""

from dataclasses import dataclass
import re


SENTENCE_SPLIT = re.compile(r"[.!?]+")
PUNCTUATION = re.compile(r"[.,!?;:—–-]")
CAPITALIZED = re.compile(r"^[A-Z]")


@dataclass(frozen=True)
class StructuralFeatures:
    """Structural measurements of a single text. All values are >= 0."""
    word_count: int = 0
    unique_word_ratio: float = 0.0
    sentence_count: int = 0
    avg_sentence_length: float = 0.0
    punctuation_density: float = 0.0
    capitalization_ratio: float = 0.0


def extract_structural_features(text: str) -> StructuralFeatures:
    """
    Extract structural features from reflection text.

    Every ratio divides by ``max(n, 1)``, so empty text yields an all-zero
    vector rather than NaN.

    Parameters
    ----------
    text : str
        Raw reflection plaintext.

    Returns
    -------
    StructuralFeatures
    """
    words = text.split()
    word_count = len(words)
    unique_words = {w.lower() for w in words}

    sentences = [s for s in SENTENCE_SPLIT.split(text) if s.strip()]
    sentence_count = len(sentences)
    if sentence_count > 0:
        avg_sentence_length = sum(len(s.split()) for s in sentences) / sentence_count
    else:
        avg_sentence_length = 0.0

    punctuation_count = len(PUNCTUATION.findall(text))
    capitalized = sum(1 for w in words if CAPITALIZED.match(w))

    return StructuralFeatures(
        word_count=word_count,
        unique_word_ratio=len(unique_words) / max(word_count, 1),
        sentence_count=sentence_count,
        avg_sentence_length=avg_sentence_length,
        punctuation_density=punctuation_count / max(len(text), 1),
        capitalization_ratio=capitalized / max(word_count, 1),
    )
