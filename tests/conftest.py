"""
Pytest configuration and fixtures for reflection_lineage tests.
"""
import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (large reflection sets)"
    )


def make_reflection(rid, text, created_at, deleted_at=None):
    record = {"id": rid, "created_at": created_at, "plaintext": text}
    if deleted_at is not None:
        record["deleted_at"] = deleted_at
    return record


@pytest.fixture
def sample_reflections():
    """A small journal with structurally varied entries."""
    return [
        make_reflection(
            "r1",
            "I woke up early. The light was soft.",
            "2024-01-01T08:00:00Z",
        ),
        make_reflection(
            "r2",
            "why does everything feel heavy today, like every small thing, every errand, "
            "every message, is a weight i keep carrying without putting down",
            "2024-01-02T21:15:00Z",
        ),
        make_reflection(
            "r3",
            "Walked. Ate. Slept.",
            "2024-01-03T22:00:00Z",
        ),
        make_reflection(
            "r4",
            "The meeting went better than I expected! Maria asked good questions; "
            "Tom stayed quiet. Still, I think the plan holds.",
            "2024-01-05T18:30:00Z",
        ),
        make_reflection(
            "r5",
            "nothing much",
            "2024-01-06T23:59:00Z",
        ),
        make_reflection(
            "r6",
            "Deleted draft that should never be seen.",
            "2024-01-07T10:00:00Z",
            deleted_at="2024-01-07T10:05:00Z",
        ),
    ]


@pytest.fixture
def identical_reflections():
    """Two entries with the same text (zero divergence)."""
    text = "Same words, same shape. Nothing changed."
    return [
        make_reflection("a", text, "2024-03-01T09:00:00Z"),
        make_reflection("b", text, "2024-03-02T09:00:00Z"),
    ]
