"""
Pytest configuration and shared fixtures for the constrained HMM test suite.
"""

import pytest
import numpy as np
import sys
from pathlib import Path

# Add src to path for testing
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from constrained_hmm.constraints import Empty, Matches, StartsWithLetter, any_of
from constrained_hmm.core import train_base_model


BASE_CORPUS_LINES = [
    "Ted:NNP now:RB likes:VBZ green:NN",
    "Mary:NNP likes:VBZ red:NN",
    "Mary:NNP now:RB loves:VBZ red:NN",
    "Fred:NNP sees:VBZ Mary:NNP sometimes:RB",
]


@pytest.fixture
def base_corpus():
    """Four-line part-of-speech corpus used throughout the suite."""
    return "\n".join(BASE_CORPUS_LINES)


@pytest.fixture
def ergodic_corpus():
    """Corpus in which every hidden label has recorded outgoing transitions."""
    return "\n".join([
        "a:X b:Y c:X",
        "b:Y a:X d:Y",
        "c:X c:Y a:X b:Y",
    ])


@pytest.fixture
def unique_path_corpus():
    """Two identical lines: exactly one sequence survives the constraints."""
    return "Ted:NNP now:RB likes:VBZ green:NN\nTed:NNP now:RB likes:VBZ green:NN"


@pytest.fixture
def base_model(base_corpus):
    """Order-1 model trained on the base corpus."""
    return train_base_model(1, base_corpus)


@pytest.fixture
def t_or_f_ending_red():
    """Observed constraints: start with 't' or 'f', end with 'red'."""
    return [
        any_of(StartsWithLetter('t'), StartsWithLetter('f')),
        Empty(),
        Empty(),
        Matches('red'),
    ]


@pytest.fixture
def rng():
    """Seeded generator for reproducible sampling."""
    return np.random.default_rng(42)


class FixedRandom:
    """Stand-in generator whose ``random()`` returns preset values."""

    def __init__(self, *values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


@pytest.fixture
def fixed_random():
    """Factory for generators with preset draws."""
    return FixedRandom


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark integration tests."""
    for item in items:
        if "integration" in item.nodeid or "end_to_end" in item.nodeid:
            item.add_marker(pytest.mark.integration)
