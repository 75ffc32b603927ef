"""
Constrained Hidden Markov Model - sequence generation under positional constraints.

Trains a hidden Markov model on ``surface:hidden`` token corpora and
conditions it so that every generated sequence satisfies per-position
constraints on its hidden labels and surface forms.
"""

__version__ = "0.1.0"

from .constraints import (
    Empty,
    Matches,
    StartsWithLetter,
    RhymesWith,
    Multi,
    MultiMode,
    any_of,
    all_of,
    parse_constraint_spec
)
from .core import (
    START_TOKEN,
    HiddenMarkovModel,
    ConstrainedHiddenMarkovModel,
    train_base_model,
    build_constrained_model,
    sample_sequences
)
from .exceptions import (
    ConstrainedHMMError,
    ConstructionError,
    LengthMismatchError,
    CorpusFormatError,
    ProbabilityLookupError,
    ConstraintSpecError,
    ConfigurationError
)

__all__ = [
    '__version__',
    'Empty',
    'Matches',
    'StartsWithLetter',
    'RhymesWith',
    'Multi',
    'MultiMode',
    'any_of',
    'all_of',
    'parse_constraint_spec',
    'START_TOKEN',
    'HiddenMarkovModel',
    'ConstrainedHiddenMarkovModel',
    'train_base_model',
    'build_constrained_model',
    'sample_sequences',
    'ConstrainedHMMError',
    'ConstructionError',
    'LengthMismatchError',
    'CorpusFormatError',
    'ProbabilityLookupError',
    'ConstraintSpecError',
    'ConfigurationError'
]
