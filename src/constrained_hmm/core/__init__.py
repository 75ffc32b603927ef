"""Core models: the order-k hidden Markov model and its constrained,
position-indexed counterpart."""

from .tokens import START_TOKEN, TOKEN_SEPARATOR, split_token, join_token
from .distribution import Distribution, normalize, draw_key, validate_distribution
from .hidden_markov import HiddenMarkovModel, train_base_model
from .constrained_markov import ConstrainedHiddenMarkovModel, build_constrained_model
from .sampling import sample_sequences

__all__ = [
    # Tokens
    'START_TOKEN',
    'TOKEN_SEPARATOR',
    'split_token',
    'join_token',

    # Distributions
    'Distribution',
    'normalize',
    'draw_key',
    'validate_distribution',

    # Models
    'HiddenMarkovModel',
    'train_base_model',
    'ConstrainedHiddenMarkovModel',
    'build_constrained_model',

    # Sampling
    'sample_sequences'
]
