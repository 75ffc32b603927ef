"""Positional constraints and the specification language that produces them.

Examples
--------
>>> from constrained_hmm.constraints import parse_constraint_spec
>>> hidden, observed = parse_constraint_spec("SW(t):NNP\\nNC*2\\nred:NN")
>>> len(hidden), len(observed)
(4, 4)
"""

from .constraint import (
    Constraint,
    Empty,
    Matches,
    StartsWithLetter,
    RhymesWith,
    Multi,
    MultiMode,
    any_of,
    all_of
)
from .parser import parse_atom, parse_constraint_spec
from .phonetics import rhymes, phonetic_codes

__all__ = [
    # Constraint types
    'Constraint',
    'Empty',
    'Matches',
    'StartsWithLetter',
    'RhymesWith',
    'Multi',
    'MultiMode',
    'any_of',
    'all_of',

    # Specification language
    'parse_atom',
    'parse_constraint_spec',

    # Rhyme oracle
    'rhymes',
    'phonetic_codes'
]
